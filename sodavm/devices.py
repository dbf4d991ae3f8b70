"""The input/output device reachable through the open and invoke instructions."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Iterable, List, Optional, Union

from .errors import OpenError
from .types import IntKind

Buffer = Union[bytes, bytearray, memoryview]

END_OF_INPUT = -1


class DeviceClass(IntEnum):
    """Device classes that can be opened."""

    IO = 0


def open_device(device_class: int) -> DeviceClass:
    """Check that ``device_class`` exists and return it; raise OpenError if not."""
    try:
        return DeviceClass(device_class)
    except ValueError:
        raise OpenError(device_class) from None


class IODevice:
    """Character input and output streams of a running program.

    Input is a sequence of character values, ending at its last item or at
    the first -1. Output is collected as character values. Every operation
    returns the value the machine stores in its first general register.
    """

    def __init__(self, input_values: Optional[Iterable[int]] = None) -> None:
        self._input: List[int] = list(input_values or ())
        self._input_pos = 0
        self._output: List[int] = []

    def _emit(self, value: int) -> None:
        self._output.append(IntKind.C.wrap(value))

    def _next_input(self) -> Optional[int]:
        if self._input_pos >= len(self._input):
            return None
        value = self._input[self._input_pos]
        return None if value == END_OF_INPUT else value

    def put_string(self, code: Buffer, offset: int) -> int:
        """Write the zero-terminated string at ``offset`` in ``code``."""
        if offset < 0:
            raise IndexError(f"string offset {offset} is negative")
        end = bytes(code).find(b"\0", offset)
        if end < 0:
            raise IndexError(f"unterminated string at offset {offset}")
        for byte in code[offset:end]:
            self._emit(byte)
        return 0

    def put_int(self, value: int) -> int:
        """Write the decimal digits of ``value``.

        No sign is written; digits of a negative number come out below '0'.
        """
        if value == 0:
            self._emit(ord("0"))
            return 0
        digits = []
        while value != 0:
            quotient = abs(value) // 10
            if value < 0:
                quotient = -quotient
            digits.append(value - 10 * quotient)
            value = quotient
        for digit in reversed(digits):
            self._emit(ord("0") + digit)
        return 0

    def put_char(self, value: int) -> int:
        """Write one character."""
        self._emit(value)
        return 0

    def put_format(self, code: Buffer, offset: int, pop: Callable[[], int]) -> int:
        """Write the format string at ``offset``, taking arguments from ``pop``.

        ``%d``, ``%c`` and ``%s`` each take one value; ``%s`` takes an
        offset into ``code``. ``%%`` writes a percent sign and any other
        directive writes nothing.
        """
        data = bytes(code)
        position = offset
        while position < len(data) and data[position] != 0:
            byte = data[position]
            if byte != ord("%"):
                self.put_char(byte)
                position += 1
                continue
            directive = data[position + 1] if position + 1 < len(data) else 0
            if directive == 0:
                break
            if directive == ord("%"):
                self.put_char(ord("%"))
            elif directive == ord("d"):
                self.put_int(pop())
            elif directive == ord("c"):
                self.put_char(pop())
            elif directive == ord("s"):
                self.put_string(code, pop())
            position += 2
        return 0

    def read_into(self, heap: bytearray, offset: int, size: int) -> int:
        """Copy up to ``size + 1`` input characters to ``heap`` at ``offset``.

        A zero byte follows each character copied. Returns the count copied.
        """
        count = 0
        for index in range(size + 1):
            value = self._next_input()
            if value is None:
                break
            heap[offset + index] = IntKind.UC.wrap(value)
            heap[offset + index + 1] = 0
            self._input_pos += 1
            count += 1
        return count

    def at_eof(self) -> int:
        """Return 1 when the input is exhausted, else 0."""
        return 1 if self._next_input() is None else 0

    def output_values(self) -> List[int]:
        """Character values written so far."""
        return list(self._output)

    def output_text(self) -> str:
        """Output decoded as Latin-1 text."""
        return bytes(value & 0xFF for value in self._output).decode("latin-1")