"""Machine integer kinds: width, signedness and byte encoding."""

from __future__ import annotations

from enum import Enum

BYTE_ORDER = "little"


class IntKind(Enum):
    """Integer kinds addressed by the instruction suffixes."""

    UC = ("uc", 1, False)
    US = ("us", 2, False)
    UI = ("ui", 4, False)
    C = ("c", 1, True)
    S = ("s", 2, True)
    I = ("i", 4, True)  # noqa: E741
    L = ("l", 4, True)

    def __init__(self, suffix: str, width: int, is_signed: bool) -> None:
        self.suffix = suffix
        self._width = width
        self._is_signed = is_signed

    def size(self) -> int:
        """Width in bytes."""
        return self._width

    def signed(self) -> bool:
        """Whether the kind is signed."""
        return self._is_signed

    def _mask(self) -> int:
        return (1 << (8 * self._width)) - 1

    def to_unsigned(self, value: int) -> int:
        """Reinterpret the low bits of value as an unsigned number."""
        return value & self._mask()

    def wrap(self, value: int) -> int:
        """Convert value to this kind, wrapping around like a C cast."""
        bits = 8 * self._width
        result = value & self._mask()
        if self._is_signed and result >= 1 << (bits - 1):
            result -= 1 << bits
        return result

    def decode(self, data: bytes) -> int:
        """Read a value of this kind from exactly size() bytes."""
        raw = bytes(data)
        if len(raw) != self._width:
            raise ValueError(
                f"{self.suffix} needs {self._width} bytes, got {len(raw)}"
            )
        return int.from_bytes(raw, BYTE_ORDER, signed=self._is_signed)

    def encode(self, value: int) -> bytes:
        """Write value, wrapped to this kind, as size() bytes."""
        return self.wrap(value).to_bytes(
            self._width, BYTE_ORDER, signed=self._is_signed
        )