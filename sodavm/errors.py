"""Exceptions raised when the virtual machine stops abnormally."""

from __future__ import annotations


class VMError(Exception):
    """Base class for every abnormal stop of the machine.

    ``status`` is the numeric status the machine reports for the error.
    """

    status: int = -1


class Trap(VMError):
    """Execution or a jump reached an address outside the code segment."""

    status = 1

    def __init__(self, address: int) -> None:
        super().__init__(f"trap at address {address}")
        self.address = address


class Panic(VMError):
    """The program raised a panic."""

    status = 2

    def __init__(self, message: str = "panic") -> None:
        super().__init__(message)


class OpenError(VMError):
    """A device class that does not exist was opened."""

    status = 3

    def __init__(self, device_class: int) -> None:
        super().__init__(f"cannot open device class {device_class}")
        self.device_class = device_class


class InvokeError(VMError):
    """A device function that does not exist was invoked."""

    status = 4

    def __init__(self, device_class: int, function: int) -> None:
        super().__init__(
            f"no function {function} in device class {device_class}"
        )
        self.device_class = device_class
        self.function = function


class IllegalInstruction(VMError):
    """The byte at the program counter is not a known opcode."""

    status = 5

    def __init__(self, opcode: int, address: int) -> None:
        super().__init__(f"illegal instruction {opcode} at address {address}")
        self.opcode = opcode
        self.address = address