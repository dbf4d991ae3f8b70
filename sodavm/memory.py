"""Typed loads and stores on the code segment and the heap."""

from __future__ import annotations

from typing import Dict, Union

from .opcodes import Opcode
from .types import IntKind

Buffer = Union[bytes, bytearray, memoryview]

_FAMILIES = ("PUSH", "LDC", "LDH", "STH", "ALDC", "ALDH", "ASTH")

_KIND_OF: Dict[int, IntKind] = {
    Opcode[family + kind.suffix.upper()]: kind
    for family in _FAMILIES
    for kind in IntKind
}


def _check_range(buffer: Buffer, address: int, kind: IntKind) -> None:
    if address < 0 or address + kind.size() > len(buffer):
        raise IndexError(
            f"{kind.suffix} access at {address} outside buffer of {len(buffer)} bytes"
        )


def _aligned_address(address: int, kind: IntKind) -> int:
    return (address // kind.size()) * kind.size()


def load(buffer: Buffer, address: int, kind: IntKind) -> int:
    """Read a value of ``kind`` starting at byte ``address``."""
    _check_range(buffer, address, kind)
    return kind.decode(buffer[address:address + kind.size()])


def store(buffer: bytearray, address: int, value: int, kind: IntKind) -> None:
    """Write ``value``, wrapped to ``kind``, starting at byte ``address``."""
    _check_range(buffer, address, kind)
    buffer[address:address + kind.size()] = kind.encode(value)


def aligned_load(buffer: Buffer, address: int, kind: IntKind) -> int:
    """Read the ``kind`` element that holds byte ``address``.

    The address is rounded down to a multiple of the kind's width.
    """
    return load(buffer, _aligned_address(address, kind), kind)


def aligned_store(buffer: bytearray, address: int, value: int, kind: IntKind) -> None:
    """Write the ``kind`` element that holds byte ``address``."""
    store(buffer, _aligned_address(address, kind), value, kind)


def kind_of(opcode: int) -> IntKind:
    """Return the integer kind a push, load or store instruction works on."""
    try:
        return _KIND_OF[opcode]
    except KeyError:
        raise ValueError(f"opcode {opcode!r} has no memory kind") from None