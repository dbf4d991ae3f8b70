"""Arithmetic, bitwise and comparison semantics of the stack instructions.

Every operand is a stack cell, a 32-bit signed value. The instructions
name their operands ``top`` (the cell at the top of the stack) and
``second`` (the cell below it); binary operations compute ``top <op> second``.
"""

from __future__ import annotations

import operator
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .opcodes import Opcode
from .types import IntKind

_CELL = IntKind.L
_WORD_BITS = 32

_UNSIGNED_OF = {
    IntKind.UC: IntKind.UC,
    IntKind.US: IntKind.US,
    IntKind.UI: IntKind.UI,
    IntKind.C: IntKind.UC,
    IntKind.S: IntKind.US,
    IntKind.I: IntKind.UI,
    IntKind.L: IntKind.UI,
}

# Masks applied by left shift and bitwise not; the 4-byte non-long kinds keep
# only their low 24 bits.
_SHIFT_MASK = {
    IntKind.UC: 0xFF,
    IntKind.US: 0xFFFF,
    IntKind.UI: 0xFFFFFF,
    IntKind.C: 0xFF,
    IntKind.S: 0xFFFF,
    IntKind.I: 0xFFFFFF,
    IntKind.L: 0xFFFFFFFF,
}


class _Operation(Enum):
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    REM = "REM"
    LSH = "LSH"
    RSH = "RSH"
    AND = "AND"
    OR = "OR"
    XOR = "XOR"


def _truncating_divmod(a: int, b: int) -> Tuple[int, int]:
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return quotient, a - b * quotient


_ARITHMETIC: Dict[_Operation, Callable[[int, int], int]] = {
    _Operation.ADD: operator.add,
    _Operation.SUB: operator.sub,
    _Operation.MUL: operator.mul,
    _Operation.DIV: lambda a, b: _truncating_divmod(a, b)[0],
    _Operation.REM: lambda a, b: _truncating_divmod(a, b)[1],
    _Operation.AND: operator.and_,
    _Operation.OR: operator.or_,
    _Operation.XOR: operator.xor,
}

_BINARY: Dict[int, Tuple[_Operation, IntKind]] = {
    Opcode[operation.value + kind.suffix.upper()]: (operation, kind)
    for operation in _Operation
    for kind in IntKind
}

_NOT: Dict[int, IntKind] = {
    Opcode["NOT" + kind.suffix.upper()]: kind for kind in IntKind
}

_BINARY_COMPARE: Dict[int, Callable[[int, int], bool]] = {
    Opcode.CGT: operator.gt,
    Opcode.CLS: operator.lt,
    Opcode.CEQ: operator.eq,
    Opcode.CNE: operator.ne,
    Opcode.CLE: operator.le,
    Opcode.CGE: operator.ge,
}

_UNARY_COMPARE: Dict[int, Callable[[int], bool]] = {
    Opcode.CZ: lambda value: value == 0,
    Opcode.CNZ: lambda value: value != 0,
}


def is_binary(opcode: int) -> bool:
    """Whether opcode is a two-operand arithmetic or bitwise instruction."""
    return opcode in _BINARY


def is_not(opcode: int) -> bool:
    """Whether opcode is one of the bitwise-not instructions."""
    return opcode in _NOT


def is_compare(opcode: int) -> bool:
    """Whether opcode is a comparison that pushes 0 or 1."""
    return opcode in _BINARY_COMPARE or opcode in _UNARY_COMPARE


def _shift(left: int, amount: int, towards_left: bool) -> int:
    if amount >= _WORD_BITS:
        return 0
    return left << amount if towards_left else left >> amount


def binary_op(opcode: int, top: int, second: int) -> int:
    """Compute ``top <op> second`` for a binary instruction.

    Returns the new stack cell. Raises ValueError for an opcode that is not
    binary and ZeroDivisionError for division or remainder by zero. Shifts
    by the word width or more yield zero.
    """
    try:
        operation, kind = _BINARY[opcode]
    except KeyError:
        raise ValueError(f"opcode {opcode!r} is not a binary operation") from None

    if operation in (_Operation.LSH, _Operation.RSH):
        unsigned = _UNSIGNED_OF[kind]
        left = unsigned.wrap(top)
        amount = unsigned.wrap(second)
        if operation is _Operation.LSH:
            result = _shift(left, amount, True) & _SHIFT_MASK[kind]
        else:
            result = _shift(left, amount, False)
        if kind.signed():
            result = kind.wrap(result)
        return _CELL.wrap(result)

    result = _ARITHMETIC[operation](kind.wrap(top), kind.wrap(second))
    return _CELL.wrap(kind.wrap(result))


def not_op(opcode: int, value: int) -> int:
    """Bitwise not of a stack cell for one of the not instructions."""
    try:
        kind = _NOT[opcode]
    except KeyError:
        raise ValueError(f"opcode {opcode!r} is not a not operation") from None
    result = ~_UNSIGNED_OF[kind].wrap(value) & _SHIFT_MASK[kind]
    if kind.signed():
        result = kind.wrap(result)
    return _CELL.wrap(result)


def compare(opcode: int, top: int, second: Optional[int] = None) -> int:
    """Return 1 if the comparison holds for ``top`` and ``second``, else 0.

    The zero tests CZ and CNZ look at ``top`` alone.
    """
    if opcode in _UNARY_COMPARE:
        return int(_UNARY_COMPARE[opcode](top))
    try:
        relation = _BINARY_COMPARE[opcode]
    except KeyError:
        raise ValueError(f"opcode {opcode!r} is not a comparison") from None
    if second is None:
        raise ValueError(f"comparison {opcode!r} needs two operands")
    return int(relation(top, second))