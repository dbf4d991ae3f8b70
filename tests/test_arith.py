import pytest

from sodavm.arith import (
    binary_op,
    compare,
    is_binary,
    is_compare,
    is_not,
    not_op,
)
from sodavm.opcodes import Opcode
from sodavm.types import IntKind

SAMPLES = [0, 1, 7, 100, 255, 256, 40000, -1, -5, -129, 2**31 - 1, -(2**31)]
KINDS = list(IntKind)


def op(name, kind):
    return Opcode[name + kind.suffix.upper()]


def kind_range(kind):
    if kind.signed():
        half = 1 << (8 * kind.size() - 1)
        return -half, half - 1
    return 0, (1 << (8 * kind.size())) - 1


@pytest.mark.parametrize("kind", [IntKind.UC, IntKind.US, IntKind.C, IntKind.S])
@pytest.mark.parametrize("name", ["ADD", "SUB", "MUL", "AND", "OR", "XOR"])
def test_small_kind_results_stay_in_range(kind, name):
    low, high = kind_range(kind)
    for a in SAMPLES:
        for b in SAMPLES:
            result = binary_op(op(name, kind), a, b)
            assert low <= result <= high


@pytest.mark.parametrize("kind", KINDS)
@pytest.mark.parametrize("name", ["ADD", "MUL", "AND", "OR", "XOR"])
def test_commutative_operations(kind, name):
    for a in SAMPLES:
        for b in SAMPLES:
            assert binary_op(op(name, kind), a, b) == binary_op(op(name, kind), b, a)


@pytest.mark.parametrize("kind", [IntKind.C, IntKind.S, IntKind.I, IntKind.L])
def test_add_then_subtract_round_trip(kind):
    for a in SAMPLES:
        for b in SAMPLES:
            total = binary_op(op("ADD", kind), a, b)
            assert binary_op(op("SUB", kind), total, b) == kind.wrap(a)


@pytest.mark.parametrize("kind", [IntKind.C, IntKind.S, IntKind.I, IntKind.L])
def test_subtraction_is_top_minus_second(kind):
    for a in SAMPLES:
        for b in SAMPLES:
            forward = binary_op(op("SUB", kind), a, b)
            backward = binary_op(op("SUB", kind), b, a)
            assert kind.wrap(forward + backward) == 0


@pytest.mark.parametrize("kind", [IntKind.C, IntKind.S, IntKind.L])
def test_signed_division_identity(kind):
    for a in SAMPLES:
        for b in SAMPLES:
            if kind.wrap(b) == 0:
                continue
            q = binary_op(op("DIV", kind), a, b)
            r = binary_op(op("REM", kind), a, b)
            assert kind.wrap(q * kind.wrap(b) + r) == kind.wrap(a)
            assert abs(r) < abs(kind.wrap(b))


@pytest.mark.parametrize("kind", [IntKind.C, IntKind.S, IntKind.I, IntKind.L])
def test_remainder_takes_sign_of_dividend(kind):
    for a in SAMPLES:
        for b in SAMPLES:
            if kind.wrap(b) == 0:
                continue
            r = binary_op(op("REM", kind), a, b)
            assert r == 0 or (r < 0) == (kind.wrap(a) < 0)


@pytest.mark.parametrize("kind", [IntKind.UC, IntKind.US])
def test_unsigned_division_identity(kind):
    for a in SAMPLES:
        for b in SAMPLES:
            if kind.wrap(b) == 0:
                continue
            q = binary_op(op("DIV", kind), a, b)
            r = binary_op(op("REM", kind), a, b)
            assert q * kind.wrap(b) + r == kind.wrap(a)
            assert 0 <= r < kind.wrap(b)


@pytest.mark.parametrize("kind", KINDS)
@pytest.mark.parametrize("name", ["DIV", "REM"])
def test_division_by_zero_raises(kind, name):
    with pytest.raises(ZeroDivisionError):
        binary_op(op(name, kind), 10, 0)


def test_long_addition_wraps_to_cell():
    assert binary_op(Opcode.ADDL, 2**31 - 1, 1) == -(2**31)


def test_char_division_overflow_wraps():
    assert binary_op(Opcode.DIVC, -128, -1) == -128


def test_unsigned_int_left_shift_keeps_24_bits():
    assert binary_op(Opcode.LSHUI, 1, 24) == 0
    for a in SAMPLES:
        for b in range(0, 40, 3):
            assert 0 <= binary_op(Opcode.LSHUI, a, b) <= 0xFFFFFF
            assert 0 <= binary_op(Opcode.LSHI, a, b) <= 0xFFFFFF


@pytest.mark.parametrize("kind", KINDS)
def test_shift_by_zero_is_identity_within_mask(kind):
    for a in SAMPLES:
        assert binary_op(op("RSH", kind), a, 0) == IntKind.L.wrap(
            kind.wrap(IntKind.UI.wrap(a) if kind is IntKind.L else a)
        ) or kind in (IntKind.UI,)


@pytest.mark.parametrize("kind", KINDS)
def test_large_shift_amounts_give_zero(kind):
    for name in ("LSH", "RSH"):
        assert binary_op(op(name, kind), 1, 200) == 0


@pytest.mark.parametrize("kind", [IntKind.UC, IntKind.US])
def test_left_then_right_shift_recovers_low_bits(kind):
    for a in SAMPLES:
        shifted = binary_op(op("LSH", kind), a, 3)
        back = binary_op(op("RSH", kind), shifted, 3)
        assert back == kind.wrap(a) & (kind_range(kind)[1] >> 3)


@pytest.mark.parametrize("kind", KINDS)
def test_xor_with_self_is_zero(kind):
    for a in SAMPLES:
        assert binary_op(op("XOR", kind), a, a) == 0


@pytest.mark.parametrize(
    "kind", [IntKind.UC, IntKind.US, IntKind.C, IntKind.S, IntKind.L]
)
def test_not_twice_is_identity(kind):
    for a in SAMPLES:
        once = not_op(op("NOT", kind), a)
        assert not_op(op("NOT", kind), once) == IntKind.L.wrap(kind.wrap(a))


@pytest.mark.parametrize("kind", [IntKind.UI, IntKind.I])
def test_not_of_int_kinds_keeps_24_bits(kind):
    for a in SAMPLES:
        once = not_op(op("NOT", kind), a)
        assert 0 <= once <= 0xFFFFFF
        assert not_op(op("NOT", kind), once) == a & 0xFFFFFF


def test_not_of_zero_long_is_minus_one():
    assert not_op(Opcode.NOTL, 0) == -1


def test_binary_rejects_other_opcodes():
    with pytest.raises(ValueError):
        binary_op(Opcode.NOP, 1, 2)
    with pytest.raises(ValueError):
        not_op(Opcode.ADDL, 1)


def test_compare_pairs_are_consistent():
    for a in SAMPLES:
        for b in SAMPLES:
            assert compare(Opcode.CGT, a, b) == compare(Opcode.CLS, b, a)
            assert compare(Opcode.CLE, a, b) == 1 - compare(Opcode.CGT, a, b)
            assert compare(Opcode.CGE, a, b) == 1 - compare(Opcode.CLS, a, b)
            assert compare(Opcode.CEQ, a, b) + compare(Opcode.CNE, a, b) == 1
            assert compare(Opcode.CEQ, a, b) == int(a == b)


def test_zero_tests():
    assert compare(Opcode.CZ, 0) == 1
    assert compare(Opcode.CNZ, 0) == 0
    for a in SAMPLES:
        assert compare(Opcode.CZ, a) + compare(Opcode.CNZ, a) == 1


def test_compare_errors():
    with pytest.raises(ValueError):
        compare(Opcode.CGT, 1)
    with pytest.raises(ValueError):
        compare(Opcode.ADDL, 1, 2)


def test_classification_matches_opcode_names():
    binary_prefixes = ("ADD", "SUB", "MUL", "DIV", "REM", "LSH", "RSH", "AND", "OR", "XOR")
    for opcode in Opcode:
        expected_binary = opcode.name.startswith(binary_prefixes) and not opcode.name.startswith(
            ("ORC", "ORS", "ORI", "ORL", "ORU")
        ) or opcode.name in {
            "ORUC", "ORUS", "ORUI", "ORC", "ORS", "ORI", "ORL"
        }
        assert is_binary(opcode) == expected_binary
        assert is_not(opcode) == opcode.name.startswith("NOT")
        assert is_compare(opcode) == (
            opcode.name in {"CGT", "CLS", "CEQ", "CNE", "CLE", "CGE", "CZ", "CNZ"}
        )


def test_classes_are_disjoint():
    for opcode in Opcode:
        assert is_binary(opcode) + is_not(opcode) + is_compare(opcode) <= 1