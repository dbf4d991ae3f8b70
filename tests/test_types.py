import pytest

from sodavm.types import IntKind

SAMPLES = [0, 1, -1, 127, 128, -128, 255, 256, 32767, -32768, 65535, 65536,
           2**31 - 1, -(2**31), 2**32 - 1, 2**32, 2**40 + 3, -(2**40) - 5]


@pytest.mark.parametrize(
    "kind, size, signed",
    [
        (IntKind.UC, 1, False),
        (IntKind.US, 2, False),
        (IntKind.UI, 4, False),
        (IntKind.C, 1, True),
        (IntKind.S, 2, True),
        (IntKind.I, 4, True),
        (IntKind.L, 4, True),
    ],
)
def test_size_and_signedness(kind, size, signed):
    assert kind.size() == size
    assert kind.signed() is signed


@pytest.mark.parametrize(
    "kind",
    [IntKind.UC, IntKind.US, IntKind.UI, IntKind.C, IntKind.S, IntKind.I, IntKind.L],
)
@pytest.mark.parametrize("value", SAMPLES)
def test_wrap_stays_in_range(kind, value):
    bits = 8 * IntKind.size(kind)
    wrapped = IntKind.wrap(kind, value)
    if IntKind.signed(kind):
        assert -(1 << (bits - 1)) <= wrapped < (1 << (bits - 1))
    else:
        assert 0 <= wrapped < (1 << bits)
    assert IntKind.wrap(kind, wrapped) == wrapped


@pytest.mark.parametrize(
    "kind",
    [IntKind.UC, IntKind.US, IntKind.UI, IntKind.C, IntKind.S, IntKind.I, IntKind.L],
)
@pytest.mark.parametrize("value", SAMPLES)
def test_wrap_keeps_low_bits(kind, value):
    wrapped = IntKind.wrap(kind, value)
    assert IntKind.to_unsigned(kind, wrapped) == IntKind.to_unsigned(kind, value)


@pytest.mark.parametrize(
    "kind",
    [IntKind.UC, IntKind.US, IntKind.UI, IntKind.C, IntKind.S, IntKind.I, IntKind.L],
)
@pytest.mark.parametrize("value", SAMPLES)
def test_encode_decode_round_trip(kind, value):
    data = IntKind.encode(kind, value)
    assert len(data) == IntKind.size(kind)
    assert IntKind.decode(kind, data) == IntKind.wrap(kind, value)


@pytest.mark.parametrize(
    "kind",
    [IntKind.UC, IntKind.US, IntKind.UI, IntKind.C, IntKind.S, IntKind.I, IntKind.L],
)
def test_decode_encode_round_trip_over_bytes(kind):
    size = IntKind.size(kind)
    for first in range(256):
        data = bytes([first]) + bytes(range(1, size))
        assert IntKind.encode(kind, IntKind.decode(kind, data)) == data


def test_encoding_is_little_endian():
    assert IntKind.US.encode(1) == b"\x01\x00"
    assert IntKind.I.encode(1) == b"\x01\x00\x00\x00"


def test_signed_and_unsigned_share_bytes():
    for value in SAMPLES:
        assert IntKind.C.encode(value) == IntKind.UC.encode(value)
        assert IntKind.S.encode(value) == IntKind.US.encode(value)
        assert IntKind.I.encode(value) == IntKind.UI.encode(value)


def test_all_ones_byte_pattern():
    assert IntKind.UC.decode(b"\xff") == 255
    assert IntKind.C.decode(b"\xff") == -1


@pytest.mark.parametrize(
    "kind",
    [IntKind.UC, IntKind.US, IntKind.UI, IntKind.C, IntKind.S, IntKind.I, IntKind.L],
)
def test_decode_rejects_wrong_length(kind):
    with pytest.raises(ValueError):
        IntKind.decode(kind, bytes(IntKind.size(kind) + 1))
    with pytest.raises(ValueError):
        IntKind.decode(kind, b"")