import pytest

from emvkit.ber import BerError, encode_tlv, is_constructed, iter_tag_lengths, read_tag_length


def test_read_two_byte_tag():
    assert read_tag_length(b"\x9f\x37\x04") == (0x9F37, 4, b"")


def test_read_leaves_value():
    assert read_tag_length(b"\x5a\x02\x12\x34") == (0x5A, 2, b"\x12\x34")


def test_encode_short():
    assert encode_tlv(0x5A, b"\x12\x34") == b"\x5a\x02\x12\x34"


@pytest.mark.parametrize("length", [0, 1, 0x7F, 0x80, 0xFF, 0x100, 0x1234])
@pytest.mark.parametrize("tag", [0x5A, 0x70, 0x9F37, 0xBF0C])
def test_roundtrip(tag, length):
    value = bytes(i & 0xFF for i in range(length))
    encoded = encode_tlv(tag, value)
    assert read_tag_length(encoded) == (tag, length, value)


def test_iter_tag_lengths():
    dol = bytes([0x9F, 0x37, 0x04, 0x95, 0x05, 0x9A, 0x03])
    assert list(iter_tag_lengths(dol)) == [(0x9F37, 4), (0x95, 5), (0x9A, 3)]


def test_iter_empty():
    assert list(iter_tag_lengths(b"")) == []


@pytest.mark.parametrize(
    "buf",
    [b"", b"\x9f", b"\x5a", b"\x9f\x81\x01\x01", b"\x5a\x81", b"\x5a\x82\x01", b"\x5a\x83\x00\x00\x01", b"\x5a\x80"],
)
def test_malformed(buf):
    with pytest.raises(BerError):
        read_tag_length(buf)


def test_iter_malformed_raises():
    with pytest.raises(BerError):
        list(iter_tag_lengths(b"\x9f\x37\x04\x95"))


def test_encode_too_long():
    with pytest.raises(BerError):
        encode_tlv(0x5A, bytes(0x10000))


def test_encode_bad_tag():
    with pytest.raises(BerError):
        encode_tlv(0x10000, b"")


@pytest.mark.parametrize("tag, expected", [(0x70, True), (0x77, True), (0xBF0C, True), (0x5A, False), (0x9F37, False)])
def test_is_constructed(tag, expected):
    assert is_constructed(tag) is expected