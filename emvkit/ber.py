"""BER-TLV tag and length handling as used by EMV (tags of at most two bytes)."""

from __future__ import annotations

from typing import Iterator


class BerError(ValueError):
    """Malformed or unsupported BER-TLV data."""


def read_tag_length(buf: bytes) -> tuple[int, int, bytes]:
    """Read a tag and a length; return ``(tag, length, rest)``."""
    if not buf:
        raise BerError("no tag")
    tag = buf[0]
    pos = 1
    if tag & 0x1F == 0x1F:
        if pos >= len(buf):
            raise BerError("truncated tag")
        second = buf[pos]
        pos += 1
        if second & 0x80:
            raise BerError("tag longer than two bytes")
        tag = (tag << 8) | second

    if pos >= len(buf):
        raise BerError("no length")
    first = buf[pos]
    pos += 1
    if first < 0x80:
        length = first
    else:
        count = first & 0x7F
        if count not in (1, 2):
            raise BerError("unsupported length encoding")
        if pos + count > len(buf):
            raise BerError("truncated length")
        length = int.from_bytes(buf[pos:pos + count], "big")
        pos += count
    return tag, length, bytes(buf[pos:])


def iter_tag_lengths(buf: bytes) -> Iterator[tuple[int, int]]:
    """Yield ``(tag, length)`` pairs from a buffer of tag-length entries (a DOL)."""
    rest = bytes(buf)
    while rest:
        tag, length, rest = read_tag_length(rest)
        yield tag, length


def encode_tlv(tag: int, value: bytes) -> bytes:
    """Encode a tag, its length and ``value``."""
    if not 0 <= tag <= 0xFFFF:
        raise BerError("tag out of range")
    tag_bytes = tag.to_bytes(2 if tag > 0xFF else 1, "big")
    length = len(value)
    if length < 0x80:
        length_bytes = bytes([length])
    elif length < 0x100:
        length_bytes = bytes([0x81, length])
    elif length < 0x10000:
        length_bytes = bytes([0x82]) + length.to_bytes(2, "big")
    else:
        raise BerError("value too long")
    return tag_bytes + length_bytes + bytes(value)


def is_constructed(tag: int) -> bool:
    """Whether the tag denotes a constructed data object."""
    first = tag >> 8 if tag > 0xFF else tag
    return bool(first & 0x20)