"""Data Object Lists: building and splitting data described by a DOL."""

from __future__ import annotations

from typing import Mapping

from emvkit.ber import BerError, iter_tag_lengths


class DolError(ValueError):
    """A DOL is malformed or does not match the data."""


def _entries(dol: bytes) -> list[tuple[int, int]]:
    try:
        return list(iter_tag_lengths(dol or b""))
    except BerError as exc:
        raise DolError(f"malformed DOL: {exc}") from exc


def _total_length(entries: list[tuple[int, int]], data_len: int) -> int:
    # The last entry may have zero length, meaning "whatever is left".
    if entries and entries[-1][1] == 0:
        return data_len
    return sum(length for _, length in entries)


def dol_process(dol: bytes, values: Mapping[int, bytes]) -> bytes:
    """Concatenate the values the DOL asks for, truncated or zero-padded to size.

    Tags missing from ``values`` are filled with zeros.
    """
    entries = _entries(dol)
    if _total_length(entries, 0) == 0:
        return b""
    out = bytearray()
    for tag, length in entries:
        value = values.get(tag)
        if value is None:
            out += bytes(length)
        else:
            chunk = bytes(value[:length])
            out += chunk + bytes(length - len(chunk))
    return bytes(out)


def dol_parse(dol: bytes, data: bytes) -> list[tuple[int, bytes]]:
    """Split ``data`` into ``(tag, value)`` pairs following the DOL."""
    entries = _entries(dol)
    data = bytes(data)
    total = _total_length(entries, len(data))
    if total != len(data):
        raise DolError("data length does not match the DOL")

    result = []
    pos = 0
    last = len(entries) - 1
    for number, (tag, length) in enumerate(entries):
        if pos + length > total:
            raise DolError("DOL entries exceed the data")
        if length == 0 and number == last:
            length = total - pos
        result.append((tag, data[pos:pos + length]))
        pos += length
    return result