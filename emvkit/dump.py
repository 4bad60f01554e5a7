"""Hexadecimal dumps of byte buffers."""

from __future__ import annotations

import sys
from typing import TextIO

_BYTES_PER_LINE = 16


def format_simple(data: bytes) -> str:
    """Upper-case hex bytes separated by single spaces."""
    return " ".join(f"{byte:02X}" for byte in data)


def format_hexdump(data: bytes) -> str:
    """Classic offset / hex / ASCII dump, 16 bytes per line."""
    lines = []
    for offset in range(0, len(data), _BYTES_PER_LINE):
        chunk = data[offset:offset + _BYTES_PER_LINE]
        hex_part = "".join(f" {byte:02x}" for byte in chunk)
        hex_part += "   " * (_BYTES_PER_LINE - len(chunk))
        text = "".join(chr(byte) if 0x20 <= byte < 0x7F else "." for byte in chunk)
        lines.append(f"\t{offset:02x}:{hex_part} |{text}\n")
    return "".join(lines)


def dump_buffer_simple(data: bytes, file: TextIO | None = None) -> None:
    """Write the simple hex form of ``data`` to ``file`` (standard output by default)."""
    (file if file is not None else sys.stdout).write(format_simple(data))


def dump_buffer(data: bytes, file: TextIO | None = None) -> None:
    """Write the hexdump form of ``data`` to ``file`` (standard output by default)."""
    (file if file is not None else sys.stdout).write(format_hexdump(data))