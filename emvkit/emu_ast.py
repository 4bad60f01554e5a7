"""In-memory model of an emulated card: a file system of DFs holding properties."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TextIO

from emvkit.dump import format_simple

_HEX = re.compile(r"[0-9A-Fa-f]*")
_CHUNK = 16


def parse_hex(text: str) -> bytes:
    """Decode a run of hex digits; a trailing odd digit is ignored."""
    usable = text[: len(text) // 2 * 2]
    if not _HEX.fullmatch(usable):
        raise ValueError(f"invalid hex value: {text!r}")
    return bytes.fromhex(usable)


def _format_buffer(value: bytes) -> str:
    chunks = (format_simple(value[k:k + _CHUNK]) for k in range(0, len(value), _CHUNK))
    return "\n\t\t ".join(chunks)


def format_values(values: list[bytes]) -> str:
    """Render a value list as ``<..>`` groups, one per value."""
    if not values:
        return ""
    return "<" + ">,\n\t\t<".join(_format_buffer(v) for v in values) + ">"


@dataclass
class Property:
    """A named property holding an ordered list of byte values."""

    name: str
    values: list[bytes] = field(default_factory=list)

    def get(self, n: int = 1) -> bytes | None:
        """Return the ``n``-th value, counting from 1, or None."""
        if n < 1 or n > len(self.values):
            return None
        return self.values[n - 1]

    def dump(self, file: TextIO) -> None:
        file.write(f"{self.name:<5} = {format_values(self.values)}")


@dataclass
class DedicatedFile:
    """A DF: an ordered collection of properties."""

    properties: list[Property] = field(default_factory=list)

    def append(self, prop: Property) -> None:
        self.properties.append(prop)

    def get_property(self, name: str) -> Property | None:
        """Return the first property called ``name``."""
        return next((p for p in self.properties if p.name == name), None)

    def get_value(self, name: str, n: int = 1) -> bytes | None:
        """Return the ``n``-th value of property ``name``, or None."""
        prop = self.get_property(name)
        return prop.get(n) if prop is not None else None

    def dump(self, file: TextIO) -> None:
        file.write("{\n")
        for prop in self.properties:
            file.write("\t")
            prop.dump(file)
            file.write(";\n")
        file.write("};\n")


@dataclass
class FileSystem:
    """The ordered list of DFs on an emulated card."""

    dfs: list[DedicatedFile] = field(default_factory=list)

    def append(self, df: DedicatedFile) -> None:
        self.dfs.append(df)

    def get_df(self, name: bytes = b"") -> DedicatedFile | None:
        """Find a DF whose ``name`` property starts with ``name``; empty picks the first DF."""
        if not name:
            return self.dfs[0] if self.dfs else None
        for df in self.dfs:
            df_name = df.get_value("name", 1) or b""
            if len(name) <= len(df_name) and df_name.startswith(name):
                return df
        return None

    def dump(self, file: TextIO) -> None:
        for df in self.dfs:
            df.dump(file)