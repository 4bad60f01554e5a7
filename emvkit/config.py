"""Library configuration stored in a libconfig-style settings file."""

from __future__ import annotations

import functools
import os
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Iterator, NamedTuple

CONFIG_ENV = "OPENEMV_CONFIG"
DEFAULT_CONFIG_DIR = "/etc/emvkit/"
DEFAULT_CONFIG_NAME = "config.txt"


class ConfigError(Exception):
    """A configuration file could not be read or parsed."""

    def __init__(self, message: str, filename: str = "<string>", line: int = 0):
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.line = line

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}: {self.message}"


_LEXEME_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<comment>\#[^\n]*|//[^\n]*|/\*.*?\*/)
    |(?P<string>"(?:[^"\\]|\\.)*")
    |(?P<float>[-+]?(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?|[-+]?\d+[eE][-+]?\d+)
    |(?P<hex>0[xX][0-9A-Fa-f]+L{0,2})
    |(?P<int>[-+]?\d+L{0,2})
    |(?P<bool>(?i:true|false)\b)
    |(?P<name>[A-Za-z*][-A-Za-z0-9_*]*)
    |(?P<punct>[=:;,{}\[\]()])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE = re.compile(r"\\(x[0-9A-Fa-f]{2}|.)", re.DOTALL)
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "f": "\f", "\\": "\\", '"': '"'}


class _Lexeme(NamedTuple):
    kind: str
    text: str
    line: int


def _unescape(literal: str) -> str:
    def replace(match: re.Match) -> str:
        seq = match.group(1)
        if len(seq) == 3 and seq[0] == "x":
            return chr(int(seq[1:], 16))
        return _ESCAPES.get(seq, seq)

    return _ESCAPE.sub(replace, literal[1:-1])


def _lex(text: str, filename: str) -> Iterator[_Lexeme]:
    pos = 0
    while pos < len(text):
        line = text.count("\n", 0, pos) + 1
        match = _LEXEME_RE.match(text, pos)
        if not match:
            raise ConfigError("syntax error", filename, line)
        kind = match.lastgroup
        pos = match.end()
        if kind in ("ws", "comment"):
            continue
        value = match.group()
        yield _Lexeme(value if kind == "punct" else kind, value, line)
    yield _Lexeme("eof", "", text.count("\n") + 1)


class _Parser:
    def __init__(self, text: str, filename: str):
        self._filename = filename
        self._lexemes = list(_lex(text, filename))
        self._pos = 0

    def _peek(self) -> _Lexeme:
        return self._lexemes[self._pos]

    def _next(self) -> _Lexeme:
        item = self._lexemes[self._pos]
        if item.kind != "eof":
            self._pos += 1
        return item

    def _error(self, message: str, item: _Lexeme) -> ConfigError:
        return ConfigError(message, self._filename, item.line)

    def parse(self) -> dict:
        return self._settings("eof")

    def _settings(self, close: str) -> dict:
        result: dict[str, Any] = {}
        while True:
            item = self._next()
            if item.kind == close:
                return result
            if item.kind not in ("name", "bool"):
                raise self._error("syntax error", item)
            separator = self._next()
            if separator.kind not in ("=", ":"):
                raise self._error("syntax error", separator)
            value = self._value()
            if item.text in result:
                raise self._error("duplicate setting name", item)
            result[item.text] = value
            if self._peek().kind in (";", ","):
                self._next()

    def _items(self, close: str) -> list:
        items: list[Any] = []
        if self._peek().kind == close:
            self._next()
            return items
        while True:
            items.append(self._value())
            item = self._next()
            if item.kind == close:
                return items
            if item.kind != ",":
                raise self._error("syntax error", item)

    def _value(self) -> Any:
        item = self._next()
        kind = item.kind
        if kind == "string":
            parts = [_unescape(item.text)]
            while self._peek().kind == "string":
                parts.append(_unescape(self._next().text))
            return "".join(parts)
        if kind == "int":
            return int(item.text.rstrip("L"))
        if kind == "hex":
            return int(item.text.rstrip("L"), 16)
        if kind == "float":
            return float(item.text)
        if kind == "bool":
            return item.text.lower() == "true"
        if kind == "{":
            return self._settings("}")
        if kind == "[":
            return self._items("]")
        if kind == "(":
            return self._items(")")
        raise self._error("syntax error", item)


@dataclass
class Config:
    """A tree of settings; groups are dicts, arrays and lists are lists."""

    settings: dict = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str) -> "Config":
        """Parse settings from text."""
        return cls(_Parser(text, "<string>").parse())

    @classmethod
    def from_file(cls, path: str | os.PathLike) -> "Config":
        """Parse settings from a file."""
        filename = os.fspath(path)
        try:
            with open(filename, encoding="utf-8") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError("file I/O error", filename, 0) from exc
        return cls(_Parser(text, filename).parse())

    def get(self, path: str, default: str | None = None) -> str | None:
        """Return the string setting at a dotted path, or ``default``."""
        node: Any = self.settings
        for part in re.split(r"[./:]", path):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node if isinstance(node, str) else default


def load_default() -> Config:
    """Load the configuration named by the environment, or an empty one on error."""
    path = os.environ.get(CONFIG_ENV)
    if path is None:
        path = os.path.join(DEFAULT_CONFIG_DIR, DEFAULT_CONFIG_NAME)
    try:
        return Config.from_file(path)
    except ConfigError as err:
        print(err, file=sys.stderr)
        return Config()


@functools.lru_cache(maxsize=None)
def _default_config() -> Config:
    return load_default()


def config_get(path: str, default: str | None = None) -> str | None:
    """Look up a string in the process-wide configuration."""
    return _default_config().get(path, default)