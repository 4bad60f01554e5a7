"""An emulated EMV card that answers APDU commands from a card description."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from emvkit.emu_ast import DedicatedFile, FileSystem

SW_OK = 0x9000
SW_WRONG_LENGTH = 0x6700
SW_PIN_TRIES_LEFT_3 = 0x63C3
SW_WRONG_DATA = 0x6A80
SW_FUNC_NOT_SUPPORTED = 0x6A81
SW_FILE_NOT_FOUND = 0x6A82
SW_WRONG_P1P2 = 0x6A86
SW_DATA_NOT_FOUND = 0x6A88
SW_INS_NOT_SUPPORTED = 0x6D00
SW_CLA_NOT_SUPPORTED = 0x6E00

_PIN_BLOCK_LEN = 8

Response = tuple[int, bytes]


@dataclass
class EmuCard:
    """A card whose files and responses come from a parsed description."""

    fs: FileSystem
    selected: DedicatedFile = field(init=False)

    def __post_init__(self) -> None:
        first = self.fs.get_df(b"")
        if first is None:
            raise ValueError("card description holds no DF")
        self.selected = first

    def command(self, cla: int, ins: int, p1: int, p2: int,
                data: bytes = b"") -> Response:
        """Process one command; return the status word and the response data."""
        data = bytes(data or b"")
        handlers = _HANDLERS.get(cla)
        if handlers is None:
            return SW_CLA_NOT_SUPPORTED, b""
        handler = handlers.get(ins)
        if handler is None:
            return SW_INS_NOT_SUPPORTED, b""
        return handler(self, p1, p2, data)

    def _value(self, name: str, n: int, missing: int) -> Response:
        value = self.selected.get_value(name, n)
        if value is None:
            return missing, b""
        return SW_OK, value

    def _verify(self, p1: int, p2: int, data: bytes) -> Response:
        if p1 != 0 or p2 != 0x80:
            return SW_WRONG_P1P2, b""
        pin_block = self.selected.get_value("pinblock", 1)
        if pin_block is None or len(pin_block) != _PIN_BLOCK_LEN:
            return SW_FUNC_NOT_SUPPORTED, b""
        if len(data) != _PIN_BLOCK_LEN:
            return SW_WRONG_LENGTH, b""
        if pin_block != data:
            return SW_PIN_TRIES_LEFT_3, b""
        return SW_OK, b""

    def _select(self, p1: int, p2: int, data: bytes) -> Response:
        if p1 != 4 or p2 != 0:
            return SW_WRONG_P1P2, b""
        df = self.fs.get_df(data)
        if df is None:
            return SW_FILE_NOT_FOUND, b""
        self.selected = df
        return self._value("fci", 1, SW_WRONG_DATA)

    def _read_record(self, p1: int, p2: int, data: bytes) -> Response:
        if p2 & 0x7 != 4:
            return SW_WRONG_P1P2, b""
        return self._value(f"sfi{p2 >> 3}", p1, SW_WRONG_DATA)

    def _generate_ac(self, p1: int, p2: int, data: bytes) -> Response:
        if p2 != 0:
            return SW_WRONG_P1P2, b""
        return self._value("ac", 1, SW_WRONG_DATA)

    def _get_processing_options(self, p1: int, p2: int, data: bytes) -> Response:
        if p1 != 0 or p2 != 0:
            return SW_WRONG_P1P2, b""
        return self._value("gpo", 1, SW_WRONG_DATA)

    def _get_data(self, p1: int, p2: int, data: bytes) -> Response:
        return self._value(f"data{p1 & 0xFF:02x}{p2 & 0xFF:02x}", 1, SW_DATA_NOT_FOUND)


_Handler = Callable[[EmuCard, int, int, bytes], Response]

_HANDLERS: dict[int, dict[int, _Handler]] = {
    0x00: {
        0x20: EmuCard._verify,
        0xA4: EmuCard._select,
        0xB2: EmuCard._read_record,
    },
    0x80: {
        0xA8: EmuCard._get_processing_options,
        0xAE: EmuCard._generate_ac,
        0xCA: EmuCard._get_data,
    },
}