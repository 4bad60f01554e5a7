import pytest

from emvkit.dol import DolError, dol_parse, dol_process

# 9F02 amount (6), 9F1A country code (2), 95 TVR (5)
PDOL = bytes([0x9F, 0x02, 0x06, 0x9F, 0x1A, 0x02, 0x95, 0x05])
AMOUNT = bytes([0, 0, 0, 0, 0x01, 0x00])
COUNTRY = bytes([0x08, 0x26])

# The response format used for GENERATE AC: CID, ATC, AC, then variable IAD.
AC_DOL = bytes([0x9F, 0x27, 0x01, 0x9F, 0x36, 0x02, 0x9F, 0x26, 0x08, 0x9F, 0x10, 0x00])


def test_process_fills_missing_with_zeros():
    out = dol_process(PDOL, {0x9F02: AMOUNT, 0x9F1A: COUNTRY})
    assert out == AMOUNT + COUNTRY + bytes(5)


def test_process_truncates_long_values():
    out = dol_process(PDOL, {0x9F1A: COUNTRY + b"\x99\x99"})
    assert out[6:8] == COUNTRY
    assert len(out) == 13


def test_process_pads_short_values():
    out = dol_process(PDOL, {0x9F02: b"\x12"})
    assert out[:6] == b"\x12" + bytes(5)


def test_process_empty_dol():
    assert dol_process(b"", {0x9F02: AMOUNT}) == b""


def test_process_trailing_variable_entry_gives_nothing():
    assert dol_process(AC_DOL, {0x9F27: b"\x80"}) == b""


def test_process_malformed():
    with pytest.raises(DolError):
        dol_process(bytes([0x9F]), {})


def test_parse_round_trip():
    values = {0x9F02: AMOUNT, 0x9F1A: COUNTRY, 0x95: bytes([0x80, 0, 0, 0, 0])}
    data = dol_process(PDOL, values)
    assert dict(dol_parse(PDOL, data)) == values


def test_parse_keeps_order():
    data = dol_process(PDOL, {})
    assert [tag for tag, _ in dol_parse(PDOL, data)] == [0x9F02, 0x9F1A, 0x95]


def test_parse_variable_last_entry():
    data = b"\x80" + b"\x00\x01" + bytes(range(8)) + b"\x06\x01\x0a"
    parsed = dol_parse(AC_DOL, data)
    assert parsed[0] == (0x9F27, b"\x80")
    assert parsed[1] == (0x9F36, b"\x00\x01")
    assert parsed[2] == (0x9F26, bytes(range(8)))
    assert parsed[3] == (0x9F10, b"\x06\x01\x0a")


def test_parse_variable_last_entry_may_be_empty():
    data = b"\x80" + b"\x00\x01" + bytes(8)
    assert dol_parse(AC_DOL, data)[-1] == (0x9F10, b"")


def test_parse_variable_last_entry_too_short():
    with pytest.raises(DolError):
        dol_parse(AC_DOL, b"\x80\x00")


def test_parse_length_mismatch():
    with pytest.raises(DolError):
        dol_parse(PDOL, bytes(12))
    with pytest.raises(DolError):
        dol_parse(PDOL, bytes(14))


def test_parse_empty():
    assert dol_parse(b"", b"") == []


def test_parse_malformed():
    with pytest.raises(DolError):
        dol_parse(bytes([0x9F, 0x02]), b"")