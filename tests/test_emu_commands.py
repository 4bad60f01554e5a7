import pytest

from emvkit.emu_ast import DedicatedFile, FileSystem, Property
from emvkit.emu_commands import EmuCard

PSE_NAME = b"1PAY.SYS.DDF01"
APP_AID = bytes.fromhex("A0000000031010")
PIN_BLOCK = bytes.fromhex("241234FFFFFFFFFF")


def _df(**props):
    df = DedicatedFile()
    for name, values in props.items():
        df.append(Property(name, list(values)))
    return df


@pytest.fixture
def card():
    fs = FileSystem()
    fs.append(_df(name=[PSE_NAME], fci=[b"\x6f\x01\x00"], sfi1=[b"\x70\x00"]))
    fs.append(_df(
        name=[APP_AID],
        fci=[b"\x6f\x02\x84\x00"],
        pinblock=[PIN_BLOCK],
        sfi1=[b"rec1", b"rec2"],
        sfi2=[b"other"],
        gpo=[b"\x80\x02\x00\x00"],
        ac=[b"\x80\x01\x40"],
        data9f36=[b"\x9f\x36\x02\x00\x01"],
    ))
    fs.append(_df(name=[b"\xa0\x00\x00\x00\x04"]))
    return EmuCard(fs)


def select_app(card):
    return card.command(0x00, 0xA4, 0x04, 0x00, APP_AID)


def test_empty_filesystem_rejected():
    with pytest.raises(ValueError):
        EmuCard(FileSystem())


def test_first_df_selected_initially(card):
    assert card.selected.get_value("name") == PSE_NAME
    assert card.command(0x00, 0xB2, 1, (1 << 3) | 4) == (0x9000, b"\x70\x00")


def test_unsupported_class(card):
    assert card.command(0x40, 0xA4, 4, 0, APP_AID) == (0x6E00, b"")


def test_unsupported_instruction(card):
    assert card.command(0x00, 0x84, 0, 0) == (0x6D00, b"")
    assert card.command(0x80, 0x20, 0, 0x80) == (0x6D00, b"")


def test_select_returns_fci(card):
    assert select_app(card) == (0x9000, b"\x6f\x02\x84\x00")
    assert card.selected.get_value("name") == APP_AID


def test_select_by_prefix(card):
    sw, data = card.command(0x00, 0xA4, 4, 0, APP_AID[:5])
    assert sw == 0x9000
    assert card.selected.get_value("name") == APP_AID


def test_select_wrong_parameters(card):
    assert card.command(0x00, 0xA4, 0, 0, APP_AID) == (0x6A86, b"")


def test_select_unknown_file(card):
    assert card.command(0x00, 0xA4, 4, 0, b"\xb0\x00\x00") == (0x6A82, b"")
    assert card.selected.get_value("name") == PSE_NAME


def test_select_without_fci_changes_selection(card):
    assert card.command(0x00, 0xA4, 4, 0, b"\xa0\x00\x00\x00\x04") == (0x6A80, b"")
    assert card.selected.get_value("name") == b"\xa0\x00\x00\x00\x04"


def test_read_records(card):
    select_app(card)
    assert card.command(0x00, 0xB2, 1, (1 << 3) | 4) == (0x9000, b"rec1")
    assert card.command(0x00, 0xB2, 2, (1 << 3) | 4) == (0x9000, b"rec2")
    assert card.command(0x00, 0xB2, 1, (2 << 3) | 4) == (0x9000, b"other")


def test_read_record_missing(card):
    select_app(card)
    assert card.command(0x00, 0xB2, 3, (1 << 3) | 4) == (0x6A80, b"")
    assert card.command(0x00, 0xB2, 0, (1 << 3) | 4) == (0x6A80, b"")
    assert card.command(0x00, 0xB2, 1, (5 << 3) | 4) == (0x6A80, b"")


def test_read_record_wrong_reference_control(card):
    assert card.command(0x00, 0xB2, 1, (1 << 3) | 0) == (0x6A86, b"")


def test_verify_pin(card):
    select_app(card)
    assert card.command(0x00, 0x20, 0x00, 0x80, PIN_BLOCK) == (0x9000, b"")


def test_verify_wrong_pin(card):
    select_app(card)
    wrong = bytes.fromhex("240000FFFFFFFFFF")
    assert card.command(0x00, 0x20, 0x00, 0x80, wrong) == (0x63C3, b"")


def test_verify_wrong_length(card):
    select_app(card)
    assert card.command(0x00, 0x20, 0x00, 0x80, PIN_BLOCK[:7]) == (0x6700, b"")


def test_verify_wrong_parameters(card):
    select_app(card)
    assert card.command(0x00, 0x20, 0x00, 0x88, PIN_BLOCK) == (0x6A86, b"")


def test_verify_without_pin_block(card):
    assert card.command(0x00, 0x20, 0x00, 0x80, PIN_BLOCK) == (0x6A81, b"")


def test_get_processing_options(card):
    select_app(card)
    assert card.command(0x80, 0xA8, 0, 0, b"\x83\x00") == (0x9000, b"\x80\x02\x00\x00")
    assert card.command(0x80, 0xA8, 1, 0, b"\x83\x00") == (0x6A86, b"")


def test_get_processing_options_missing(card):
    assert card.command(0x80, 0xA8, 0, 0, b"\x83\x00") == (0x6A80, b"")


def test_generate_ac(card):
    select_app(card)
    assert card.command(0x80, 0xAE, 0x80, 0, b"") == (0x9000, b"\x80\x01\x40")
    assert card.command(0x80, 0xAE, 0x80, 1, b"") == (0x6A86, b"")


def test_get_data(card):
    select_app(card)
    assert card.command(0x80, 0xCA, 0x9F, 0x36) == (0x9000, b"\x9f\x36\x02\x00\x01")
    assert card.command(0x80, 0xCA, 0x9F, 0x17) == (0x6A88, b"")