import io

from emvkit.dump import dump_buffer, dump_buffer_simple, format_hexdump, format_simple


def test_format_simple_empty():
    assert format_simple(b"") == ""


def test_format_simple_uppercase():
    assert format_simple(bytes([0xAB, 0x01])) == "AB 01"


def test_format_simple_roundtrip():
    data = bytes(range(0, 256, 7))
    assert bytes.fromhex(format_simple(data)) == data


def test_hexdump_short_line():
    assert format_hexdump(b"Hi") == "\t00: 48 69" + "   " * 14 + " |Hi\n"


def test_hexdump_line_count_and_alignment():
    data = bytes(range(40))
    lines = format_hexdump(data).splitlines()
    assert len(lines) == 3
    assert all(line.startswith("\t") for line in lines)
    assert len({line.index("|") for line in lines}) == 1


def test_hexdump_non_printable_as_dot():
    text = format_hexdump(b"\x00A\x7f")
    assert text.rstrip("\n").endswith("|.A.")


def test_hexdump_empty():
    assert format_hexdump(b"") == ""


def test_dump_buffer_to_file():
    out = io.StringIO()
    dump_buffer(b"abc", out)
    assert out.getvalue() == format_hexdump(b"abc")


def test_dump_buffer_simple_to_stdout(capsys):
    dump_buffer_simple(b"\x01\x02")
    assert capsys.readouterr().out == format_simple(b"\x01\x02")