# emvkit

A library for working with data from EMV payment smart cards: BER tag/length
handling, Data Object Lists, CA public key files, recovery and signing of EMV
certificates, and an emulated card that answers APDUs.

## Installation

```
pip install emvkit
```

The only runtime dependency is `cryptography`, used to generate RSA keys.

## Modules

- `emvkit.ber` – `read_tag_length` reads one tag (one or two bytes) and its
  length and returns `(tag, length, rest)`; `iter_tag_lengths` yields the
  `(tag, length)` entries of a DOL; `encode_tlv` encodes a tag, length and
  value; `is_constructed` tells whether a tag is constructed. Malformed input
  raises `BerError`.
- `emvkit.dol` – `dol_process(dol, values)` builds command data from a DOL and
  a mapping of tag to bytes (values are truncated or zero-padded; missing tags
  become zeros); `dol_parse(dol, data)` splits data back into a list of
  `(tag, value)` pairs. A zero-length last entry takes whatever is left.
  Mismatches raise `DolError`.
- `emvkit.crypto` – `open_hash(HashAlgo.SHA_1)` returns a `Hash` with
  `update`, `digest` and `size`; `RsaKey` performs raw RSA (`encrypt` for the
  public operation, `decrypt` for the private one, both returning
  modulus-length output) and can be built with `RsaKey.public`,
  `RsaKey.private` or `RsaKey.generate`. `parameter(0)` and `parameter(1)`
  return the modulus and public exponent. Errors raise `CryptoError`.
- `emvkit.emv_pk` – the `EmvPk` key record. `parse_pk(line)` reads the
  one-line form `RID INDEX YYMMDD rsa EXP MODULUS sha1 HASH` (hex fields
  separated by colons) and raises `PkParseError` on bad input; `EmvPk.dump`
  writes the same form; `EmvPk.verify` checks the stored SHA-1 hash;
  `EmvPk.new(modlen, explen)` makes an empty record.
  `get_ca_pk(rid, index, path=None)` finds the first matching key in a key
  file, prints a verification line to standard output, and returns the key
  if it verifies, otherwise `None`.
- `emvkit.emv_pki` – `recover_issuer_cert`, `recover_icc_cert` and
  `recover_icc_pe_cert` recover public keys from certificates;
  `recover_dac` and `recover_idn` check signed static and dynamic data and
  return `{0x9F45: dac}` or `{0x9F4C: idn}`; `perform_cda` checks a combined
  DDA/AC signature. Card data is passed as a mapping of tag to bytes. Any
  failure raises `PkiError`.
- `emvkit.emv_pki_priv` – the signing side: `make_ca` describes an `RsaKey`
  as a CA key record; `sign_issuer_cert`, `sign_icc_cert`, `sign_icc_pe_cert`,
  `sign_dac` and `sign_idn` return dicts of tag to bytes (certificate,
  remainder where needed, and exponent).
- `emvkit.emu_ast` – the emulated card's contents: `FileSystem` holds
  `DedicatedFile`s, which hold named `Property` values (lists of bytes).
  `parse_hex` decodes hex text; each class has a `dump(file)` method.
- `emvkit.emu_commands` – `EmuCard(fs)` answers
  `command(cla, ins, p1, p2, data)` with `(status_word, response)` for
  VERIFY, SELECT, READ RECORD, GET PROCESSING OPTIONS, GENERATE AC and
  GET DATA.
- `emvkit.dump` – `format_simple` and `format_hexdump` render bytes as hex;
  `dump_buffer_simple` and `dump_buffer` write them to a file or standard
  output.
- `emvkit.config` – `Config.from_text` / `Config.from_file` parse a
  libconfig-style settings file and `Config.get("a.b")` looks up a string.
  `config_get` reads the process-wide configuration, loaded once from the file
  named by the `OPENEMV_CONFIG` environment variable or from
  `/etc/emvkit/config.txt`; the `capk` setting names the CA key file used by
  `get_ca_pk`.

## Examples

Creating a CA key record and writing it as a key-file line:

```python
from emvkit.crypto import HashAlgo, RsaKey
from emvkit.emv_pk import parse_pk
from emvkit.emv_pki_priv import make_ca

ca_key = RsaKey.generate(1024, 3)
ca = make_ca(ca_key, bytes.fromhex("a000000003"), 0x92, 0x491231, HashAlgo.SHA_1)

line = ca.dump()
assert ca.verify()
assert parse_pk(line) == ca
```

Building and splitting DOL data:

```python
from emvkit.dol import dol_parse, dol_process

dol = bytes.fromhex("9f0206" "9f3704")
data = dol_process(dol, {0x9F37: b"\x01\x02\x03\x04"})
# data == bytes(6) + b"\x01\x02\x03\x04"
pairs = dol_parse(dol, data)
# [(0x9F02, bytes(6)), (0x9F37, b"\x01\x02\x03\x04")]
```

Talking to an emulated card:

```python
from emvkit.emu_ast import DedicatedFile, FileSystem, Property
from emvkit.emu_commands import EmuCard

df = DedicatedFile([
    Property("name", [bytes.fromhex("a0000000031010")]),
    Property("fci", [bytes.fromhex("6f00")]),
])
card = EmuCard(FileSystem([df]))
sw, fci = card.command(0x00, 0xA4, 0x04, 0x00, bytes.fromhex("a000000003"))
# sw == 0x9000, fci == b"\x6f\x00"
```

Hex dumps:

```python
from emvkit.dump import format_hexdump, format_simple

print(format_simple(b"\x6f\x1a\x84"))   # 6F 1A 84
print(format_hexdump(b"hello, card"))
```

## What it does not do

- It does not talk to card readers; there is no APDU transport, and no
  sequence of EMV commands run against a real card.
- It has no TLV database or response parser beyond the tag/length helpers in
  `emvkit.ber`; card data is handed to the PKI functions as plain mappings.
- It does not read card description files: an `EmuCard` is built from a
  `FileSystem` assembled in code.
- It installs no command-line tool.

## Running the tests

```
pip install -e .[test]
pytest
```