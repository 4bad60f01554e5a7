"""EMV certification authority public keys and their text representation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from emvkit.config import config_get
from emvkit.crypto import CryptoError, HashAlgo, PkAlgo, open_hash

_HEX_BYTE = re.compile(r"[0-9A-Fa-f]{2}")
_BCD_DATE = re.compile(r"[0-9]{6}")

_RID_LEN = 5
_HASH_LEN = 20
_MAX_EXP_LEN = 3
_MAX_MODULUS_LEN = 2048 // 8
_MAX_DUMP_LEN = 1023


class PkParseError(ValueError):
    """A public key line could not be parsed."""


@dataclass
class EmvPk:
    """A public key together with the EMV data that accompanies it."""

    rid: bytes = bytes(_RID_LEN)
    index: int = 0
    serial: bytes = bytes(3)
    pan: bytes = bytes(10)
    hash_algo: int = HashAlgo.INVALID
    pk_algo: int = PkAlgo.INVALID
    hash: bytes = bytes(_HASH_LEN)
    exp: bytes = b""
    modulus: bytes = b""
    expire: int = 0

    @property
    def elen(self) -> int:
        return len(self.exp)

    @property
    def mlen(self) -> int:
        return len(self.modulus)

    @classmethod
    def new(cls, modlen: int, explen: int) -> "EmvPk":
        """Create a key with a zeroed modulus and exponent of the given sizes."""
        if explen > _MAX_EXP_LEN:
            raise ValueError(f"exponent of {explen} bytes is not supported")
        return cls(exp=bytes(explen), modulus=bytes(modlen))

    def dump(self) -> str:
        """Render the key as one line in the format read by :func:`parse_pk`."""
        if not self.exp or not self.modulus or not self.rid:
            raise ValueError("key has an empty field")
        pk_name = "rsa" if self.pk_algo == PkAlgo.RSA else f"??{self.pk_algo & 0xFF:02x}"
        hash_name = "sha1" if self.hash_algo == HashAlgo.SHA_1 else f"??{self.hash_algo & 0xFF:02x}"
        text = " ".join([
            _hex(self.rid[:_RID_LEN]),
            _hex(bytes([self.index & 0xFF])),
            f"{self.expire & 0xFFFFFF:06x}",
            pk_name,
            _hex(self.exp),
            _hex(self.modulus),
            hash_name,
            _hex(self.hash[:_HASH_LEN]),
        ])
        if len(text) > _MAX_DUMP_LEN:
            raise ValueError("key is too large to dump")
        return text

    def verify(self) -> bool:
        """Check the stored hash against the key data."""
        try:
            digest = open_hash(self.hash_algo)
        except CryptoError:
            return False
        digest.update(self.rid)
        digest.update(bytes([self.index & 0xFF]))
        digest.update(self.modulus)
        digest.update(self.exp)
        value = digest.digest()
        return bool(value) and bytes(self.hash[:len(value)]) == value


def _hex(data: bytes) -> str:
    return ":".join(f"{byte:02x}" for byte in data)


def _read_hex(token: str, what: str, min_len: int, max_len: int) -> bytes:
    parts = token.split(":")
    if not all(_HEX_BYTE.fullmatch(part) for part in parts):
        raise PkParseError(f"invalid {what}: {token!r}")
    if not min_len <= len(parts) <= max_len:
        raise PkParseError(f"{what} has a wrong length: {token!r}")
    return bytes(int(part, 16) for part in parts)


def _read_expire(token: str) -> int:
    if not _BCD_DATE.fullmatch(token):
        raise PkParseError(f"invalid expiry date: {token!r}")
    value = int(token, 16)
    if (value >> 8) & 0xFF > 0x12 or value & 0xFF > 0x31:
        raise PkParseError(f"invalid expiry date: {token!r}")
    return value


def parse_pk(line: str) -> EmvPk:
    """Parse ``RID INDEX YYMMDD rsa EXP MODULUS sha1 HASH`` into a key."""
    tokens = [token for token in line.rstrip("\r\n").split(" ") if token]
    if len(tokens) < 8:
        raise PkParseError("not enough fields")
    rid, index, expire, pk_name, exp, modulus, hash_name, digest = tokens[:8]

    if pk_name != "rsa":
        raise PkParseError(f"unsupported key algorithm: {pk_name!r}")
    if hash_name != "sha1":
        raise PkParseError(f"unsupported hash algorithm: {hash_name!r}")

    return EmvPk(
        rid=_read_hex(rid, "RID", _RID_LEN, _RID_LEN),
        index=_read_hex(index, "index", 1, 1)[0],
        expire=_read_expire(expire),
        pk_algo=PkAlgo.RSA,
        exp=_read_hex(exp, "exponent", 1, _MAX_EXP_LEN),
        modulus=_read_hex(modulus, "modulus", 1, _MAX_MODULUS_LEN),
        hash_algo=HashAlgo.SHA_1,
        hash=_read_hex(digest, "hash", _HASH_LEN, _HASH_LEN),
    )


def get_ca_pk(rid: bytes, index: int, path: str | None = None) -> EmvPk | None:
    """Find and verify the CA key for ``rid`` and ``index`` in the key file.

    The file defaults to the ``capk`` configuration setting. Only the first
    matching entry is considered; None is returned if it fails verification
    or if no entry matches.
    """
    fname = path if path is not None else config_get("capk")
    if fname is None:
        raise FileNotFoundError("no CA public key file configured")

    with open(fname, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            try:
                pk = parse_pk(line)
            except PkParseError:
                continue
            if pk.rid != bytes(rid[:_RID_LEN]) or pk.index != index:
                continue
            print(
                f"Verifying CA PK for {_hex(pk.rid)} IDX {pk.index:02x} {pk.mlen * 8} bits...",
                end="",
            )
            if pk.verify():
                print("OK")
                return pk
            print("Failed!")
            return None
    return None