"""Creation of EMV certificates and signed data with private keys."""

from __future__ import annotations

from emvkit.crypto import CryptoError, HashAlgo, RsaKey, open_hash
from emvkit.emv_pk import EmvPk
from emvkit.emv_pki import (
    TAG_DAC,
    TAG_ICC_CERT,
    TAG_ICC_EXP,
    TAG_ICC_PE_CERT,
    TAG_ICC_PE_EXP,
    TAG_ICC_PE_REM,
    TAG_ICC_REM,
    TAG_ISSUER_CERT,
    TAG_ISSUER_EXP,
    TAG_ISSUER_REM,
    TAG_SDAD,
    TAG_SSAD,
    PkiError,
)

_HASH_FIELD_LEN = 20
_PAD = 0xBB

__all__ = [
    "make_ca",
    "sign_issuer_cert",
    "sign_icc_cert",
    "sign_icc_pe_cert",
    "sign_dac",
    "sign_idn",
    "TAG_DAC",
]


def make_ca(key: RsaKey, rid: bytes, index: int, expire: int,
            hash_algo: HashAlgo | int) -> EmvPk:
    """Describe ``key`` as a certification authority key, with its check hash."""
    if rid is None:
        raise PkiError("no RID given")
    modulus = key.parameter(0)
    exponent = key.parameter(1)
    if not modulus or not exponent:
        raise PkiError("key has empty parameters")
    try:
        pk = EmvPk.new(len(modulus), len(exponent))
    except ValueError as exc:
        raise PkiError(str(exc)) from exc

    pk.rid = bytes(rid[:5])
    pk.index = index
    pk.expire = expire
    pk.pk_algo = key.algo
    pk.hash_algo = hash_algo
    pk.modulus = modulus
    pk.exp = exponent

    try:
        digest = open_hash(hash_algo)
    except CryptoError as exc:
        raise PkiError(str(exc)) from exc
    digest.update(pk.rid)
    digest.update(bytes([index & 0xFF]))
    digest.update(pk.modulus)
    digest.update(pk.exp)
    pk.hash = (digest.digest() + bytes(_HASH_FIELD_LEN))[:_HASH_FIELD_LEN]
    return pk


def _sign_message(key: RsaKey, cert_tag: int, rem_tag: int, msg: bytes,
                  *extra: bytes | None) -> dict[int, bytes]:
    """Sign ``msg`` with message recovery; what does not fit goes to ``rem_tag``."""
    size = key.size
    digest = open_hash(HashAlgo.SHA_1)
    part_len = size - 2 - digest.size
    if part_len < 0:
        raise PkiError("key is too small to sign with")

    if part_len < len(msg):
        body = msg[:part_len]
        rem: bytes | None = msg[part_len:]
    else:
        body = msg + bytes([_PAD]) * (part_len - len(msg))
        rem = None

    digest.update(body)
    digest.update(rem or b"")
    for part in extra:
        if part is not None:
            digest.update(part)

    plain = b"\x6a" + body + digest.digest() + b"\xbc"
    try:
        cert = key.decrypt(plain)
    except CryptoError as exc:
        raise PkiError(str(exc)) from exc

    result = {cert_tag: cert}
    if rem is not None:
        result[rem_tag] = rem
    return result


def _sign_key(key: RsaKey, ipk: EmvPk, msgtype: int, pan_len: int, cert_tag: int,
              exp_tag: int, rem_tag: int, add_data: bytes | None) -> dict[int, bytes]:
    msg = b"".join([
        bytes([msgtype]),
        bytes(ipk.pan[:pan_len]),
        bytes([(ipk.expire >> 8) & 0xFF, (ipk.expire >> 16) & 0xFF]),
        bytes(ipk.serial[:3]),
        bytes([ipk.hash_algo & 0xFF, ipk.pk_algo & 0xFF, ipk.mlen & 0xFF, ipk.elen & 0xFF]),
        bytes(ipk.modulus),
    ])
    result = _sign_message(key, cert_tag, rem_tag, msg, bytes(ipk.exp), add_data)
    result[exp_tag] = bytes(ipk.exp)
    return result


def sign_issuer_cert(key: RsaKey, issuer_pk: EmvPk) -> dict[int, bytes]:
    """Certify an issuer key; returns certificate, remainder and exponent."""
    return _sign_key(key, issuer_pk, 2, 4, TAG_ISSUER_CERT, TAG_ISSUER_EXP,
                     TAG_ISSUER_REM, None)


def sign_icc_cert(key: RsaKey, icc_pk: EmvPk, sda_data: bytes) -> dict[int, bytes]:
    """Certify an ICC key together with the static data to authenticate."""
    return _sign_key(key, icc_pk, 4, 10, TAG_ICC_CERT, TAG_ICC_EXP, TAG_ICC_REM,
                     bytes(sda_data))


def sign_icc_pe_cert(key: RsaKey, icc_pe_pk: EmvPk) -> dict[int, bytes]:
    """Certify an ICC PIN encipherment key."""
    return _sign_key(key, icc_pe_pk, 4, 10, TAG_ICC_PE_CERT, TAG_ICC_PE_EXP,
                     TAG_ICC_PE_REM, None)


def sign_dac(key: RsaKey, dac: bytes, sda_data: bytes) -> dict[int, bytes]:
    """Produce signed static application data carrying a two-byte DAC."""
    if len(dac) < 2:
        raise PkiError("data authentication code needs two bytes")
    msg = bytes([3, HashAlgo.SHA_1, dac[0], dac[1]])
    return _sign_message(key, TAG_SSAD, 0, msg, bytes(sda_data))


def sign_idn(key: RsaKey, idn: bytes, dyn_data: bytes) -> dict[int, bytes]:
    """Produce signed dynamic application data carrying an ICC dynamic number."""
    idn = bytes(idn)
    if len(idn) > 0xFE:
        raise PkiError("ICC dynamic number is too long")
    msg = bytes([5, HashAlgo.SHA_1, len(idn) + 1, len(idn)]) + idn
    return _sign_message(key, TAG_SDAD, 0, msg, bytes(dyn_data))