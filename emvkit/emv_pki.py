"""Recovery and checking of data signed under the EMV public key infrastructure."""

from __future__ import annotations

from typing import Iterable, Mapping

from emvkit.ber import encode_tlv, is_constructed
from emvkit.crypto import CryptoError, PkAlgo, RsaKey, open_hash
from emvkit.emv_pk import EmvPk

TlvDb = Mapping[int, bytes]

TAG_PAN = 0x5A
TAG_ISSUER_CERT = 0x90
TAG_ISSUER_EXP = 0x9F32
TAG_ISSUER_REM = 0x92
TAG_ICC_CERT = 0x9F46
TAG_ICC_EXP = 0x9F47
TAG_ICC_REM = 0x9F48
TAG_ICC_PE_CERT = 0x9F2D
TAG_ICC_PE_EXP = 0x9F2E
TAG_ICC_PE_REM = 0x9F2F
TAG_SSAD = 0x93
TAG_DAC = 0x9F45
TAG_SDAD = 0x9F4B
TAG_IDN = 0x9F4C
TAG_UN = 0x9F37
TAG_CID = 0x9F27

_HEADER = 0x6A
_TRAILER = 0xBC

# Position of the hash algorithm indicator in the recovered data, per message type.
_HASH_POSITION = {2: 11, 3: 2, 4: 17, 5: 2}


class PkiError(ValueError):
    """Signed EMV data could not be recovered or did not verify."""


def _decode_message(enc_pk: EmvPk | None, msgtype: int, cert: bytes | None,
                    extra: Iterable[bytes | None]) -> bytes:
    """Recover a signed message and check its header, trailer and hash.

    Returns the recovered data without the hash and the trailer.
    """
    if enc_pk is None:
        raise PkiError("no key to recover the message with")
    if cert is None:
        raise PkiError("signed data is missing")
    cert = bytes(cert)
    if len(cert) != enc_pk.mlen:
        raise PkiError("signed data length does not match the key")
    if enc_pk.pk_algo != PkAlgo.RSA:
        raise PkiError(f"unsupported key algorithm: {enc_pk.pk_algo}")
    try:
        key = RsaKey.public(enc_pk.modulus, enc_pk.exp)
    except CryptoError as exc:
        raise PkiError(f"invalid key: {exc}") from exc

    data = key.encrypt(cert)
    if data[-1] != _TRAILER or data[0] != _HEADER or data[1] != msgtype:
        raise PkiError("recovered data has a wrong format")

    hash_pos = _HASH_POSITION.get(msgtype, 0)
    if hash_pos == 0 or hash_pos >= len(data):
        raise PkiError(f"unsupported message type: {msgtype}")
    try:
        digest = open_hash(data[hash_pos])
    except CryptoError as exc:
        raise PkiError(str(exc)) from exc

    hash_start = len(data) - 1 - digest.size
    digest.update(data[1:hash_start])
    for part in extra:
        if part is not None:
            digest.update(part)
    if data[hash_start:-1] != digest.digest():
        raise PkiError("hash mismatch")
    return data[:hash_start]


def _cn_digits(value: bytes) -> list[int]:
    """Digits of compressed numeric data up to the first F nibble."""
    digits = []
    for byte in value:
        high, low = byte >> 4, byte & 0xF
        if high == 0xF:
            break
        digits.append(high)
        if low == 0xF:
            break
        digits.append(low)
    return digits


def _decode_key(enc_pk: EmvPk | None, msgtype: int, pan: bytes | None,
                cert: bytes | None, exp: bytes | None, rem: bytes | None,
                add: bytes | None) -> EmvPk:
    if cert is None or exp is None or pan is None:
        raise PkiError("certificate data is missing")
    rem = bytes(rem) if rem is not None else b""
    exp = bytes(exp)

    if msgtype == 2:
        pan_length = 4
    elif msgtype == 4:
        pan_length = 10
    else:
        raise PkiError(f"unsupported certificate type: {msgtype}")

    data = _decode_message(enc_pk, msgtype, cert, (rem, exp, add))
    if len(data) < 11 + pan_length:
        raise PkiError("recovered certificate is too short")

    pan_digits = _cn_digits(pan)
    cert_pan = data[2:2 + pan_length]
    cert_digits = _cn_digits(cert_pan)
    if msgtype == 2 and not 4 <= len(cert_digits) <= len(pan_digits):
        raise PkiError("certificate PAN has a wrong length")
    if msgtype == 4 and len(cert_digits) != len(pan_digits):
        raise PkiError("certificate PAN has a wrong length")
    if pan_digits[:len(cert_digits)] != cert_digits:
        raise PkiError("certificate PAN does not match")

    pk_len = data[9 + pan_length]
    body = data[11 + pan_length:]
    if pk_len > len(body) + len(rem):
        raise PkiError("key length exceeds the certificate data")
    if len(exp) != data[10 + pan_length]:
        raise PkiError("exponent length does not match the certificate")

    try:
        pk = EmvPk.new(pk_len, len(exp))
    except ValueError as exc:
        raise PkiError(str(exc)) from exc

    pk.rid = enc_pk.rid
    pk.index = enc_pk.index
    pk.hash_algo = data[7 + pan_length]
    pk.pk_algo = data[8 + pan_length]
    pk.expire = (data[3 + pan_length] << 16) | (data[2 + pan_length] << 8) | 0x31
    pk.serial = data[4 + pan_length:7 + pan_length]
    pk.pan = cert_pan + b"\xff" * (10 - pan_length)
    pk.modulus = (body + rem)[:pk_len]
    pk.exp = exp
    return pk


def recover_issuer_cert(pk: EmvPk, db: TlvDb) -> EmvPk:
    """Recover the issuer public key from its certificate."""
    return _decode_key(pk, 2, db.get(TAG_PAN), db.get(TAG_ISSUER_CERT),
                       db.get(TAG_ISSUER_EXP), db.get(TAG_ISSUER_REM), None)


def recover_icc_cert(pk: EmvPk, db: TlvDb, sda_data: bytes) -> EmvPk:
    """Recover the ICC public key; ``sda_data`` is the static data it signs."""
    return _decode_key(pk, 4, db.get(TAG_PAN), db.get(TAG_ICC_CERT),
                       db.get(TAG_ICC_EXP), db.get(TAG_ICC_REM), bytes(sda_data))


def recover_icc_pe_cert(pk: EmvPk, db: TlvDb) -> EmvPk:
    """Recover the ICC PIN encipherment public key."""
    return _decode_key(pk, 4, db.get(TAG_PAN), db.get(TAG_ICC_PE_CERT),
                       db.get(TAG_ICC_PE_EXP), db.get(TAG_ICC_PE_REM), None)


def recover_dac(pk: EmvPk, db: TlvDb, sda_data: bytes) -> dict[int, bytes]:
    """Check signed static application data and return the data authentication code."""
    data = _decode_message(pk, 3, db.get(TAG_SSAD), (bytes(sda_data),))
    if len(data) < 5:
        raise PkiError("recovered data is too short")
    return {TAG_DAC: data[3:5]}


def _idn(data: bytes) -> dict[int, bytes]:
    idn_len = data[4]
    if idn_len > data[3] - 1:
        raise PkiError("ICC dynamic number is too long")
    return {TAG_IDN: data[5:5 + idn_len]}


def recover_idn(pk: EmvPk, db: TlvDb, dyn_data: bytes) -> dict[int, bytes]:
    """Check signed dynamic application data and return the ICC dynamic number."""
    data = _decode_message(pk, 5, db.get(TAG_SDAD), (bytes(dyn_data),))
    if len(data) < 5:
        raise PkiError("recovered data is too short")
    if data[3] < 2 or data[3] > len(data) - 3:
        raise PkiError("dynamic data has a wrong length")
    return _idn(data)


def perform_cda(pk: EmvPk, db: TlvDb, this_db: TlvDb, pdol_data: bytes,
                crm1_data: bytes, crm2_data: bytes) -> dict[int, bytes]:
    """Verify combined DDA/AC generation and return the ICC dynamic number."""
    un = db.get(TAG_UN)
    cid = this_db.get(TAG_CID)
    if un is None or cid is None:
        raise PkiError("unpredictable number or cryptogram information is missing")

    data = _decode_message(pk, 5, this_db.get(TAG_SDAD), (bytes(un),))
    if len(data) < 5:
        raise PkiError("recovered data is too short")
    if data[3] < 30 or data[3] > len(data) - 4:
        raise PkiError("dynamic data has a wrong length")

    cid_pos = 5 + data[4]
    if len(cid) != 1 or cid_pos >= len(data) or cid[0] != data[cid_pos]:
        raise PkiError("cryptogram information data does not match")

    try:
        digest = open_hash(pk.hash_algo)
    except CryptoError as exc:
        raise PkiError(str(exc)) from exc
    digest.update(bytes(pdol_data or b""))
    digest.update(bytes(crm1_data or b""))
    digest.update(bytes(crm2_data or b""))
    for tag, value in this_db.items():
        if is_constructed(tag) or tag == TAG_SDAD:
            continue
        digest.update(encode_tlv(tag, value))

    hash_pos = cid_pos + 1 + 8
    if data[hash_pos:hash_pos + 20] != digest.digest():
        raise PkiError("transaction data hash mismatch")

    return _idn(data)