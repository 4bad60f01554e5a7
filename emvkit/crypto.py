"""Hashing and raw RSA operations used by EMV certificate handling."""

from __future__ import annotations

import enum
import hashlib
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import rsa

# The smallest modulus accepted for a key, in octets.
_MIN_MODULUS_OCTETS = 12


class CryptoError(Exception):
    """A cryptographic object could not be created or used."""


class HashAlgo(enum.IntEnum):
    """Hash algorithm indicators as stored in EMV certificates."""

    INVALID = 0
    SHA_1 = 1


class PkAlgo(enum.IntEnum):
    """Public key algorithm indicators as stored in EMV certificates."""

    INVALID = 0
    RSA = 1


_HASH_NAMES = {HashAlgo.SHA_1: "sha1"}


class Hash:
    """An incremental message digest."""

    def __init__(self, algo: HashAlgo):
        try:
            self.algo = HashAlgo(algo)
            name = _HASH_NAMES[self.algo]
        except (ValueError, KeyError) as exc:
            raise CryptoError(f"unsupported hash algorithm: {algo!r}") from exc
        self._state = hashlib.new(name)

    @property
    def size(self) -> int:
        """Length of the digest in bytes."""
        return self._state.digest_size

    def update(self, data: bytes) -> None:
        """Feed more data into the digest."""
        self._state.update(bytes(data))

    def digest(self) -> bytes:
        """Return the digest of all data written so far."""
        return self._state.digest()


def open_hash(algo: HashAlgo | int) -> Hash:
    """Start a digest with the given algorithm."""
    return Hash(algo)


def _to_int(data: bytes) -> int:
    return int.from_bytes(bytes(data), "big")


def _to_bytes(value: int, size: int) -> bytes:
    return value.to_bytes(size, "big")


def _minimal_bytes(value: int) -> bytes:
    return _to_bytes(value, (value.bit_length() + 7) // 8)


@dataclass(frozen=True)
class RsaKey:
    """An RSA key; the private components are present only for private keys."""

    n: int
    e: int
    d: int | None = None
    p: int | None = None
    q: int | None = None
    dp: int | None = None
    dq: int | None = None
    qinv: int | None = None

    algo = PkAlgo.RSA

    def __post_init__(self) -> None:
        if self.n % 2 == 0 or self.size < _MIN_MODULUS_OCTETS:
            raise CryptoError("invalid RSA modulus")
        if self.has_private:
            p, q = self.p, self.q
            if not p or not q or p * q != self.n:
                raise CryptoError("RSA primes do not match the modulus")
            if not self.dp or not self.dq or (self.qinv * q) % p != 1:
                raise CryptoError("invalid RSA CRT parameters")

    @classmethod
    def public(cls, modulus: bytes, exponent: bytes) -> "RsaKey":
        """Build a public key from big-endian modulus and exponent bytes."""
        return cls(_to_int(modulus), _to_int(exponent))

    @classmethod
    def private(cls, modulus: bytes, exponent: bytes, d: bytes, p: bytes,
                q: bytes, dp: bytes, dq: bytes, qinv: bytes) -> "RsaKey":
        """Build a private key from its big-endian components."""
        return cls(
            _to_int(modulus), _to_int(exponent), _to_int(d), _to_int(p),
            _to_int(q), _to_int(dp), _to_int(dq), _to_int(qinv),
        )

    @classmethod
    def generate(cls, nbits: int, exponent: int = 65537) -> "RsaKey":
        """Generate a fresh private key of ``nbits`` bits."""
        try:
            key = rsa.generate_private_key(public_exponent=exponent, key_size=nbits)
        except (ValueError, TypeError) as exc:
            raise CryptoError(str(exc)) from exc
        numbers = key.private_numbers()
        public = numbers.public_numbers
        return cls(
            public.n, public.e, numbers.d, numbers.p, numbers.q,
            numbers.dmp1, numbers.dmq1, numbers.iqmp,
        )

    @property
    def has_private(self) -> bool:
        return self.d is not None

    @property
    def nbits(self) -> int:
        """Size of the modulus in bits."""
        return self.n.bit_length()

    @property
    def size(self) -> int:
        """Size of the modulus in bytes."""
        return (self.nbits + 7) // 8

    def encrypt(self, data: bytes) -> bytes:
        """Apply the public operation; the result is as long as the modulus."""
        return _to_bytes(pow(_to_int(data), self.e, self.n), self.size)

    def decrypt(self, data: bytes) -> bytes:
        """Apply the private operation; the result is as long as the modulus."""
        if not self.has_private:
            raise CryptoError("key has no private part")
        value = _to_int(data)
        xp = pow(value, self.dp, self.p)
        xq = pow(value, self.dq, self.q)
        root = ((xp - xq) * self.qinv % self.p) * self.q + xq
        return _to_bytes(root, self.size)

    def parameter(self, index: int) -> bytes:
        """Return the modulus (0) or the public exponent (1) as minimal bytes."""
        if index == 0:
            return _minimal_bytes(self.n)
        if index == 1:
            return _minimal_bytes(self.e)
        raise CryptoError(f"no such key parameter: {index}")