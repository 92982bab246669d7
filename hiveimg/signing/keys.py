from __future__ import annotations

import hashlib
import logging
from typing import Protocol, Tuple

import base58
from ecdsa import SECP256k1, SigningKey, VerifyingKey, ellipticcurve, numbertheory, rfc6979

from hiveimg.core.exceptions import KeyDecodeError, SignatureDecodeError

log = logging.getLogger("hiveimg.signing")

# Version byte prefixed to the secret in a WIF string.
WIF_VERSION = 0x80

# Compact signature header: 27 + 4 (compressed public key) + recovery id.
COMPACT_HEADER_BASE = 31

_CURVE = SECP256k1.curve
_G = SECP256k1.generator
_ORDER = SECP256k1.order


class Signer(Protocol):
    """Anything that turns a 32-byte digest into a canonical signature string."""

    def sign(self, digest: bytes) -> str:
        ...


def is_canonical(sig64: bytes) -> bool:
    """Return True if r||s is canonical in the Graphene sense.

    Both halves must have the top bit clear and must not be shorter than
    32 bytes once DER-minimised.
    """

    return (
        not (sig64[0] & 0x80)
        and not (sig64[0] == 0 and not (sig64[1] & 0x80))
        and not (sig64[32] & 0x80)
        and not (sig64[32] == 0 and not (sig64[33] & 0x80))
    )


def _sigencode_rs(r: int, s: int, order: int) -> Tuple[int, int]:
    return r, s


class PrivateKey:
    """secp256k1 private key as used for Hive posting authority.

    Security notes:
    - The secret is never included in reprs, logs or exception messages.
    """

    def __init__(self, secret: bytes):
        if len(secret) != 32:
            raise KeyDecodeError(f"private key must be 32 bytes, got {len(secret)}")
        secexp = int.from_bytes(secret, "big")
        if not 1 <= secexp < _ORDER:
            raise KeyDecodeError("private key is out of range for secp256k1")
        self._sk = SigningKey.from_secret_exponent(secexp, curve=SECP256k1)

    def __repr__(self) -> str:
        return f"PrivateKey(public={self.public_key_bytes().hex()})"

    @classmethod
    def from_wif(cls, wif: str) -> PrivateKey:
        """Decode a base58check WIF string (version 0x80, 32-byte secret)."""

        if not isinstance(wif, str) or not wif.strip():
            raise KeyDecodeError("private key is empty")
        try:
            raw = base58.b58decode_check(wif.strip())
        except ValueError as e:
            raise KeyDecodeError(f"invalid WIF private key: {e}") from e
        if len(raw) != 33 or raw[0] != WIF_VERSION:
            raise KeyDecodeError("invalid WIF private key: unexpected version or length")
        return cls(raw[1:])

    def to_wif(self) -> str:
        secret = self._sk.to_string()
        return base58.b58encode_check(bytes([WIF_VERSION]) + secret).decode("ascii")

    def public_key_bytes(self) -> bytes:
        """33-byte compressed public key."""

        return self._sk.get_verifying_key().to_string("compressed")

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest; return the 65-byte compact recoverable form.

        Nonces are RFC 6979 with additional data sha256(digest || attempt),
        attempt counting from 1, retried until the low-S signature is
        canonical.
        """

        if len(digest) != 32:
            raise ValueError(f"digest must be 32 bytes, got {len(digest)}")

        secexp = self._sk.privkey.secret_multiplier
        attempt = 0
        while True:
            attempt += 1
            extra = hashlib.sha256(digest + bytes([attempt & 0xFF])).digest()
            k = rfc6979.generate_k(_ORDER, secexp, hashlib.sha256, digest, extra_entropy=extra)
            r, s = self._sk.sign_digest(digest, sigencode=_sigencode_rs, k=k)

            point = _G * k
            recid = point.y() & 1
            if point.x() >= _ORDER:
                recid |= 2
            if s > _ORDER // 2:
                s = _ORDER - s
                recid ^= 1

            sig64 = r.to_bytes(32, "big") + s.to_bytes(32, "big")
            if is_canonical(sig64):
                log.debug("signed digest", extra={"attempts": attempt, "recid": recid})
                return bytes([COMPACT_HEADER_BASE + recid]) + sig64

    def sign(self, digest: bytes) -> str:
        """Hex form of :meth:`sign_digest`, the string the image host expects."""

        return self.sign_digest(digest).hex()


def decode_signature(signature: str) -> Tuple[int, int, int]:
    """Split a compact signature string into (recid, r, s)."""

    try:
        raw = bytes.fromhex(signature)
    except (TypeError, ValueError) as e:
        raise SignatureDecodeError("signature is not a hex string") from e
    if len(raw) != 65:
        raise SignatureDecodeError(f"signature must be 65 bytes, got {len(raw)}")

    recid = raw[0] - COMPACT_HEADER_BASE
    if not 0 <= recid <= 3:
        raise SignatureDecodeError(f"unsupported signature header byte: {raw[0]}")
    r = int.from_bytes(raw[1:33], "big")
    s = int.from_bytes(raw[33:], "big")
    if not (1 <= r < _ORDER and 1 <= s < _ORDER):
        raise SignatureDecodeError("signature component out of range")
    return recid, r, s


def recover_public_key(signature: str, digest: bytes) -> bytes:
    """Recover the compressed public key that produced `signature` over `digest`."""

    recid, r, s = decode_signature(signature)
    p = _CURVE.p()

    x = r + (recid >> 1) * _ORDER
    if x >= p:
        raise SignatureDecodeError("signature R point is off the curve")
    alpha = (pow(x, 3, p) + _CURVE.a() * x + _CURVE.b()) % p
    try:
        beta = numbertheory.square_root_mod_prime(alpha, p)
    except numbertheory.Error as e:
        raise SignatureDecodeError("signature R point is off the curve") from e
    y = beta if beta % 2 == (recid & 1) else p - beta

    big_r = ellipticcurve.PointJacobi(_CURVE, x, y, 1, _ORDER)
    e = int.from_bytes(digest, "big") % _ORDER
    r_inv = numbertheory.inverse_mod(r, _ORDER)
    q = (big_r * s + _G * ((-e) % _ORDER)) * r_inv
    if q == ellipticcurve.INFINITY:
        raise SignatureDecodeError("signature recovers to the point at infinity")

    return VerifyingKey.from_public_point(q, curve=SECP256k1).to_string("compressed")


def verify_signature(signature: str, digest: bytes, public_key: bytes) -> bool:
    """Return True if `signature` over `digest` recovers to `public_key`."""

    try:
        return recover_public_key(signature, digest) == public_key
    except SignatureDecodeError:
        return False
