from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

from hiveimg.core.exceptions import ImageReadError
from hiveimg.signing.keys import PrivateKey, Signer

log = logging.getLogger("hiveimg.signing")

# Prefixed to the image bytes before hashing; binds signatures to image uploads.
SIGNING_CHALLENGE = "ImageSigningChallenge"


@dataclass(frozen=True, slots=True)
class SignedImage:
    """Image bytes together with the digest and signature computed over them.

    Security notes:
    - `data` is the exact byte string that was signed; upload it unchanged.
    """

    path: str
    data: bytes
    digest: bytes
    signature: str


def image_digest(data: bytes) -> bytes:
    """sha256(SIGNING_CHALLENGE || data)."""

    h = hashlib.sha256()
    h.update(SIGNING_CHALLENGE.encode("utf-8"))
    h.update(data)
    return h.digest()


def read_image(path: str, max_bytes: Optional[int] = None) -> bytes:
    """Read an image file fully into memory.

    Security notes:
    - If `max_bytes` is set, files above it are refused before reading.
    """

    try:
        st = os.stat(path)
    except OSError as e:
        raise ImageReadError(f"cannot read image file {path}: {e.strerror or e}") from e
    if not os.path.isfile(path):
        raise ImageReadError(f"not a regular file: {path}")
    if max_bytes is not None and st.st_size > max_bytes:
        raise ImageReadError(f"file too large for client upload cap: {st.st_size} > {max_bytes}")

    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ImageReadError(f"cannot read image file {path}: {e.strerror or e}") from e
    if max_bytes is not None and len(data) > max_bytes:
        raise ImageReadError("file too large for client upload cap")
    return data


def _as_signer(key: Union[str, Signer]) -> Signer:
    if isinstance(key, str):
        return PrivateKey.from_wif(key)
    return key


def sign_image(data: bytes, key: Union[str, Signer]) -> str:
    """Sign already-loaded image bytes; `key` is a WIF string or a Signer."""

    return _as_signer(key).sign(image_digest(data))


def load_and_sign(
    path: str, key: Union[str, Signer], *, max_bytes: Optional[int] = None
) -> SignedImage:
    """Read `path` once, digest it with the challenge prefix and sign it."""

    # Decode the key first so a bad key fails without touching the file.
    signer = _as_signer(key)
    data = read_image(path, max_bytes=max_bytes)
    digest = image_digest(data)
    signature = signer.sign(digest)
    log.info(
        "image_signed",
        extra={"size_bytes": len(data), "digest": digest.hex()},
    )
    return SignedImage(path=path, data=data, digest=digest, signature=signature)
