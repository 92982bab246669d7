from __future__ import annotations

import logging
import time
from typing import Optional

from pydantic import ValidationError

from hiveimg.client.http import ImageHostClient, Transport
from hiveimg.core.exceptions import MalformedUploadResponse, UploadRejected
from hiveimg.core.models import UploadResult
from hiveimg.signing import load_and_sign

log = logging.getLogger("hiveimg.client")

DEFAULT_IMAGE_HOST = "https://images.hive.blog"


def upload(
    host: str,
    account: str,
    signature: str,
    data: bytes,
    *,
    transport: Optional[Transport] = None,
) -> UploadResult:
    """Upload signed image bytes with one POST and parse the result.

    Raises:
      UploadRejected: non-2xx status; carries the status and body text.
      MalformedUploadResponse: 2xx body that is not a JSON object with `url`.
    """

    client = ImageHostClient(host, transport=transport)
    start = time.monotonic()
    r = client.post_image(account, signature, data)
    log.info(
        "image_upload",
        extra={
            "account": account,
            "status_code": r.status,
            "size_bytes": len(data),
            "duration_ms": int((time.monotonic() - start) * 1000),
        },
    )

    if not r.ok:
        raise UploadRejected(r.status, r.text())

    try:
        payload = r.json()
    except ValueError as e:
        raise MalformedUploadResponse(f"image host returned invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedUploadResponse("image host returned a non-object JSON body")
    try:
        return UploadResult.model_validate(payload)
    except ValidationError as e:
        raise MalformedUploadResponse(f"image host response missing url: {e}") from e


def upload_image(
    image_path: str,
    account: str,
    posting_key: str,
    *,
    host: str = DEFAULT_IMAGE_HOST,
    transport: Optional[Transport] = None,
    max_bytes: Optional[int] = None,
) -> UploadResult:
    """Sign `image_path` with `posting_key` and upload it for `account`."""

    signed = load_and_sign(image_path, posting_key, max_bytes=max_bytes)
    return upload(host, account, signed.signature, signed.data, transport=transport)
