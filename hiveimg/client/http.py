from __future__ import annotations

import json
import ssl
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple
from urllib.error import HTTPError
from urllib.request import Request, urlopen


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """HTTP response wrapper.

    Security notes:
    - Treat `body_bytes` as untrusted.

    """

    status: int
    body_bytes: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        """Decode body as text, replacing undecodable bytes."""

        return self.body_bytes.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode body as JSON."""

        return json.loads(self.body_bytes.decode("utf-8", errors="strict"))


# A transport executes one prepared request and returns the response.
# Non-2xx statuses are returned, not raised; transport failures propagate.
Transport = Callable[[Request], HttpResponse]


def build_upload_url(host: str, account: str, signature: str) -> str:
    """`{host}/{account}/{signature}`.

    Account and signature are inserted verbatim; the signature is hex so it
    never needs escaping.
    """

    base = host[:-1] if host.endswith("/") else host
    return f"{base}/{account}/{signature}"


class ImageHostClient:
    """Minimal stdlib-only HTTP client for a Hive ImageHoster.

    Security notes:
    - Does NOT disable TLS verification.
    - Sends exactly one request per call; no retries.

    """

    def __init__(self, host: str, transport: Optional[Transport] = None):
        self.host = host
        self.transport: Transport = transport or _do_request

    def post_image(
        self,
        account: str,
        signature: str,
        data: bytes,
        *,
        filename: str = "image",
    ) -> HttpResponse:
        """POST the image bytes as multipart part `file` to the signed upload URL."""

        url = build_upload_url(self.host, account, signature)
        body, boundary = _encode_file_part("file", filename, data)
        req = Request(url=url, data=body, method="POST")
        req.add_header("Content-Type", f"multipart/form-data; boundary={boundary}")
        req.add_header("Content-Length", str(len(body)))
        return self.transport(req)


def _encode_file_part(field_name: str, filename: str, data: bytes) -> Tuple[bytes, str]:
    """Encode a multipart/form-data body holding one file part.

    Security notes:
    - The whole body is built in memory; callers bound the file size.
    """

    boundary = "----hiveimg-" + uuid.uuid4().hex
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field_name}"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    )
    tail = f"\r\n--{boundary}--\r\n"
    return head.encode("utf-8") + data + tail.encode("utf-8"), boundary


def _do_request(req: Request) -> HttpResponse:
    """Execute a request.


    Security notes:
    - Uses default SSL context (verification ON).
    - URLError and other transport failures propagate unwrapped.
    """

    try:
        ctx = ssl.create_default_context()
        with urlopen(req, context=ctx) as resp:
            return HttpResponse(status=int(resp.status), body_bytes=resp.read())
    except HTTPError as e:
        body = e.read() if hasattr(e, "read") else b""
        return HttpResponse(status=int(getattr(e, "code", 0) or 0), body_bytes=body)
