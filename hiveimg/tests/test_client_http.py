from __future__ import annotations

from typing import List
from urllib.request import Request

from hiveimg.client import HttpResponse, ImageHostClient, build_upload_url

SIG = "20" + "0123456789abcdef" * 8


def _multipart_parts(req: Request) -> dict:
    ctype = req.get_header("Content-type")
    assert ctype.startswith("multipart/form-data; boundary=")
    boundary = ctype.split("boundary=", 1)[1].encode("ascii")
    body = req.data
    assert body.endswith(b"--" + boundary + b"--\r\n")

    parts = {}
    for chunk in body.split(b"--" + boundary)[1:-1]:
        headers, _, content = chunk.partition(b"\r\n\r\n")
        assert content.endswith(b"\r\n")
        name = headers.split(b'name="', 1)[1].split(b'"', 1)[0].decode("ascii")
        parts[name] = (headers, content[:-2])
    return parts


class RecordingTransport:
    def __init__(self, response: HttpResponse) -> None:
        self.response = response
        self.requests: List[Request] = []

    def __call__(self, req: Request) -> HttpResponse:
        self.requests.append(req)
        return self.response


def test_build_upload_url() -> None:
    assert build_upload_url("https://images.hive.blog", "alice", SIG) == (
        f"https://images.hive.blog/alice/{SIG}"
    )


def test_build_upload_url_strips_one_trailing_slash() -> None:
    assert build_upload_url("http://localhost:8800/", "bob", "ff") == "http://localhost:8800/bob/ff"


def test_build_upload_url_inserts_account_verbatim() -> None:
    assert build_upload_url("https://h", "dot.name-1", "ab") == "https://h/dot.name-1/ab"


def test_post_image_request_shape() -> None:
    data = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) + b"\r\n--not-a-boundary\r\n"
    transport = RecordingTransport(HttpResponse(200, b'{"url": "u"}'))
    client = ImageHostClient("https://images.example", transport=transport)

    r = client.post_image("alice", SIG, data)

    assert r.ok
    assert len(transport.requests) == 1
    req = transport.requests[0]
    assert req.get_method() == "POST"
    assert req.full_url == f"https://images.example/alice/{SIG}"
    assert req.get_header("Content-length") == str(len(req.data))

    parts = _multipart_parts(req)
    assert list(parts) == ["file"]
    headers, content = parts["file"]
    assert content == data
    assert b'filename="image"' in headers
    assert b"Content-Type: application/octet-stream" in headers


def test_boundary_changes_per_request() -> None:
    transport = RecordingTransport(HttpResponse(200, b"{}"))
    client = ImageHostClient("https://h", transport=transport)
    client.post_image("a", "ab", b"1")
    client.post_image("a", "ab", b"1")
    first, second = (r.get_header("Content-type") for r in transport.requests)
    assert first != second


def test_http_response_helpers() -> None:
    r = HttpResponse(413, b"file too large \xff")
    assert not r.ok
    assert r.text().startswith("file too large")
    assert HttpResponse(201, b'{"url": "x"}').json() == {"url": "x"}
    assert not HttpResponse(302, b"").ok


def test_body_is_exactly_one_file_part() -> None:
    transport = RecordingTransport(HttpResponse(200, b"{}"))
    ImageHostClient("https://h", transport=transport).post_image("a", "ab", b"DATA")
    req = transport.requests[0]
    boundary = req.get_header("Content-type").split("boundary=", 1)[1]
    assert req.data == (
        f"--{boundary}\r\n"
        'Content-Disposition: form-data; name="file"; filename="image"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
        f"DATA\r\n--{boundary}--\r\n"
    ).encode("utf-8")
