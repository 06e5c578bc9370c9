import base64

import pytest
import requests

from media_studio_mcp import inputs
from media_studio_mcp.errors import InputResolutionError
from media_studio_mcp.inputs import resolve_image_input


class _FakeResponse:
    def __init__(self, status_code=200, content=b"", headers=None, reason="OK"):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400


def test_url_is_fetched_with_response_content_type(monkeypatch):
    calls = []

    def fake_get(url, timeout=None):
        calls.append((url, timeout))
        return _FakeResponse(content=b"webp-bytes", headers={"content-type": "image/webp; charset=binary"})

    monkeypatch.setattr(inputs.requests, "get", fake_get)

    resolved = resolve_image_input("https://example.com/cat.webp", timeout=5)

    assert calls == [("https://example.com/cat.webp", 5)]
    assert resolved.data == b"webp-bytes"
    assert resolved.mime_type == "image/webp"


def test_url_mime_falls_back_to_hint_then_default(monkeypatch):
    monkeypatch.setattr(inputs.requests, "get", lambda url, timeout=None: _FakeResponse(content=b"x"))

    assert resolve_image_input("http://example.com/a", "image/gif").mime_type == "image/gif"
    assert resolve_image_input("http://example.com/a").mime_type == "image/jpeg"


def test_url_404_raises_fetch_failed(monkeypatch):
    monkeypatch.setattr(
        inputs.requests,
        "get",
        lambda url, timeout=None: _FakeResponse(status_code=404, reason="Not Found"),
    )

    with pytest.raises(InputResolutionError) as excinfo:
        resolve_image_input("https://example.com/missing.png")

    assert excinfo.value.kind == InputResolutionError.FETCH_FAILED
    assert excinfo.value.status == 404


def test_url_transport_error_raises_fetch_failed(monkeypatch):
    def fake_get(url, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(inputs.requests, "get", fake_get)

    with pytest.raises(InputResolutionError) as excinfo:
        resolve_image_input("https://example.com/a.png")

    assert excinfo.value.kind == InputResolutionError.FETCH_FAILED
    assert excinfo.value.status is None


def test_https_string_that_is_valid_base64_is_still_a_url(monkeypatch):
    fetched = []
    monkeypatch.setattr(
        inputs.requests,
        "get",
        lambda url, timeout=None: fetched.append(url) or _FakeResponse(content=b"img"),
    )

    resolve_image_input("https://aaaa")

    assert fetched == ["https://aaaa"]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.png", "image/png"),
        ("photo.JPG", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("anim.gif", "image/gif"),
        ("pic.webp", "image/webp"),
        ("raw.bmp", "image/jpeg"),
    ],
)
def test_path_mime_from_extension(tmp_path, name, expected):
    f = tmp_path / name
    f.write_bytes(b"image-bytes")

    resolved = resolve_image_input(str(f))

    assert resolved.data == b"image-bytes"
    assert resolved.mime_type == expected


def test_path_hint_overrides_extension(tmp_path):
    f = tmp_path / "photo.png"
    f.write_bytes(b"x")

    assert resolve_image_input(str(f), "image/webp").mime_type == "image/webp"


def test_missing_path_raises_read_failed(tmp_path):
    with pytest.raises(InputResolutionError) as excinfo:
        resolve_image_input(str(tmp_path / "nope.png"))

    assert excinfo.value.kind == InputResolutionError.READ_FAILED


def test_leading_slash_is_always_a_path():
    # "/aGVsbG8=" is not a file, so it must fail as a read rather than decode
    with pytest.raises(InputResolutionError) as excinfo:
        resolve_image_input("/aGVsbG8=")

    assert excinfo.value.kind == InputResolutionError.READ_FAILED


def test_path_with_null_byte_is_a_read_failure(tmp_path):
    with pytest.raises(InputResolutionError) as excinfo:
        resolve_image_input(str(tmp_path) + "/a\x00.png")

    assert excinfo.value.kind == InputResolutionError.READ_FAILED


def test_inline_base64_is_decoded():
    encoded = base64.b64encode(b"hello image").decode("ascii")

    resolved = resolve_image_input(encoded)

    assert resolved.data == b"hello image"
    assert resolved.mime_type == "image/png"


def test_image_content_mapping():
    encoded = base64.b64encode(b"jpeg-bytes").decode("ascii")

    resolved = resolve_image_input({"type": "image", "mimeType": "image/jpeg", "data": encoded})

    assert resolved.data == b"jpeg-bytes"
    assert resolved.mime_type == "image/jpeg"


def test_invalid_inline_data_raises_invalid_encoding():
    with pytest.raises(InputResolutionError) as excinfo:
        resolve_image_input("not base64!!")

    assert excinfo.value.kind == InputResolutionError.INVALID_ENCODING
