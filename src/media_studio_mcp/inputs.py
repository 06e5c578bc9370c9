import base64
import binascii
import logging
from pathlib import Path
from typing import Mapping, Optional, Union

import requests

from .errors import InputResolutionError
from .models import ResolvedImage

logger = logging.getLogger(__name__)

ImageInput = Union[str, Mapping[str, str]]

DEFAULT_URL_MIME_TYPE = "image/jpeg"
DEFAULT_FILE_MIME_TYPE = "image/jpeg"
DEFAULT_INLINE_MIME_TYPE = "image/png"

EXTENSION_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def is_url_reference(reference: str) -> bool:
    return reference.startswith("http://") or reference.startswith("https://")


def is_path_reference(reference: str) -> bool:
    # Inline payloads containing ":/" or ":\" are classified as paths too.
    return reference.startswith("/") or ":\\" in reference or ":/" in reference


def resolve_image_input(
    image: ImageInput,
    mime_type: Optional[str] = None,
    *,
    timeout: float = 30,
) -> ResolvedImage:
    """
    Turns an image reference into raw bytes and a MIME type.

    Accepts an ImageContent-style mapping ({"type": "image", "mimeType", "data"})
    or a string, which is checked as a URL first, then as a filesystem path,
    and otherwise decoded as inline base64.
    """
    if isinstance(image, Mapping):
        data = image.get("data", "")
        return _decode_inline(data, image.get("mimeType") or mime_type)

    if is_url_reference(image):
        return _fetch_url(image, mime_type, timeout)
    if is_path_reference(image):
        return _read_path(image, mime_type)
    return _decode_inline(image, mime_type)


def _fetch_url(url: str, mime_type: Optional[str], timeout: float) -> ResolvedImage:
    logger.debug("Fetching image from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise InputResolutionError(
            f"Failed to fetch image: {exc}",
            kind=InputResolutionError.FETCH_FAILED,
            cause=exc,
        ) from exc

    if not response.ok:
        raise InputResolutionError(
            f"Failed to fetch image: {response.status_code} {response.reason}",
            kind=InputResolutionError.FETCH_FAILED,
            status=response.status_code,
        )

    content_type = response.headers.get("content-type", "")
    detected = content_type.split(";", 1)[0].strip()
    return ResolvedImage(
        data=response.content,
        mime_type=detected or mime_type or DEFAULT_URL_MIME_TYPE,
    )


def _read_path(reference: str, mime_type: Optional[str]) -> ResolvedImage:
    logger.debug("Reading image from %s", reference)
    path = Path(reference)
    try:
        data = path.read_bytes()
    except (OSError, ValueError) as exc:
        raise InputResolutionError(
            f"Failed to read image file {reference}: {exc}",
            kind=InputResolutionError.READ_FAILED,
            cause=exc,
        ) from exc

    if not mime_type:
        mime_type = EXTENSION_MIME_TYPES.get(path.suffix.lower(), DEFAULT_FILE_MIME_TYPE)
    return ResolvedImage(data=data, mime_type=mime_type)


def _decode_inline(data: str, mime_type: Optional[str]) -> ResolvedImage:
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputResolutionError(
            f"Image data is not valid base64: {exc}",
            kind=InputResolutionError.INVALID_ENCODING,
            cause=exc,
        ) from exc
    if not raw:
        raise InputResolutionError(
            "Image data is empty",
            kind=InputResolutionError.INVALID_ENCODING,
        )
    return ResolvedImage(data=raw, mime_type=mime_type or DEFAULT_INLINE_MIME_TYPE)
