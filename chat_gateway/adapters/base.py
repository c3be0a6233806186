"""Base adapter utilities for inline image payloads."""

import base64
import binascii
import logging
from typing import Tuple

from ..errors import InvalidRequestError

logger = logging.getLogger(__name__)


# Image MIME subtype -> format name used in image references
MIME_TO_FORMAT = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/tiff": "tiff",
    "image/bmp": "bmp",
}


def is_image_data_url(url: str) -> bool:
    return url.startswith("data:image/")


def parse_data_url(url: str) -> Tuple[str, str]:
    """
    Split a `data:` URL into (mime type, payload after the first comma).

    Raises InvalidRequestError if there is no payload.
    """
    header, sep, payload = url.partition(",")
    if not sep or not payload:
        raise InvalidRequestError("Malformed image data URL", code="invalid_image")
    mime_type = header[len("data:"):].split(";")[0] or "application/octet-stream"
    return mime_type, payload


def format_for_mime(mime_type: str) -> str:
    return MIME_TO_FORMAT.get(mime_type.lower(), mime_type.split("/")[-1] or "png")


def decode_base64_image(data: str) -> bytes:
    """Strictly decode a base64 image payload."""
    cleaned = "".join(data.split())
    if not cleaned:
        raise InvalidRequestError("Invalid base64 image data", code="invalid_image")

    padding = len(cleaned) % 4
    if padding:
        cleaned += "=" * (4 - padding)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode base64 image: {e}")
        raise InvalidRequestError("Invalid base64 image data", code="invalid_image") from e
