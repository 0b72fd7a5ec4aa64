import io
import logging
from typing import Optional

import magic
from PIL import Image

from favicon_api.errors import ValidationFailed

logger = logging.getLogger(__name__)

# Room for an XML declaration, comments and a DOCTYPE ahead of the root element
SVG_SNIFF_BYTES = 2048


def is_svg(data: bytes) -> bool:
    head = data[:SVG_SNIFF_BYTES].decode("utf-8", errors="ignore").lower()
    return "<svg" in head


def _format_from_magic(data: bytes) -> Optional[str]:
    if data[:2] == b"\x89P":
        return "png"
    if data[:2] == b"\xff\xd8":
        return "jpg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    if data[:3] == b"GIF":
        return "gif"
    if data[:4] == b"\x00\x00\x01\x00":
        return "ico"
    if is_svg(data):
        return "svg"
    return None


def _format_from_hint(hint: Optional[str]) -> Optional[str]:
    hint = (hint or "").lower()
    if "png" in hint:
        return "png"
    if "jpeg" in hint or "jpg" in hint:
        return "jpg"
    if "webp" in hint:
        return "webp"
    if "svg" in hint:
        return "svg"
    if "gif" in hint:
        return "gif"
    if "ico" in hint:
        return "ico"
    return None


def detect_format(data: bytes, hint: Optional[str] = None) -> str:
    """Leading bytes first, then the declared type, then png."""
    return _format_from_magic(data) or _format_from_hint(hint) or "png"


def validate_image(data: bytes) -> None:
    """Raise ValidationFailed unless the bytes look like a real image."""
    if not data:
        raise ValidationFailed("Empty payload")
    if is_svg(data):
        return

    mime = magic.Magic(mime=True)
    file_type = mime.from_buffer(data[:4096])
    if file_type == "image/svg+xml":
        return
    if not file_type.startswith("image/"):
        raise ValidationFailed(f"Payload is not an image, MIME: {file_type}")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except Exception as e:
        raise ValidationFailed(f"Invalid image data ({file_type}): {e}")
