import io
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from favicon_api.services.image_validation import detect_format, is_svg

logger = logging.getLogger(__name__)

PIL_FORMATS = {"png": "PNG", "jpg": "JPEG", "webp": "WEBP", "gif": "GIF", "ico": "ICO"}
CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "ico": "image/x-icon",
    "svg": "image/svg+xml",
}


@dataclass(frozen=True)
class ProcessedImage:
    data: bytes
    format: str
    width: int
    height: int

    @property
    def bytes(self) -> int:
        return len(self.data)


def content_type_for(fmt: str) -> str:
    return CONTENT_TYPES.get(normalize_format(fmt) or "png", "image/png")


def normalize_format(fmt: Optional[str]) -> Optional[str]:
    if not fmt:
        return None
    fmt = fmt.lower()
    return "jpg" if fmt == "jpeg" else fmt


def _svg_dimensions(data: bytes) -> Tuple[int, int]:
    head = data[:2048].decode("utf-8", errors="ignore")
    width = re.search(r'<svg[^>]*\swidth="(\d+)', head)
    height = re.search(r'<svg[^>]*\sheight="(\d+)', head)
    if width and height:
        return int(width.group(1)), int(height.group(1))
    viewbox = re.search(r'viewBox="[\d.\-]+\s+[\d.\-]+\s+([\d.]+)\s+([\d.]+)"', head)
    if viewbox:
        return int(float(viewbox.group(1))), int(float(viewbox.group(2)))
    return 0, 0


def process_image(data: bytes, size: Optional[int] = None, fmt: Optional[str] = None) -> ProcessedImage:
    """Resize to a square of ``size`` pixels and/or re-encode to ``fmt``."""
    target = normalize_format(fmt)
    source_format = detect_format(data)

    if is_svg(data):
        # Pillow cannot rasterize SVG; hand it back untouched
        if target and target != "svg":
            logger.info(f"Cannot convert SVG to {target}, returning SVG")
        width, height = _svg_dimensions(data)
        return ProcessedImage(data, "svg", width, height)

    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if not size and (not target or target == source_format):
            return ProcessedImage(data, source_format, img.width, img.height)

        output_format = target if target in PIL_FORMATS else source_format
        if output_format not in PIL_FORMATS:
            output_format = "png"

        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        if size:
            img = img.resize((size, size), Image.Resampling.LANCZOS)
        if output_format == "jpg" and img.mode != "RGB":
            img = img.convert("RGB")

        buffer = io.BytesIO()
        save_kwargs = {"quality": 95} if output_format in ("jpg", "webp") else {}
        if output_format == "ico":
            save_kwargs["sizes"] = [(min(img.width, 256), min(img.height, 256))]
        img.save(buffer, format=PIL_FORMATS[output_format], **save_kwargs)
        return ProcessedImage(buffer.getvalue(), output_format, img.width, img.height)
