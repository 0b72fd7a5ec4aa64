import io
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

import requests
from PIL import Image, ImageDraw

from favicon_api.config import AppConfig, get_config
from favicon_api.errors import (
    CustomDefaultFailed,
    FetchFailed,
    NoAssetFound,
    ResolutionError,
    ValidationFailed,
)
from favicon_api.models import ResolvedAsset, SourceTag
from favicon_api.services.attempts import Attempt, first_success
from favicon_api.services.candidate_resolver import resolve_single
from favicon_api.services.image_validation import detect_format, validate_image

logger = logging.getLogger(__name__)

BUILTIN_DEFAULT_URL = "builtin:default"


def generate_default_image(size: int = 64) -> bytes:
    image = Image.new("RGBA", (size, size), "white")
    draw = ImageDraw.Draw(image)
    margin = size // 8
    draw.ellipse((margin, margin, size - margin, size - margin), fill="blue")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def load_default_image(config: AppConfig) -> ResolvedAsset:
    if not config.default_image_path:
        data = generate_default_image(config.default_icon_size)
        return ResolvedAsset(data, "png", SourceTag.CACHED_DEFAULT, BUILTIN_DEFAULT_URL)

    path = Path(config.default_image_path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FetchFailed(str(path), str(e))
    if len(data) > config.max_image_size:
        raise ValidationFailed(f"Default image {path} exceeds size limit: {len(data)} bytes")
    validate_image(data)
    return ResolvedAsset(data, detect_format(data, path.suffix), SourceTag.CACHED_DEFAULT, str(path))


class CachedDefaultImage:
    """
    Process-wide default image, loaded on first use and then reused.
    Concurrent first callers wait for a single load; failed loads are not
    remembered, so the next caller tries again.
    """

    def __init__(self, loader: Callable[[], ResolvedAsset]):
        self._loader = loader
        self._lock = threading.Lock()
        self._asset: Optional[ResolvedAsset] = None

    def get(self) -> ResolvedAsset:
        if self._asset is not None:
            return self._asset
        with self._lock:
            if self._asset is None:
                logger.info("Loading default fallback image")
                self._asset = self._loader()
            return self._asset


DEFAULT_IMAGE = CachedDefaultImage(lambda: load_default_image(get_config()))


def fetch_custom_default(
    url: str, config: AppConfig, session: Optional[requests.Session] = None
) -> ResolvedAsset:
    """Fetch a caller-supplied default image. Never cached."""
    try:
        return resolve_single(url, SourceTag.CUSTOM_DEFAULT, config, session or requests.Session())
    except ResolutionError as e:
        raise CustomDefaultFailed(url, str(e))


def apply_fallback_cascade(
    config: AppConfig,
    default_url: Optional[str] = None,
    session: Optional[requests.Session] = None,
    cached_default: Optional[CachedDefaultImage] = None,
) -> ResolvedAsset:
    """
    Produce the fallback asset once primary discovery came back empty.
    A caller-supplied default is honoured or fails the request; it never
    silently falls through to the cached default.
    """
    cached_default = cached_default or DEFAULT_IMAGE
    if default_url:
        attempts = [
            Attempt(
                "caller default",
                lambda: fetch_custom_default(default_url, config, session),
                fatal=True,
            )
        ]
    else:
        attempts = [Attempt("cached default", cached_default.get)]

    asset = first_success(attempts, label="fallback")
    if asset is None:
        raise NoAssetFound("No fallback image available")
    return asset
