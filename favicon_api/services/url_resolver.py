import base64
import binascii
import re
from typing import Optional, Tuple
from urllib.parse import unquote_to_bytes, urlparse

from favicon_api.errors import ParseFailed

SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
DATA_URL_PATTERN = re.compile(r"^data:([^,]*),(.*)$", re.IGNORECASE | re.DOTALL)


def is_data_url(url: str) -> bool:
    return url.strip()[:5].lower() == "data:"


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.hostname}"


def resolve_url(reference: str, base_origin: str) -> str:
    """
    Turn a reference found in markup into an absolute URL.

    Bare relative paths ("img/icon.png") are joined to the origin root rather
    than to the directory of the page that referenced them.
    """
    reference = reference.strip()
    if is_data_url(reference):
        return reference
    if SCHEME_PATTERN.match(reference):
        return reference
    if reference.startswith("//"):
        return f"https:{reference}"
    if reference.startswith("/"):
        return f"{base_origin}{reference}"
    return f"{base_origin}/{reference}"


def data_url_mime(url: str) -> Optional[str]:
    match = re.match(r"^data:([^;,]+)", url.strip(), re.IGNORECASE)
    return match.group(1).lower() if match else None


def parse_data_url(url: str) -> Tuple[bytes, Optional[str]]:
    """Decode a data URI into its payload bytes and declared MIME type."""
    match = DATA_URL_PATTERN.match(url.strip())
    if not match:
        raise ParseFailed("Malformed data URL")
    header, payload = match.groups()
    params = [p.strip() for p in header.split(";")]
    mime = params[0].lower() if params and params[0] else None
    if any(p.lower() == "base64" for p in params[1:]):
        try:
            data = base64.b64decode(unquote_to_bytes(payload), validate=False)
        except (binascii.Error, ValueError) as e:
            raise ParseFailed(f"Invalid base64 payload in data URL: {e}")
    else:
        data = unquote_to_bytes(payload)
    return data, mime
