import logging
from typing import List, Optional, Tuple

import requests

from favicon_api.config import AppConfig
from favicon_api.errors import FetchFailed, ResolutionError, ValidationFailed
from favicon_api.models import Candidate, ResolvedAsset, SourceTag
from favicon_api.services.image_validation import detect_format, validate_image
from favicon_api.services.url_resolver import is_data_url, parse_data_url

logger = logging.getLogger(__name__)

IMAGE_ACCEPT = "image/webp,image/png,image/jpeg,image/*,*/*;q=0.8"
CHUNK_SIZE = 8192


def _short(url: str) -> str:
    return url if len(url) <= 80 else f"{url[:77]}..."


def _read_limited(resp: requests.Response, url: str, limit: int) -> bytes:
    content_length = resp.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > limit:
        raise ValidationFailed(f"{_short(url)} exceeds size limit: {content_length} bytes")
    data = bytearray()
    for chunk in resp.iter_content(CHUNK_SIZE):
        data.extend(chunk)
        if len(data) > limit:
            raise ValidationFailed(f"{_short(url)} exceeds size limit of {limit} bytes")
    return bytes(data)


def load_candidate_bytes(
    url: str, config: AppConfig, session: requests.Session
) -> Tuple[bytes, Optional[str]]:
    """
    Return (payload, declared MIME type) for an asset reference. Data URIs are
    decoded in place; anything else costs exactly one GET.
    """
    if is_data_url(url):
        data, mime = parse_data_url(url)
    else:
        try:
            resp = session.get(
                url,
                headers={"User-Agent": config.user_agent, "Accept": IMAGE_ACCEPT},
                timeout=config.request_timeout_seconds,
                stream=True,
                allow_redirects=True,
            )
        except requests.exceptions.Timeout:
            raise FetchFailed(url, "timeout")
        except requests.exceptions.RequestException as e:
            raise FetchFailed(url, str(e))
        try:
            if not 200 <= resp.status_code < 300:
                raise FetchFailed(url, f"HTTP {resp.status_code}", resp.status_code)
            data = _read_limited(resp, url, config.max_image_size)
        except requests.exceptions.RequestException as e:
            raise FetchFailed(url, str(e))
        finally:
            resp.close()
        mime = resp.headers.get("content-type")

    if not data:
        raise ValidationFailed(f"{_short(url)} returned an empty payload")
    if len(data) > config.max_image_size:
        raise ValidationFailed(f"{_short(url)} exceeds size limit: {len(data)} bytes")
    return data, mime


def resolve_single(
    url: str,
    source: SourceTag,
    config: AppConfig,
    session: requests.Session,
    format_hint: Optional[str] = None,
) -> ResolvedAsset:
    data, mime = load_candidate_bytes(url, config, session)
    validate_image(data)
    # A data URI's own MIME type outranks the hint declared in markup
    hint = mime if is_data_url(url) else (format_hint or mime)
    return ResolvedAsset(
        data=data,
        format=detect_format(data, hint),
        source=source,
        origin_url=url,
    )


def fetch_best_asset(
    candidates: List[Candidate],
    config: AppConfig,
    session: Optional[requests.Session] = None,
) -> Optional[ResolvedAsset]:
    """
    Try candidates in the given (score) order and return the first one whose
    bytes validate. Returns None when the list is exhausted.
    """
    session = session or requests.Session()
    for candidate in candidates:
        try:
            asset = resolve_single(
                candidate.url, candidate.source, config, session, candidate.format_hint
            )
        except ResolutionError as e:
            logger.warning(f"Skipping {candidate.source.value} candidate {_short(candidate.url)}: {e}")
            continue
        logger.info(
            f"Resolved {asset.format} from {candidate.source.value} {_short(candidate.url)} "
            f"(score {candidate.score}, {len(asset.data)} bytes)"
        )
        return asset
    return None
