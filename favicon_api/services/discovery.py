"""
Discovery orchestration: analyze the page, resolve candidates, and fall back.

The analyze + resolve phase runs under a single deadline. When the deadline
passes the phase counts as having found nothing and the fallback cascade
takes over; work still in flight is abandoned and its result discarded.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import replace
from typing import Callable, Dict, List, Optional, TypeVar

import requests

from favicon_api.config import AppConfig
from favicon_api.errors import NoAssetFound, PipelineTimeout
from favicon_api.models import Candidate, DiscoveryResult, ResolvedAsset
from favicon_api.services.candidate_resolver import fetch_best_asset
from favicon_api.services.fallback import CachedDefaultImage, apply_fallback_cascade
from favicon_api.services.page_analyzer import analyze_page

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_deadline(func: Callable[[], T], timeout_ms: int) -> T:
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="discovery")
    future = executor.submit(func)
    try:
        return future.result(timeout=timeout_ms / 1000)
    except FuturesTimeoutError:
        raise PipelineTimeout(f"Discovery exceeded {timeout_ms}ms")
    finally:
        # Do not wait for the worker; a late result is simply dropped
        executor.shutdown(wait=False)


def _resolve_lists(
    lists: Dict[str, List[Candidate]],
    config: AppConfig,
    session: Optional[requests.Session],
) -> Dict[str, Optional[ResolvedAsset]]:
    # Independent lists resolve side by side; each list stays sequential
    if len(lists) <= 1:
        return {name: fetch_best_asset(candidates, config, session) for name, candidates in lists.items()}
    with ThreadPoolExecutor(max_workers=len(lists), thread_name_prefix="resolve") as executor:
        futures = {
            name: executor.submit(fetch_best_asset, candidates, config, session)
            for name, candidates in lists.items()
        }
        return {name: future.result() for name, future in futures.items()}


def discover_assets(
    url: str,
    config: AppConfig,
    include_favicon: bool = True,
    include_og: bool = True,
    size: Optional[int] = None,
    session: Optional[requests.Session] = None,
    scraper: Optional[requests.Session] = None,
) -> DiscoveryResult:
    def pipeline() -> DiscoveryResult:
        analysis = analyze_page(
            url, config, size, include_favicons=include_favicon, session=session, scraper=scraper
        )
        lists = {}
        if include_favicon and analysis.favicons:
            lists["favicon"] = analysis.favicons
        if include_og and analysis.og_images:
            lists["og_image"] = analysis.og_images
        resolved = _resolve_lists(lists, config, session)
        return DiscoveryResult(
            favicon=resolved.get("favicon"),
            og_image=resolved.get("og_image"),
            metadata=analysis.metadata,
        )

    try:
        return run_with_deadline(pipeline, config.request_timeout)
    except PipelineTimeout as e:
        logger.warning(f"{e} for {url}, using fallbacks")
        return DiscoveryResult(timed_out=True)
    except Exception as e:
        logger.error(f"Discovery failed for {url}: {e}", exc_info=True)
        return DiscoveryResult()


def _finalize(
    asset: Optional[ResolvedAsset],
    label: str,
    config: AppConfig,
    default_url: Optional[str],
    skip_fallback: bool,
    session: Optional[requests.Session],
    cached_default: Optional[CachedDefaultImage],
) -> ResolvedAsset:
    if asset is not None and not (skip_fallback and asset.is_fallback):
        return asset
    if skip_fallback:
        raise NoAssetFound(f"No {label} found (fallback skipped)")
    logger.info(f"No {label} discovered, applying fallback cascade")
    return apply_fallback_cascade(config, default_url, session, cached_default)


def resolve_favicon(
    url: str,
    config: AppConfig,
    size: Optional[int] = None,
    default_url: Optional[str] = None,
    skip_fallback: bool = False,
    include_og: bool = True,
    session: Optional[requests.Session] = None,
    scraper: Optional[requests.Session] = None,
    cached_default: Optional[CachedDefaultImage] = None,
) -> DiscoveryResult:
    """Favicon (always set on return) plus the page's OG image and metadata."""
    result = discover_assets(
        url, config, include_favicon=True, include_og=include_og, size=size,
        session=session, scraper=scraper,
    )
    favicon = _finalize(
        result.favicon, "favicon", config, default_url, skip_fallback, session, cached_default
    )
    return replace(result, favicon=favicon)


def resolve_og_image(
    url: str,
    config: AppConfig,
    default_url: Optional[str] = None,
    skip_fallback: bool = False,
    session: Optional[requests.Session] = None,
    scraper: Optional[requests.Session] = None,
    cached_default: Optional[CachedDefaultImage] = None,
) -> DiscoveryResult:
    result = discover_assets(
        url, config, include_favicon=False, include_og=True, session=session, scraper=scraper
    )
    og_image = _finalize(
        result.og_image, "OG image", config, default_url, skip_fallback, session, cached_default
    )
    return replace(result, og_image=og_image)
