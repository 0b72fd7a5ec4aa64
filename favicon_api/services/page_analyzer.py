import logging
from typing import Optional

import requests

from favicon_api.config import AppConfig
from favicon_api.errors import FetchFailed
from favicon_api.models import PageAnalysis
from favicon_api.services.candidates import (
    external_fallback_icon,
    extract_link_icons,
    extract_manifest_icons,
    extract_social_images,
    sort_candidates,
    static_fallback_icons,
)
from favicon_api.services.metadata_extractor import extract_metadata
from favicon_api.services.page_fetcher import build_context, fetch_html, normalize_target_url

logger = logging.getLogger(__name__)


def analyze_page(
    url: str,
    config: AppConfig,
    size: Optional[int] = None,
    include_favicons: bool = True,
    session: Optional[requests.Session] = None,
    scraper: Optional[requests.Session] = None,
) -> PageAnalysis:
    """Fetch the page once and collect metadata plus every scored candidate."""
    target = normalize_target_url(url)
    session = session or requests.Session()
    analysis = PageAnalysis()

    try:
        page = fetch_html(target, config, session=session, scraper=scraper)
    except FetchFailed as e:
        logger.warning(f"Could not fetch markup for {target}: {e}")
        page = None

    favicons = []
    if page is not None:
        context = build_context(page)
        analysis.metadata = extract_metadata(context.document)
        if include_favicons:
            favicons.extend(extract_link_icons(context.document, context.base_origin))
            favicons.extend(static_fallback_icons(context.base_origin))
            favicons.extend(extract_manifest_icons(context.base_origin, config, session))
        analysis.og_images = sort_candidates(extract_social_images(context))

    if include_favicons:
        if fallback := external_fallback_icon(target, config, size):
            favicons.append(fallback)
        analysis.favicons = sort_candidates(favicons)

    logger.info(
        f"Analyzed {target}: {len(analysis.favicons)} icon candidates, "
        f"{len(analysis.og_images)} image candidates"
    )
    return analysis
