"""
Candidate extraction for icons and social preview images.

Every extractor except the manifest one is a pure function of the parsed
page; each returns candidates in document order, already scored.
"""

import json
import logging
import os
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, urlparse

import requests
from bs4 import BeautifulSoup

from favicon_api.config import AppConfig
from favicon_api.models import Candidate, PageContext, SourceTag
from favicon_api.services.scoring import (
    APPLE_TOUCH_FALLBACK_SCORE,
    EXTERNAL_FALLBACK_SCORE,
    FAVICON_ICO_FALLBACK_SCORE,
    MANIFEST_ICON_SCORE,
    score_icon,
    score_social_image,
)
from favicon_api.services.url_resolver import data_url_mime, is_data_url, resolve_url

logger = logging.getLogger(__name__)

SIZES_PATTERN = re.compile(r"(\d+)\s*[xX]\s*(\d+)")
LEADING_INT_PATTERN = re.compile(r"^\s*(\d+)")
OG_IMAGE_URL_PROPERTIES = ("og:image", "og:image:url", "og:image:secure_url")
OG_IMAGE_DETAIL_PROPERTIES = {
    "og:image:width": "width",
    "og:image:height": "height",
    "og:image:alt": "alt",
    "og:image:type": "type",
}


def parse_sizes(sizes: Optional[str]) -> Optional[Tuple[int, int]]:
    """First "WxH" pair of a sizes attribute, e.g. "16x16 32x32" -> (16, 16)."""
    if not sizes:
        return None
    match = SIZES_PATTERN.search(sizes)
    if not match:
        return None
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        return None
    return width, height


def parse_dimension(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = int(value)
    elif isinstance(value, str):
        match = LEADING_INT_PATTERN.match(value)
        if not match:
            return None
        number = int(match.group(1))
    else:
        return None
    return number if number > 0 else None


def _extension_hint(url: str) -> str:
    return os.path.splitext(urlparse(url).path)[1].lstrip(".").lower()


def _rel_value(tag) -> str:
    rel = tag.get("rel") or ""
    if isinstance(rel, (list, tuple)):
        rel = " ".join(rel)
    return rel.lower()


def extract_link_icons(soup: BeautifulSoup, base_origin: str) -> List[Candidate]:
    candidates = []
    for tag in soup.find_all("link"):
        rel = _rel_value(tag)
        href = (tag.get("href") or "").strip()
        if "icon" not in rel or not href:
            continue

        format_hint = (tag.get("type") or "").strip()
        if not format_hint:
            if is_data_url(href):
                format_hint = data_url_mime(href) or ""
            else:
                format_hint = _extension_hint(href)

        size = parse_sizes(tag.get("sizes"))
        width, height = size if size else (None, None)
        candidates.append(
            Candidate(
                url=resolve_url(href, base_origin),
                score=score_icon(width, format_hint, rel),
                source=SourceTag.LINK_TAG,
                width=width,
                height=height,
                format_hint=format_hint or None,
            )
        )
    return candidates


def extract_manifest_icons(
    base_origin: str, config: AppConfig, session: Optional[requests.Session] = None
) -> List[Candidate]:
    """Icons from <origin>/manifest.json. Any failure yields no candidates."""
    manifest_url = f"{base_origin}/manifest.json"
    session = session or requests.Session()
    try:
        resp = session.get(
            manifest_url,
            headers={"User-Agent": config.user_agent},
            timeout=config.request_timeout_seconds,
        )
    except requests.exceptions.RequestException as e:
        logger.info(f"Manifest fetch failed for {manifest_url}: {e}")
        return []
    if not 200 <= resp.status_code < 300:
        logger.info(f"No manifest at {manifest_url}: HTTP {resp.status_code}")
        return []
    try:
        manifest = resp.json()
    except ValueError as e:
        logger.warning(f"Manifest at {manifest_url} is not valid JSON: {e}")
        return []

    icons = manifest.get("icons") if isinstance(manifest, dict) else None
    if not isinstance(icons, list):
        return []

    candidates = []
    for icon in icons:
        if not isinstance(icon, dict):
            continue
        src = icon.get("src")
        if not isinstance(src, str) or not src.strip():
            continue
        sizes = icon.get("sizes")
        size = parse_sizes(sizes if isinstance(sizes, str) else None)
        width, height = size if size else (None, None)
        icon_type = icon.get("type")
        candidates.append(
            Candidate(
                url=resolve_url(src, base_origin),
                score=MANIFEST_ICON_SCORE,
                source=SourceTag.MANIFEST,
                width=width,
                height=height,
                format_hint=icon_type if isinstance(icon_type, str) else None,
            )
        )
    logger.info(f"Found {len(candidates)} manifest icons at {manifest_url}")
    return candidates


def static_fallback_icons(base_origin: str) -> List[Candidate]:
    return [
        Candidate(
            url=f"{base_origin}/favicon.ico",
            score=FAVICON_ICO_FALLBACK_SCORE,
            source=SourceTag.STATIC_FALLBACK,
            format_hint="ico",
        ),
        Candidate(
            url=f"{base_origin}/apple-touch-icon.png",
            score=APPLE_TOUCH_FALLBACK_SCORE,
            source=SourceTag.STATIC_FALLBACK,
            format_hint="png",
        ),
    ]


def external_fallback_icon(
    url: str, config: AppConfig, size: Optional[int] = None
) -> Optional[Candidate]:
    if not config.use_fallback_api:
        return None
    hostname = urlparse(url).hostname
    if not hostname:
        return None
    domain = quote(f"https://{hostname}", safe="")
    return Candidate(
        url=config.fallback_api_url.format(domain=domain, size=size or config.default_icon_size),
        score=EXTERNAL_FALLBACK_SCORE,
        source=SourceTag.EXTERNAL_FALLBACK,
    )


def extract_og_images(soup: BeautifulSoup, base_origin: str) -> List[Candidate]:
    """
    OpenGraph images. Width, height, alt and type tags are attached to the
    first collected image only: the markup has no way to say which image a
    detail tag belongs to when several og:image tags are present.
    """
    tags = soup.find_all("meta", attrs={"property": re.compile(r"^og:image")})
    images: List[Dict[str, str]] = []
    for tag in tags:
        content = (tag.get("content") or "").strip()
        if content and tag.get("property") in OG_IMAGE_URL_PROPERTIES:
            images.append({"url": content})

    if images:
        first = images[0]
        for tag in tags:
            content = (tag.get("content") or "").strip()
            key = OG_IMAGE_DETAIL_PROPERTIES.get(tag.get("property"))
            if content and key:
                first[key] = content

    candidates = []
    for image in images:
        width = parse_dimension(image.get("width"))
        height = parse_dimension(image.get("height"))
        candidates.append(
            Candidate(
                url=resolve_url(image["url"], base_origin),
                score=score_social_image(width, height, SourceTag.OG_META, image.get("type")),
                source=SourceTag.OG_META,
                width=width,
                height=height,
                format_hint=image.get("type"),
                alt=image.get("alt"),
            )
        )
    return candidates


def extract_twitter_image(soup: BeautifulSoup, base_origin: str) -> List[Candidate]:
    image_tag = soup.find("meta", attrs={"name": "twitter:image"})
    image_url = (image_tag.get("content") or "").strip() if image_tag else ""
    if not image_url:
        return []
    alt_tag = soup.find("meta", attrs={"name": "twitter:image:alt"})
    alt = (alt_tag.get("content") or "").strip() if alt_tag else ""
    return [
        Candidate(
            url=resolve_url(image_url, base_origin),
            score=score_social_image(None, None, SourceTag.TWITTER_META),
            source=SourceTag.TWITTER_META,
            alt=alt or None,
        )
    ]


def _jsonld_image_entries(image) -> List[Tuple[str, Optional[int], Optional[int]]]:
    entries = image if isinstance(image, list) else [image]
    results = []
    for entry in entries:
        if isinstance(entry, str):
            url, width, height = entry, None, None
        elif isinstance(entry, dict):
            url = entry.get("url")
            width = parse_dimension(entry.get("width"))
            height = parse_dimension(entry.get("height"))
        else:
            continue
        if isinstance(url, str) and url.strip():
            results.append((url, width, height))
    return results


def extract_jsonld_images(soup: BeautifulSoup, base_origin: str) -> List[Candidate]:
    candidates = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        try:
            schema = json.loads(text)
        except ValueError as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")
            continue

        items = schema if isinstance(schema, list) else [schema]
        for item in items:
            if not isinstance(item, dict) or not item.get("image"):
                continue
            for url, width, height in _jsonld_image_entries(item["image"]):
                candidates.append(
                    Candidate(
                        url=resolve_url(url, base_origin),
                        score=score_social_image(width, height, SourceTag.STRUCTURED_DATA),
                        source=SourceTag.STRUCTURED_DATA,
                        width=width,
                        height=height,
                    )
                )
    return candidates


def extract_social_images(context: PageContext) -> List[Candidate]:
    soup, origin = context.document, context.base_origin
    return (
        extract_og_images(soup, origin)
        + extract_twitter_image(soup, origin)
        + extract_jsonld_images(soup, origin)
    )


def sort_candidates(candidates: List[Candidate]) -> List[Candidate]:
    # sorted() is stable, so equal scores keep extraction order
    return sorted(candidates, key=lambda c: c.score, reverse=True)
