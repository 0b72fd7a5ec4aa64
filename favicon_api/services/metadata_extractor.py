from typing import Optional

from bs4 import BeautifulSoup

from favicon_api.models import PageMetadata


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag and (content := tag.get("content", "").strip()):
        return content
    return None


def _title_text(soup: BeautifulSoup) -> Optional[str]:
    if title_tag := soup.find("title"):
        return title_tag.get_text(strip=True) or None
    return None


def extract_metadata(soup: BeautifulSoup) -> PageMetadata:
    """Title, description and site name, first present location wins."""
    title = (
        _meta_content(soup, property="og:title")
        or _meta_content(soup, name="twitter:title")
        or _title_text(soup)
    )
    description = (
        _meta_content(soup, property="og:description")
        or _meta_content(soup, name="twitter:description")
        or _meta_content(soup, name="description")
    )
    site_name = _meta_content(soup, property="og:site_name")
    return PageMetadata(title=title, description=description, site_name=site_name)
