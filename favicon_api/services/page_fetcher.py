import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import cloudscraper
import requests
from bs4 import BeautifulSoup

from favicon_api.config import AppConfig
from favicon_api.errors import FetchFailed
from favicon_api.models import PageContext
from favicon_api.services.attempts import Attempt, first_success
from favicon_api.services.url_resolver import origin_of

logger = logging.getLogger(__name__)

# Sites that block bot user agents usually let a desktop browser through.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"


@dataclass(frozen=True)
class FetchedPage:
    html: str
    final_url: str


def normalize_target_url(url: str) -> str:
    url = url.strip()
    if not urlparse(url).scheme:
        return f"https://{url}"
    return url


def _request_html(session, url: str, user_agent: str, timeout: float) -> FetchedPage:
    headers = {
        "User-Agent": user_agent,
        "Accept": HTML_ACCEPT,
        "Accept-Language": ACCEPT_LANGUAGE,
    }
    try:
        resp = session.get(url, headers=headers, timeout=timeout, allow_redirects=True)
    except requests.exceptions.Timeout:
        raise FetchFailed(url, "timeout")
    except requests.exceptions.RequestException as e:
        raise FetchFailed(url, str(e))
    if not 200 <= resp.status_code < 300:
        raise FetchFailed(url, f"HTTP {resp.status_code}", resp.status_code)
    return FetchedPage(html=resp.text, final_url=resp.url or url)


def fetch_html(
    url: str,
    config: AppConfig,
    session: Optional[requests.Session] = None,
    scraper: Optional[requests.Session] = None,
) -> FetchedPage:
    """
    Fetch a page's markup, first with the configured user agent and then,
    if that does not return a 2xx, once more with a browser user agent.
    Raises FetchFailed when both attempts fail.
    """
    target = normalize_target_url(url)
    timeout = config.request_timeout_seconds

    def honest_attempt():
        return _request_html(session or requests.Session(), target, config.user_agent, timeout)

    def browser_attempt():
        return _request_html(
            scraper or cloudscraper.create_scraper(), target, BROWSER_USER_AGENT, timeout
        )

    page = first_success(
        [
            Attempt("configured user agent", honest_attempt),
            Attempt("browser user agent", browser_attempt),
        ],
        label=f"fetch {target}",
    )
    if page is None:
        raise FetchFailed(target, "all user agents failed")
    if page.final_url != target:
        logger.info(f"{target} redirected to {page.final_url}")
    return page


def build_context(page: FetchedPage) -> PageContext:
    document = BeautifulSoup(page.html, "html.parser")
    return PageContext(
        final_url=page.final_url,
        base_origin=origin_of(page.final_url),
        document=document,
    )
