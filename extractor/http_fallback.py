"""
Browser-free listing fetch: one HTTP GET plus ordered title patterns.

Only titles survive this tier; price and rating are reported as unavailable.
Patterns are tried in order and the first that yields any accepted title
wins, so output never mixes layouts.
"""

from __future__ import annotations

import re
from typing import Optional

import requests

from extractor.crawl.constants import HTTP_FETCH_HEADERS
from extractor.crawl.text import clean_fragment
from extractor.errors import NetworkFetchError, SelectorExhaustedError
from extractor.models import ExtractedRecord, utcnow
from shared.logging import get_logger

logger = get_logger(__name__)

PROVENANCE_HTTP_FETCH = "http_fetch"

TITLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'<span[^>]*class="[^"]*p13n-sc-truncate[^"]*"[^>]*>([^<]+)</span>', re.I),
    re.compile(
        r'<h2[^>]*class="[^"]*s-size-mini[^"]*"[^>]*>.*?<span[^>]*>([^<]+)</span>', re.I
    ),
    re.compile(r'<span[^>]*class="[^"]*a-size-base-plus[^"]*"[^>]*>([^<]+)</span>', re.I),
    re.compile(r'<span[^>]*class="[^"]*a-size-medium[^"]*"[^>]*>([^<]+)</span>', re.I),
    re.compile(r"<h3[^>]*>.*?<span[^>]*>([^<]+)</span>.*?</h3>", re.I),
)

MIN_TITLE_CHARS = 10
MAX_TITLE_CHARS = 200
BOILERPLATE_TITLE_FRAGMENTS = ("Amazon", "Best Sellers")
_NUMERIC_ONLY = re.compile(r"^[0-9\s\-#.]*$")


def is_acceptable_title(title: str) -> bool:
    """Reject navigation chrome, rank labels and site boilerplate."""
    if not (MIN_TITLE_CHARS < len(title) < MAX_TITLE_CHARS):
        return False
    if any(fragment in title for fragment in BOILERPLATE_TITLE_FRAGMENTS):
        return False
    return not _NUMERIC_ONLY.match(title)


def fetch_listing_html(url: str, timeout_seconds: float = 10) -> str:
    """GET url with browser-like headers; NetworkFetchError on transport error or non-200."""
    try:
        response = requests.get(url, headers=HTTP_FETCH_HEADERS, timeout=timeout_seconds)
    except requests.RequestException as e:
        raise NetworkFetchError(f"HTTP request to {url} failed: {e}") from e
    if response.status_code != 200:
        raise NetworkFetchError(
            f"HTTP {response.status_code} from {url}", status_code=response.status_code
        )
    return response.text


def parse_listing_titles(html: str, limit: int) -> tuple[list[str], Optional[int]]:
    """
    Return (titles, pattern_number) from the first pattern that yields any title.

    Titles are unescaped, whitespace-normalized and de-duplicated exactly.
    pattern_number is 1-based, or None when nothing matched.
    """
    for number, pattern in enumerate(TITLE_PATTERNS, start=1):
        titles: list[str] = []
        for match in pattern.finditer(html):
            if len(titles) >= limit:
                break
            title = clean_fragment(match.group(1))
            if not is_acceptable_title(title) or title in titles:
                continue
            titles.append(title)
        if titles:
            return titles, number
    return [], None


def scrape_listing_http(
    url: str,
    limit: int,
    *,
    timeout_seconds: float = 10,
) -> list[ExtractedRecord]:
    """
    Fetch and parse the listing at url without a browser.

    Raises NetworkFetchError when the fetch fails and SelectorExhaustedError
    when no pattern yields a title.
    """
    html = fetch_listing_html(url, timeout_seconds)
    titles, pattern_number = parse_listing_titles(html, limit)
    if not titles:
        logger.warning("http_fetch.no_titles", url=url, html_length=len(html))
        raise SelectorExhaustedError(f"No titles found in HTTP response from {url}")

    extracted_at = utcnow()
    logger.info("http_fetch.parsed", url=url, records=len(titles), pattern=pattern_number)
    return [
        ExtractedRecord(
            title=title,
            rank=rank,
            provenance=f"{PROVENANCE_HTTP_FETCH}:pattern_{pattern_number}",
            extracted_at=extracted_at,
        )
        for rank, title in enumerate(titles, start=1)
    ]
