"""
Detail-mode extraction for a single product page.

URL validation happens before any browser work. The field cascade is a pure
function of the HTML snapshot; a missing identifier is tolerated but a
missing or short title fails the call.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from playwright.async_api import Page

from extractor.crawl.constants import (
    DETAIL_SETTLE_MS,
    PRODUCT_PATH_MARKERS,
    SUPPORTED_CATALOG_DOMAINS,
)
from extractor.crawl.extraction import parse_external_id
from extractor.crawl.locators import (
    DETAIL_FEATURE_BOILERPLATE,
    DETAIL_FEATURE_MIN_LENGTH,
    DETAIL_FEATURE_SELECTOR,
    DETAIL_FIELD_LOCATORS,
    first_match,
)
from extractor.crawl.navigation import navigate, settle
from extractor.crawl.text import normalize_whitespace
from extractor.errors import InvalidTargetError, RecordValidationError
from extractor.models import MAX_FEATURES, UNAVAILABLE, ExtractedRecord, is_valid_title, utcnow
from shared.logging import get_logger

logger = get_logger(__name__)

PROVENANCE_DETAIL = "live_browser:detail"


def validate_detail_url(url: Optional[str]) -> str:
    """
    Return url (trimmed) if it points at a product page on a supported catalog domain.

    Raises InvalidTargetError for a missing, malformed, foreign or non-product URL.
    """
    url = (url or "").strip()
    if not url:
        raise InvalidTargetError("A product URL is required")
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidTargetError(f"Malformed URL: {url!r}") from e
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidTargetError(f"Malformed URL: {url!r}")

    host = parsed.hostname.lower()
    if not any(host == d or host == f"www.{d}" for d in SUPPORTED_CATALOG_DOMAINS):
        raise InvalidTargetError(f"Unsupported catalog domain: {host}")
    if not any(marker in parsed.path for marker in PRODUCT_PATH_MARKERS):
        raise InvalidTargetError(f"URL has no product path segment: {parsed.path or '/'}")
    return url


def _features(soup: BeautifulSoup) -> tuple[str, ...]:
    features: list[str] = []
    for li in soup.select(DETAIL_FEATURE_SELECTOR):
        text = normalize_whitespace(li.get_text(" "))
        if len(text) <= DETAIL_FEATURE_MIN_LENGTH:
            continue
        if any(phrase in text for phrase in DETAIL_FEATURE_BOILERPLATE):
            continue
        features.append(text)
        if len(features) >= MAX_FEATURES:
            break
    return tuple(features)


def extract_detail_record(
    html: str,
    url: str,
    *,
    provenance: str = PROVENANCE_DETAIL,
) -> ExtractedRecord:
    """
    Extract one product record from a detail page snapshot.

    Raises RecordValidationError when the title is missing or shorter than 5 chars.
    """
    soup = BeautifulSoup(html, "html.parser")
    locators = DETAIL_FIELD_LOCATORS

    title = first_match(soup, locators["title"])
    if not is_valid_title(title):
        raise RecordValidationError(
            "Could not extract product title; the page may have failed to load"
        )

    # The canonical URL wins over page attributes; carousels carry other ids.
    external_id = parse_external_id(url) or first_match(soup, locators["identifier"])

    return ExtractedRecord(
        title=title,
        rank=1,
        external_id=external_id,
        price=first_match(soup, locators["price"]) or UNAVAILABLE,
        rating=first_match(soup, locators["rating"]) or UNAVAILABLE,
        image_url=first_match(soup, locators["image"]),
        detail_url=url,
        provenance=provenance,
        extracted_at=utcnow(),
        availability=first_match(soup, locators["availability"]),
        review_count=first_match(soup, locators["review_count"]),
        brand=first_match(soup, locators["brand"]),
        features=_features(soup),
    )


async def scrape_detail(page: Page, url: str, *, nav_timeout_ms: int) -> ExtractedRecord:
    """Navigate page to url and extract the detail record (one attempt)."""
    await navigate(page, url, timeout_ms=nav_timeout_ms)
    await settle(DETAIL_SETTLE_MS)
    html = await page.content()
    record = extract_detail_record(html, url)
    logger.info(
        "detail.extracted",
        url=url,
        external_id=record.external_id,
        features=len(record.features),
    )
    return record
