"""
Playwright-based crawling helpers for catalog listing and detail pages.

This package owns the browser lifecycle, single-attempt navigation, the
locator cascades, scroll pagination and detail extraction. Retry and
fallback live one level up in `extractor.retry` and `extractor.fallback`.

Public API: re-exports the symbols used by the service and tests so that
`from extractor.crawl import ...` remains valid.
"""

from __future__ import annotations

from extractor.crawl.browser import BrowserSession, find_browser_executable
from extractor.crawl.constants import (
    CANDIDATE_MIN_COUNT,
    ENHANCED_MAX_RECORDS,
    ENHANCED_MAX_ROUNDS,
    LISTING_MAX_ROUNDS,
    SCROLL_INCREMENT_PX,
    SCROLL_SETTLE_MS,
)
from extractor.crawl.detail import extract_detail_record, scrape_detail, validate_detail_url
from extractor.crawl.extraction import (
    ExtractionStrategy,
    extract_listing_records,
    parse_external_id,
)
from extractor.crawl.listing import scrape_listing
from extractor.crawl.locators import (
    LISTING_ELEMENT_TIERS,
    LISTING_FIELD_LOCATORS,
    ElementTier,
    Locator,
    collect_candidates,
    first_match,
)
from extractor.crawl.navigation import is_bot_block_page, navigate, wait_for_records
from extractor.crawl.pagination import ScrollPaginator
from extractor.crawl.text import normalize_whitespace

__all__ = [
    # constants
    "CANDIDATE_MIN_COUNT",
    "ENHANCED_MAX_RECORDS",
    "ENHANCED_MAX_ROUNDS",
    "LISTING_MAX_ROUNDS",
    "SCROLL_INCREMENT_PX",
    "SCROLL_SETTLE_MS",
    # browser
    "BrowserSession",
    "find_browser_executable",
    # navigation
    "navigate",
    "is_bot_block_page",
    "wait_for_records",
    # locators / extraction
    "ElementTier",
    "Locator",
    "LISTING_ELEMENT_TIERS",
    "LISTING_FIELD_LOCATORS",
    "collect_candidates",
    "first_match",
    "ExtractionStrategy",
    "extract_listing_records",
    "parse_external_id",
    "ScrollPaginator",
    "scrape_listing",
    # detail
    "extract_detail_record",
    "scrape_detail",
    "validate_detail_url",
    # text
    "normalize_whitespace",
]
