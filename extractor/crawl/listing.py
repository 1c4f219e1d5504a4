"""
One attempt at a live listing scrape: acquire page, navigate, wait, paginate.

The page is always released, success or failure. Retry lives in the caller.
"""

from __future__ import annotations

from typing import Optional

from extractor.crawl.browser import BrowserSession
from extractor.crawl.constants import PAGE_SETTLE_MS
from extractor.crawl.extraction import ExtractionStrategy
from extractor.crawl.locators import LISTING_READY_SELECTOR
from extractor.crawl.navigation import navigate, settle, wait_for_records
from extractor.crawl.pagination import ScrollPaginator
from extractor.errors import SelectorExhaustedError
from extractor.models import ExtractedRecord
from shared.logging import get_logger

logger = get_logger(__name__)


async def scrape_listing(
    browser: BrowserSession,
    url: str,
    *,
    target_count: int,
    max_rounds: int,
    paginator: Optional[ScrollPaginator] = None,
) -> list[ExtractedRecord]:
    """
    Scrape up to target_count records from the listing at url.

    Raises NavigationTimeoutError / BlockedPageError from navigation and
    SelectorExhaustedError when nothing usable was extracted.
    """
    paginator = paginator or ScrollPaginator(ExtractionStrategy())
    config = browser.config

    page = await browser.acquire()
    try:
        await navigate(page, url, timeout_ms=config.nav_timeout_ms)
        await settle(PAGE_SETTLE_MS)
        await wait_for_records(
            page, LISTING_READY_SELECTOR, timeout_ms=config.element_wait_timeout_ms
        )
        records = await paginator.collect(page, target_count, max_rounds)
    finally:
        await browser.release(page)

    if not records:
        raise SelectorExhaustedError(f"No usable records extracted from {url}")

    logger.info("listing.scraped", url=url, records=len(records), target=target_count)
    return records
