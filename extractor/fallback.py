"""
Four-tier fallback chain for listing extraction.

    live_browser -> http_fetch -> stale_cache -> static_sample

Each tier runs only when every earlier tier failed or produced nothing.
Tier errors are logged and collected; the static tier cannot fail, so
`resolve` always returns records.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from extractor.cache_store import CacheStore
from extractor.crawl.browser import BrowserSession
from extractor.crawl.constants import LISTING_MAX_ROUNDS
from extractor.crawl.listing import scrape_listing
from extractor.errors import SelectorExhaustedError, summarize_error
from extractor.http_fallback import scrape_listing_http
from extractor.models import ExtractedRecord
from extractor.retry import RetryOrchestrator
from extractor.samples import get_static_records
from shared.config import AppConfig, get_config
from shared.logging import get_logger

logger = get_logger(__name__)

TIER_LIVE_BROWSER = "live_browser"
TIER_HTTP_FETCH = "http_fetch"
TIER_STALE_CACHE = "stale_cache"
TIER_STATIC_SAMPLE = "static_sample"

LIVE_TIERS = (TIER_LIVE_BROWSER, TIER_HTTP_FETCH)


def _require_records(records: list[ExtractedRecord], tier: str) -> list[ExtractedRecord]:
    if not records:
        raise SelectorExhaustedError(f"{tier} returned no records")
    return records


@dataclass(frozen=True)
class ListingRequest:
    target_url: str
    category: str
    limit: int
    max_rounds: int = LISTING_MAX_ROUNDS
    # Extra cache partitions consulted by the stale tier after `category`.
    stale_categories: tuple[str, ...] = ()


@dataclass
class FallbackResult:
    records: list[ExtractedRecord]
    tier: str
    # (tier, error summary) for each tier that failed before `tier`
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def is_live(self) -> bool:
        return self.tier in LIVE_TIERS

    def failure_summary(self) -> Optional[str]:
        if not self.failures:
            return None
        return "; ".join(f"{tier}: {summary}" for tier, summary in self.failures)[:500]


class FallbackChain:
    """Resolves a listing request through the tiers, most faithful first."""

    def __init__(
        self,
        browser: BrowserSession,
        store: CacheStore,
        retry: RetryOrchestrator,
        config: Optional[AppConfig] = None,
        *,
        listing_scraper: Callable[..., Awaitable[list[ExtractedRecord]]] = scrape_listing,
        http_scraper: Callable[..., list[ExtractedRecord]] = scrape_listing_http,
    ):
        self.browser = browser
        self.store = store
        self.retry = retry
        self.config = config or get_config()
        self.listing_scraper = listing_scraper
        self.http_scraper = http_scraper

    def _tier_failed(
        self, failures: list[tuple[str, str]], tier: str, error: BaseException
    ) -> None:
        summary = summarize_error(error)
        failures.append((tier, summary))
        logger.warning(
            "fallback.tier_failed",
            tier=tier,
            error=summary,
            error_type=type(error).__name__,
        )

    async def _live_browser(self, request: ListingRequest) -> list[ExtractedRecord]:
        records = await self.retry.run(
            lambda: self.listing_scraper(
                self.browser,
                request.target_url,
                target_count=request.limit,
                max_rounds=request.max_rounds,
            ),
            operation_name="listing_scrape",
        )
        return _require_records(records, TIER_LIVE_BROWSER)

    async def _http_fetch(self, request: ListingRequest) -> list[ExtractedRecord]:
        records = await asyncio.to_thread(
            self.http_scraper,
            request.target_url,
            request.limit,
            timeout_seconds=self.config.http_fetch_timeout_seconds,
        )
        return _require_records(records, TIER_HTTP_FETCH)

    def _stale_cache(self, request: ListingRequest) -> list[ExtractedRecord]:
        for category in (request.category, *request.stale_categories):
            rows = self.store.read(
                category, self.config.stale_cache_max_age_hours, request.limit
            )
            if rows:
                logger.info("fallback.stale_rows_found", category=category, rows=len(rows))
                return [
                    row.to_extracted(provenance=f"{TIER_STALE_CACHE}:{row.source or 'unknown'}")
                    for row in rows
                ]
        return []

    async def resolve(self, request: ListingRequest) -> FallbackResult:
        failures: list[tuple[str, str]] = []

        if self.config.skip_browser:
            logger.info("fallback.tier_skipped", tier=TIER_LIVE_BROWSER, reason="skip_browser")
        else:
            try:
                records = await self._live_browser(request)
                return self._succeeded(records, TIER_LIVE_BROWSER, failures)
            except Exception as e:
                self._tier_failed(failures, TIER_LIVE_BROWSER, e)

        try:
            records = await self._http_fetch(request)
            return self._succeeded(records, TIER_HTTP_FETCH, failures)
        except Exception as e:
            self._tier_failed(failures, TIER_HTTP_FETCH, e)

        try:
            records = self._stale_cache(request)
            if records:
                return self._succeeded(records, TIER_STALE_CACHE, failures)
            logger.info("fallback.stale_cache_empty", category=request.category)
        except Exception as e:
            self._tier_failed(failures, TIER_STALE_CACHE, e)

        return self._succeeded(get_static_records(request.limit), TIER_STATIC_SAMPLE, failures)

    def _succeeded(
        self, records: list[ExtractedRecord], tier: str, failures: list[tuple[str, str]]
    ) -> FallbackResult:
        logger.info(
            "fallback.tier_succeeded",
            tier=tier,
            records=len(records),
            failed_tiers=[t for t, _ in failures],
        )
        return FallbackResult(records=records, tier=tier, failures=failures)
