"""
Caller-facing catalog service.

Listing reads are cache-aside: a fresh cache partition is served directly,
otherwise one extraction runs through the fallback chain inside a scrape
session and live results are written back. Concurrent misses for the same
partition share that one extraction.

Detail reads validate the URL before anything else and never surface
extraction failures: the caller gets a stale row or None.
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass, replace
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from extractor.cache_store import CacheStore
from extractor.crawl.browser import BrowserSession
from extractor.crawl.constants import ENHANCED_MAX_RECORDS, ENHANCED_MAX_ROUNDS, LISTING_MAX_ROUNDS
from extractor.crawl.detail import scrape_detail, validate_detail_url
from extractor.errors import PersistenceError, summarize_error
from extractor.fallback import (
    TIER_STALE_CACHE,
    FallbackChain,
    FallbackResult,
    ListingRequest,
)
from extractor.models import ExtractedRecord
from extractor.retry import RetryOrchestrator
from extractor.samples import get_static_records
from extractor.targets import StaticTargetResolver, TargetResolver, resolve_target_url
from shared.config import AppConfig, get_config
from shared.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

SOURCE_CACHE = "cache"
SOURCE_LIVE = "live"
SOURCE_DEGRADED = "degraded"

TIER_FRESH_CACHE = "fresh_cache"

ENHANCED_SUFFIX = "-enhanced"

# Errors from the store that degrade a read instead of failing the call
# (ValueError covers a missing DATABASE_URL).
_STORE_ERRORS = (SQLAlchemyError, ValueError)


def listing_partition(category: str, enhanced: bool = False) -> str:
    return f"{category}{ENHANCED_SUFFIX}" if enhanced else category


def detail_partition(url: str) -> str:
    return "detail:" + hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]


@dataclass(frozen=True)
class RecordsResult:
    records: list[ExtractedRecord]
    source: str
    tier: str
    session_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "records": [r.to_dict() for r in self.records],
            "source": self.source,
            "tier": self.tier,
            "session_id": self.session_id,
        }


class CatalogService:
    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        browser: Optional[BrowserSession] = None,
        store: Optional[CacheStore] = None,
        retry: Optional[RetryOrchestrator] = None,
        resolver: Optional[TargetResolver] = None,
        chain: Optional[FallbackChain] = None,
    ):
        self.config = config or get_config()
        self.browser = browser or BrowserSession(self.config)
        self.store = store or CacheStore()
        self.retry = retry or RetryOrchestrator(
            self.config.retry_max_attempts, self.config.retry_base_delay_ms
        )
        self.resolver = resolver if resolver is not None else StaticTargetResolver()
        self.chain = chain or FallbackChain(self.browser, self.store, self.retry, self.config)
        # partition -> (limit, shared refresh task)
        self._in_flight: dict[str, tuple[int, asyncio.Future]] = {}

    def _clamp_limit(self, limit: int, maximum: Optional[int] = None) -> int:
        maximum = maximum or self.config.max_records_per_request
        return max(1, min(int(limit), maximum))

    # --- store access that degrades instead of raising ---

    def _read_fresh(
        self, category: str, limit: int, min_count: int = 1
    ) -> list[ExtractedRecord]:
        ttl = self.config.cache_max_age_hours
        try:
            freshness = self.store.is_fresh(category, ttl)
            if not freshness.fresh or freshness.count < min_count:
                logger.info("cache.miss", category=category, fresh_rows=freshness.count)
                return []
            rows = self.store.read(category, ttl, limit)
        except _STORE_ERRORS as e:
            logger.warning("cache.read_failed", category=category, error=str(e))
            return []
        logger.info(
            "cache.hit",
            category=category,
            rows=len(rows),
            last_updated=freshness.last_updated.isoformat() if freshness.last_updated else None,
        )
        return [row.to_extracted() for row in rows]

    def _read_ref(self, ref: str, max_age_hours: int) -> Optional[ExtractedRecord]:
        try:
            row = self.store.read_by_external_ref(ref, max_age_hours)
        except _STORE_ERRORS as e:
            logger.warning("cache.read_failed", ref=ref, error=str(e))
            return None
        return row.to_extracted() if row else None

    def _open_session(self, source: str, category: str) -> Optional[str]:
        try:
            return self.store.open_session(source, category)
        except _STORE_ERRORS as e:
            logger.warning("cache.session.open_failed", category=category, error=str(e))
            return None

    def _close_session(
        self,
        session_id: Optional[str],
        success: bool,
        records_found: int,
        error_message: Optional[str],
    ) -> None:
        if session_id is None:
            return
        try:
            self.store.close_session(session_id, success, records_found, error_message)
        except _STORE_ERRORS as e:
            logger.warning("cache.session.close_failed", session_id=session_id, error=str(e))

    def _persist(self, records: list[ExtractedRecord], category: str) -> None:
        try:
            self.store.upsert(records, category)
        except PersistenceError as e:
            # Records are still returned to the caller.
            logger.error("service.persist_failed", category=category, error=str(e))

    # --- listing ---

    async def get_records(
        self,
        limit: int = 10,
        source_type: str = "amazon",
        category: str = "electronics",
        *,
        force_refresh: bool = False,
        enhanced: bool = False,
    ) -> RecordsResult:
        """
        Return catalog records for (source_type, category).

        Never raises for valid input and never returns an empty list.
        """
        maximum = ENHANCED_MAX_RECORDS if enhanced else None
        limit = self._clamp_limit(limit, maximum)
        partition = listing_partition(category, enhanced)

        if not force_refresh:
            # Enhanced requests need the whole page of records from cache.
            cached = self._read_fresh(partition, limit, min_count=limit if enhanced else 1)
            if cached:
                return RecordsResult(cached, SOURCE_CACHE, TIER_FRESH_CACHE)

        in_flight = self._in_flight.get(partition)
        if in_flight is not None and in_flight[0] >= limit:
            logger.info("service.join_in_flight", category=partition, limit=limit)
            task = in_flight[1]
        else:
            task = asyncio.ensure_future(
                self._refresh_records(limit, source_type, category, partition, enhanced)
            )
            self._in_flight[partition] = (limit, task)
            task.add_done_callback(lambda done: self._forget_in_flight(partition, done))

        # A cancelled caller must not cancel the extraction other callers share.
        result = await asyncio.shield(task)
        return replace(result, records=result.records[:limit])

    def _forget_in_flight(self, partition: str, task: asyncio.Future) -> None:
        current = self._in_flight.get(partition)
        if current is not None and current[1] is task:
            del self._in_flight[partition]

    async def _refresh_records(
        self,
        limit: int,
        source_type: str,
        category: str,
        partition: str,
        enhanced: bool,
    ) -> RecordsResult:
        session_id = self._open_session(source_type, partition)
        bind_request_context(session_id=session_id, category=partition)
        result: Optional[FallbackResult] = None
        try:
            target_url = resolve_target_url(
                self.resolver, source_type, category, self.config.default_target_url
            )
            bind_request_context(target_url=target_url)
            request = ListingRequest(
                target_url=target_url,
                category=partition,
                limit=limit,
                max_rounds=ENHANCED_MAX_ROUNDS if enhanced else LISTING_MAX_ROUNDS,
                stale_categories=(category,) if enhanced else (),
            )
            result = await self.chain.resolve(request)
            if result.is_live:
                self._persist(result.records, partition)
        finally:
            if result is None:
                self._close_session(session_id, False, 0, "Extraction interrupted")
            else:
                self._close_session(
                    session_id,
                    result.is_live,
                    len(result.records),
                    None if result.is_live else result.failure_summary(),
                )
            clear_request_context()

        return RecordsResult(
            records=result.records[:limit],
            source=SOURCE_LIVE if result.is_live else SOURCE_DEGRADED,
            tier=result.tier,
            session_id=session_id,
        )

    # --- detail ---

    async def _scrape_detail_once(self, url: str) -> ExtractedRecord:
        page = await self.browser.acquire()
        try:
            return await scrape_detail(page, url, nav_timeout_ms=self.config.nav_timeout_ms)
        finally:
            await self.browser.release(page)

    async def get_record_detail(
        self, url: Optional[str], *, force_refresh: bool = False
    ) -> Optional[ExtractedRecord]:
        """
        Return the detail record for a product URL.

        Raises InvalidTargetError for an unusable URL, before any cache or
        browser work. Extraction failures yield a stale row or None.
        """
        url = validate_detail_url(url)
        partition = detail_partition(url)

        if not force_refresh:
            cached = self._read_ref(url, self.config.cache_max_age_hours)
            if cached is not None:
                logger.info("cache.hit", category=partition, ref=url)
                return cached

        session_id = self._open_session("detail", partition)
        bind_request_context(session_id=session_id, category=partition, target_url=url)
        success = False
        error_message: Optional[str] = None
        try:
            if self.config.skip_browser:
                error_message = "Browser extraction disabled"
                logger.info("detail.browser_skipped", url=url)
            else:
                try:
                    record = await self.retry.run(
                        lambda: self._scrape_detail_once(url),
                        operation_name="detail_scrape",
                    )
                except Exception as e:
                    error_message = summarize_error(e)
                    logger.warning("detail.extraction_failed", url=url, error=error_message)
                else:
                    success = True
                    self._persist([record], partition)
                    return record

            stale = self._read_ref(url, self.config.detail_stale_cache_max_age_hours)
            if stale is None:
                logger.info("detail.no_fallback", url=url)
                return None
            return stale.with_provenance(f"{TIER_STALE_CACHE}:{stale.provenance or 'unknown'}")
        finally:
            self._close_session(session_id, success, 1 if success else 0, error_message)
            clear_request_context()

    # --- misc ---

    def get_static_fallback(self, limit: int = 5) -> list[ExtractedRecord]:
        return get_static_records(self._clamp_limit(limit))

    def get_session_status(self) -> dict:
        return {
            "mode": self.browser.mode,
            "is_running": self.browser.is_running,
            "retry_policy": self.retry.policy(),
        }

    async def set_browser_mode(self, visible: bool) -> dict:
        await self.browser.set_visible(visible)
        return self.get_session_status()

    async def shutdown(self) -> None:
        await self.browser.shutdown()
