"""
Cache-aside coordination over the records and scrape_sessions tables.

Every operation opens its own short session (one transaction) from a pooled
factory; nothing is held across an extraction. Freshness windows are computed
against an injectable clock.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from extractor.errors import PersistenceError
from extractor.models import CacheRecord, ExtractedRecord, Freshness, as_utc, utcnow
from shared.db import get_session_factory, session_scope
from shared.logging import get_logger
from shared.repository import CatalogRepository

logger = get_logger(__name__)

DEFAULT_MAX_AGE_HOURS = 24


def record_to_row(record: ExtractedRecord, category: str) -> dict:
    """Column values for one extracted record in `category`."""
    return {
        "external_id": record.external_id,
        "rank": record.rank,
        "title": record.title,
        "price": record.price,
        "rating": record.rating,
        "image_url": record.image_url,
        "detail_url": record.detail_url,
        "source": record.provenance,
        "category": category,
        "availability": record.availability,
        "review_count": record.review_count,
        "brand": record.brand,
        "features": list(record.features) if record.features else None,
        "extracted_at": record.extracted_at,
    }


class CacheStore:
    """Freshness checks, reads, upserts and scrape-session bookkeeping."""

    def __init__(
        self,
        session_factory: Optional[Callable] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def _factory(self) -> Callable:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _cutoff(self, max_age_hours: float) -> datetime:
        return self._now() - timedelta(hours=max_age_hours)

    # --- records ---

    def is_fresh(
        self, category: str, max_age_hours: float = DEFAULT_MAX_AGE_HOURS
    ) -> Freshness:
        """Fresh iff at least one row in category is strictly younger than max_age_hours."""
        with session_scope(self._factory()) as session:
            count, last_updated = CatalogRepository(session).count_fresh(
                category, self._cutoff(max_age_hours)
            )
        return Freshness(fresh=count > 0, count=count, last_updated=as_utc(last_updated))

    def read(
        self,
        category: str,
        max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
        limit: int = 10,
    ) -> list[CacheRecord]:
        """Rows in category younger than max_age_hours, by rank then most recent update."""
        with session_scope(self._factory()) as session:
            rows = CatalogRepository(session).get_fresh_records(
                category, self._cutoff(max_age_hours), limit
            )
        return [CacheRecord.from_row(row) for row in rows]

    def read_by_external_ref(
        self, ref: str, max_age_hours: float = DEFAULT_MAX_AGE_HOURS
    ) -> Optional[CacheRecord]:
        """Most recent row whose external_id or detail_url equals ref, within the window."""
        with session_scope(self._factory()) as session:
            row = CatalogRepository(session).get_latest_by_ref(ref, self._cutoff(max_age_hours))
        return CacheRecord.from_row(row) if row else None

    def upsert(self, records: Iterable[ExtractedRecord], category: str) -> int:
        """
        Write records into category in a single transaction.

        Raises PersistenceError (after rollback) if any write fails; no
        partial batch is committed.
        """
        records = list(records)
        now = self._now()
        try:
            with session_scope(self._factory()) as session:
                repository = CatalogRepository(session)
                for record in records:
                    repository.upsert_record(record_to_row(record, category), now=now)
        except (SQLAlchemyError, ValueError) as e:
            logger.error(
                "cache.upsert.failed",
                category=category,
                records=len(records),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceError(f"Upsert of {len(records)} records failed: {e}") from e

        logger.info("cache.upsert.complete", category=category, records=len(records))
        return len(records)

    def purge(self, older_than_days: int) -> int:
        """Delete rows not updated within older_than_days. Returns the number deleted."""
        cutoff = self._now() - timedelta(days=older_than_days)
        with session_scope(self._factory()) as session:
            deleted = CatalogRepository(session).delete_records_older_than(cutoff)
        logger.info("cache.purge.complete", older_than_days=older_than_days, deleted=deleted)
        return deleted

    def stats(self) -> dict:
        with session_scope(self._factory()) as session:
            repository = CatalogRepository(session)
            total = repository.count_records()
            categories = repository.get_category_counts()
            sessions = repository.get_recent_sessions(10)
        return {
            "total_records": total,
            "categories": [
                {
                    "category": c["category"],
                    "count": c["count"],
                    "last_updated": as_utc(c["last_updated"]),
                }
                for c in categories
            ],
            "recent_sessions": sessions,
        }

    # --- scrape sessions ---

    def open_session(self, source: str, category: str) -> str:
        """Record an in-flight scrape session and return its id."""
        session_id = str(uuid.uuid4())
        with session_scope(self._factory()) as session:
            CatalogRepository(session).create_scrape_session(
                session_id=session_id,
                source=source,
                category=category,
                started_at=self._now(),
            )
        logger.info("cache.session.opened", session_id=session_id, source=source, category=category)
        return session_id

    def close_session(
        self,
        session_id: str,
        success: bool,
        records_found: int,
        error_message: Optional[str] = None,
    ) -> bool:
        """
        Close a session exactly once.

        Returns False (and logs a warning) when the session is unknown or was
        already closed.
        """
        with session_scope(self._factory()) as session:
            closed = CatalogRepository(session).complete_scrape_session(
                session_id,
                success=success,
                records_found=records_found,
                error_message=error_message,
                completed_at=self._now(),
            )
        if not closed:
            logger.warning("cache.session.already_closed", session_id=session_id)
            return False
        logger.info(
            "cache.session.closed",
            session_id=session_id,
            success=success,
            records_found=records_found,
        )
        return True

    def get_session(self, session_id: str) -> Optional[dict]:
        with session_scope(self._factory()) as session:
            return CatalogRepository(session).get_scrape_session(session_id)
