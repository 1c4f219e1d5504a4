"""
Repository for cached catalog records and scrape sessions.

Low-level database access using SQLAlchemy Table objects, keeping the cache
coordinator thin and testable. Callers pass explicit timestamps so that
freshness windows are computed against a single clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Table, delete, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from shared.db import get_records_table, get_scrape_sessions_table

# Columns overwritten on identifier collision (everything except id/created_at).
MUTABLE_RECORD_COLUMNS = (
    "rank",
    "title",
    "price",
    "rating",
    "image_url",
    "detail_url",
    "source",
    "category",
    "availability",
    "review_count",
    "brand",
    "features",
    "extracted_at",
)


class CatalogRepository:
    """Repository for record cache and scrape session operations."""

    def __init__(self, session: Session):
        self.session = session
        self.records_table = get_records_table()
        self.sessions_table = get_scrape_sessions_table()

    def _dialect_insert(self, table: Table):
        """Return a dialect-specific INSERT supporting ON CONFLICT."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        raise ValueError(f"Unsupported database dialect for upsert: {dialect!r}")

    # --- records ---

    def upsert_record(self, values: dict[str, Any], *, now: datetime) -> None:
        """
        Insert a record or overwrite the row it collides with.

        Rows with an external_id collide on that id. Rows without one collide
        on (category, detail_url) when a detail URL is known, else on
        (category, title).
        """
        t = self.records_table
        row = {col: values.get(col) for col in MUTABLE_RECORD_COLUMNS}
        row["updated_at"] = now

        external_id = values.get("external_id")
        if external_id:
            stmt = self._dialect_insert(t).values(external_id=external_id, created_at=now, **row)
            stmt = stmt.on_conflict_do_update(
                index_elements=[t.c.external_id],
                set_={
                    **{col: stmt.excluded[col] for col in MUTABLE_RECORD_COLUMNS},
                    "updated_at": now,
                },
            )
            self.session.execute(stmt)
            self.session.flush()
            return

        if row.get("detail_url"):
            match = t.c.detail_url == row["detail_url"]
        else:
            match = t.c.title == row["title"]
        existing = self.session.execute(
            select(t.c.id)
            .where(t.c.external_id.is_(None), t.c.category == row["category"], match)
            .order_by(t.c.updated_at.desc())
            .limit(1)
        ).first()

        if existing is None:
            self.session.execute(t.insert().values(external_id=None, created_at=now, **row))
        else:
            self.session.execute(t.update().where(t.c.id == existing.id).values(**row))
        self.session.flush()

    def count_fresh(self, category: str, cutoff: datetime) -> tuple[int, Optional[datetime]]:
        """Count rows in category updated strictly after cutoff; also return the newest update."""
        t = self.records_table
        stmt = select(func.count(t.c.id), func.max(t.c.updated_at)).where(
            t.c.category == category,
            t.c.updated_at > cutoff,
        )
        count, last_updated = self.session.execute(stmt).one()
        return int(count or 0), last_updated

    def get_fresh_records(self, category: str, cutoff: datetime, limit: int) -> list[dict]:
        """
        Get rows in category updated after cutoff.

        Ordered by rank ascending, then most recently updated first.
        """
        t = self.records_table
        stmt = (
            select(t)
            .where(t.c.category == category, t.c.updated_at > cutoff)
            .order_by(t.c.rank.asc(), t.c.updated_at.desc())
            .limit(limit)
        )
        return [dict(row._mapping) for row in self.session.execute(stmt).all()]

    def get_latest_by_ref(self, ref: str, cutoff: datetime) -> Optional[dict]:
        """Most recently updated row whose external_id or detail_url equals ref."""
        t = self.records_table
        stmt = (
            select(t)
            .where(or_(t.c.external_id == ref, t.c.detail_url == ref), t.c.updated_at > cutoff)
            .order_by(t.c.updated_at.desc())
            .limit(1)
        )
        result = self.session.execute(stmt).first()
        if result is None:
            return None
        return dict(result._mapping)

    def delete_records_older_than(self, cutoff: datetime) -> int:
        """Delete rows last updated before cutoff. Returns the number deleted."""
        t = self.records_table
        result = self.session.execute(delete(t).where(t.c.updated_at < cutoff))
        self.session.flush()
        return result.rowcount or 0

    def count_records(self) -> int:
        t = self.records_table
        return int(self.session.execute(select(func.count(t.c.id))).scalar_one())

    def get_category_counts(self) -> list[dict]:
        """Row count and newest update per category, largest first."""
        t = self.records_table
        stmt = (
            select(
                t.c.category,
                func.count(t.c.id).label("count"),
                func.max(t.c.updated_at).label("last_updated"),
            )
            .group_by(t.c.category)
            .order_by(func.count(t.c.id).desc())
        )
        return [dict(row._mapping) for row in self.session.execute(stmt).all()]

    # --- scrape sessions ---

    def create_scrape_session(
        self,
        *,
        session_id: str,
        source: str,
        category: str,
        started_at: datetime,
    ) -> dict:
        """
        Create an in-flight scrape session (completed_at NULL, success False).

        Returns the created session as a dict.
        """
        t = self.sessions_table
        self.session.execute(
            t.insert().values(
                session_id=session_id,
                source=source,
                category=category,
                records_found=0,
                success=False,
                error_message=None,
                started_at=started_at,
                completed_at=None,
            )
        )
        self.session.flush()

        row = self.session.execute(select(t).where(t.c.session_id == session_id)).one()
        return dict(row._mapping)

    def complete_scrape_session(
        self,
        session_id: str,
        *,
        success: bool,
        records_found: int,
        error_message: Optional[str],
        completed_at: datetime,
    ) -> bool:
        """
        Close an in-flight session.

        Only sessions with completed_at NULL are updated, so a session is
        closed at most once. Returns True if a row was closed.
        """
        t = self.sessions_table
        result = self.session.execute(
            t.update()
            .where(t.c.session_id == session_id, t.c.completed_at.is_(None))
            .values(
                success=success,
                records_found=records_found,
                error_message=error_message,
                completed_at=completed_at,
            )
        )
        self.session.flush()
        return (result.rowcount or 0) > 0

    def get_scrape_session(self, session_id: str) -> Optional[dict]:
        t = self.sessions_table
        result = self.session.execute(select(t).where(t.c.session_id == session_id)).first()
        if result is None:
            return None
        return dict(result._mapping)

    def get_recent_sessions(self, limit: int = 10) -> list[dict]:
        """Most recently started sessions first."""
        t = self.sessions_table
        stmt = select(t).order_by(t.c.started_at.desc(), t.c.id.desc()).limit(limit)
        return [dict(row._mapping) for row in self.session.execute(stmt).all()]
