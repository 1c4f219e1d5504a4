"""
Shared database connection and session management.

Sync SQLAlchemy engine (pooled connections) and session factory. Each logical
operation opens a short-lived session through `session_scope()`, runs one
transaction and releases the connection back to the pool.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Table, create_engine
from sqlalchemy.orm import Session, sessionmaker

from shared.config import get_config
from shared.schema import records_table, scrape_sessions_table


# Global engine and session factory (initialized on first use).
_engine = None
_SessionLocal = None


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        config = get_config()
        if not config.database_url:
            raise ValueError(
                "DATABASE_URL environment variable is required. "
                "Set it to a PostgreSQL connection string."
            )
        _engine = create_engine(
            config.database_url,
            pool_pre_ping=True,
            echo=False,  # Set to True for SQL debugging in development.
        )
    return _engine


def get_session_factory():
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


@contextmanager
def session_scope(factory) -> Generator[Session, None, None]:
    """Open a session from `factory`; commit on success, roll back and re-raise on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_records_table() -> Table:
    """Get the records table."""
    return records_table


def get_scrape_sessions_table() -> Table:
    """Get the scrape_sessions table."""
    return scrape_sessions_table
