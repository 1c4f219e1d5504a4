"""
Pytest fixtures for extractor tests.

The cache store runs against an in-memory SQLite database (StaticPool keeps
one shared connection) with tables created from shared.schema. Time is
driven by a FakeClock so freshness windows are deterministic.
"""

from __future__ import annotations

import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from extractor.cache_store import CacheStore
from shared.config import AppConfig
from shared.schema import metadata

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(session_factory, clock) -> CacheStore:
    return CacheStore(session_factory, clock=clock)


@pytest.fixture
def make_config():
    """Build an AppConfig from a clean environment, then apply overrides."""

    def _make(**overrides) -> AppConfig:
        with patch.dict(os.environ, {"APP_ENV": "dev"}, clear=True):
            config = AppConfig.from_env()
        return replace(config, **overrides)

    return _make
