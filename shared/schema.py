"""
SQLAlchemy Core table definitions for the record cache and scrape sessions.

Mirrors migrations/versions/0001_initial_schema.py. Tests create these tables
directly on an in-memory SQLite engine via `metadata.create_all`.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

records_table = Table(
    "records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String(32), unique=True, nullable=True),
    Column("rank", Integer, nullable=True),
    Column("title", Text, nullable=False),
    Column("price", String(64), nullable=True),
    Column("rating", String(64), nullable=True),
    Column("image_url", Text, nullable=True),
    Column("detail_url", Text, nullable=True),
    Column("source", String(200), nullable=True),
    Column("category", String(100), nullable=False, server_default="default"),
    Column("availability", Text, nullable=True),
    Column("review_count", String(64), nullable=True),
    Column("brand", Text, nullable=True),
    Column("features", JSON, nullable=True),
    Column("extracted_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_records_category", "category"),
    Index("ix_records_updated_at", "updated_at"),
    Index("ix_records_detail_url", "detail_url"),
    Index("ix_records_rank", "rank"),
)

scrape_sessions_table = Table(
    "scrape_sessions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("session_id", String(64), unique=True, nullable=False),
    Column("source", String(100), nullable=False),
    Column("category", String(100), nullable=True),
    Column("records_found", Integer, nullable=False, server_default="0"),
    Column("success", Boolean, nullable=False, server_default="false"),
    Column("error_message", Text, nullable=True),
    Column("started_at", DateTime(timezone=True), nullable=False),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    Index("ix_scrape_sessions_started_at", "started_at"),
)
