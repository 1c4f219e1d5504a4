from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Tables ---
    op.create_table(
        "records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("external_id", sa.String(length=32), nullable=True),
        sa.Column("rank", sa.Integer(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("price", sa.String(length=64), nullable=True),
        sa.Column("rating", sa.String(length=64), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("detail_url", sa.Text(), nullable=True),
        sa.Column("source", sa.String(length=200), nullable=True),
        sa.Column("category", sa.String(length=100), server_default="default", nullable=False),
        sa.Column("availability", sa.Text(), nullable=True),
        sa.Column("review_count", sa.String(length=64), nullable=True),
        sa.Column("brand", sa.Text(), nullable=True),
        sa.Column("features", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("extracted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("external_id", name="uq_records_external_id"),
    )

    op.create_table(
        "scrape_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("source", sa.String(length=100), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("records_found", sa.Integer(), server_default="0", nullable=False),
        sa.Column("success", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("session_id", name="uq_scrape_sessions_session_id"),
    )

    # --- Indexes ---
    op.create_index("ix_records_category", "records", ["category"])
    op.create_index("ix_records_updated_at", "records", ["updated_at"])
    op.create_index("ix_records_detail_url", "records", ["detail_url"])
    op.create_index("ix_records_rank", "records", ["rank"])
    op.create_index("ix_scrape_sessions_started_at", "scrape_sessions", ["started_at"])


def downgrade() -> None:
    # Drop indexes
    op.drop_index("ix_scrape_sessions_started_at", table_name="scrape_sessions")
    op.drop_index("ix_records_rank", table_name="records")
    op.drop_index("ix_records_detail_url", table_name="records")
    op.drop_index("ix_records_updated_at", table_name="records")
    op.drop_index("ix_records_category", table_name="records")

    # Drop tables
    op.drop_table("scrape_sessions")
    op.drop_table("records")
