"""
Retention cleanup: delete cached records not refreshed within the retention window.

Scrape session rows are kept; only the records table is purged.
"""

from __future__ import annotations

from typing import Optional

from extractor.cache_store import CacheStore
from shared.config import get_config
from shared.logging import get_logger

logger = get_logger(__name__)


def run_retention_cleanup(
    store: Optional[CacheStore] = None,
    older_than_days: Optional[int] = None,
) -> dict:
    """
    Delete records last updated more than older_than_days ago.

    Uses config.retention_days when older_than_days is not given.
    Returns dict with deleted and older_than_days.
    """
    if older_than_days is None:
        older_than_days = get_config().retention_days
    store = store or CacheStore()

    logger.info("retention_cleanup.start", older_than_days=older_than_days)
    deleted = store.purge(older_than_days)
    logger.info("retention_cleanup.complete", deleted=deleted, older_than_days=older_than_days)

    return {"deleted": deleted, "older_than_days": older_than_days}


def main() -> None:
    """CLI entrypoint: run retention cleanup and log results."""
    from dotenv import load_dotenv

    from shared.logging import configure_logging

    load_dotenv()
    configure_logging()
    result = run_retention_cleanup()
    print(
        f"Cleanup complete: deleted={result['deleted']}, "
        f"older_than_days={result['older_than_days']}"
    )


if __name__ == "__main__":
    main()
