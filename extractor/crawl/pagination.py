"""
Scroll pagination: reveal lazily loaded records round by round.
"""

from __future__ import annotations

import asyncio

from playwright.async_api import Page

from extractor.crawl.constants import SCROLL_INCREMENT_PX, SCROLL_SETTLE_MS
from extractor.crawl.extraction import ExtractionStrategy
from extractor.models import ExtractedRecord
from shared.logging import get_logger

logger = get_logger(__name__)


def merge_new_titles(
    collected: list[ExtractedRecord],
    seen_titles: set[str],
    batch: list[ExtractedRecord],
) -> int:
    """Append records from batch whose title is not in seen_titles. Returns how many were added."""
    added = 0
    for record in batch:
        if record.title in seen_titles:
            continue
        seen_titles.add(record.title)
        collected.append(record)
        added += 1
    return added


class ScrollPaginator:
    """
    Extract, merge by title, scroll, settle; repeat.

    Stops when target_count is reached, when a round adds nothing new, or
    after max_rounds. Titles are the dedup key because partially rendered
    elements may not expose an identifier yet.
    """

    def __init__(
        self,
        strategy: ExtractionStrategy,
        *,
        scroll_increment_px: int = SCROLL_INCREMENT_PX,
        settle_ms: int = SCROLL_SETTLE_MS,
    ):
        self.strategy = strategy
        self.scroll_increment_px = scroll_increment_px
        self.settle_ms = settle_ms

    async def collect(
        self,
        page: Page,
        target_count: int,
        max_rounds: int,
    ) -> list[ExtractedRecord]:
        collected: list[ExtractedRecord] = []
        seen_titles: set[str] = set()

        for round_number in range(1, max_rounds + 1):
            batch = await self.strategy.extract(page)
            added = merge_new_titles(collected, seen_titles, batch)
            logger.info(
                "pagination.round",
                round=round_number,
                max_rounds=max_rounds,
                found=len(batch),
                added=added,
                total=len(collected),
                target=target_count,
            )

            if len(collected) >= target_count or added == 0:
                break
            if round_number < max_rounds:
                await page.evaluate(f"window.scrollBy(0, {self.scroll_increment_px})")
                await asyncio.sleep(self.settle_ms / 1000)

        return collected[:target_count]
