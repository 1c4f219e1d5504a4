"""
Unit tests for scroll pagination: termination, title de-duplication, truncation.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from extractor.crawl.pagination import ScrollPaginator, merge_new_titles
from extractor.models import ExtractedRecord


def _records(*numbers: int) -> list[ExtractedRecord]:
    return [ExtractedRecord(title=f"Catalog item {n:02d}", rank=n) for n in numbers]


class FakeStrategy:
    """Returns one prepared batch per extract() call; repeats the last batch afterwards."""

    def __init__(self, batches: list[list[ExtractedRecord]]):
        self.batches = batches
        self.calls = 0

    async def extract(self, page, limit=None):
        batch = self.batches[min(self.calls, len(self.batches) - 1)]
        self.calls += 1
        return batch


def _page() -> MagicMock:
    page = MagicMock()
    page.evaluate = AsyncMock()
    return page


def test_merge_new_titles_skips_seen():
    collected: list[ExtractedRecord] = []
    seen: set[str] = set()
    assert merge_new_titles(collected, seen, _records(1, 2)) == 2
    assert merge_new_titles(collected, seen, _records(2, 3)) == 1
    assert [r.rank for r in collected] == [1, 2, 3]


@pytest.mark.asyncio
async def test_collect_reaches_target_across_rounds_and_truncates():
    """12 unique titles revealed over 3 rounds with target 10: first 10 in discovery order."""
    strategy = FakeStrategy(
        [
            _records(*range(1, 6)),
            _records(*range(1, 10)),
            _records(*range(1, 13)),
        ]
    )
    page = _page()

    with patch("extractor.crawl.pagination.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await ScrollPaginator(strategy).collect(page, target_count=10, max_rounds=5)

    assert [r.title for r in result] == [f"Catalog item {n:02d}" for n in range(1, 11)]
    assert strategy.calls == 3
    assert page.evaluate.await_count == 2
    assert mock_sleep.await_count == 2


@pytest.mark.asyncio
async def test_collect_stops_when_round_adds_nothing():
    strategy = FakeStrategy([_records(1, 2, 3)])
    page = _page()

    with patch("extractor.crawl.pagination.asyncio.sleep", new_callable=AsyncMock):
        result = await ScrollPaginator(strategy).collect(page, target_count=10, max_rounds=6)

    assert len(result) == 3
    assert strategy.calls == 2
    assert page.evaluate.await_count == 1


@pytest.mark.asyncio
async def test_collect_stops_at_max_rounds_without_final_scroll():
    """Each round adds a record but max_rounds bounds the loop; no scroll after the last round."""
    strategy = FakeStrategy([_records(1), _records(1, 2), _records(1, 2, 3), _records(1, 2, 3, 4)])
    page = _page()

    with patch("extractor.crawl.pagination.asyncio.sleep", new_callable=AsyncMock):
        result = await ScrollPaginator(strategy, scroll_increment_px=500).collect(
            page, target_count=50, max_rounds=3
        )

    assert [r.rank for r in result] == [1, 2, 3]
    assert strategy.calls == 3
    assert page.evaluate.await_count == 2
    page.evaluate.assert_awaited_with("window.scrollBy(0, 500)")


@pytest.mark.asyncio
async def test_collect_never_returns_duplicate_titles():
    batch = _records(1, 2) + [ExtractedRecord(title="Catalog item 01", rank=9)]
    strategy = FakeStrategy([batch, _records(3)])

    with patch("extractor.crawl.pagination.asyncio.sleep", new_callable=AsyncMock):
        result = await ScrollPaginator(strategy).collect(_page(), target_count=10, max_rounds=3)

    titles = [r.title for r in result]
    assert len(titles) == len(set(titles))
    assert result[0].rank == 1


@pytest.mark.asyncio
async def test_collect_empty_page_is_not_an_error():
    strategy = FakeStrategy([[]])
    page = _page()

    result = await ScrollPaginator(strategy).collect(page, target_count=10, max_rounds=3)

    assert result == []
    page.evaluate.assert_not_awaited()
