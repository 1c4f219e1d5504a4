"""
Unit tests for single-attempt navigation: failure classification, block detection,
typed errors. No Playwright/network required.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from extractor.crawl.navigation import (
    _classify_failure,
    is_bot_block_page,
    navigate,
    wait_for_records,
)
from extractor.errors import BlockedPageError, NavigationTimeoutError, SelectorExhaustedError

URL = "https://www.amazon.com/gp/bestsellers/electronics/"


def _page(status: int = 200, title: str = "Best Sellers", body: str = "Top products") -> MagicMock:
    response = MagicMock()
    response.status = status
    page = MagicMock()
    page.goto = AsyncMock(return_value=response)
    page.title = AsyncMock(return_value=title)
    page.inner_text = AsyncMock(return_value=body)
    page.wait_for_selector = AsyncMock()
    return page


def test_classify_failure():
    assert _classify_failure(PlaywrightTimeoutError("Timeout 45000ms exceeded")) == "navigation_timeout"
    assert _classify_failure(Exception("net::ERR_CONNECTION_RESET")) == "net_err"
    assert _classify_failure(ValueError("bad url")) == "other"


@pytest.mark.asyncio
async def test_is_bot_block_page_detects_captcha():
    page = _page(title="Amazon.com", body="Enter the characters you see below")
    assert await is_bot_block_page(page) is True


@pytest.mark.asyncio
async def test_is_bot_block_page_false_on_read_error():
    page = _page()
    page.title = AsyncMock(side_effect=RuntimeError("Target closed"))
    assert await is_bot_block_page(page) is False


@pytest.mark.asyncio
async def test_navigate_success_returns_response():
    page = _page()
    response = await navigate(page, URL, timeout_ms=45000)

    assert response.status == 200
    page.goto.assert_awaited_once_with(URL, wait_until="domcontentloaded", timeout=45000)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 429, 503])
async def test_navigate_block_status_raises(status):
    with pytest.raises(BlockedPageError):
        await navigate(_page(status=status), URL, timeout_ms=45000)


@pytest.mark.asyncio
async def test_navigate_challenge_page_raises():
    page = _page(title="Robot Check", body="Type the characters: captcha")
    with pytest.raises(BlockedPageError):
        await navigate(page, URL, timeout_ms=45000)


@pytest.mark.asyncio
async def test_navigate_timeout_raises_typed_error():
    page = _page()
    page.goto = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 45000ms exceeded"))
    with pytest.raises(NavigationTimeoutError):
        await navigate(page, URL, timeout_ms=45000)


@pytest.mark.asyncio
async def test_navigate_other_error_propagates():
    page = _page()
    page.goto = AsyncMock(side_effect=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
    with pytest.raises(RuntimeError):
        await navigate(page, URL, timeout_ms=45000)


@pytest.mark.asyncio
async def test_wait_for_records_timeout_raises_selector_exhausted():
    page = _page()
    page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout"))
    with pytest.raises(SelectorExhaustedError):
        await wait_for_records(page, "[data-asin]", timeout_ms=15000)


@pytest.mark.asyncio
async def test_wait_for_records_success():
    page = _page()
    await wait_for_records(page, "[data-asin]", timeout_ms=15000)
    page.wait_for_selector.assert_awaited_once_with("[data-asin]", state="attached", timeout=15000)
