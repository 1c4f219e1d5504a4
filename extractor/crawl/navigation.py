"""
Single-attempt navigation with failure classification and bot-block detection.

Retries are not done here: every failure is raised as a typed error so the
caller's RetryOrchestrator counts it as one failed attempt.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from playwright.async_api import Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from extractor.errors import BlockedPageError, NavigationTimeoutError, SelectorExhaustedError
from shared.logging import get_logger

logger = get_logger(__name__)

# Substrings that indicate a challenge/captcha page (case-insensitive)
BOT_BLOCK_INDICATORS = (
    "enter the characters you see below",
    "captcha",
    "verify you are human",
    "to discuss automated access",
)

BLOCKED_STATUSES = (403, 429, 503)


def _classify_failure(exc: BaseException) -> str:
    """Return a short reason string for logging: navigation_timeout, net_err or other."""
    if isinstance(exc, PlaywrightTimeoutError):
        return "navigation_timeout"
    msg = (getattr(exc, "message", None) or str(exc)).lower()
    if "net::err_" in msg:
        return "net_err"
    return "other"


async def is_bot_block_page(page: Page) -> bool:
    """
    Detect a challenge page by its title or body text.

    Any error reading the page is treated as not blocked.
    """
    try:
        title = await page.title()
        body_text = await page.inner_text("body")
        combined = f"{title} {body_text}".lower()
        return any(ind in combined for ind in BOT_BLOCK_INDICATORS)
    except Exception:
        return False


async def navigate(page: Page, url: str, *, timeout_ms: int) -> Optional[Response]:
    """
    Navigate once to url, waiting for domcontentloaded.

    Raises NavigationTimeoutError on timeout and BlockedPageError on a block
    status or challenge page. Other Playwright errors propagate unchanged.
    """
    start = time.monotonic()
    logger.info("navigation.attempt", url=url, timeout_ms=timeout_ms)
    try:
        response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except Exception as e:
        reason = _classify_failure(e)
        logger.warning(
            "navigation.failed",
            url=url,
            failure_classification=reason,
            error=str(e),
            elapsed_ms=round((time.monotonic() - start) * 1000),
        )
        if reason == "navigation_timeout":
            raise NavigationTimeoutError(f"Navigation to {url} exceeded {timeout_ms}ms") from e
        raise

    status = response.status if response is not None else None
    if status in BLOCKED_STATUSES:
        logger.warning("navigation.blocked", url=url, status=status)
        raise BlockedPageError(f"HTTP {status} from {url}")

    if await is_bot_block_page(page):
        logger.warning("navigation.bot_block_detected", url=url, status=status)
        raise BlockedPageError(f"Challenge page served for {url}")

    logger.info(
        "navigation.success",
        url=url,
        status=status,
        elapsed_ms=round((time.monotonic() - start) * 1000),
    )
    return response


async def settle(delay_ms: int) -> None:
    """Give client-side rendering time to finish."""
    await asyncio.sleep(delay_ms / 1000)


async def wait_for_records(page: Page, selector: str, *, timeout_ms: int) -> None:
    """Wait until any element matching selector is attached; SelectorExhaustedError on timeout."""
    try:
        await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        logger.warning("extraction.no_candidates", selector=selector, timeout_ms=timeout_ms)
        raise SelectorExhaustedError(
            f"No element matched {selector!r} within {timeout_ms}ms"
        ) from e
