"""
Browser lifecycle: one shared Chromium process, one context per page.

acquire() lazily launches the browser behind a lock so concurrent first
requests share a single launch. Every page gets the same client identity,
navigation headers and automation-telltale removal.
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Any, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from extractor.crawl.constants import (
    DEFAULT_INTERACTION_TIMEOUT_MS,
    FALLBACK_LAUNCH_ARGS,
    HEADLESS_VIEWPORT,
    KNOWN_BROWSER_PATHS,
    LOCALE,
    NAVIGATION_HEADERS,
    PRIMARY_LAUNCH_ARGS,
    PRIMARY_SLOW_MO_MS,
    STEALTH_INIT_SCRIPT,
    TIMEZONE_ID,
    USER_AGENT,
)
from extractor.errors import BrowserLaunchError
from shared.config import AppConfig, get_config
from shared.logging import get_logger

logger = get_logger(__name__)

MODE_VISIBLE = "visible"
MODE_HEADLESS = "headless"


def find_browser_executable(
    configured: Optional[str] = None,
    platform: Optional[str] = None,
) -> Optional[str]:
    """
    Return a Chrome/Chromium executable path, or None to use Playwright's bundled build.

    A configured path wins when it exists; otherwise well-known locations for
    the platform are probed in order.
    """
    if configured and os.path.exists(configured):
        return configured
    platform = platform or sys.platform
    key = "win32" if platform.startswith("win") else platform
    for path in KNOWN_BROWSER_PATHS.get(key, KNOWN_BROWSER_PATHS["linux"]):
        if os.path.exists(path):
            return path
    return None


class BrowserSession:
    """Owns the shared browser process and hands out configured pages."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        visible: Optional[bool] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.config = config or get_config()
        self._visible = self.config.browser_visible if visible is None else visible
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._headless_active = not self._visible
        self._launch_lock = asyncio.Lock()

    @property
    def mode(self) -> str:
        return MODE_VISIBLE if self._visible else MODE_HEADLESS

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    def _primary_launch_options(self, executable_path: Optional[str]) -> dict:
        options: dict[str, Any] = {
            "headless": not self._visible,
            "args": list(PRIMARY_LAUNCH_ARGS),
            "timeout": self.config.browser_launch_timeout_ms,
            "slow_mo": PRIMARY_SLOW_MO_MS,
        }
        if executable_path:
            options["executable_path"] = executable_path
        return options

    def _fallback_launch_options(self, executable_path: Optional[str]) -> dict:
        options: dict[str, Any] = {
            "headless": True,
            "args": list(FALLBACK_LAUNCH_ARGS),
            "timeout": self.config.browser_fallback_launch_timeout_ms,
        }
        if executable_path:
            options["executable_path"] = executable_path
        return options

    async def _launch(self) -> Browser:
        if self._playwright is None:
            self._playwright = await self._playwright_factory().start()

        executable_path = find_browser_executable(self.config.browser_executable_path)
        logger.info(
            "browser.launch.start",
            mode=self.mode,
            executable_path=executable_path or "bundled",
        )

        try:
            browser = await self._playwright.chromium.launch(
                **self._primary_launch_options(executable_path)
            )
            self._headless_active = not self._visible
            logger.info("browser.launch.success", mode=self.mode, configuration="primary")
            return browser
        except Exception as primary_error:
            logger.warning(
                "browser.launch.primary_failed",
                mode=self.mode,
                error=str(primary_error),
                error_type=type(primary_error).__name__,
                executable_found=executable_path is not None,
            )
            try:
                browser = await self._playwright.chromium.launch(
                    **self._fallback_launch_options(executable_path)
                )
            except Exception as fallback_error:
                logger.error(
                    "browser.launch.failed",
                    primary_error=str(primary_error),
                    fallback_error=str(fallback_error),
                )
                await self._stop_playwright()
                raise BrowserLaunchError(str(primary_error), str(fallback_error)) from (
                    fallback_error
                )
            self._headless_active = True
            logger.info("browser.launch.success", mode=MODE_HEADLESS, configuration="fallback")
            return browser

    async def _ensure_browser(self) -> Browser:
        async with self._launch_lock:
            if self._browser is not None and not self._browser.is_connected():
                logger.warning("browser.disconnected", mode=self.mode)
                self._browser = None
            if self._browser is None:
                self._browser = await self._launch()
            return self._browser

    async def acquire(self) -> Page:
        """Return a new configured page, launching the shared browser if needed."""
        browser = await self._ensure_browser()

        context_options: dict[str, Any] = {
            "user_agent": USER_AGENT,
            "extra_http_headers": dict(NAVIGATION_HEADERS),
            "locale": LOCALE,
            "timezone_id": TIMEZONE_ID,
        }
        if self._headless_active:
            context_options["viewport"] = dict(HEADLESS_VIEWPORT)
        else:
            context_options["no_viewport"] = True

        context = await browser.new_context(**context_options)
        try:
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            page = await context.new_page()
        except Exception:
            await self._close_context(context)
            raise
        page.set_default_navigation_timeout(self.config.nav_timeout_ms)
        page.set_default_timeout(DEFAULT_INTERACTION_TIMEOUT_MS)
        return page

    async def release(self, page: Page) -> None:
        """Close the page and its context; the browser keeps running."""
        context = page.context
        try:
            await page.close()
        except Exception as e:
            logger.warning("browser.page_close_failed", error=str(e), error_type=type(e).__name__)
        await self._close_context(context)

    async def _close_context(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except Exception as e:
            logger.warning(
                "browser.context_close_failed", error=str(e), error_type=type(e).__name__
            )

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning("browser.driver_stop_failed", error=str(e))
            self._playwright = None

    async def shutdown(self) -> None:
        """Close the browser and the Playwright driver; the next acquire() relaunches."""
        async with self._launch_lock:
            browser, self._browser = self._browser, None
            if browser is not None:
                try:
                    await browser.close()
                    logger.info("browser.closed")
                except Exception as e:
                    logger.warning("browser.close_failed", error=str(e))
            await self._stop_playwright()

    async def set_visible(self, visible: bool) -> None:
        """Switch visible/headless mode; a running browser is torn down to apply it."""
        self._visible = visible
        logger.info("browser.mode_changed", mode=self.mode)
        if self._browser is not None:
            await self.shutdown()
