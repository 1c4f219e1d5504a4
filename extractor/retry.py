"""
Retry with exponential backoff for live extraction attempts.

Every failure counts as an attempt; there is no error classification here.
The delay before attempt n+1 is base_delay * 2^(n-1) (2s, 4s with defaults).
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

from shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 2000


def backoff_seconds(attempt: int, base_delay_ms: int = DEFAULT_BASE_DELAY_MS) -> float:
    """Seconds to wait after failed attempt `attempt` (1-based)."""
    return (base_delay_ms * (2 ** (attempt - 1))) / 1000


class RetryOrchestrator:
    """Runs a zero-argument coroutine factory until it succeeds or attempts run out."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay_ms = max(0, base_delay_ms)

    def policy(self) -> dict:
        return {"max_attempts": self.max_attempts, "base_delay_ms": self.base_delay_ms}

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        max_attempts: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        operation_name: str = "operation",
    ) -> T:
        """
        Await operation() up to max_attempts times.

        Returns the first successful result. After the last failure the last
        error is re-raised unchanged.
        """
        attempts = max(1, max_attempts if max_attempts is not None else self.max_attempts)
        base_delay = base_delay_ms if base_delay_ms is not None else self.base_delay_ms

        attempt = 0
        while True:
            attempt += 1
            start = time.monotonic()
            logger.info(
                "retry.attempt",
                operation=operation_name,
                attempt=attempt,
                max_attempts=attempts,
            )
            try:
                result = await operation()
            except Exception as e:
                logger.warning(
                    "retry.attempt_failed",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                    elapsed_ms=round((time.monotonic() - start) * 1000),
                )
                if attempt >= attempts:
                    logger.error(
                        "retry.exhausted",
                        operation=operation_name,
                        attempts=attempts,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise
                delay = backoff_seconds(attempt, base_delay)
                logger.info(
                    "retry.backoff",
                    operation=operation_name,
                    attempt=attempt,
                    delay_seconds=delay,
                )
                await asyncio.sleep(delay)
                continue

            if attempt > 1:
                logger.info("retry.recovered", operation=operation_name, attempt=attempt)
            return result
