"""
Typed errors raised by the extraction pipeline.

Tier 1 and tier 2 errors are caught by the fallback chain and demote to the
next tier. InvalidTargetError is the only error surfaced to callers of the
detail lookup. Session rows store the short summary from `summarize_error`,
never a raw stack trace.
"""

from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for all pipeline errors."""


class BrowserLaunchError(ExtractionError):
    """Both the primary and the conservative browser launch configurations failed."""

    def __init__(self, primary_error: str, fallback_error: str):
        self.primary_error = primary_error
        self.fallback_error = fallback_error
        super().__init__(
            "Both primary and fallback browser launch failed. "
            f"Primary: {primary_error}, Fallback: {fallback_error}"
        )


class NavigationTimeoutError(ExtractionError):
    """Page navigation or element wait exceeded its timeout."""


class BlockedPageError(ExtractionError):
    """The site answered with a block status (403/429/503) or a challenge page."""


class SelectorExhaustedError(ExtractionError):
    """No locator in the cascade matched any usable element."""


class RecordValidationError(ExtractionError):
    """A detail-mode record is missing its title or the title is too short."""


class InvalidTargetError(ExtractionError):
    """The URL is malformed or does not point at a catalog product page."""


class NetworkFetchError(ExtractionError):
    """The browser-free HTTP fetch failed (transport error or non-200 status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(ExtractionError):
    """A cache write failed; the transaction was rolled back."""


_SUMMARY_PREFIXES = {
    BrowserLaunchError: "Browser launch failed",
    NavigationTimeoutError: "Navigation timeout",
    BlockedPageError: "Blocked",
    SelectorExhaustedError: "No records matched",
    RecordValidationError: "Record validation failed",
    InvalidTargetError: "Invalid target URL",
    NetworkFetchError: "HTTP fetch failed",
    PersistenceError: "Persistence failed",
}

MAX_SUMMARY_LENGTH = 500


def summarize_error(exc: BaseException, fallback: str = "Extraction failed") -> str:
    """
    Return a short summary of exc for the sessions.error_message column.

    Typed pipeline errors keep their message behind a stable prefix; anything
    else maps to `fallback` plus the exception type name.
    """
    for error_type, prefix in _SUMMARY_PREFIXES.items():
        if isinstance(exc, error_type):
            detail = str(exc).strip()
            summary = f"{prefix}: {detail}" if detail else prefix
            return summary[:MAX_SUMMARY_LENGTH]
    return f"{fallback} ({type(exc).__name__})"
