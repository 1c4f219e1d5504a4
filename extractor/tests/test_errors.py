"""
Tests for error summaries stored on scrape sessions.
"""

from __future__ import annotations

from extractor.errors import (
    BrowserLaunchError,
    InvalidTargetError,
    NetworkFetchError,
    PersistenceError,
    summarize_error,
)


def test_browser_launch_error_carries_both_messages():
    exc = BrowserLaunchError("no display", "missing libnss3")
    assert exc.primary_error == "no display"
    assert exc.fallback_error == "missing libnss3"
    assert summarize_error(exc).startswith("Browser launch failed: ")
    assert "missing libnss3" in summarize_error(exc)


def test_typed_errors_keep_message_behind_prefix():
    assert summarize_error(NetworkFetchError("HTTP 503", 503)) == "HTTP fetch failed: HTTP 503"
    assert summarize_error(InvalidTargetError("")) == "Invalid target URL"


def test_unknown_errors_get_generic_summary():
    assert summarize_error(KeyError("secret/path/to/file")) == "Extraction failed (KeyError)"
    assert summarize_error(RuntimeError("x"), fallback="Detail failed") == "Detail failed (RuntimeError)"


def test_summary_is_capped():
    assert len(summarize_error(PersistenceError("y" * 2000))) == 500
