"""
Tests for target URL resolution and its default fallback.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from extractor.targets import StaticTargetResolver, resolve_target_url

DEFAULT = "https://www.amazon.com/gp/bestsellers/electronics/"


def test_static_resolver_is_case_insensitive():
    resolver = StaticTargetResolver({("amazon", "books"): "https://books.example/"})
    assert resolver.resolve("Amazon", "BOOKS") == "https://books.example/"
    assert resolver.resolve("amazon", "toys") is None


def test_resolve_target_url_uses_resolver_value():
    resolver = StaticTargetResolver({("amazon", "books"): "https://books.example/"})
    assert resolve_target_url(resolver, "amazon", "books", DEFAULT) == "https://books.example/"


def test_resolve_target_url_defaults_on_miss_error_or_no_resolver():
    assert resolve_target_url(StaticTargetResolver({}), "amazon", "books", DEFAULT) == DEFAULT
    assert resolve_target_url(None, "amazon", "books", DEFAULT) == DEFAULT

    failing = MagicMock()
    failing.resolve.side_effect = ConnectionError("metadata store down")
    assert resolve_target_url(failing, "amazon", "books", DEFAULT) == DEFAULT
