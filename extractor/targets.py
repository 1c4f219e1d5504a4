"""
Target URL resolution for (source type, category) pairs.

Lookups that fail or return nothing fall back to the configured default
listing, so resolution never blocks an extraction.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TARGETS: dict[tuple[str, str], str] = {
    ("amazon", "electronics"): "https://www.amazon.com/gp/bestsellers/electronics/",
    ("amazon", "books"): "https://www.amazon.com/gp/bestsellers/books/",
    ("amazon", "home-garden"): "https://www.amazon.com/gp/bestsellers/home-garden/",
    ("amazon", "toys-and-games"): "https://www.amazon.com/gp/bestsellers/toys-and-games/",
}


class TargetResolver(Protocol):
    def resolve(self, source_type: str, category: str) -> Optional[str]: ...


class StaticTargetResolver:
    """Resolves from an in-memory mapping keyed by (source_type, category)."""

    def __init__(self, mapping: Optional[Mapping[tuple[str, str], str]] = None):
        self.mapping = dict(DEFAULT_TARGETS if mapping is None else mapping)

    def resolve(self, source_type: str, category: str) -> Optional[str]:
        return self.mapping.get((source_type.lower(), category.lower()))


def resolve_target_url(
    resolver: Optional[TargetResolver],
    source_type: str,
    category: str,
    default: str,
) -> str:
    """Return the resolver's URL, or default when it has none or raises."""
    if resolver is None:
        return default
    try:
        url = resolver.resolve(source_type, category)
    except Exception as e:
        logger.warning(
            "targets.resolve_failed",
            source_type=source_type,
            category=category,
            error=str(e),
            error_type=type(e).__name__,
        )
        return default
    if not url:
        logger.info("targets.default_used", source_type=source_type, category=category)
        return default
    return url
