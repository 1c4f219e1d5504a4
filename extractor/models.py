"""
Record types produced by extraction and returned from the cache.

ExtractedRecord is transient output of the extraction tiers. CacheRecord is
a persisted row converted back for callers with `to_extracted()`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

# Sentinel for free-text fields the page did not expose.
UNAVAILABLE = "unavailable"

MIN_TITLE_LENGTH = 5
MAX_FEATURES = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite returns naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_title(title: Optional[str]) -> bool:
    return bool(title) and len(title.strip()) >= MIN_TITLE_LENGTH


@dataclass(frozen=True)
class ExtractedRecord:
    """A catalog item as extracted from the live site (or a degraded tier)."""

    title: str
    rank: int = 1
    external_id: Optional[str] = None
    price: str = UNAVAILABLE
    rating: str = UNAVAILABLE
    image_url: Optional[str] = None
    detail_url: Optional[str] = None
    provenance: str = ""
    extracted_at: datetime = field(default_factory=utcnow)
    # Detail-mode only
    availability: Optional[str] = None
    review_count: Optional[str] = None
    brand: Optional[str] = None
    features: tuple[str, ...] = ()

    def with_provenance(self, provenance: str) -> "ExtractedRecord":
        return replace(self, provenance=provenance)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["extracted_at"] = self.extracted_at.isoformat()
        data["features"] = list(self.features)
        return data


@dataclass(frozen=True)
class CacheRecord:
    """A persisted record row."""

    id: int
    external_id: Optional[str]
    rank: Optional[int]
    title: str
    price: Optional[str]
    rating: Optional[str]
    image_url: Optional[str]
    detail_url: Optional[str]
    source: Optional[str]
    category: str
    updated_at: datetime
    extracted_at: Optional[datetime] = None
    availability: Optional[str] = None
    review_count: Optional[str] = None
    brand: Optional[str] = None
    features: tuple[str, ...] = ()

    @classmethod
    def from_row(cls, row: dict) -> "CacheRecord":
        return cls(
            id=row["id"],
            external_id=row.get("external_id"),
            rank=row.get("rank"),
            title=row["title"],
            price=row.get("price"),
            rating=row.get("rating"),
            image_url=row.get("image_url"),
            detail_url=row.get("detail_url"),
            source=row.get("source"),
            category=row["category"],
            updated_at=as_utc(row["updated_at"]),
            extracted_at=as_utc(row.get("extracted_at")),
            availability=row.get("availability"),
            review_count=row.get("review_count"),
            brand=row.get("brand"),
            features=tuple(row.get("features") or ()),
        )

    def to_extracted(self, provenance: Optional[str] = None) -> ExtractedRecord:
        return ExtractedRecord(
            title=self.title,
            rank=self.rank if self.rank and self.rank > 0 else 1,
            external_id=self.external_id,
            price=self.price or UNAVAILABLE,
            rating=self.rating or UNAVAILABLE,
            image_url=self.image_url,
            detail_url=self.detail_url,
            provenance=provenance if provenance is not None else (self.source or ""),
            extracted_at=self.extracted_at or self.updated_at,
            availability=self.availability,
            review_count=self.review_count,
            brand=self.brand,
            features=self.features,
        )


@dataclass(frozen=True)
class Freshness:
    """Result of a cache freshness check."""

    fresh: bool
    count: int
    last_updated: Optional[datetime] = None
