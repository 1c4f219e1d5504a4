"""
Listing extraction: candidate cascade plus per-field locator cascades.

`extract_listing_records` is a pure transform from an HTML snapshot to
records. `ExtractionStrategy.extract` takes the snapshot from a live
Playwright page and applies it.
"""

from __future__ import annotations

from typing import Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Page

from extractor.crawl.constants import CANDIDATE_MIN_COUNT, DETAIL_URL_ID_PATTERN
from extractor.crawl.locators import (
    LISTING_ELEMENT_TIERS,
    LISTING_FIELD_LOCATORS,
    ElementTier,
    Locator,
    collect_candidates,
    first_match,
)
from extractor.crawl.text import parse_rank_badge
from extractor.models import UNAVAILABLE, ExtractedRecord, is_valid_title, utcnow
from shared.logging import get_logger

logger = get_logger(__name__)

PROVENANCE_LIVE_BROWSER = "live_browser"


def parse_external_id(url: Optional[str]) -> Optional[str]:
    """Parse the external identifier out of a canonical product URL."""
    if not url:
        return None
    match = DETAIL_URL_ID_PATTERN.search(url)
    return match.group(1) if match else None


def _absolute_url(href: Optional[str], base_url: str) -> Optional[str]:
    if not href:
        return None
    if href.startswith(("javascript:", "#", "mailto:")):
        return None
    return urljoin(base_url, href)


def extract_listing_records(
    html: str,
    base_url: str,
    limit: Optional[int] = None,
    *,
    tiers: Sequence[ElementTier] = LISTING_ELEMENT_TIERS,
    field_locators: dict[str, tuple[Locator, ...]] = LISTING_FIELD_LOCATORS,
    min_count: int = CANDIDATE_MIN_COUNT,
    provenance_prefix: str = PROVENANCE_LIVE_BROWSER,
) -> list[ExtractedRecord]:
    """
    Extract listing records from an HTML snapshot.

    Candidates without a valid title (>= 5 chars) or without a derivable
    external id are dropped. Rank is the candidate position unless a rank
    badge is present. Output keeps DOM encounter order.
    """
    soup = BeautifulSoup(html, "html.parser")
    candidates = collect_candidates(soup, tiers, min_count)

    records: list[ExtractedRecord] = []
    seen_ids: set[str] = set()
    extracted_at = utcnow()

    for position, (element, tier_name) in enumerate(candidates, start=1):
        if limit is not None and len(records) >= limit:
            break

        title = first_match(element, field_locators["title"])
        if not is_valid_title(title):
            continue

        detail_url = _absolute_url(first_match(element, field_locators["link"]), base_url)
        external_id = first_match(element, field_locators["identifier"]) or parse_external_id(
            detail_url
        )
        if not external_id or external_id in seen_ids:
            continue
        seen_ids.add(external_id)

        rank = parse_rank_badge(first_match(element, field_locators["rank_badge"])) or position

        records.append(
            ExtractedRecord(
                title=title,
                rank=rank,
                external_id=external_id,
                price=first_match(element, field_locators["price"]) or UNAVAILABLE,
                rating=first_match(element, field_locators["rating"]) or UNAVAILABLE,
                image_url=_absolute_url(first_match(element, field_locators["image"]), base_url),
                detail_url=detail_url,
                provenance=f"{provenance_prefix}:{tier_name}",
                extracted_at=extracted_at,
            )
        )

    return records


class ExtractionStrategy:
    """Applies the listing cascade to the current DOM of a live page."""

    def __init__(
        self,
        *,
        tiers: Sequence[ElementTier] = LISTING_ELEMENT_TIERS,
        field_locators: dict[str, tuple[Locator, ...]] = LISTING_FIELD_LOCATORS,
        min_count: int = CANDIDATE_MIN_COUNT,
        provenance_prefix: str = PROVENANCE_LIVE_BROWSER,
    ):
        self.tiers = tuple(tiers)
        self.field_locators = field_locators
        self.min_count = min_count
        self.provenance_prefix = provenance_prefix

    async def extract(self, page: Page, limit: Optional[int] = None) -> list[ExtractedRecord]:
        html = await page.content()
        records = extract_listing_records(
            html,
            page.url,
            limit,
            tiers=self.tiers,
            field_locators=self.field_locators,
            min_count=self.min_count,
            provenance_prefix=self.provenance_prefix,
        )
        logger.info(
            "extraction.snapshot_parsed",
            url=page.url,
            records=len(records),
            limit=limit,
        )
        return records
