"""
Data-driven locator cascades for listing and detail pages.

Each field has an ordered list of named `Locator`s; the first one yielding a
non-empty value wins. Candidate elements come from ordered `ElementTier`s:
the most specific tier first, widening until enough candidates are found.

Pure functions over BeautifulSoup tags so cascades are testable without a browser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from bs4 import Tag

from extractor.crawl.text import normalize_whitespace


@dataclass(frozen=True)
class Locator:
    """
    One way of reading a field from an element.

    selector: CSS selector relative to the element; "" reads the element itself.
    attribute: attribute to read; None reads normalized text content.
    contains: when set, the value must contain this substring to count.
    """

    name: str
    selector: str
    attribute: Optional[str] = None
    contains: Optional[str] = None

    def read(self, element: Tag) -> Optional[str]:
        target = element if not self.selector else element.select_one(self.selector)
        if target is None:
            return None
        if self.attribute is None:
            value = normalize_whitespace(target.get_text(" "))
        else:
            raw = target.get(self.attribute)
            if isinstance(raw, list):
                raw = " ".join(raw)
            value = (raw or "").strip()
        if not value:
            return None
        if self.contains and self.contains not in value:
            return None
        return value


@dataclass(frozen=True)
class ElementTier:
    """A named set of selectors locating candidate record elements."""

    name: str
    selectors: tuple[str, ...]


def first_match(element: Tag, locators: Sequence[Locator]) -> Optional[str]:
    """Return the first non-empty value produced by locators, in order."""
    for locator in locators:
        value = locator.read(element)
        if value:
            return value
    return None


def collect_candidates(
    root: Tag,
    tiers: Sequence[ElementTier],
    min_count: int,
) -> list[tuple[Tag, str]]:
    """
    Union candidate elements across tiers in order.

    A tier is only consulted while fewer than min_count candidates have been
    found. Elements already found by an earlier tier are not added twice.
    Returns (element, tier_name) pairs in encounter order.
    """
    found: list[tuple[Tag, str]] = []
    seen: set[int] = set()
    for tier in tiers:
        if len(found) >= max(min_count, 1):
            break
        for selector in tier.selectors:
            for element in root.select(selector):
                key = id(element)
                if key in seen:
                    continue
                seen.add(key)
                found.append((element, tier.name))
    return found


# --- Listing page ---

LISTING_ELEMENT_TIERS: tuple[ElementTier, ...] = (
    ElementTier(
        "primary_grid",
        (
            ".p13n-gridRow [data-asin]",
            "#zg-ordered-list [data-asin]",
        ),
    ),
    ElementTier("identifier_attribute", ("[data-asin]",)),
    ElementTier(
        "bestseller_faceout",
        (
            ".zg-grid-general-faceout",
            ".p13n-sc-uncoverable-faceout",
            ".zg-item-immersion",
        ),
    ),
)

# Any of these present means the listing has rendered records.
LISTING_READY_SELECTOR = "[data-asin], .zg-grid-general-faceout, .p13n-sc-uncoverable-faceout"

LISTING_FIELD_LOCATORS: dict[str, tuple[Locator, ...]] = {
    "title": (
        Locator("line_clamp", "[class*='p13n-sc-css-line-clamp']"),
        Locator("truncate", ".p13n-sc-truncate"),
        Locator("search_title", ".s-title"),
        Locator("base_plus", ".a-size-base-plus"),
        Locator("h2_span", "h2 span"),
        Locator("h3_span", "h3 span"),
        Locator("image_alt", "img", attribute="alt"),
    ),
    "price": (
        Locator("grid_price", "[class*='p13n-sc-price']"),
        Locator("offscreen", ".a-price .a-offscreen"),
        Locator("price_whole", ".a-price-whole"),
        Locator("color_price", ".a-color-price"),
    ),
    "rating": (
        Locator("icon_alt", ".a-icon-alt", contains="out of"),
        Locator("star_icon", ".a-icon-star"),
        Locator("star_medium", ".a-star-medium"),
    ),
    "image": (
        Locator("dynamic_image", "img.p13n-sc-dynamic-image", attribute="src"),
        Locator("any_image", "img[src]", attribute="src"),
        Locator("lazy_image", "img[data-src]", attribute="data-src"),
    ),
    "link": (
        Locator("product_link", "a[href*='/dp/']", attribute="href"),
        Locator("any_link", "a[href]", attribute="href"),
    ),
    "identifier": (
        Locator("own_attribute", "", attribute="data-asin"),
        Locator("nested_attribute", "[data-asin]", attribute="data-asin"),
    ),
    "rank_badge": (
        Locator("badge", ".zg-bdg-text"),
        Locator("badge_container", ".zg-badge-text"),
    ),
}

# --- Detail page ---

DETAIL_FIELD_LOCATORS: dict[str, tuple[Locator, ...]] = {
    "title": (
        Locator("product_title", "#productTitle"),
        Locator("title_h1", ".product-title h1"),
        Locator("large_h1", "h1.a-size-large"),
        Locator("h1_span", "h1 span"),
    ),
    "price": (
        Locator("offscreen", ".a-price .a-offscreen"),
        Locator("price_whole", ".a-price-whole"),
        Locator("deal_price", "#priceblock_dealprice"),
        Locator("our_price", "#priceblock_ourprice"),
        Locator("current_price", ".a-price-current .a-offscreen"),
        Locator("price_range", ".a-price-range .a-offscreen"),
        Locator("apex_price", ".apexPriceToPay .a-offscreen"),
    ),
    "rating": (
        Locator("popover", "#acrPopover .a-icon-alt"),
        Locator("star_alt", ".a-icon-star .a-icon-alt"),
        Locator("histogram", ".reviewCountTextLinkedHistogram .a-icon-alt"),
        Locator("icon_alt", "span.a-icon-alt", contains="out of"),
    ),
    "image": (
        Locator("landing_src", "#landingImage", attribute="src"),
        Locator("front_src", "#imgBlkFront", attribute="src"),
        Locator("dynamic_src", "img.a-dynamic-image", attribute="src"),
        Locator("landing_hires", "#landingImage", attribute="data-old-hires"),
        Locator("front_hires", "#imgBlkFront", attribute="data-old-hires"),
    ),
    "identifier": (
        Locator("asin_input", "input#ASIN", attribute="value"),
        Locator("asin_div", "#dp[data-asin], #ppd[data-asin]", attribute="data-asin"),
    ),
    "availability": (
        Locator("availability", "#availability span"),
        Locator("in_stock", "#availability .a-color-success"),
        Locator("color_state", ".a-color-state"),
    ),
    "review_count": (
        Locator("review_text", "#acrCustomerReviewText"),
        Locator("reviews_anchor", "a[href='#customerReviews'] span"),
    ),
    "brand": (
        Locator("byline", "#bylineInfo"),
        Locator("po_brand", ".po-brand .po-break-word"),
    ),
}

DETAIL_FEATURE_SELECTOR = "#feature-bullets ul li"
DETAIL_FEATURE_BOILERPLATE = ("Make sure",)
DETAIL_FEATURE_MIN_LENGTH = 10
