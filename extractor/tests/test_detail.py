"""
Unit tests for detail-page URL validation and field extraction.

No Playwright/network required.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from extractor.crawl.detail import extract_detail_record, scrape_detail, validate_detail_url
from extractor.errors import InvalidTargetError, RecordValidationError

PRODUCT_URL = "https://www.amazon.com/Echo-Dot/dp/B09B8V1LZ3"

DETAIL_HTML = """
<html><body>
<div id="dp" data-asin="B0OTHER0001">
  <span id="productTitle">  Echo Dot (5th Gen) Smart speaker with Alexa  </span>
  <a id="bylineInfo">Visit the Amazon Store</a>
  <div id="acrPopover"><span class="a-icon-alt">4.7 out of 5 stars</span></div>
  <span id="acrCustomerReviewText">123,456 ratings</span>
  <div class="a-price"><span class="a-offscreen">$49.99</span></div>
  <div id="availability"><span> In Stock </span></div>
  <img id="landingImage" data-old-hires="https://images.example/hires.jpg">
  <div id="feature-bullets"><ul>
    <li>Make sure this fits by entering your model number.</li>
    <li>Short one</li>
    <li>Our best sounding Echo Dot yet with clearer vocals</li>
    <li>Voice control your music with Alexa on any device</li>
    <li>Control compatible smart home devices with your voice</li>
    <li>Designed to protect your privacy with multiple layers</li>
    <li>Pair with a compatible Fire TV device for movies</li>
    <li>A sixth qualifying feature bullet that is dropped</li>
  </ul></div>
</div>
</body></html>
"""


# --- URL validation ---


def test_validate_detail_url_accepts_product_paths():
    assert validate_detail_url(PRODUCT_URL) == PRODUCT_URL
    assert validate_detail_url(" https://amazon.com/gp/product/B09B8V1LZ3 ")
    assert validate_detail_url("https://www.amazon.co.uk/product/xyz")


@pytest.mark.parametrize(
    "url",
    [
        "",
        None,
        "not a url",
        "ftp://www.amazon.com/dp/B09B8V1LZ3",
        "https://example.com/not-a-product",
        "https://www.amazon.com/gp/bestsellers/electronics/",
        "https://evil-amazon.com/dp/B09B8V1LZ3",
    ],
)
def test_validate_detail_url_rejects(url):
    with pytest.raises(InvalidTargetError):
        validate_detail_url(url)


# --- Field extraction ---


def test_extract_detail_record_fields():
    record = extract_detail_record(DETAIL_HTML, PRODUCT_URL)

    assert record.title == "Echo Dot (5th Gen) Smart speaker with Alexa"
    assert record.rank == 1
    assert record.price == "$49.99"
    assert record.rating == "4.7 out of 5 stars"
    assert record.image_url == "https://images.example/hires.jpg"
    assert record.availability == "In Stock"
    assert record.review_count == "123,456 ratings"
    assert record.brand == "Visit the Amazon Store"
    assert record.detail_url == PRODUCT_URL
    assert record.provenance == "live_browser:detail"


def test_extract_detail_record_external_id_prefers_url():
    """The id in the URL wins over page attributes."""
    record = extract_detail_record(DETAIL_HTML, PRODUCT_URL)
    assert record.external_id == "B09B8V1LZ3"


def test_extract_detail_record_external_id_from_page_when_url_has_none():
    record = extract_detail_record(DETAIL_HTML, "https://www.amazon.com/product/echo")
    assert record.external_id == "B0OTHER0001"


def test_extract_detail_record_features_filtered_and_capped():
    """Boilerplate and short bullets are skipped; at most five are kept in order."""
    record = extract_detail_record(DETAIL_HTML, PRODUCT_URL)
    assert record.features == (
        "Our best sounding Echo Dot yet with clearer vocals",
        "Voice control your music with Alexa on any device",
        "Control compatible smart home devices with your voice",
        "Designed to protect your privacy with multiple layers",
        "Pair with a compatible Fire TV device for movies",
    )


def test_extract_detail_record_missing_identifier_tolerated():
    html = '<span id="productTitle">Some product title</span>'
    record = extract_detail_record(html, "https://www.amazon.com/product/abc")
    assert record.external_id is None
    assert record.price == "unavailable"
    assert record.features == ()


@pytest.mark.parametrize("html", ["<html></html>", '<span id="productTitle">Abc</span>'])
def test_extract_detail_record_requires_title(html):
    with pytest.raises(RecordValidationError):
        extract_detail_record(html, PRODUCT_URL)


@pytest.mark.asyncio
async def test_scrape_detail_navigates_then_extracts():
    page = MagicMock()
    page.content = AsyncMock(return_value=DETAIL_HTML)

    with patch("extractor.crawl.detail.navigate", new_callable=AsyncMock) as mock_nav, patch(
        "extractor.crawl.detail.settle", new_callable=AsyncMock
    ):
        record = await scrape_detail(page, PRODUCT_URL, nav_timeout_ms=45000)

    mock_nav.assert_awaited_once_with(page, PRODUCT_URL, timeout_ms=45000)
    assert record.external_id == "B09B8V1LZ3"
