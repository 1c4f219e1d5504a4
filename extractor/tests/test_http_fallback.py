"""
Unit tests for the browser-free HTTP tier: fetch errors, title patterns, filtering.

requests.get is mocked; no network required.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from extractor.errors import NetworkFetchError, SelectorExhaustedError
from extractor.http_fallback import (
    is_acceptable_title,
    parse_listing_titles,
    scrape_listing_http,
)

URL = "https://www.amazon.com/gp/bestsellers/electronics/"

TRUNCATE_HTML = """
<div><span class="p13n-sc-truncate p13n-sc-line-clamp-2">Fire TV Stick 4K Max streaming device</span></div>
<div><span class="p13n-sc-truncate">Amazon Basics USB-C Cable 6 ft</span></div>
<div><span class="p13n-sc-truncate">#1</span></div>
<div><span class="p13n-sc-truncate">Bose QuietComfort Headphones &amp; Case</span></div>
<div><span class="p13n-sc-truncate">Fire TV Stick 4K Max streaming device</span></div>
<div><span class="a-size-base-plus">Ignored because pattern one matched</span></div>
"""

BASE_PLUS_HTML = """
<span class="a-size-base-plus a-color-base">Apple AirPods Pro (2nd Generation)</span>
<span class="a-size-base-plus">123 456 789 0</span>
"""


def _response(status_code: int = 200, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


def test_is_acceptable_title():
    assert is_acceptable_title("Fire TV Stick 4K Max streaming device")
    assert not is_acceptable_title("Short one")
    assert not is_acceptable_title("x" * 200)
    assert not is_acceptable_title("Best Sellers in Electronics")
    assert not is_acceptable_title("Amazon Basics HDMI Cable")
    assert not is_acceptable_title("123 456 789 0")


def test_parse_listing_titles_first_pattern_wins():
    titles, pattern = parse_listing_titles(TRUNCATE_HTML, limit=10)
    assert pattern == 1
    assert titles == [
        "Fire TV Stick 4K Max streaming device",
        "Bose QuietComfort Headphones & Case",
    ]


def test_parse_listing_titles_falls_through_to_later_pattern():
    titles, pattern = parse_listing_titles(BASE_PLUS_HTML, limit=10)
    assert pattern == 3
    assert titles == ["Apple AirPods Pro (2nd Generation)"]


def test_parse_listing_titles_respects_limit():
    titles, _ = parse_listing_titles(TRUNCATE_HTML, limit=1)
    assert titles == ["Fire TV Stick 4K Max streaming device"]


@patch("extractor.http_fallback.requests.get")
def test_scrape_listing_http_builds_records(mock_get):
    mock_get.return_value = _response(200, TRUNCATE_HTML)

    records = scrape_listing_http(URL, 10, timeout_seconds=10)

    assert [r.rank for r in records] == [1, 2]
    assert all(r.price == "unavailable" and r.rating == "unavailable" for r in records)
    assert all(r.provenance == "http_fetch:pattern_1" for r in records)
    assert records[0].external_id is None
    _, kwargs = mock_get.call_args
    assert kwargs["timeout"] == 10
    assert "User-Agent" in kwargs["headers"]


@patch("extractor.http_fallback.requests.get")
def test_scrape_listing_http_non_200_raises(mock_get):
    mock_get.return_value = _response(503, "Service Unavailable")

    with pytest.raises(NetworkFetchError) as exc_info:
        scrape_listing_http(URL, 10)

    assert exc_info.value.status_code == 503


@patch("extractor.http_fallback.requests.get")
def test_scrape_listing_http_transport_error_raises(mock_get):
    mock_get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(NetworkFetchError, match="read timed out"):
        scrape_listing_http(URL, 10)


@patch("extractor.http_fallback.requests.get")
def test_scrape_listing_http_no_titles_raises(mock_get):
    mock_get.return_value = _response(200, "<html><body>Nothing here</body></html>")

    with pytest.raises(SelectorExhaustedError):
        scrape_listing_http(URL, 10)
