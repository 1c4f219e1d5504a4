"""
Crawl constants: client identity, launch flags, timeouts, scroll and URL rules.

Selectors live in locators.py; this module holds everything else the browser
and extraction code treats as fixed.
"""

from __future__ import annotations

import re

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

NAVIGATION_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,"
        "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
}

# Headers for the browser-free tier-2 fetch (requests handles encoding itself).
HTTP_FETCH_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

# Runs before any page script: hide automation telltales.
STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""

LOCALE = "en-US"
TIMEZONE_ID = "America/New_York"
HEADLESS_VIEWPORT = {"width": 1366, "height": 768}

# Primary "human-like" launch configuration
PRIMARY_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-backgrounding-occluded-windows",
    "--start-maximized",
    "--disable-blink-features=AutomationControlled",
    "--disable-plugins-discovery",
]
PRIMARY_SLOW_MO_MS = 100

# Conservative fallback: always headless, reduced flags
FALLBACK_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-web-security",
]

# Well-known Chrome/Chromium locations, probed when no executable is configured.
KNOWN_BROWSER_PATHS = {
    "win32": [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
    ],
    "darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
    ],
    "linux": [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium-browser",
        "/usr/bin/chromium",
    ],
}

# Timeouts (ms)
DEFAULT_INTERACTION_TIMEOUT_MS = 30000
PAGE_SETTLE_MS = 3000  # Wait after domcontentloaded before looking for records
DETAIL_SETTLE_MS = 2000

# Scroll pagination
SCROLL_INCREMENT_PX = 2000
SCROLL_SETTLE_MS = 4000
LISTING_MAX_ROUNDS = 3
ENHANCED_MAX_ROUNDS = 6
ENHANCED_MAX_RECORDS = 50

# Element cascade stops widening once this many candidates are found.
CANDIDATE_MIN_COUNT = 10

# Canonical product URL -> external identifier
DETAIL_URL_ID_PATTERN = re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})")

SUPPORTED_CATALOG_DOMAINS = (
    "amazon.com",
    "amazon.co.uk",
    "amazon.ca",
    "amazon.de",
    "amazon.fr",
    "amazon.it",
    "amazon.es",
    "amazon.co.jp",
    "amazon.in",
    "amazon.com.au",
    "amazon.com.br",
    "amazon.com.mx",
)
PRODUCT_PATH_MARKERS = ("/dp/", "/gp/product/", "/product/")
