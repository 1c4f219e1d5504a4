"""
Text normalization for extracted fields (whitespace collapse, trim).
"""

from __future__ import annotations

import html
import re
from typing import Optional


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace: collapse multiples, trim."""
    # Collapse multiple whitespace to single space
    text = re.sub(r"\s+", " ", text)
    # Trim
    text = text.strip()
    return text


def clean_fragment(text: Optional[str]) -> str:
    """Unescape HTML entities in a raw markup fragment, then normalize whitespace."""
    if not text:
        return ""
    return normalize_whitespace(html.unescape(text))


def parse_rank_badge(text: Optional[str]) -> Optional[int]:
    """Parse a rank badge such as '#3' or '# 12'; None when it holds no number."""
    if not text:
        return None
    match = re.search(r"\d+", text.replace(",", ""))
    if not match:
        return None
    rank = int(match.group(0))
    return rank if rank >= 1 else None
