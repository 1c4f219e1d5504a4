"""Fixed sample records: the last fallback tier. Cannot fail."""

from __future__ import annotations

from extractor.models import ExtractedRecord, utcnow

PROVENANCE_STATIC_SAMPLE = "static_sample"

# (title, price, rating), in rank order
_SAMPLES = (
    (
        "Echo Dot (5th Gen) | Smart speaker with bigger vibrant sound and Alexa",
        "$49.99",
        "4.7 out of 5 stars",
    ),
    ("Fire TV Stick 4K Max streaming device", "$54.99", "4.6 out of 5 stars"),
    ("Apple AirPods (3rd Generation) Wireless Earbuds", "$169.00", "4.4 out of 5 stars"),
    (
        'Kindle Paperwhite - Now with 6.8" display and adjustable warm light',
        "$139.99",
        "4.6 out of 5 stars",
    ),
    ("Apple Watch Series 9 [GPS 41mm] Smartwatch", "$329.00", "4.5 out of 5 stars"),
)


def get_static_records(limit: int = len(_SAMPLES)) -> list[ExtractedRecord]:
    """Return the first `limit` samples (at least one), stamped now."""
    extracted_at = utcnow()
    count = max(1, min(limit, len(_SAMPLES)))
    return [
        ExtractedRecord(
            title=title,
            rank=rank,
            price=price,
            rating=rating,
            provenance=PROVENANCE_STATIC_SAMPLE,
            extracted_at=extracted_at,
        )
        for rank, (title, price, rating) in enumerate(_SAMPLES[:count], start=1)
    ]
