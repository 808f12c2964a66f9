"""
Content Classification
======================

Estimates whether a feed publishes full articles or excerpts from the
length of the first item's text.
"""

import re

from feedlens.analysis.models import ContentType, ParsedFeed

TAG_PATTERN = re.compile(r"<[^>]*>")

# Heuristic, not a standard: longer stripped text reads as a full article
FULL_CONTENT_THRESHOLD = 500


def strip_markup(text: str) -> str:
    """Remove markup tags, keeping everything between them verbatim."""
    return TAG_PATTERN.sub("", text)


def classify_content(feed: ParsedFeed, threshold: int = FULL_CONTENT_THRESHOLD) -> ContentType:
    """Classify the first item's body as full, excerpt or unknown."""
    item = feed.first_item
    if item is None:
        return ContentType.UNKNOWN

    length = len(strip_markup(item.best_content()))

    if length > threshold:
        return ContentType.FULL
    if length > 0:
        return ContentType.EXCERPT
    return ContentType.UNKNOWN
