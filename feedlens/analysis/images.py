"""
Image Source Analysis
=====================

Detects whether a feed carries featured images, counts where they come from,
and collects a few sample image URLs.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from bs4 import BeautifulSoup

from feedlens.analysis.models import (
    FeedItem,
    ImageSourceBreakdown,
    OrderedSet,
    ParsedFeed,
    RawDocument,
)
from feedlens.analysis.structure import parse_markup

URL_ATTRIBUTE_PATTERN = re.compile(r"url\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
IMG_SRC_PATTERN = re.compile(r"<img\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
OPEN_GRAPH_MARKER = "og:image"


@dataclass
class ImageAnalysis:
    """Featured image verdict, per-source counts and sample URLs."""

    has_featured_image: bool = False
    breakdown: ImageSourceBreakdown = field(default_factory=ImageSourceBreakdown)
    sample_urls: List[str] = field(default_factory=list)


def media_url(value: Any) -> Optional[str]:
    """Extract a URL from a structured media value or a raw element string."""
    if value is None:
        return None
    if isinstance(value, dict):
        url = value.get("url") or value.get("href")
        return url or None
    match = URL_ATTRIBUTE_PATTERN.search(str(value))
    return match.group(1) if match else None


def _has_image_enclosure(item: FeedItem) -> bool:
    return bool(
        item.enclosure
        and item.enclosure.mime_type
        and item.enclosure.mime_type.lower().startswith("image/")
    )


def _is_featured(item: FeedItem) -> bool:
    if item.media_content or item.media_thumbnail:
        return True
    if _has_image_enclosure(item):
        return True
    if "<img" in item.best_content():
        return True
    return "<img" in (item.description or "") or "<img" in (item.content_encoded or "")


def has_featured_image(feed: ParsedFeed) -> bool:
    """True as soon as any item carries an image signal."""
    return any(_is_featured(item) for item in feed.items)


def analyze_images(
    raw: RawDocument,
    feed: ParsedFeed,
    sample_limit: int = 2,
    markup: Optional[BeautifulSoup] = None,
) -> ImageAnalysis:
    """Analyze image sources across a feed.

    Args:
        raw: The raw document, scanned once for media:thumbnail elements
        feed: Parsed feed whose items are scanned one by one
        sample_limit: Maximum number of sample URLs returned
        markup: Already parsed markup tree of ``raw``, if available

    Returns:
        ImageAnalysis with the featured image flag, counts and sample URLs
    """
    breakdown = ImageSourceBreakdown()
    samples: OrderedSet[str] = OrderedSet(limit=sample_limit)

    # media:thumbnail is counted from the markup itself, once per document
    soup = markup if markup is not None else parse_markup(raw.text)
    thumbnails = soup.find_all("media:thumbnail")
    breakdown.media_thumbnail = len(thumbnails)
    for thumbnail in thumbnails:
        url = thumbnail.get("url")
        if url:
            samples.add(url)

    for item in feed.items:
        if item.media_content:
            breakdown.media_content += 1
            url = media_url(item.media_content)
            if url:
                samples.add(url)

        if item.media_thumbnail and not thumbnails:
            breakdown.media_thumbnail += 1
            url = media_url(item.media_thumbnail)
            if url:
                samples.add(url)

        if _has_image_enclosure(item):
            breakdown.enclosure += 1
            if item.enclosure.url:
                samples.add(item.enclosure.url)

        content = item.best_content()
        if "<img" in content:
            breakdown.img_tag += 1
            match = IMG_SRC_PATTERN.search(content)
            if match:
                samples.add(match.group(1))

        if OPEN_GRAPH_MARKER in content:
            breakdown.open_graph += 1

    return ImageAnalysis(
        has_featured_image=has_featured_image(feed),
        breakdown=breakdown,
        sample_urls=samples.to_list(),
    )
