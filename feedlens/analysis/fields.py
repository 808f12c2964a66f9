"""
Field Discovery
===============

Reports which fields a feed provides and which essential item fields are
missing.

Only the first item is inspected: field availability is assumed to be
uniform across a feed's items.
"""

from typing import List

from feedlens.analysis.models import ParsedFeed

# Item attribute -> reported field name
ITEM_FIELDS = [
    ("title", "title"),
    ("link", "link"),
    ("content", "content"),
    ("content_snippet", "contentSnippet"),
    ("description", "description"),
    ("categories", "categories"),
    ("pub_date", "pubDate"),
    ("creator", "creator"),
    ("author", "author"),
    ("guid", "guid"),
    ("content_encoded", "content:encoded"),
    ("media_content", "media:content"),
    ("media_thumbnail", "media:thumbnail"),
    ("enclosure", "enclosure"),
    ("image", "image"),
]


def discover_fields(feed: ParsedFeed) -> List[str]:
    """Return the sorted names of fields present at feed level or on the first item."""
    fields = set()

    if feed.title:
        fields.add("title")
    if feed.link:
        fields.add("link")
    if feed.description:
        fields.add("description")
    if feed.categories:
        fields.add("categories")

    item = feed.first_item
    if item is not None:
        for attribute, name in ITEM_FIELDS:
            if getattr(item, attribute):
                fields.add(name)

    return sorted(fields)


def find_missing_fields(feed: ParsedFeed) -> List[str]:
    """Return the essential fields the first item lacks."""
    item = feed.first_item
    if item is None:
        return []

    missing = []
    if not item.title:
        missing.append("title")
    if not item.link:
        missing.append("link")
    if not item.content and not item.description:
        missing.append("content")
    return missing
