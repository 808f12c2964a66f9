"""Duplicate entry detection by item identity (guid, falling back to link)."""

from collections import Counter
from typing import List, Optional

from feedlens.analysis.models import FeedItem, OrderedSet, ParsedFeed


def identity_key(item: FeedItem) -> Optional[str]:
    return item.guid or item.link or None


def find_duplicates(feed: ParsedFeed) -> List[str]:
    """Return identity keys shared by more than one item, in first-seen order."""
    keys = [key for key in (identity_key(item) for item in feed.items) if key]
    counts = Counter(keys)
    return OrderedSet(key for key in keys if counts[key] > 1).to_list()
