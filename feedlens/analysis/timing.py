"""
Temporal Analysis
=================

Finds the most recent publication time in a feed and estimates how often
it publishes. Items are never assumed to be sorted.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from dateutil import parser as dateutil_parser

from feedlens.analysis.models import FeedItem, ParsedFeed

DEFAULT_DATE_FORMAT = "%B %d, %Y at %H:%M:%S %Z"
SECONDS_PER_DAY = 86400.0

# Fills date parts missing from partial strings, instead of today's date
PARTIAL_DATE_DEFAULT = datetime(1970, 1, 1)

# RFC 822 zone names that dateutil does not know by itself
_TZINFOS = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}


@dataclass
class TimingAnalysis:
    """Last update timestamp and estimated posting cadence."""

    last_update: Optional[str] = None
    post_frequency: Optional[str] = None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a feed date string, returning an aware UTC datetime or None."""
    if not value:
        return None
    try:
        parsed = dateutil_parser.parse(value, default=PARTIAL_DATE_DEFAULT, tzinfos=_TZINFOS)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def item_timestamp(item: FeedItem) -> Optional[datetime]:
    """Timestamp of an item, preferring the parser's own reading of the date."""
    if item.published is not None:
        if item.published.tzinfo is None:
            return item.published.replace(tzinfo=timezone.utc)
        return item.published.astimezone(timezone.utc)
    return parse_timestamp(item.pub_date)


def _round_half_up(value: float) -> int:
    # Halves round up: 2.5 posts per week is reported as 3
    return math.floor(value + 0.5)


def _plural(rate: float, period: str) -> str:
    count = _round_half_up(rate)
    noun = "post" if count == 1 else "posts"
    return f"{count} {noun} per {period}"


def frequency_label(average_days: float) -> str:
    """Describe an average interval between posts, in days."""
    if average_days < 0.1:
        return "Multiple posts per day"
    # A cadence of exactly one day reads as daily, not as 7 per week
    if average_days <= 1:
        return _plural(1 / average_days, "day")
    if average_days < 7:
        return _plural(7 / average_days, "week")
    if average_days < 30:
        return _plural(30 / average_days, "month")
    return "Less than 1 post per month"


def estimate_frequency(timestamps: List[datetime]) -> Optional[str]:
    """Average the spacing of at least two timestamps into a frequency label."""
    if len(timestamps) < 2:
        return None

    ordered = sorted(timestamps)
    span_days = (ordered[-1] - ordered[0]).total_seconds() / SECONDS_PER_DAY
    return frequency_label(span_days / (len(ordered) - 1))


def analyze_timing(feed: ParsedFeed, date_format: str = DEFAULT_DATE_FORMAT) -> TimingAnalysis:
    """Compute the last update and post frequency of a feed."""
    timestamps = [ts for ts in (item_timestamp(item) for item in feed.items) if ts]

    if timestamps:
        last_update = max(timestamps).strftime(date_format)
    elif feed.first_item is not None and feed.first_item.pub_date:
        last_update = feed.first_item.pub_date
    else:
        last_update = None

    return TimingAnalysis(
        last_update=last_update,
        post_frequency=estimate_frequency(timestamps),
    )
