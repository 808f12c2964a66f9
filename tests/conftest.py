"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and sample feed documents for FeedLens tests.
"""

import pytest
import os
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep test runs independent of any local .env
os.environ.setdefault("FEEDLENS_DEBUG", "false")


# ============================================================================
# Sample Documents
# ============================================================================

RSS_NAMESPACES = (
    'xmlns:media="http://search.yahoo.com/mrss/" '
    'xmlns:content="http://purl.org/rss/1.0/modules/content/" '
    'xmlns:dc="http://purl.org/dc/elements/1.1/"'
)


def rss_document(items: str, channel_extra: str = "", title: str = "Example Feed") -> str:
    """Wrap item markup in a complete RSS 2.0 document."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" {RSS_NAMESPACES}>
  <channel>
    <title>{title}</title>
    <link>https://example.com/</link>
    <description>An example feed</description>
    {channel_extra}
    {items}
  </channel>
</rss>"""


def rss_item(
    title: str = "Post",
    link: str = "https://example.com/post",
    description: str = "A short summary.",
    pub_date: str = "Mon, 01 Jan 2024 10:00:00 GMT",
    guid: str = None,
    extra: str = "",
) -> str:
    """Build a single RSS <item>."""
    guid_tag = f"<guid>{guid}</guid>" if guid else ""
    return f"""
    <item>
      <title>{title}</title>
      <link>{link}</link>
      <description>{description}</description>
      <pubDate>{pub_date}</pubDate>
      {guid_tag}
      {extra}
    </item>"""


MINIMAL_RSS = rss_document(rss_item())

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <id>urn:uuid:60a76c80-d399-11d9-b93c-0003939e0af6</id>
  <updated>2024-03-10T18:30:02Z</updated>
  <link href="https://example.org/"/>
  <entry>
    <title>First entry</title>
    <link href="https://example.org/2024/03/10/first"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <updated>2024-03-10T18:30:02Z</updated>
    <author><name>Jane Writer</name></author>
    <summary>Some text.</summary>
  </entry>
</feed>"""

ATOM_MISSING_UPDATED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <id>urn:uuid:60a76c80-d399-11d9-b93c-0003939e0af6</id>
  <entry>
    <title>First entry</title>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <updated>2024-03-10T18:30:02Z</updated>
  </entry>
</feed>"""

MEDIA_RSS = rss_document(
    rss_item(
        title="First",
        link="https://example.com/1",
        extra='<media:content url="http://x/a.jpg" medium="image" />',
    )
    + rss_item(
        title="Second",
        link="https://example.com/2",
        pub_date="Tue, 02 Jan 2024 10:00:00 GMT",
        extra='<media:content url="http://x/a.jpg" medium="image" />',
    )
)

DAILY_RSS = rss_document(
    "".join(
        rss_item(
            title=f"Day {day}",
            link=f"https://example.com/day-{day}",
            pub_date=f"{weekday}, 0{day} Jan 2024 09:00:00 GMT",
        )
        for day, weekday in [(1, "Mon"), (2, "Tue"), (3, "Wed"), (4, "Thu"), (5, "Fri")]
    )
)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def minimal_rss():
    """Smallest valid RSS 2.0 document with one item."""
    return MINIMAL_RSS


@pytest.fixture
def atom_feed():
    """Valid Atom document with one entry."""
    return ATOM_FEED


@pytest.fixture
def media_rss():
    """RSS document whose two items share one media:content image."""
    return MEDIA_RSS


@pytest.fixture
def daily_rss():
    """Five items published exactly one day apart."""
    return DAILY_RSS


@pytest.fixture
def test_settings():
    """Settings built from defaults only."""
    from feedlens.config.settings import FeedLensSettings

    return FeedLensSettings()
