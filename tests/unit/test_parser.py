"""
Feed Parser Adapter Tests
=========================

Tests mapping feedparser output onto ParsedFeed and FeedItem records.
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from feedlens.analysis.models import Enclosure, RawDocument
from feedlens.ingestion.parser import FeedParserAdapter
from feedlens.utils.exceptions import ErrorCode, FeedParseError
from conftest import ATOM_FEED, MINIMAL_RSS, rss_document, rss_item


@pytest.fixture
def adapter():
    return FeedParserAdapter()


def _parse(adapter, text):
    return adapter.parse(RawDocument(text=text, source_url="https://example.com/feed"))


class TestRssMapping:
    """Test RSS 2.0 documents."""

    def test_feed_metadata(self, adapter):
        feed = _parse(adapter, MINIMAL_RSS)

        assert feed.title == "Example Feed"
        assert feed.link == "https://example.com/"
        assert feed.description == "An example feed"
        assert len(feed.items) == 1

    def test_item_core_fields(self, adapter):
        item = _parse(adapter, MINIMAL_RSS).items[0]

        assert item.title == "Post"
        assert item.link == "https://example.com/post"
        assert item.description == "A short summary."
        assert item.content == "A short summary."
        assert item.content_snippet == "A short summary."
        assert item.content_encoded is None
        assert item.pub_date == "Mon, 01 Jan 2024 10:00:00 GMT"
        assert item.published == datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)

    def test_items_keep_document_order(self, adapter):
        items = "".join(rss_item(title=f"Post {n}", link=f"https://e.com/{n}") for n in range(3))
        feed = _parse(adapter, rss_document(items))

        assert [item.title for item in feed.items] == ["Post 0", "Post 1", "Post 2"]

    def test_content_encoded(self, adapter):
        extra = '<content:encoded><![CDATA[<p>Full text <img src="http://x/b.png"/></p>]]></content:encoded>'
        item = _parse(adapter, rss_document(rss_item(extra=extra))).items[0]

        assert item.content_encoded is not None
        assert "<img" in item.content_encoded
        assert "http://x/b.png" in item.content_encoded
        assert item.description == "A short summary."

    def test_content_encoded_without_description(self, adapter):
        text = rss_document(
            "<item><title>T</title><link>https://example.com/1</link>"
            "<content:encoded><![CDATA[<p>Body</p>]]></content:encoded></item>"
        )
        item = _parse(adapter, text).items[0]

        assert item.content_encoded == "<p>Body</p>"
        assert item.description is None
        assert item.content is None
        assert item.content_snippet is None

    def test_description_equal_to_content_encoded_is_kept(self, adapter):
        extra = "<content:encoded><![CDATA[Same text]]></content:encoded>"
        item = _parse(adapter, rss_document(rss_item(description="Same text", extra=extra))).items[0]

        assert item.description == "Same text"
        assert item.content_encoded == "Same text"

    def test_description_markup_is_not_sanitized(self, adapter):
        description = "&lt;p&gt;Hi &lt;img src=&quot;http://x/c.gif&quot;&gt;&lt;/p&gt;"
        item = _parse(adapter, rss_document(rss_item(description=description))).items[0]

        assert "<img" in item.description
        assert "http://x/c.gif" in item.description

    def test_categories_and_guid(self, adapter):
        extra = "<category>Tech</category><category>News</category>"
        item = _parse(adapter, rss_document(rss_item(guid="post-1", extra=extra))).items[0]

        assert item.categories == ["Tech", "News"]
        assert item.guid == "post-1"

    def test_image_enclosure(self, adapter):
        extra = '<enclosure url="http://x/e.jpg" type="image/jpeg" length="100" />'
        item = _parse(adapter, rss_document(rss_item(extra=extra))).items[0]

        assert item.enclosure == Enclosure(url="http://x/e.jpg", mime_type="image/jpeg")

    def test_media_extensions(self, adapter):
        extra = (
            '<media:content url="http://x/m.jpg" medium="image" />'
            '<media:thumbnail url="http://x/t.jpg" />'
        )
        item = _parse(adapter, rss_document(rss_item(extra=extra))).items[0]

        assert item.media_content["url"] == "http://x/m.jpg"
        assert item.media_thumbnail["url"] == "http://x/t.jpg"

    def test_dc_creator_maps_to_creator(self, adapter):
        extra = "<dc:creator>Alice</dc:creator>"
        item = _parse(adapter, rss_document(rss_item(extra=extra))).items[0]

        assert item.creator == "Alice"
        assert item.author is None

    def test_rss_author_maps_to_author(self, adapter):
        extra = "<author>bob@example.com (Bob)</author>"
        item = _parse(adapter, rss_document(rss_item(extra=extra))).items[0]

        assert item.author is not None
        assert item.creator is None

    def test_missing_fields_are_none(self, adapter):
        text = rss_document("<item><title>Only a title</title></item>")
        item = _parse(adapter, text).items[0]

        assert item.link is None
        assert item.description is None
        assert item.content is None
        assert item.pub_date is None
        assert item.published is None
        assert item.enclosure is None
        assert item.categories == []


class TestAtomMapping:
    """Test Atom documents."""

    def test_entry_fields(self, adapter):
        feed = _parse(adapter, ATOM_FEED)
        item = feed.items[0]

        assert feed.title == "Atom Example"
        assert item.title == "First entry"
        assert item.link == "https://example.org/2024/03/10/first"
        assert item.guid == "urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a"
        assert item.description == "Some text."
        assert item.author == "Jane Writer"
        assert item.creator is None
        assert item.content_encoded is None
        assert item.published == datetime(2024, 3, 10, 18, 30, 2, tzinfo=timezone.utc)

    def test_atom_content_maps_to_content(self, adapter):
        text = ATOM_FEED.replace(
            "<summary>Some text.</summary>",
            '<summary>Some text.</summary><content type="html">&lt;p&gt;Body&lt;/p&gt;</content>',
        )
        item = _parse(adapter, text).items[0]

        assert item.content == "<p>Body</p>"
        assert item.content_encoded is None
        assert item.content_snippet == "Body"

    def test_atom_content_without_summary(self, adapter):
        text = ATOM_FEED.replace(
            "<summary>Some text.</summary>",
            '<content type="html">&lt;p&gt;Body&lt;/p&gt;</content>',
        )
        item = _parse(adapter, text).items[0]

        assert item.content == "<p>Body</p>"
        assert item.description is None


class TestParseFailures:
    """Test parse failure handling."""

    def test_unreadable_document_raises(self, adapter):
        with pytest.raises(FeedParseError) as exc_info:
            _parse(adapter, "this is not a feed at all <<<")

        assert exc_info.value.error_code == ErrorCode.FEED_PARSE_ERROR
        assert exc_info.value.user_message == "Failed to parse RSS feed"
        assert exc_info.value.context["feed_url"] == "https://example.com/feed"

    @patch("feedlens.ingestion.parser.feedparser.parse")
    def test_parser_exception_is_wrapped(self, mock_parse, adapter):
        mock_parse.side_effect = RuntimeError("parser exploded")

        with pytest.raises(FeedParseError) as exc_info:
            _parse(adapter, MINIMAL_RSS)

        assert "parser exploded" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
