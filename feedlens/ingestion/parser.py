"""
Feed Parser Adapter
===================

Turns raw feed text into a ParsedFeed using feedparser.

Besides the core RSS/Atom fields, the adapter surfaces the extension fields
the analyzers depend on: media:content, media:thumbnail, content:encoded
and the plain description, each as its own attribute on FeedItem.
"""

import time
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser
from bs4 import BeautifulSoup

from feedlens.analysis.models import Enclosure, FeedItem, ParsedFeed, RawDocument
from feedlens.utils.exceptions import FeedParseError
from feedlens.utils.logging import get_logger_for_component


class FeedParserAdapter:
    """
    feedparser-backed implementation of the parsing capability.

    HTML sanitizing and relative URI resolution are disabled so markup such
    as <img> and og:image meta tags reaches the image analyzer unchanged.
    """

    def __init__(self):
        self.logger = get_logger_for_component("parser")

    def parse(self, raw: RawDocument) -> ParsedFeed:
        """Parse a raw document.

        Args:
            raw: Document text and its source URL

        Returns:
            ParsedFeed with items in document order

        Raises:
            FeedParseError: If the text cannot be read as a feed
        """
        try:
            parsed = feedparser.parse(
                raw.text,
                sanitize_html=False,
                resolve_relative_uris=False,
            )
        except Exception as e:
            raise FeedParseError(
                f"Parser raised while reading {raw.source_url}: {e}",
                feed_url=raw.source_url,
            ) from e

        if parsed.bozo:
            if not parsed.entries and not parsed.feed:
                raise FeedParseError(
                    f"Unparsable feed document: {parsed.get('bozo_exception')}",
                    feed_url=raw.source_url,
                )
            # Many real feeds carry minor XML problems; keep what was parsed
            self.logger.warning(
                f"Feed parsing warning for {raw.source_url}: {parsed.get('bozo_exception')}"
            )

        is_atom = str(parsed.get("version", "")).startswith("atom")

        try:
            feed = ParsedFeed(
                title=_clean(parsed.feed.get("title")),
                link=_clean(parsed.feed.get("link")),
                description=_clean(
                    parsed.feed.get("subtitle") or parsed.feed.get("description")
                ),
                categories=_terms(parsed.feed.get("tags")),
                items=[self._extract_item(entry, is_atom) for entry in parsed.entries],
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise FeedParseError(
                f"Unexpected feed structure in {raw.source_url}: {e}",
                feed_url=raw.source_url,
            ) from e

        self.logger.debug(f"Parsed {len(feed.items)} items from {raw.source_url}")
        return feed

    def _extract_item(self, entry: Any, is_atom: bool) -> FeedItem:
        """Map a feedparser entry onto a FeedItem."""
        description = _description(entry)

        body = None
        if entry.get("content"):
            body = _clean(entry.content[0].get("value"))

        if is_atom:
            content, content_encoded = body, None
        else:
            # RSS readers expose the description as content; the full body
            # lives in the content:encoded extension
            content, content_encoded = description, body

        pub_date = entry.get("published") or entry.get("updated")
        published = _to_datetime(
            entry.get("published_parsed") or entry.get("updated_parsed")
        )

        author, creator = _split_author(entry, is_atom)

        return FeedItem(
            title=_clean(entry.get("title")),
            link=_clean(entry.get("link")),
            content=content,
            content_snippet=_snippet(content),
            description=description,
            categories=_terms(entry.get("tags")),
            pub_date=_clean(pub_date),
            published=published,
            creator=creator,
            author=author,
            guid=_clean(entry.get("id")),
            enclosure=_first_enclosure(entry),
            media_content=_first(entry.get("media_content")),
            media_thumbnail=_first(entry.get("media_thumbnail")),
            content_encoded=content_encoded,
            image=entry.get("image") or None,
        )


def _clean(value: Any) -> Optional[str]:
    """Strip a string value, mapping empty strings to None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _description(entry: Any) -> Optional[str]:
    """The item's own description/summary element, if it has one.

    When an item has no description, feedparser fills ``summary`` with a
    copy of the content:encoded (or Atom content) body without setting
    ``summary_detail``. That copy is not a description.
    """
    summary = entry.get("summary")
    if summary is None:
        return None

    bodies = [content.get("value") for content in entry.get("content") or []]
    if "summary_detail" not in entry and summary in bodies:
        return None
    return _clean(summary)


def _terms(tags: Any) -> List[str]:
    terms = []
    for tag in tags or []:
        term = tag.get("term") if isinstance(tag, dict) else tag
        if term and str(term).strip():
            terms.append(str(term).strip())
    return terms


def _first(values: Any) -> Any:
    if isinstance(values, list):
        return values[0] if values else None
    return values or None


def _first_enclosure(entry: Any) -> Optional[Enclosure]:
    for enclosure in entry.get("enclosures") or []:
        url = enclosure.get("href") or enclosure.get("url")
        if url:
            return Enclosure(url=url, mime_type=enclosure.get("type", "") or "")
    return None


def _to_datetime(parsed_time: Optional[time.struct_time]) -> Optional[datetime]:
    if not parsed_time:
        return None
    try:
        return datetime(*parsed_time[:6], tzinfo=timezone.utc)
    except (ValueError, TypeError):
        return None


def _split_author(entry: Any, is_atom: bool):
    """Separate RSS <author> (an email address) from dc:creator (a name).

    feedparser reports both as ``author``; the RSS <author> element is
    defined as an email address, so its detail carries an email.
    """
    name = _clean(entry.get("author"))
    if name is None or is_atom:
        return name, None

    detail = entry.get("author_detail") or {}
    if detail.get("email"):
        return name, None
    return None, name


def _snippet(html: Optional[str]) -> Optional[str]:
    if not html:
        return None
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ", strip=True)
    return text or None
