"""
Structural Validation
=====================

Decides whether a raw document is a well-formed RSS 2.0 or Atom feed and
classifies its feed type.

The document is parsed once into a markup tree and checked by a declarative
list of rules. Every applicable rule runs so callers see all problems at
once; only the leading gate stops evaluation early.
"""

import re
import warnings
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning
from bs4.builder import HTMLParserTreeBuilder

from feedlens.analysis.models import RawDocument, ValidationOutcome, ValidationViolation
from feedlens.utils.logging import get_logger_for_component

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"

CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
CHANNEL_CLOSE_PATTERN = re.compile(r"</channel\s*>", re.IGNORECASE)
# Attribute names are case sensitive here: Media RSS defines fileSize
MEDIA_FILESIZE_PATTERN = re.compile(r"<media:content\b[^>]*?\sfilesize\s*=")
RSS_VERSION_PATTERN = re.compile(r"<rss\b[^>]*?\bversion\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)

logger = get_logger_for_component("validator")


class FeedFamily(str, Enum):
    """Which rule set a document is checked against."""

    ANY = "any"
    RSS = "rss"
    ATOM = "atom"
    UNRECOGNIZED = "unrecognized"


class RuleKind(str, Enum):
    """Identifies each structural rule."""

    XML_GATE = "xml_gate"
    RSS_VERSION = "rss_version"
    RSS_CHANNEL = "rss_channel"
    RSS_CHANNEL_MALFORMED = "rss_channel_malformed"
    RSS_CHANNEL_TITLE = "rss_channel_title"
    RSS_CHANNEL_LINK = "rss_channel_link"
    RSS_ITEMS = "rss_items"
    ATOM_TITLE = "atom_title"
    ATOM_ID = "atom_id"
    ATOM_UPDATED = "atom_updated"
    ATOM_ENTRIES = "atom_entries"
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    MEDIA_FILESIZE = "media_filesize"


class FeedTreeBuilder(HTMLParserTreeBuilder):
    """html.parser tree builder with no HTML void elements.

    Feed vocabularies reuse names such as <link>, <image> and <source> for
    elements that have children, so a tag is only closed by its end tag or
    by the self-closing form.
    """

    empty_element_tags = set()


def parse_markup(text: str) -> BeautifulSoup:
    """Parse feed markup into a lenient tree.

    CDATA sections are replaced by their escaped text first so their
    contents are treated as text, never as markup.
    """
    unwrapped = CDATA_PATTERN.sub(lambda m: escape(m.group(1), quote=False), text)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        return BeautifulSoup(unwrapped, builder=FeedTreeBuilder())


@dataclass
class FeedDocument:
    """A raw document together with its parsed markup tree."""

    text: str
    soup: BeautifulSoup

    @classmethod
    def from_raw(cls, raw: RawDocument) -> "FeedDocument":
        return cls(text=raw.text, soup=parse_markup(raw.text))

    @property
    def rss(self) -> Optional[Tag]:
        return self.soup.find("rss")

    @property
    def atom_feed(self) -> Optional[Tag]:
        feed = self.soup.find("feed")
        if feed is not None and ATOM_NAMESPACE in feed.attrs.values():
            return feed
        return None

    @property
    def channel_is_closed(self) -> bool:
        return bool(CHANNEL_CLOSE_PATTERN.search(self.text))

    @property
    def channel(self) -> Optional[Tag]:
        """The channel element, or None when absent or not properly closed."""
        channel = self.soup.find("channel")
        if channel is None or not self.channel_is_closed:
            return None
        return channel

    @property
    def family(self) -> FeedFamily:
        if self.rss is not None or self.soup.find("channel") is not None:
            return FeedFamily.RSS
        if self.atom_feed is not None:
            return FeedFamily.ATOM
        return FeedFamily.UNRECOGNIZED


@dataclass(frozen=True)
class StructuralRule:
    """A named check applied to documents of one feed family."""

    kind: RuleKind
    family: FeedFamily
    check: Callable[[FeedDocument], List[str]]


def _text_of(tag: Tag) -> str:
    return tag.get_text().strip()


def _check_xml_gate(doc: FeedDocument) -> List[str]:
    text = doc.text.lstrip("\ufeff").strip()
    if text.startswith("<?xml") or text.startswith("<rss") or text.startswith("<feed"):
        return []
    return ["Document is not valid XML-like content (expected an XML declaration, <rss> or <feed>)"]


def _check_rss_version(doc: FeedDocument) -> List[str]:
    rss = doc.rss
    if rss is not None and not rss.get("version"):
        return ["RSS feed is missing the version attribute on <rss>"]
    return []


def _check_rss_channel(doc: FeedDocument) -> List[str]:
    if doc.soup.find("channel") is None:
        return ["RSS feed is missing the required <channel> element"]
    return []


def _check_rss_channel_malformed(doc: FeedDocument) -> List[str]:
    if doc.soup.find("channel") is not None and not doc.channel_is_closed:
        return ["RSS <channel> element is malformed: its content could not be isolated"]
    return []


def _check_rss_channel_title(doc: FeedDocument) -> List[str]:
    channel = doc.channel
    if channel is None:
        return []
    title = channel.find("title", recursive=False)
    if title is None:
        return ["RSS channel is missing the required <title> element"]
    if not _text_of(title):
        return ["RSS channel <title> is empty"]
    return []


def _check_rss_channel_link(doc: FeedDocument) -> List[str]:
    channel = doc.channel
    if channel is None:
        return []
    if channel.find("link", recursive=False) is None:
        return ["RSS channel is missing the required <link> element"]
    return []


def _check_rss_items(doc: FeedDocument) -> List[str]:
    items = doc.soup.find_all("item")
    if not items:
        return ["RSS feed contains no <item> elements"]

    violations = []
    for number, item in enumerate(items, start=1):
        if item.find("title") is None and item.find("description") is None:
            violations.append(f"RSS item #{number} missing title/description")
    return violations


def _atom_element_rule(name: str) -> Callable[[FeedDocument], List[str]]:
    def check(doc: FeedDocument) -> List[str]:
        feed = doc.atom_feed
        if feed is not None and feed.find(name, recursive=False) is None:
            return [f"Atom feed is missing the required <{name}> element"]
        return []

    return check


def _check_atom_entries(doc: FeedDocument) -> List[str]:
    feed = doc.atom_feed
    if feed is not None and feed.find("entry") is None:
        return ["Atom feed contains no <entry> elements"]
    return []


def _check_unrecognized(doc: FeedDocument) -> List[str]:
    return ["Document is not a recognized RSS 2.0 or Atom feed"]


def _check_media_filesize(doc: FeedDocument) -> List[str]:
    count = len(MEDIA_FILESIZE_PATTERN.findall(doc.text))
    if count > 0:
        return [
            f"Found {count} <media:content> element(s) with invalid 'filesize' "
            f"attribute (Media RSS defines 'fileSize')"
        ]
    return []


GATE_RULE = StructuralRule(RuleKind.XML_GATE, FeedFamily.ANY, _check_xml_gate)

STRUCTURAL_RULES: List[StructuralRule] = [
    StructuralRule(RuleKind.RSS_VERSION, FeedFamily.RSS, _check_rss_version),
    StructuralRule(RuleKind.RSS_CHANNEL, FeedFamily.RSS, _check_rss_channel),
    StructuralRule(RuleKind.RSS_CHANNEL_MALFORMED, FeedFamily.RSS, _check_rss_channel_malformed),
    StructuralRule(RuleKind.RSS_CHANNEL_TITLE, FeedFamily.RSS, _check_rss_channel_title),
    StructuralRule(RuleKind.RSS_CHANNEL_LINK, FeedFamily.RSS, _check_rss_channel_link),
    StructuralRule(RuleKind.RSS_ITEMS, FeedFamily.RSS, _check_rss_items),
    StructuralRule(RuleKind.ATOM_TITLE, FeedFamily.ATOM, _atom_element_rule("title")),
    StructuralRule(RuleKind.ATOM_ID, FeedFamily.ATOM, _atom_element_rule("id")),
    StructuralRule(RuleKind.ATOM_UPDATED, FeedFamily.ATOM, _atom_element_rule("updated")),
    StructuralRule(RuleKind.ATOM_ENTRIES, FeedFamily.ATOM, _check_atom_entries),
    StructuralRule(RuleKind.UNRECOGNIZED_FORMAT, FeedFamily.UNRECOGNIZED, _check_unrecognized),
    StructuralRule(RuleKind.MEDIA_FILESIZE, FeedFamily.ANY, _check_media_filesize),
]


def _outcome(messages: List[str]) -> ValidationOutcome:
    return ValidationOutcome(tuple(ValidationViolation(message) for message in messages))


def evaluate_rules(doc: FeedDocument, rules: List[StructuralRule] = STRUCTURAL_RULES) -> ValidationOutcome:
    """Run the gate, then every rule whose family matches the document."""
    gate_messages = GATE_RULE.check(doc)
    if gate_messages:
        return _outcome(gate_messages)

    family = doc.family
    messages: List[str] = []
    for rule in rules:
        if rule.family in (FeedFamily.ANY, family):
            messages.extend(rule.check(doc))
    return _outcome(messages)


def validate_document(doc: FeedDocument, source_url: str = "") -> ValidationOutcome:
    """Validate an already parsed document.

    Internal failures are reported as a single violation rather than raised.
    """
    try:
        outcome = evaluate_rules(doc)
    except Exception as e:
        logger.warning(f"Structural validation failed for {source_url}: {e}")
        return _outcome([f"Validation error: {e}"])

    if not outcome.is_valid:
        logger.info(
            f"Feed {source_url or '<inline>'} failed validation with "
            f"{len(outcome.violations)} violation(s)"
        )
    return outcome


def validate_structure(raw: RawDocument) -> ValidationOutcome:
    """Validate the structure of a raw feed document.

    Args:
        raw: Document to check

    Returns:
        Outcome listing every violation found, in rule order
    """
    try:
        doc = FeedDocument.from_raw(raw)
    except Exception as e:
        logger.warning(f"Could not build markup tree for {raw.source_url}: {e}")
        return _outcome([f"Validation error: {e}"])
    return validate_document(doc, raw.source_url)


def detect_feed_type(raw: RawDocument) -> str:
    """Classify a document as RSS (with version), Atom, RDF or Unknown.

    Pure string inspection, so it also works on documents that failed
    validation.
    """
    text = raw.text

    if "<rss" in text:
        match = RSS_VERSION_PATTERN.search(text)
        if match:
            return f"RSS {match.group(1).strip()}"
        return "RSS 2.0"

    if "<feed" in text and ATOM_NAMESPACE in text:
        return "Atom"

    if "<rdf:RDF" in text:
        return "RDF"

    return "Unknown"
