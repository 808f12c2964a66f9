"""
Analysis Data Models
====================

Records passed between the stages of the analysis engine, from the raw
document through to the final report.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Hashable, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T", bound=Hashable)


class ContentType(str, Enum):
    """Whether feed items carry full articles or excerpts."""

    FULL = "full"
    EXCERPT = "excerpt"
    UNKNOWN = "unknown"


class OrderedSet(Generic[T]):
    """Insertion-ordered set with an optional capacity.

    Adding an item that is already present, or adding once the set is full,
    is a no-op.
    """

    def __init__(self, items: Iterable[T] = (), limit: Optional[int] = None):
        self._items: Dict[T, None] = {}
        self.limit = limit
        for item in items:
            self.add(item)

    def add(self, item: T) -> bool:
        """Add an item, returning True if it was inserted."""
        if item in self._items or self.is_full():
            return False
        self._items[item] = None
        return True

    def is_full(self) -> bool:
        return self.limit is not None and len(self._items) >= self.limit

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> List[T]:
        return list(self._items)


@dataclass(frozen=True)
class RawDocument:
    """A fetched feed document and the URL it came from."""

    text: str
    source_url: str = ""


@dataclass(frozen=True)
class ValidationViolation:
    """A single structural rule failure."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of structural validation; valid exactly when there are no violations."""

    violations: tuple = ()

    @property
    def is_valid(self) -> bool:
        return len(self.violations) == 0

    @property
    def messages(self) -> List[str]:
        return [violation.message for violation in self.violations]


@dataclass
class Enclosure:
    """An attached media resource declared by an item."""

    url: str
    mime_type: str = ""


@dataclass
class FeedItem:
    """A single feed entry. Every field is optional; absence is meaningful."""

    title: Optional[str] = None
    link: Optional[str] = None
    content: Optional[str] = None
    content_snippet: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    pub_date: Optional[str] = None
    published: Optional[datetime] = None
    creator: Optional[str] = None
    author: Optional[str] = None
    guid: Optional[str] = None
    enclosure: Optional[Enclosure] = None
    media_content: Optional[Any] = None
    media_thumbnail: Optional[Any] = None
    content_encoded: Optional[str] = None
    image: Optional[Any] = None

    def best_content(self) -> str:
        """Richest available body: content:encoded, then content, then description."""
        return self.content_encoded or self.content or self.description or ""


@dataclass
class ParsedFeed:
    """Feed-level metadata plus items in document order."""

    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    items: List[FeedItem] = field(default_factory=list)

    @property
    def first_item(self) -> Optional[FeedItem]:
        return self.items[0] if self.items else None


@dataclass
class ImageSourceBreakdown:
    """Per-source counts of items carrying an image signal."""

    media_content: int = 0
    media_thumbnail: int = 0
    enclosure: int = 0
    img_tag: int = 0
    open_graph: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "mediaContent": self.media_content,
            "mediaThumbnail": self.media_thumbnail,
            "enclosure": self.enclosure,
            "imgTag": self.img_tag,
            "openGraph": self.open_graph,
        }


@dataclass
class AnalysisReport:
    """Terminal record of a feed analysis."""

    is_valid: bool
    feed_type: str = "Unknown"
    title: Optional[str] = None
    available_fields: List[str] = field(default_factory=list)
    has_featured_image: bool = False
    content_type: ContentType = ContentType.UNKNOWN
    last_update: Optional[str] = None
    item_count: int = 0
    post_frequency: Optional[str] = None
    duplicate_guids: List[str] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)
    image_sources: ImageSourceBreakdown = field(default_factory=ImageSourceBreakdown)
    sample_image_urls: List[str] = field(default_factory=list)
    error: Optional[str] = None
    validation_errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the response shape, omitting empty optional keys."""
        data: Dict[str, Any] = {"isValid": self.is_valid}

        if self.is_valid:
            data["title"] = self.title or "Untitled Feed"

        data.update(
            {
                "availableFields": list(self.available_fields),
                "hasFeaturedImage": self.has_featured_image,
                "contentType": self.content_type.value,
                "lastUpdate": self.last_update,
                "itemCount": self.item_count,
                "feedType": self.feed_type,
                "postFrequency": self.post_frequency,
            }
        )

        if self.duplicate_guids:
            data["duplicateGuids"] = list(self.duplicate_guids)
        if self.missing_fields:
            data["missingFields"] = list(self.missing_fields)

        data["imageSources"] = self.image_sources.to_dict()

        if self.sample_image_urls:
            data["imageResolutions"] = [{"url": url} for url in self.sample_image_urls]

        if not self.is_valid:
            data["error"] = self.error or "Failed to parse RSS feed"
            if self.validation_errors is not None:
                data["validationErrors"] = list(self.validation_errors)

        return data
