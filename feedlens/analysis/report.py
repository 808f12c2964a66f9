"""
Report Assembly
===============

Combines the outputs of the individual analyzers into an AnalysisReport.
"""

from typing import List

from feedlens.analysis.images import ImageAnalysis
from feedlens.analysis.models import (
    AnalysisReport,
    ContentType,
    ParsedFeed,
    ValidationOutcome,
)
from feedlens.analysis.timing import TimingAnalysis

UNTITLED_FEED = "Untitled Feed"
PARSE_FAILURE_MESSAGE = "Failed to parse RSS feed"


class ReportAssembler:
    """Builds terminal reports for valid feeds and for every failure kind."""

    @staticmethod
    def invalid(outcome: ValidationOutcome, feed_type: str = "Unknown") -> AnalysisReport:
        """Report for a document rejected by structural validation."""
        messages = outcome.messages
        return AnalysisReport(
            is_valid=False,
            feed_type=feed_type,
            error="; ".join(messages),
            validation_errors=messages,
        )

    @staticmethod
    def failure(message: str = PARSE_FAILURE_MESSAGE, feed_type: str = "Unknown") -> AnalysisReport:
        """Report for a document that could not be fetched or parsed."""
        return AnalysisReport(
            is_valid=False,
            feed_type=feed_type,
            error=message or PARSE_FAILURE_MESSAGE,
        )

    @staticmethod
    def valid(
        feed: ParsedFeed,
        feed_type: str,
        available_fields: List[str],
        images: ImageAnalysis,
        content_type: ContentType,
        timing: TimingAnalysis,
        duplicates: List[str],
        missing_fields: List[str],
    ) -> AnalysisReport:
        """Report for a feed that passed validation and parsing."""
        return AnalysisReport(
            is_valid=True,
            feed_type=feed_type,
            title=feed.title or UNTITLED_FEED,
            available_fields=list(available_fields),
            has_featured_image=images.has_featured_image,
            content_type=content_type,
            last_update=timing.last_update,
            item_count=len(feed.items),
            post_frequency=timing.post_frequency,
            duplicate_guids=list(duplicates),
            missing_fields=list(missing_fields),
            image_sources=images.breakdown,
            sample_image_urls=list(images.sample_urls),
        )
