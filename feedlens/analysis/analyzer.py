"""
Feed Analyzer
=============

The analysis engine: validates a raw feed document, parses it, runs every
analyzer and assembles the report.

Each call is independent and keeps no state, so a single analyzer can serve
concurrent callers.
"""

from typing import Optional

from feedlens.analysis.content import classify_content
from feedlens.analysis.duplicates import find_duplicates
from feedlens.analysis.fields import discover_fields, find_missing_fields
from feedlens.analysis.images import analyze_images
from feedlens.analysis.models import AnalysisReport, RawDocument
from feedlens.analysis.report import ReportAssembler
from feedlens.analysis.structure import FeedDocument, detect_feed_type, validate_document
from feedlens.analysis.timing import analyze_timing
from feedlens.config.settings import AnalysisSettings
from feedlens.ingestion.parser import FeedParserAdapter
from feedlens.utils.exceptions import FeedParseError, handle_exception
from feedlens.utils.logging import PerformanceLogger, get_logger_for_component


class FeedAnalyzer:
    """Runs the full validation and analysis pipeline over one document."""

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        parser: Optional[FeedParserAdapter] = None,
    ):
        """Initialize the analyzer.

        Args:
            settings: Analysis heuristics (defaults when omitted)
            parser: Parsing capability (feedparser-backed when omitted)
        """
        self.settings = settings or AnalysisSettings()
        self.parser = parser or FeedParserAdapter()
        self.logger = get_logger_for_component("analyzer")

    def analyze(self, raw: RawDocument) -> AnalysisReport:
        """Analyze a raw feed document.

        Never raises: structural problems, parse failures and unexpected
        errors all come back as an invalid report.
        """
        with PerformanceLogger(self.logger, "feed analysis", feed_url=raw.source_url):
            try:
                return self._analyze(raw)
            except Exception as e:
                error = handle_exception(
                    e, self.logger, "feed analysis", {"feed_url": raw.source_url}
                )
                return ReportAssembler.failure(
                    error.user_message, feed_type=detect_feed_type(raw)
                )

    def _analyze(self, raw: RawDocument) -> AnalysisReport:
        feed_type = detect_feed_type(raw)

        document = FeedDocument.from_raw(raw)
        outcome = validate_document(document, raw.source_url)
        if not outcome.is_valid:
            return ReportAssembler.invalid(outcome, feed_type)

        try:
            feed = self.parser.parse(raw)
        except FeedParseError as e:
            # Passed the lenient structural rules but not the parser's grammar
            self.logger.warning(
                f"Feed {raw.source_url} validated but could not be parsed: {e}",
                extra=e.to_dict(),
            )
            return ReportAssembler.failure(e.user_message, feed_type)

        report = ReportAssembler.valid(
            feed=feed,
            feed_type=feed_type,
            available_fields=discover_fields(feed),
            images=analyze_images(
                raw,
                feed,
                sample_limit=self.settings.sample_image_limit,
                markup=document.soup,
            ),
            content_type=classify_content(
                feed, threshold=self.settings.full_content_threshold
            ),
            timing=analyze_timing(feed, date_format=self.settings.date_format),
            duplicates=find_duplicates(feed),
            missing_fields=find_missing_fields(feed),
        )

        self.logger.info(
            f"Analyzed {raw.source_url or '<inline>'}: {feed_type}, "
            f"{report.item_count} items, content={report.content_type.value}"
        )
        return report


def analyze_document(text: str, source_url: str = "") -> AnalysisReport:
    """Quick function to analyze a document with default settings."""
    return FeedAnalyzer().analyze(RawDocument(text=text, source_url=source_url))
