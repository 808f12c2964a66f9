"""
Feed Analysis Service
=====================

Boundary between callers and the analysis engine: validates the request,
fetches the document and turns every downstream failure into a report.

Only malformed requests are rejected outright. Fetch failures, structural
problems and parse failures all come back as a normal report with
``isValid`` set to false.
"""

from typing import Any, Dict, List, Optional, Tuple

from feedlens.analysis.analyzer import FeedAnalyzer
from feedlens.analysis.models import AnalysisReport, RawDocument
from feedlens.analysis.report import ReportAssembler
from feedlens.config.settings import FeedLensSettings, get_settings
from feedlens.ingestion.fetcher import FeedFetcher
from feedlens.utils.exceptions import FeedFetchError, ValidationError
from feedlens.utils.logging import get_logger_for_component
from feedlens.utils.validators import URLValidator


class AnalysisService:
    """Fetches feeds and runs them through the analysis engine."""

    def __init__(
        self,
        settings: Optional[FeedLensSettings] = None,
        fetcher: Optional[FeedFetcher] = None,
        analyzer: Optional[FeedAnalyzer] = None,
    ):
        """Initialize analysis service.

        Args:
            settings: Application settings (global settings when omitted)
            fetcher: Feed fetcher to use
            analyzer: Analysis engine to use
        """
        self.settings = settings or get_settings()
        self.fetcher = fetcher or FeedFetcher(self.settings.fetch)
        self.analyzer = analyzer or FeedAnalyzer(self.settings.analysis)
        self.logger = get_logger_for_component("analysis_service")

    def analyze_url(self, url: Any) -> AnalysisReport:
        """Fetch and analyze the feed at ``url``.

        Raises:
            ValidationError: If ``url`` is missing or not an absolute URL
        """
        feed_url = URLValidator.validate_request_url(url)
        if not URLValidator.is_likely_feed_url(feed_url):
            self.logger.debug(f"URL does not look like a feed, analyzing anyway: {feed_url}")

        try:
            raw = self.fetcher.fetch(feed_url)
        except FeedFetchError as e:
            self.logger.warning(f"No document available for {feed_url}: {e}")
            return ReportAssembler.failure(e.user_message)

        return self.analyzer.analyze(raw)

    def analyze_document(self, text: str, source_url: str = "") -> AnalysisReport:
        """Analyze an already retrieved document."""
        return self.analyzer.analyze(RawDocument(text=text, source_url=source_url))

    async def analyze_urls(self, urls: List[str]) -> Dict[str, AnalysisReport]:
        """Fetch several feeds concurrently and analyze each one.

        Raises:
            ValidationError: If any URL is malformed; nothing is fetched then
        """
        feed_urls = [URLValidator.validate_request_url(url) for url in urls]
        documents = await self.fetcher.fetch_many(feed_urls)

        reports: Dict[str, AnalysisReport] = {}
        for feed_url in feed_urls:
            outcome = documents[feed_url]
            if isinstance(outcome, FeedFetchError):
                reports[feed_url] = ReportAssembler.failure(outcome.user_message)
            else:
                reports[feed_url] = self.analyzer.analyze(outcome)
        return reports


def handle_analyze_request(
    payload: Any, service: Optional[AnalysisService] = None
) -> Tuple[int, Dict[str, Any]]:
    """Handle an ``{"url": ...}`` analysis request.

    Returns:
        Tuple of (HTTP status, response body). Malformed requests get 400;
        every other outcome, failed analyses included, gets 200.
    """
    url = payload.get("url") if isinstance(payload, dict) else None

    try:
        URLValidator.validate_request_url(url)
    except ValidationError as e:
        return 400, {"error": e.user_message}

    service = service or AnalysisService()
    report = service.analyze_url(url)
    return 200, report.to_dict()
