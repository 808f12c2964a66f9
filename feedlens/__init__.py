"""
FeedLens - Feed Quality Analysis
================================

Validates RSS 2.0 and Atom feeds and reports on how well they are built.

Main Components:
- Validation: declarative structural rules over a lenient markup tree
- Parsing: feedparser-backed adapter producing plain feed records
- Analysis: fields, images, content depth, timing and duplicate detection
- Service: request validation, fetching and the JSON report boundary
"""

__version__ = "1.0.0"
__author__ = "FeedLens Development Team"
__description__ = "RSS and Atom feed validation and quality analysis"

# Core imports for easy access
from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FeedLensError
from .analysis.analyzer import FeedAnalyzer, analyze_document

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "FeedLensError",
    "FeedAnalyzer",
    "analyze_document",
]
