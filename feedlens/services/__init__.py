"""
FeedLens Services
=================

Service layer shared by the CLI and any request handler built on top of it.
"""

from .analysis_service import AnalysisService, handle_analyze_request

__all__ = [
    'AnalysisService',
    'handle_analyze_request',
]
