"""
FeedLens Analysis Module
========================

The analysis engine: structural validation, feed type detection and the
per-aspect analyzers whose results are assembled into an AnalysisReport.
"""
