"""
FeedLens Ingestion Module
=========================

Getting feed documents in and turning them into feed records.

This module handles:
- HTTP retrieval with timeouts and user-facing error messages
- Parsing RSS and Atom documents into ParsedFeed records
"""
