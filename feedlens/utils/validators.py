"""
FeedLens Input Validators
========================

Validation for the analysis request boundary: the only input the service
accepts is an absolute feed URL.
"""

import re
from typing import Any
from urllib.parse import urlparse, urlunparse

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    # Schemes the fetcher knows how to retrieve
    ALLOWED_SCHEMES = {"http", "https"}

    # Common RSS/Atom feed patterns
    RSS_PATTERNS = [
        r"\.rss$",
        r"\.xml$",
        r"\.atom$",
        r"/rss/?$",
        r"/feed/?$",
        r"/feeds/?$",
        r"/atom/?$",
        r"/rss\.xml$",
        r"/feed\.xml$",
    ]

    @classmethod
    def validate_request_url(cls, url: Any) -> str:
        """Validate the ``url`` value of an analysis request.

        Args:
            url: Raw value taken from the request payload

        Returns:
            The URL, stripped of surrounding whitespace

        Raises:
            ValidationError: If the URL is missing, not a string, or not an
                absolute URL
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url",
                user_message="Invalid URL provided",
            )

        url = url.strip()

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                field_name="url",
                user_message="Invalid URL format",
            ) from e

        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(
                f"URL must be absolute: {url}",
                field_name="url",
                user_message="Invalid URL format",
            )

        if re.search(r"\s", parsed.netloc):
            raise ValidationError(
                f"URL hostname contains whitespace: {url}",
                field_name="url",
                user_message="Invalid URL format",
            )

        return url

    @classmethod
    def validate_feed_url(cls, url: Any) -> str:
        """Validate and normalize a URL the fetcher is about to retrieve.

        Raises:
            ValidationError: If the URL is invalid or uses an unsupported scheme
        """
        url = cls.validate_request_url(url)
        parsed = urlparse(url)

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be one of {sorted(cls.ALLOWED_SCHEMES)}: {url}",
                field_name="url",
                user_message="Only http and https feed URLs can be fetched",
            )

        return urlunparse(
            parsed._replace(
                scheme=parsed.scheme.lower(),
                netloc=parsed.netloc.lower(),
                path=parsed.path or "/",
                fragment="",
            )
        )

    @classmethod
    def is_likely_feed_url(cls, url: str) -> bool:
        """Check if URL is likely an RSS/Atom feed."""
        url_lower = url.lower()
        return any(re.search(pattern, url_lower) for pattern in cls.RSS_PATTERNS)

