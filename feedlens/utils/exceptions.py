"""
FeedLens Exceptions
===================

Errors that cross a component boundary: bad requests, fetch failures,
unparsable documents and configuration problems. Each carries an error code,
a technical message for the logs and a short message that is safe to show
in a report.

Structural problems are never raised. They are collected by the validator
and returned inside the analysis report.
"""

from enum import Enum
from typing import Any, Dict, Optional

from bs4.builder import ParserRejectedMarkup


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration (C0xx)
    CONFIG_INVALID = "C001"

    # Fetching and parsing (F0xx)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_ACCESS_DENIED = "F005"
    FEED_NOT_FOUND = "F006"
    FEED_HTTP_ERROR = "F007"
    FEED_UNREACHABLE = "F008"

    # Request validation (V0xx)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # Analysis engine internals (A0xx)
    ANALYSIS_DECODE_ERROR = "A001"
    ANALYSIS_MARKUP_ERROR = "A002"
    ANALYSIS_INTERNAL_ERROR = "A003"


class FeedLensError(Exception):
    """Base exception for all FeedLens errors.

    Subclasses set ``code``, ``default_user_message`` and
    ``default_recoverable``; any of them can be overridden per instance.
    """

    code: Optional[ErrorCode] = None
    default_user_message: Optional[str] = None
    default_recoverable = False

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.error_code = error_code or self.code
        self.context = dict(context or {})
        self.user_message = user_message or self.default_user_message or message
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Flat representation for structured log records."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.error_code.value}] {message}" if self.error_code else message


class ConfigurationError(FeedLensError):
    """Settings could not be loaded or failed validation."""

    code = ErrorCode.CONFIG_INVALID

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        kwargs.setdefault("user_message", f"Configuration error: {message}")
        super().__init__(message, **kwargs)
        if config_key:
            self.context["config_key"] = config_key


class FeedError(FeedLensError):
    """Something went wrong with a specific feed."""

    code = ErrorCode.FEED_NETWORK_ERROR
    default_recoverable = True

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if feed_url:
            self.context["feed_url"] = feed_url


class FeedFetchError(FeedError):
    """Feed fetching errors (timeouts, unreachable hosts, HTTP failures)."""


class FeedParseError(FeedError):
    """The document passed structural validation but the parser rejected it."""

    code = ErrorCode.FEED_PARSE_ERROR
    default_user_message = "Failed to parse RSS feed"
    default_recoverable = False


class AnalysisError(FeedError):
    """An analyzer failed on a document it had already accepted."""

    code = ErrorCode.ANALYSIS_INTERNAL_ERROR
    default_user_message = "An unexpected error occurred"
    default_recoverable = False


class ValidationError(FeedLensError):
    """The request itself is malformed."""

    code = ErrorCode.VALIDATION_INVALID_FORMAT

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if field_name:
            self.context["field_name"] = field_name


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> FeedLensError:
    """Translate an exception raised inside the engine into a FeedLensError.

    FeedLens errors pass through unchanged. Decoding and markup failures get
    their own codes so they are distinguishable in logs; anything else is an
    internal analysis error. The result is logged at error level.

    Args:
        exception: Exception that was caught
        logger: Logger (or adapter) to report it on
        operation: Name of the operation that failed
        context: Extra context, typically the feed URL

    Returns:
        The FeedLens error to report
    """
    if isinstance(exception, FeedLensError):
        error = exception
    else:
        context = {
            **(context or {}),
            "operation": operation,
            "original_exception_type": type(exception).__name__,
        }
        feed_url = context.pop("feed_url", None)

        if isinstance(exception, UnicodeError):
            error = AnalysisError(
                f"Could not decode document during {operation}: {exception}",
                feed_url=feed_url,
                error_code=ErrorCode.ANALYSIS_DECODE_ERROR,
                context=context,
                user_message="Feed document could not be decoded",
            )
        elif isinstance(exception, (ParserRejectedMarkup, RecursionError)):
            # html.parser gives up on some markup, and deeply nested
            # documents exhaust the recursion limit while building the tree
            error = AnalysisError(
                f"Markup could not be processed during {operation}: {exception}",
                feed_url=feed_url,
                error_code=ErrorCode.ANALYSIS_MARKUP_ERROR,
                context=context,
                user_message="Feed markup could not be processed",
            )
        else:
            error = AnalysisError(
                f"Unexpected error during {operation}: {exception}",
                feed_url=feed_url,
                context=context,
            )

    logger.error(f"Operation '{operation}' failed: {error}", extra=error.to_dict())
    return error
