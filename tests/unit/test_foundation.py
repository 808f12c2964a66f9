"""
Foundation Tests for FeedLens
=============================

Test suite for core foundation components: configuration, logging,
exceptions and input validation.
"""

import json
import pytest
import logging
from pathlib import Path
from unittest.mock import MagicMock

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from bs4.builder import ParserRejectedMarkup

from feedlens.config.settings import (
    AnalysisSettings,
    FeedLensSettings,
    LogLevel,
    get_settings,
    load_settings,
)
from feedlens.utils.logging import (
    ConsoleFormatter,
    JsonFormatter,
    PerformanceLogger,
    configure_application_logging,
    get_logger_for_component,
)
from feedlens.utils.exceptions import (
    AnalysisError,
    ConfigurationError,
    ErrorCode,
    FeedFetchError,
    FeedLensError,
    FeedParseError,
    ValidationError,
    handle_exception,
)
from feedlens.utils.validators import URLValidator


class TestConfiguration:
    """Test configuration loading and validation."""

    def test_defaults(self, test_settings):
        assert test_settings.fetch.request_timeout == 20
        assert test_settings.fetch.max_redirects == 5
        assert test_settings.analysis.full_content_threshold == 500
        assert test_settings.analysis.sample_image_limit == 2
        assert test_settings.logging.level == LogLevel.INFO
        assert test_settings.logging.file_path is None

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FEEDLENS_FETCH__REQUEST_TIMEOUT", "10")
        monkeypatch.setenv("FEEDLENS_ANALYSIS__SAMPLE_IMAGE_LIMIT", "4")

        settings = FeedLensSettings()

        assert settings.fetch.request_timeout == 10
        assert settings.analysis.sample_image_limit == 4

    def test_invalid_environment_raises_configuration_error(self, monkeypatch):
        monkeypatch.setenv("FEEDLENS_FETCH__REQUEST_TIMEOUT", "0")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID

    def test_empty_date_format_rejected(self):
        with pytest.raises(ValueError):
            AnalysisSettings(date_format="  ")

    def test_effective_log_level(self):
        assert FeedLensSettings(debug=True).get_effective_log_level() == "DEBUG"
        assert FeedLensSettings(debug=False).get_effective_log_level() == "INFO"

    def test_validate_configuration_creates_log_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "feedlens.log"
        settings = FeedLensSettings(logging={"file_path": str(log_file)})

        settings.validate_configuration()

        assert log_file.parent.is_dir()

    def test_get_settings_is_singleton(self):
        first = get_settings(reload=True)
        assert get_settings() is first


class TestLogging:
    """Test logging helpers."""

    def test_component_logger(self):
        logger = get_logger_for_component("fetcher", feed_url="https://e.com/feed")

        assert logger.logger.name == "feedlens.fetcher"
        assert logger.extra == {"component": "fetcher", "feed_url": "https://e.com/feed"}

    def test_component_context_merges_with_call_extra(self):
        logger = get_logger_for_component("analyzer")

        _, kwargs = logger.process("msg", {"extra": {"duration_seconds": 0.5}})

        assert kwargs["extra"] == {"component": "analyzer", "duration_seconds": 0.5}

    def test_file_logging_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "logs" / "feedlens.log"
        logger = configure_application_logging(
            log_level="DEBUG", log_file=str(log_file), enable_console=False
        )

        try:
            get_logger_for_component("validator").info("hello")
            for handler in logger.handlers:
                handler.flush()

            record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
            assert record["message"] == "hello"
            assert record["logger"] == "feedlens.validator"
            assert record["context"] == {"component": "validator"}
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_reconfiguring_replaces_handlers(self):
        logger = configure_application_logging(enable_console=True)
        logger = configure_application_logging(enable_console=True)

        assert len(logger.handlers) == 1
        logger.removeHandler(logger.handlers[0])

    def test_json_formatter_nests_extra_fields(self):
        record = logging.makeLogRecord({"name": "feedlens.x", "msg": "msg", "component": "analyzer"})

        output = json.loads(JsonFormatter().format(record))

        assert output["message"] == "msg"
        assert output["context"] == {"component": "analyzer"}

    def test_console_formatter_without_color(self):
        record = logging.makeLogRecord(
            {"name": "feedlens.x", "msg": "fetched", "levelno": logging.INFO, "levelname": "INFO"}
        )

        line = ConsoleFormatter(use_color=False).format(record)

        assert line.endswith("INFO     feedlens.x: fetched")
        assert "\033[" not in line

    def test_performance_logger(self):
        logger = MagicMock()

        with PerformanceLogger(logger, "feed analysis", feed_url="u") as timer:
            pass

        assert logger.debug.call_count == 2
        assert timer.duration is not None
        logger.error.assert_not_called()

    def test_performance_logger_failure(self):
        logger = MagicMock()

        with pytest.raises(RuntimeError):
            with PerformanceLogger(logger, "feed analysis"):
                raise RuntimeError("boom")

        logger.error.assert_called_once()


class TestExceptions:
    """Test exception hierarchy and helpers."""

    def test_error_string_includes_code(self):
        error = FeedFetchError("timed out", feed_url="u", error_code=ErrorCode.FEED_FETCH_TIMEOUT)
        assert str(error) == "[F002] timed out"

    def test_to_dict(self):
        data = FeedParseError("bad grammar", feed_url="u").to_dict()

        assert data["error_type"] == "FeedParseError"
        assert data["error_code"] == "F003"
        assert data["user_message"] == "Failed to parse RSS feed"
        assert data["context"] == {"feed_url": "u"}
        assert data["recoverable"] is False

    def test_class_defaults_can_be_overridden(self):
        error = FeedFetchError("503", error_code=ErrorCode.FEED_HTTP_ERROR, recoverable=False)

        assert error.error_code == ErrorCode.FEED_HTTP_ERROR
        assert error.recoverable is False
        assert error.user_message == "503"
        assert FeedFetchError("x").recoverable is True

    def test_configuration_error_user_message(self):
        error = ConfigurationError("timeout must be positive", config_key="fetch.request_timeout")

        assert error.user_message == "Configuration error: timeout must be positive"
        assert error.context == {"config_key": "fetch.request_timeout"}

    def test_hierarchy(self):
        assert issubclass(FeedFetchError, FeedLensError)
        assert issubclass(FeedParseError, FeedLensError)
        assert issubclass(AnalysisError, FeedLensError)
        assert issubclass(ValidationError, FeedLensError)

    def test_handle_exception_passes_through_feedlens_errors(self):
        error = ValidationError("bad", field_name="url")
        assert handle_exception(error, MagicMock(), "test") is error

    def test_handle_exception_decode_error(self):
        cause = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        error = handle_exception(cause, MagicMock(), "feed analysis", {"feed_url": "u"})

        assert isinstance(error, AnalysisError)
        assert error.error_code == ErrorCode.ANALYSIS_DECODE_ERROR
        assert error.user_message == "Feed document could not be decoded"
        assert error.context["feed_url"] == "u"
        assert error.context["operation"] == "feed analysis"

    @pytest.mark.parametrize("cause", [ParserRejectedMarkup("rejected"), RecursionError("too deep")])
    def test_handle_exception_markup_error(self, cause):
        error = handle_exception(cause, MagicMock(), "structural validation")

        assert error.error_code == ErrorCode.ANALYSIS_MARKUP_ERROR
        assert error.user_message == "Feed markup could not be processed"

    def test_handle_exception_generic(self):
        logger = MagicMock()
        error = handle_exception(ValueError("odd"), logger, "analysis")

        assert error.error_code == ErrorCode.ANALYSIS_INTERNAL_ERROR
        assert error.user_message == "An unexpected error occurred"
        assert error.context["original_exception_type"] == "ValueError"
        logger.error.assert_called_once()


class TestURLValidator:
    """Test URL validation."""

    def test_request_url(self):
        assert URLValidator.validate_request_url(" https://e.com/feed ") == "https://e.com/feed"

    @pytest.mark.parametrize("url", ["", None, 5])
    def test_request_url_missing(self, url):
        with pytest.raises(ValidationError) as exc_info:
            URLValidator.validate_request_url(url)
        assert exc_info.value.user_message == "Invalid URL provided"

    @pytest.mark.parametrize("url", ["feed.xml", "https://", "http://exa mple.com/feed"])
    def test_request_url_format(self, url):
        with pytest.raises(ValidationError) as exc_info:
            URLValidator.validate_request_url(url)
        assert exc_info.value.user_message == "Invalid URL format"

    def test_feed_url_normalization(self):
        assert URLValidator.validate_feed_url("HTTPS://Example.COM") == "https://example.com/"
        assert URLValidator.validate_feed_url("https://e.com/feed#top") == "https://e.com/feed"

    def test_feed_url_scheme(self):
        with pytest.raises(ValidationError):
            URLValidator.validate_feed_url("file:///etc/passwd")

    def test_likely_feed_url(self):
        assert URLValidator.is_likely_feed_url("https://e.com/feed/")
        assert URLValidator.is_likely_feed_url("https://e.com/index.rss")
        assert not URLValidator.is_likely_feed_url("https://e.com/about")

