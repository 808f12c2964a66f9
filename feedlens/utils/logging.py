"""
FeedLens Logging
================

Logging for the CLI and the analysis engine. Console output goes to stderr
so ``--json`` output on stdout stays machine readable; the optional log file
is rotated and always written as JSON lines.

Engine components log through ``get_logger_for_component``, which stamps
every record with the component name (and feed URL, when known).
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "feedlens"

# Chatty HTTP libraries are capped at WARNING
NOISY_LOGGERS = ("urllib3", "requests", "aiohttp", "charset_normalizer")

# Attributes present on every record; anything else arrived through ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, context fields nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line console output, colored by level on a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def __init__(self, use_color: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        source = getattr(record, "component", record.name)
        line = (
            f"{self.formatTime(record, self.datefmt)} {record.levelname:<8} "
            f"{source}: {record.getMessage()}"
        )
        if self.use_color:
            line = f"\033[{self.LEVEL_COLORS.get(record.levelno, '0')}m{line}\033[0m"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the ``feedlens`` logger hierarchy.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Level name applied to every FeedLens logger
        log_file: Rotating JSON log file, or None for no file output
        enable_console: Log to stderr
        structured_logging: Use JSON instead of the colored console format
        max_file_size_mb: Rotate the log file after this many megabytes
        backup_count: Number of rotated files to keep

    Returns:
        The configured root FeedLens logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if enable_console:
        console = logging.StreamHandler(sys.stderr)
        if structured_logging:
            console.setFormatter(JsonFormatter())
        else:
            console.setFormatter(ConsoleFormatter(use_color=sys.stderr.isatty()))
        logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


class ComponentLogger(logging.LoggerAdapter):
    """Merges the adapter's context into each call's ``extra``."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    feed_url: Optional[str] = None,
) -> ComponentLogger:
    """Get a logger for one engine component.

    Args:
        component_name: Name of the component (e.g., 'validator', 'fetcher')
        feed_url: Feed URL being processed (optional)
    """
    context = {"component": component_name}
    if feed_url:
        context["feed_url"] = feed_url
    return ComponentLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}"), context)


class PerformanceLogger:
    """Context manager that logs how long a block took.

    Completion is logged at debug level, failure at error level. Exceptions
    are never suppressed.
    """

    def __init__(self, logger, operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.duration: Optional[float] = None
        self._started = 0.0

    def __enter__(self) -> "PerformanceLogger":
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        context = {**self.context, "duration_seconds": round(self.duration, 4)}

        if exc_type is None:
            self.logger.debug(
                f"Finished {self.operation} in {self.duration:.3f}s", extra=context
            )
        else:
            self.logger.error(
                f"{self.operation} failed after {self.duration:.3f}s: {exc_val}",
                extra=context,
            )
