"""
FeedLens Configuration System
============================

Simple configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FetchSettings(BaseModel):
    """Feed retrieval configuration."""
    request_timeout: int = Field(default=20, ge=1, le=300, description="Request timeout in seconds")
    max_redirects: int = Field(default=5, ge=0, le=20, description="Maximum redirects followed per request")
    max_concurrent: int = Field(default=5, ge=1, le=50, description="Concurrent feed fetches in batch mode")
    user_agent: str = Field(default="FeedLens/1.0 (+https://github.com/feedlens/feedlens)", description="User-Agent header sent with requests")


class AnalysisSettings(BaseModel):
    """Heuristics used by the analysis engine."""
    full_content_threshold: int = Field(
        default=500,
        ge=1,
        description="Stripped text longer than this many characters counts as a full article"
    )
    sample_image_limit: int = Field(
        default=2,
        ge=0,
        le=20,
        description="Maximum number of sample image URLs in a report"
    )
    date_format: str = Field(
        default="%B %d, %Y at %H:%M:%S %Z",
        description="strftime format for the last update timestamp (rendered in UTC)"
    )

    @field_validator('date_format')
    @classmethod
    def validate_date_format(cls, v):
        """Ensure the format string is not empty."""
        if not v or not v.strip():
            raise ValueError("date_format cannot be empty")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class FeedLensSettings(BaseSettings):
    """Main application settings."""

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Application metadata
    app_name: str = Field(default="FeedLens", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "FEEDLENS_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        try:
            datetime(2000, 1, 1, tzinfo=timezone.utc).strftime(self.analysis.date_format)
        except ValueError as e:
            errors.append(f"Invalid date format: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> FeedLensSettings:
    """Load settings from environment variables and defaults.

    Environment variables override Pydantic Field defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        # Pydantic resolves, in order of precedence:
        # 1. Environment variables
        # 2. .env file values
        # 3. Field defaults
        settings = FeedLensSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[FeedLensSettings] = None


def get_settings(reload: bool = False) -> FeedLensSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
