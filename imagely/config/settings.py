"""
Application Settings
===================

Rendering, engine and batch settings using Pydantic Settings.
Values can be overridden with IMAGELY_* environment variables or a .env file.
"""

from typing import Optional
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="imagely", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )

    # Rendering Configuration
    default_width: int = Field(
        default=800, gt=0, description="Viewport width used when only a height is given"
    )
    default_height: int = Field(
        default=600, gt=0, description="Viewport height used when only a width is given"
    )
    full_page: bool = Field(default=True, description="Capture the full scrollable page")
    jpeg_quality: Optional[int] = Field(
        default=None, ge=0, le=100, description="JPEG quality (engine default when unset)"
    )

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: Optional[int] = Field(
        default=None, description="Playwright timeout in milliseconds; unset disables timeouts"
    )

    # Asset Configuration
    remote_assets: str = Field(
        default="fetch", description="Remote asset handling: fetch or skip"
    )
    fetch_timeout: Optional[float] = Field(
        default=None, description="Asset fetch timeout in seconds; unset disables timeouts"
    )

    # Batch Configuration
    batch_log_filename: str = Field(
        default="imagely-log.json", description="Default batch log filename"
    )
    batch_filename_key: str = Field(
        default="filename", description="Record key holding the output filename"
    )

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("remote_assets")
    @classmethod
    def validate_remote_assets(cls, v: str) -> str:
        """Validate remote asset mode."""
        allowed = {"fetch", "skip"}
        if v.lower() not in allowed:
            raise ValueError(f"Remote asset mode must be one of: {allowed}")
        return v.lower()

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="IMAGELY_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and reapply the logging configuration."""
    global settings
    settings = Settings()

    # deferred: the logging module reads settings at import
    from imagely.config.logging import setup_logging

    setup_logging()
    return settings
