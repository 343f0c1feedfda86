"""Configuration loading for gallery account management.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Gallery data
    data_path: str = Field(
        default="./data/gallery.json",
        description="JSON snapshot holding the gallery accounts and packages",
    )

    # Audit configuration
    audit_backend: Literal["stdout", "sqlite"] = Field(
        default="sqlite",
        description="Audit trail backend type",
    )
    audit_sqlite_path: str = Field(
        default="./data/audit.db",
        description="SQLite database file path for audit records",
    )

    # Telemetry configuration
    telemetry_backend: Literal["logging", "http"] = Field(
        default="logging",
        description="Telemetry backend type",
    )
    telemetry_endpoint: str = Field(
        default="",
        description="Collector URL for the http telemetry backend",
    )
    telemetry_api_key: str = Field(
        default="",
        description="Bearer token for the telemetry collector",
    )
    telemetry_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for telemetry requests in seconds",
    )

    # Deletion defaults
    default_orphan_policy: Literal[
        "do_not_allow_orphans", "unlist_orphans", "keep_orphans"
    ] = Field(
        default="do_not_allow_orphans",
        description="Orphan package policy used when a command does not specify one",
    )
    commit_as_transaction: bool = Field(
        default=True,
        description="Run each deletion inside a single transaction",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose output",
    )

    @field_validator("telemetry_timeout_seconds")
    @classmethod
    def validate_telemetry_timeout(cls, v: float) -> float:
        """Ensure telemetry timeout is positive."""
        if v <= 0:
            raise ValueError("telemetry_timeout_seconds must be positive")
        return v

    @field_validator("data_path", "audit_sqlite_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure file paths are not blank."""
        if not v.strip():
            raise ValueError("path must be a non-empty string")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
