"""
Configuration management for CommentGuard.

Loads configuration from environment variables and .env files,
validates required fields, and provides type-safe access.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration for the moderation engine and dashboard.

    All configuration values are loaded from environment variables
    or a .env file. Required fields will raise ValueError if missing.

    Attributes:
        secret_key: Session signing key shared with the auth service
        database_path: Path to the SQLite database file
        log_level: Logging level (default: INFO)
        log_file: Optional log file path
        dashboard_host: Interface the dashboard binds to
        dashboard_port: Port the dashboard listens on
        enable_link_filter: Reject comments containing links
        enable_spam_filter: Reject comments classified as spam
        enable_ad_filter: Reject comments classified as advertisements
    """

    # Required fields
    secret_key: str

    # Optional fields with defaults
    database_path: str = "data/commentguard.db"
    log_level: str = "INFO"
    log_file: str | None = None
    dashboard_host: str = "0.0.0.0"
    dashboard_port: int = 5000
    enable_link_filter: bool = True
    enable_spam_filter: bool = True
    enable_ad_filter: bool = True

    # Computed/derived fields
    _secrets: list[str] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        """Initialize secrets list for log filtering."""
        # Use object.__setattr__ because dataclass is frozen
        object.__setattr__(self, "_secrets", [s for s in (self.secret_key,) if s])

    @property
    def secrets(self) -> list[str]:
        """Get list of secret values that should be filtered from logs."""
        return self._secrets


def parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean from environment variable string."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int(value: str | None, default: int) -> int:
    """Parse an integer from environment variable string."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_config(env_file: str | Path | None = None) -> Config:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory and parent directories.

    Returns:
        Config: Validated configuration object

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    errors: list[str] = []

    secret_key = os.getenv("SECRET_KEY", "")
    if not secret_key or secret_key == "change_me":
        errors.append("SECRET_KEY is required")

    database_path = os.getenv("DATABASE_PATH", "data/commentguard.db").strip()
    if not database_path:
        errors.append("DATABASE_PATH must not be empty")

    dashboard_port = _parse_int(os.getenv("DASHBOARD_PORT"), 5000)
    if not 0 < dashboard_port < 65536:
        errors.append("DASHBOARD_PORT must be between 1 and 65535")

    if errors:
        error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file = os.getenv("LOG_FILE") or None
    dashboard_host = os.getenv("DASHBOARD_HOST", "0.0.0.0")

    # Content filters
    enable_link_filter = parse_bool(os.getenv("ENABLE_LINK_FILTER"), True)
    enable_spam_filter = parse_bool(os.getenv("ENABLE_SPAM_FILTER"), True)
    enable_ad_filter = parse_bool(os.getenv("ENABLE_AD_FILTER"), True)

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if log_level not in valid_levels:
        log_level = "INFO"

    return Config(
        secret_key=secret_key,
        database_path=database_path,
        log_level=log_level,
        log_file=log_file,
        dashboard_host=dashboard_host,
        dashboard_port=dashboard_port,
        enable_link_filter=enable_link_filter,
        enable_spam_filter=enable_spam_filter,
        enable_ad_filter=enable_ad_filter,
    )
