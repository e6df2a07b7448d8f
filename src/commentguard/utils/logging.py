"""
Logging for the moderation engine, CLI and dashboard.

Provides:
- A SecretFilter that redacts the session key and secret settings
- Console (colored) and optional file output under one namespace
- Per-request access logging for the dashboard API
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flask import Flask, Response, request, session

if TYPE_CHECKING:
    from commentguard.config import Config

ROOT_LOGGER = "commentguard"
REQUEST_LOGGER = f"{ROOT_LOGGER}.requests"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
REDACTED = "[REDACTED]"

# Secrets shorter than this would redact ordinary words
MIN_SECRET_LENGTH = 4

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[41m",
}
RESET = "\033[0m"


class SecretFilter(logging.Filter):
    """
    Redacts registered secrets from log records.

    Secrets come from the Config (the session key) at startup and from
    settings saved with is_secret at runtime.
    """

    def __init__(self, secrets: list[str] | None = None) -> None:
        super().__init__()
        self._secrets: list[str] = []
        self._pattern: re.Pattern[str] | None = None
        if secrets:
            self.set_secrets(secrets)

    @property
    def secrets(self) -> list[str]:
        return list(self._secrets)

    def set_secrets(self, secrets: list[str]) -> None:
        """Replace the redacted set."""
        self._secrets = [s for s in secrets if s and len(s) >= MIN_SECRET_LENGTH]
        if not self._secrets:
            self._pattern = None
            return
        # Longest first so a secret containing another is redacted whole
        ordered = sorted(self._secrets, key=len, reverse=True)
        self._pattern = re.compile("|".join(re.escape(s) for s in ordered), re.IGNORECASE)

    def redact(self, value: str) -> str:
        if self._pattern is None:
            return value
        return self._pattern.sub(REDACTED, value)

    def _redact_arg(self, value: Any) -> Any:
        return self.redact(value) if isinstance(value, str) else value

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact in place; records are never dropped."""
        if self._pattern is None:
            return True

        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: self._redact_arg(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._redact_arg(arg) for arg in record.args)
        return True


class ColoredFormatter(logging.Formatter):
    """Colors whole lines by level when writing to a terminal."""

    def __init__(self, fmt: str | None = None, use_colors: bool = True) -> None:
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{message}{RESET}" if color else message


_secret_filter: SecretFilter | None = None


def _attach(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    if _secret_filter is not None:
        handler.addFilter(_secret_filter)
    logger.addHandler(handler)


def setup_logging(config: Config) -> None:
    """
    Configure the commentguard logger tree.

    Console output always goes to stderr; a file handler is added when
    config.log_file is set. Werkzeug's own request lines are limited to
    warnings because the dashboard logs its API requests itself.

    Args:
        config: Loaded configuration (log level, log file, secrets)
    """
    global _secret_filter

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.handlers.clear()

    _secret_filter = SecretFilter(config.secrets)

    _attach(logger, logging.StreamHandler(sys.stderr), ColoredFormatter(LOG_FORMAT))

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _attach(
            logger,
            logging.FileHandler(log_path, encoding="utf-8"),
            logging.Formatter(LOG_FORMAT),
        )

    werkzeug_logger = logging.getLogger("werkzeug")
    werkzeug_logger.setLevel(logging.WARNING)
    for handler in logger.handlers:
        werkzeug_logger.addHandler(handler)

    logger.debug("Logging initialized with level %s", config.log_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the commentguard namespace.

    Args:
        name: Module name (usually __name__)
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def add_secret(secret: str) -> None:
    """
    Start redacting a value saved as a secret setting.

    Does nothing before setup_logging has run.
    """
    if _secret_filter and secret:
        secrets = _secret_filter.secrets
        if secret not in secrets:
            secrets.append(secret)
            _secret_filter.set_secrets(secrets)


# ==================== Dashboard Requests ====================

def _request_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def log_api_response(response: Response) -> Response:
    """
    Log one line per API request: method, path, status, actor and,
    for failures, the error kind and reason from the JSON body.
    """
    if not request.path.startswith("/api/"):
        return response

    actor = session.get("user_id") or "-"
    status = response.status_code
    level = _request_level(status)
    logger = logging.getLogger(REQUEST_LOGGER)

    if status >= 400 and response.is_json:
        body = response.get_json(silent=True) or {}
        logger.log(
            level, "%s %s -> %d actor=%s kind=%s: %s",
            request.method, request.path, status, actor,
            body.get("kind", "-"), body.get("error", ""),
        )
    else:
        logger.log(level, "%s %s -> %d actor=%s", request.method, request.path, status, actor)
    return response


def install_request_logging(app: Flask) -> None:
    """Register the API access log on a Flask app."""
    app.after_request(log_api_response)
