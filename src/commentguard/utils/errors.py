"""
Error taxonomy for the moderation engine.

Every failure the engine reports carries an ErrorKind and a human-readable
reason so the calling layer can map it to a response (see the dashboard's
error handler) without parsing messages.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Kinds of failure surfaced to callers."""
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_ARGUMENT = "invalid_argument"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    POLICY_BLOCKED = "policy_blocked"
    INTERNAL = "internal"


class ModerationError(Exception):
    """Base class for all errors raised by the engine."""

    kind: ErrorKind = ErrorKind.INTERNAL
    http_status: int = 500

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        payload: dict[str, Any] = {
            "success": False,
            "error": self.reason,
            "kind": self.kind.value,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(ModerationError):
    kind = ErrorKind.NOT_FOUND
    http_status = 404


class UnauthorizedError(ModerationError):
    kind = ErrorKind.UNAUTHORIZED
    http_status = 401


class ForbiddenError(ModerationError):
    kind = ErrorKind.FORBIDDEN
    http_status = 403


class InvalidArgumentError(ModerationError):
    kind = ErrorKind.INVALID_ARGUMENT
    http_status = 400


class ConflictError(ModerationError):
    kind = ErrorKind.CONFLICT
    http_status = 409


class RateLimitedError(ModerationError):
    """Comment quota exhausted for the current window."""

    kind = ErrorKind.RATE_LIMITED
    http_status = 429

    def __init__(self, reason: str, reset_at: datetime, retry_after: int) -> None:
        super().__init__(
            reason,
            {"reset_at": reset_at.isoformat(), "retry_after": retry_after},
        )
        self.reset_at = reset_at
        self.retry_after = retry_after


class PolicyBlockedError(ModerationError):
    """Capability check refused the action (active ban or low score)."""

    kind = ErrorKind.POLICY_BLOCKED
    http_status = 403

    def __init__(self, reason: str, ban_until: Optional[datetime] = None) -> None:
        details = {"ban_until": ban_until.isoformat()} if ban_until else None
        super().__init__(reason, details)
        self.ban_until = ban_until


class InternalError(ModerationError):
    """Storage or other non-domain failure. Never retried by the engine."""

    kind = ErrorKind.INTERNAL
    http_status = 500
