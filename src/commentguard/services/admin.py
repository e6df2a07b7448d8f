"""
Administrator operations around the moderation engine.

Provides:
- Bad word list management
- Settings listing and batch saving
- Manual score adjustment and bans
- Score history and the moderation comment listing
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from commentguard.services.comments import (
    CommentStatus,
    iso_timestamp,
    serialize_comment,
)
from commentguard.utils.bad_words import Severity
from commentguard.utils.database import DatabaseManager, get_database, utcnow
from commentguard.utils.errors import ConflictError, InvalidArgumentError, NotFoundError
from commentguard.utils.logging import get_logger
from commentguard.utils.permissions import Actor, require_admin
from commentguard.utils.settings import SettingsStore
from commentguard.utils.trust import BanType, TrustLedger

logger = get_logger(__name__)


def _serialize_bad_word(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "word": row["word"],
        "severity": row["severity"],
        "is_active": bool(row["is_active"]),
        "created_at": iso_timestamp(row["created_at"]),
    }


def serialize_user(row: dict[str, Any]) -> dict[str, Any]:
    """Render a user's trust state."""
    return {
        "user_id": row["user_id"],
        "username": row["username"],
        "role": row["role"],
        "score": row["score"],
        "is_comment_banned": bool(row["is_comment_banned"]),
        "comment_ban_until": iso_timestamp(row["comment_ban_until"]),
        "is_place_add_banned": bool(row["is_place_add_banned"]),
        "place_add_ban_until": iso_timestamp(row["place_add_ban_until"]),
    }


class AdminService:
    """Administrator-only operations. Every method requires an ADMIN actor."""

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        settings: Optional[SettingsStore] = None,
        ledger: Optional[TrustLedger] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db or get_database()
        self.clock = clock
        self.settings = settings or SettingsStore(self.db, clock)
        self.ledger = ledger or TrustLedger(self.db, self.settings, clock)

    # ==================== Bad Words ====================

    def list_bad_words(
        self,
        actor: Optional[Actor],
        is_active: Optional[bool] = None,
    ) -> list[dict[str, Any]]:
        """List bad words ordered by severity then word."""
        require_admin(actor)
        return [_serialize_bad_word(row) for row in self.db.get_bad_words(is_active)]

    def add_bad_word(
        self,
        actor: Optional[Actor],
        word: Optional[str],
        severity: Severity | str = Severity.MODERATE,
        is_active: bool = True,
    ) -> dict[str, Any]:
        """
        Add a bad word (stored trimmed and lowercase).

        Raises:
            InvalidArgumentError: Empty word or unknown severity
            ConflictError: If the word already exists
        """
        actor = require_admin(actor)
        if word is not None and not isinstance(word, str):
            raise InvalidArgumentError("word must be text")
        word = (word or "").strip().lower()
        if not word:
            raise InvalidArgumentError("word is required")
        severity = self._parse_severity(severity)

        word_id = self.db.add_bad_word(word, severity.value, is_active, self.clock())
        if not word_id:
            raise ConflictError(f"'{word}' is already in the list")

        logger.info("Bad word #%d added by %s", word_id, actor.user_id)
        return _serialize_bad_word(self.db.get_bad_word_by_id(word_id))

    def update_bad_word(
        self,
        actor: Optional[Actor],
        word_id: int,
        word: Optional[str] = None,
        severity: Severity | str | None = None,
        is_active: Optional[bool] = None,
    ) -> dict[str, Any]:
        """Update a bad word's text, severity or active flag."""
        require_admin(actor)
        if self.db.get_bad_word_by_id(word_id) is None:
            raise NotFoundError(f"bad word {word_id} not found")

        if word is not None:
            if not isinstance(word, str):
                raise InvalidArgumentError("word must be text")
            word = word.strip().lower()
            if not word:
                raise InvalidArgumentError("word must not be empty")
            existing = self.db.get_bad_word_by_word(word)
            if existing is not None and existing["id"] != word_id:
                raise ConflictError(f"'{word}' is already in the list")
        severity_value = self._parse_severity(severity).value if severity is not None else None

        self.db.update_bad_word_by_id(
            word_id, word=word, severity=severity_value, is_active=is_active
        )
        return _serialize_bad_word(self.db.get_bad_word_by_id(word_id))

    def delete_bad_word(self, actor: Optional[Actor], word_id: int) -> None:
        """Delete a bad word."""
        actor = require_admin(actor)
        if not self.db.remove_bad_word_by_id(word_id):
            raise NotFoundError(f"bad word {word_id} not found")
        logger.info("Bad word #%d deleted by %s", word_id, actor.user_id)

    @staticmethod
    def _parse_severity(value: Severity | str) -> Severity:
        try:
            return Severity.parse(value)
        except ValueError:
            raise InvalidArgumentError(f"unknown severity: {value}") from None

    # ==================== Settings ====================

    def list_settings(self, actor: Optional[Actor]) -> list[dict[str, Any]]:
        """List all settings with secrets masked."""
        require_admin(actor)
        return self.settings.list_settings()

    def save_settings(
        self,
        actor: Optional[Actor],
        entries: Iterable[dict[str, Any]],
    ) -> int:
        """
        Upsert a batch of settings.

        Args:
            actor: Admin actor
            entries: Dicts with key, value, category, description, is_secret

        Returns:
            int: Number of settings saved
        """
        actor = require_admin(actor)
        saved = 0
        for entry in entries:
            if not isinstance(entry, dict):
                raise InvalidArgumentError("each setting must be an object")
            self.settings.upsert(
                key=entry.get("key", ""),
                value=entry.get("value"),
                category=entry.get("category", "GENERAL"),
                description=entry.get("description"),
                is_secret=bool(entry.get("is_secret", False)),
            )
            saved += 1
        logger.info("%d settings saved by %s", saved, actor.user_id)
        return saved

    # ==================== Users ====================

    def adjust_score(
        self,
        actor: Optional[Actor],
        user_id: str,
        adjustment: int,
        reason: Optional[str] = None,
    ) -> int:
        """
        Manually move a user's score.

        Positive values go through apply_bonus, negative through
        apply_penalty; zero changes nothing.

        Returns:
            int: The user's score afterwards
        """
        actor = require_admin(actor)
        try:
            adjustment = int(adjustment)
        except (TypeError, ValueError):
            raise InvalidArgumentError("adjustment must be an integer") from None

        reason = str(reason) if reason else f"manual adjustment by {actor.user_id}"
        if adjustment > 0:
            user = self.ledger.apply_bonus(user_id, adjustment, reason)
        elif adjustment < 0:
            user = self.ledger.apply_penalty(user_id, adjustment, reason)
        else:
            user = self.db.get_user(user_id)
            if user is None:
                raise NotFoundError(f"user {user_id} not found")
        return user["score"]

    def ban_user(
        self,
        actor: Optional[Actor],
        user_id: str,
        days: int,
        ban_type: BanType | str = BanType.COMMENT,
        reason: Optional[str] = None,
    ) -> dict[str, Any]:
        """Ban a user from commenting, adding places, or both."""
        actor = require_admin(actor)
        try:
            days = int(days)
        except (TypeError, ValueError):
            raise InvalidArgumentError("days must be an integer") from None
        user = self.ledger.ban_user(
            user_id, days, ban_type, str(reason) if reason else f"banned by {actor.user_id}"
        )
        return serialize_user(user)

    def score_history(
        self,
        actor: Optional[Actor],
        user_id: str,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """List a user's score changes, newest first."""
        require_admin(actor)
        return [
            {
                "delta": row["delta"],
                "new_score": row["new_score"],
                "reason": row["reason"],
                "created_at": iso_timestamp(row["created_at"]),
            }
            for row in self.ledger.score_history(user_id, limit)
        ]

    # ==================== Moderation ====================

    def list_comments(
        self,
        actor: Optional[Actor],
        status: CommentStatus | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List comments across all items for moderation, raw text included."""
        actor = require_admin(actor)
        status_value = CommentStatus.parse(status).value if status else None
        rows = self.db.list_all_comments(status_value, limit=limit, offset=offset)
        result = []
        for row in rows:
            item = serialize_comment(row, actor)
            item["censored_content"] = row["censored_content"]
            item["author_score"] = row["user_score"]
            item["author_comment_banned"] = bool(row["is_comment_banned"])
            result.append(item)
        return result
