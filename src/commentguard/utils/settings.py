"""
Settings store for moderation thresholds.

Settings are key/value rows grouped by category. Every threshold the engine
needs has a documented default on ScoreSettings, so a missing or malformed
row never prevents a policy decision.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Optional

from commentguard.utils.database import DatabaseManager, get_database, utcnow
from commentguard.utils.errors import InvalidArgumentError
from commentguard.utils.logging import add_secret, get_logger

logger = get_logger(__name__)

SECRET_MASK = "********"


class SettingCategory(Enum):
    """Setting categories."""
    GENERAL = "GENERAL"
    COMMENT_SCORES = "COMMENT_SCORES"
    API_KEYS = "API_KEYS"

    @classmethod
    def coerce(cls, value: Any) -> "SettingCategory":
        """Parse category text, falling back to GENERAL for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.GENERAL


@dataclass(frozen=True)
class ScoreSettings:
    """Trust score policy. Field names match the COMMENT_SCORES keys."""
    bad_words_penalty: int = -5
    report_penalty: int = -3
    deleted_by_admin_penalty: int = -10
    like_bonus: int = 1
    ban_threshold_1: int = -10
    ban_threshold_2: int = -15
    ban_threshold_3: int = -20
    ban_days_1: int = 1
    ban_days_2: int = 3
    ban_days_3: int = 7
    place_ban_days: int = 30


SCORE_SETTING_DESCRIPTIONS: dict[str, str] = {
    "bad_words_penalty": "Penalty for posting a comment containing bad words",
    "report_penalty": "Penalty applied to the author when a comment is reported",
    "deleted_by_admin_penalty": "Penalty when an administrator deletes a comment",
    "like_bonus": "Bonus awarded to the author for each like",
    "ban_threshold_1": "Score at or below which a tier 1 comment ban applies",
    "ban_threshold_2": "Score at or below which a tier 2 comment ban applies",
    "ban_threshold_3": "Score at or below which a tier 3 comment and place ban applies",
    "ban_days_1": "Comment ban length in days for tier 1",
    "ban_days_2": "Comment ban length in days for tier 2",
    "ban_days_3": "Comment ban length in days for tier 3",
    "place_ban_days": "Place-add ban length in days for tier 3",
}


class SettingsStore:
    """
    Read and write settings rows.

    Lookups go to the database on every call, so administrator changes take
    effect on the next moderation decision.
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        clock: Callable[[], Any] = utcnow,
    ) -> None:
        self.db = db or get_database()
        self.clock = clock

    def get_settings(self, category: SettingCategory | str) -> dict[str, Optional[str]]:
        """
        Get raw settings of a category as a key -> value mapping.

        Args:
            category: Setting category

        Returns:
            dict: Setting values (may be None or empty strings)
        """
        category = SettingCategory.coerce(category)
        return {
            row["key"]: row["value"]
            for row in self.db.get_settings(category.value)
        }

    def get_score_settings(self) -> ScoreSettings:
        """
        Get the trust score policy, falling back to defaults per key.

        Returns:
            ScoreSettings: Policy values
        """
        raw = self.get_settings(SettingCategory.COMMENT_SCORES)
        defaults = ScoreSettings()
        values: dict[str, int] = {}

        for f in fields(ScoreSettings):
            default = getattr(defaults, f.name)
            value = raw.get(f.name)
            if value is None or str(value).strip() == "":
                values[f.name] = default
                continue
            try:
                values[f.name] = int(str(value).strip())
            except ValueError:
                logger.warning(
                    "Invalid value %r for setting %s, using default %d",
                    value, f.name, default
                )
                values[f.name] = default

        return ScoreSettings(**values)

    def list_settings(self) -> list[dict[str, Any]]:
        """List all settings with secret values masked."""
        result = []
        for row in self.db.get_settings():
            row = dict(row)
            row["is_secret"] = bool(row["is_secret"])
            if row["is_secret"] and row.get("value"):
                row["value"] = SECRET_MASK
            result.append(row)
        return result

    def upsert(
        self,
        key: str,
        value: Any,
        category: SettingCategory | str = SettingCategory.GENERAL,
        description: str | None = None,
        is_secret: bool = False,
    ) -> None:
        """
        Insert or update a setting.

        Args:
            key: Setting key
            value: Value (stored as text; None clears it)
            category: Category (unknown text becomes GENERAL)
            description: Optional description
            is_secret: Whether the value must be hidden from listings and logs
        """
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgumentError("setting key is required")
        key = key.strip()

        category = SettingCategory.coerce(category)
        text = None if value is None else str(value)

        if is_secret and text:
            add_secret(text)

        self.db.upsert_setting(
            key=key,
            value=text,
            category=category.value,
            description=description,
            is_secret=is_secret,
            now=self.clock(),
        )
        logger.info(
            "Setting saved: %s (category=%s)%s",
            key, category.value, "" if is_secret else f" = {text!r}"
        )

    def seed_score_defaults(self) -> int:
        """
        Write default COMMENT_SCORES rows for keys that do not exist yet.

        Returns:
            int: Number of rows written
        """
        existing = self.get_settings(SettingCategory.COMMENT_SCORES)
        defaults = ScoreSettings()
        written = 0
        for f in fields(ScoreSettings):
            if f.name in existing:
                continue
            self.upsert(
                f.name,
                getattr(defaults, f.name),
                SettingCategory.COMMENT_SCORES,
                SCORE_SETTING_DESCRIPTIONS.get(f.name),
            )
            written += 1
        return written
