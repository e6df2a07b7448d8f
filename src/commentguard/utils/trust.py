"""
Trust score ledger.

Every user carries a signed score. Penalties and bonuses move it, and
after every change the new score is checked against three thresholds:

- score <= ban_threshold_3: comment ban (ban_days_3) and place-add ban (place_ban_days)
- score <= ban_threshold_2: comment ban (ban_days_2)
- score <= ban_threshold_1: comment ban (ban_days_1)

A score above ban_threshold_1 leaves existing bans alone. Bans are only
lifted lazily, when a capability check finds them expired.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from commentguard.utils.database import DatabaseManager, get_database, parse_ts, utcnow
from commentguard.utils.errors import InvalidArgumentError, NotFoundError
from commentguard.utils.logging import get_logger
from commentguard.utils.settings import ScoreSettings, SettingsStore

logger = get_logger(__name__)

BAN_DATE_FORMAT = "%Y-%m-%d %H:%M UTC"


class BanTier(Enum):
    """Escalating ban tiers derived from the score."""
    NONE = 0
    TIER_1 = 1
    TIER_2 = 2
    TIER_3 = 3


class BanType(Enum):
    """Which capability a manual ban removes."""
    COMMENT = "comment"
    PLACE = "place"
    BOTH = "both"


@dataclass(frozen=True)
class BanDecision:
    """Bans to apply for a score."""
    tier: BanTier
    comment_ban_until: Optional[datetime] = None
    place_ban_until: Optional[datetime] = None


@dataclass
class CommentPermission:
    """Result of a comment capability check."""
    can_comment: bool
    reason: Optional[str] = None
    ban_until: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "can_comment": self.can_comment,
            "reason": self.reason,
            "ban_until": self.ban_until.isoformat() if self.ban_until else None,
        }


@dataclass
class PlacePermission:
    """Result of a place-add capability check."""
    can_add_place: bool
    reason: Optional[str] = None
    ban_until: Optional[datetime] = None


def resolve_tier(score: int, settings: ScoreSettings) -> BanTier:
    """Map a score to its ban tier. The most severe tier wins."""
    if score <= settings.ban_threshold_3:
        return BanTier.TIER_3
    if score <= settings.ban_threshold_2:
        return BanTier.TIER_2
    if score <= settings.ban_threshold_1:
        return BanTier.TIER_1
    return BanTier.NONE


def resolve_bans(score: int, settings: ScoreSettings, now: datetime) -> BanDecision:
    """
    Decide which bans a score triggers.

    Args:
        score: The user's new score
        settings: Score policy
        now: Ban start time

    Returns:
        BanDecision: Tier and ban end times (None means leave unchanged)
    """
    tier = resolve_tier(score, settings)
    if tier == BanTier.TIER_3:
        return BanDecision(
            tier=tier,
            comment_ban_until=now + timedelta(days=settings.ban_days_3),
            place_ban_until=now + timedelta(days=settings.place_ban_days),
        )
    if tier == BanTier.TIER_2:
        return BanDecision(tier=tier, comment_ban_until=now + timedelta(days=settings.ban_days_2))
    if tier == BanTier.TIER_1:
        return BanDecision(tier=tier, comment_ban_until=now + timedelta(days=settings.ban_days_1))
    return BanDecision(tier=tier)


class TrustLedger:
    """
    Applies score changes and evaluates what a user may do.

    Only the ledger writes user scores. Thresholds are read from the
    settings store on every call.
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        settings: Optional[SettingsStore] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db or get_database()
        self.settings = settings or SettingsStore(self.db, clock)
        self.clock = clock

    # ==================== Score Changes ====================

    def apply_penalty(self, user_id: str, delta: int, reason: str) -> dict[str, Any]:
        """
        Apply a penalty (delta is already negative).

        Args:
            user_id: User to penalize
            delta: Signed points, normally negative
            reason: Recorded in the score history

        Returns:
            dict: Updated user record

        Raises:
            NotFoundError: If the user does not exist
        """
        return self._apply(user_id, delta, reason)

    def apply_bonus(self, user_id: str, delta: int, reason: str) -> dict[str, Any]:
        """
        Apply a bonus. Goes through the same path as penalties, so a
        negative delta (e.g. a withdrawn like) can also trigger bans.
        """
        return self._apply(user_id, delta, reason)

    def _apply(self, user_id: str, delta: int, reason: str) -> dict[str, Any]:
        settings = self.settings.get_score_settings()
        now = self.clock()
        decisions: list[BanDecision] = []

        def ban_resolver(new_score: int) -> tuple[Optional[datetime], Optional[datetime]]:
            decision = resolve_bans(new_score, settings, now)
            decisions.append(decision)
            return decision.comment_ban_until, decision.place_ban_until

        user = self.db.apply_score_change(user_id, delta, reason, now, ban_resolver)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")

        logger.info(
            "Score change for %s: %+d -> %d (%s)",
            user_id, delta, user["score"], reason
        )

        decision = decisions[-1]
        if decision.tier != BanTier.NONE:
            logger.info(
                "User %s reached ban tier %d: comments until %s%s",
                user_id, decision.tier.value, decision.comment_ban_until,
                f", places until {decision.place_ban_until}" if decision.place_ban_until else ""
            )

        return user

    def ban_user(
        self,
        user_id: str,
        days: int,
        ban_type: BanType | str = BanType.COMMENT,
        reason: str = "manual ban",
    ) -> dict[str, Any]:
        """
        Ban a user manually for a number of days.

        Args:
            user_id: User to ban
            days: Ban length in days (must be positive)
            ban_type: comment, place or both
            reason: Logged with the ban

        Returns:
            dict: Updated user record
        """
        if isinstance(ban_type, str):
            try:
                ban_type = BanType(ban_type.strip().lower())
            except ValueError:
                raise InvalidArgumentError(f"unknown ban type: {ban_type}") from None
        if days <= 0:
            raise InvalidArgumentError("ban days must be positive")

        until = self.clock() + timedelta(days=days)
        comment_until = until if ban_type in (BanType.COMMENT, BanType.BOTH) else None
        place_until = until if ban_type in (BanType.PLACE, BanType.BOTH) else None

        if not self.db.set_bans(user_id, comment_until, place_until):
            raise NotFoundError(f"user {user_id} not found")

        logger.info(
            "User %s banned (%s) for %d days: %s",
            user_id, ban_type.value, days, reason
        )
        return self.db.get_user(user_id)

    def score_history(self, user_id: str, limit: int = 50) -> list[dict[str, Any]]:
        """Get the ledger events for a user, newest first."""
        if self.db.get_user(user_id) is None:
            raise NotFoundError(f"user {user_id} not found")
        return self.db.get_score_history(user_id, limit)

    # ==================== Capability Checks ====================

    def can_user_comment(self, user_id: str) -> CommentPermission:
        """
        Check whether a user may comment right now.

        An expired (or dateless) comment ban is cleared on the user record
        before the score gate is evaluated.

        Args:
            user_id: User to check

        Returns:
            CommentPermission: Decision with reason and ban end when blocked
        """
        user = self.db.get_user(user_id)
        if user is None:
            return CommentPermission(can_comment=False, reason="user not found")

        if user["is_comment_banned"]:
            ban_until = parse_ts(user["comment_ban_until"])
            if ban_until is not None and ban_until > self.clock():
                return CommentPermission(
                    can_comment=False,
                    reason=(
                        "you are banned from commenting until "
                        f"{ban_until.strftime(BAN_DATE_FORMAT)}"
                    ),
                    ban_until=ban_until,
                )
            self.db.clear_comment_ban(user_id)
            logger.info("Expired comment ban cleared for user %s", user_id)

        settings = self.settings.get_score_settings()
        if user["score"] <= settings.ban_threshold_1:
            return CommentPermission(
                can_comment=False,
                reason="your score is too low to comment",
            )

        return CommentPermission(can_comment=True)

    def can_user_add_place(self, user_id: str) -> PlacePermission:
        """
        Check whether a user may add places.

        Same lazy expiry as the comment check, without a score gate.
        """
        user = self.db.get_user(user_id)
        if user is None:
            return PlacePermission(can_add_place=False, reason="user not found")

        if user["is_place_add_banned"]:
            ban_until = parse_ts(user["place_add_ban_until"])
            if ban_until is not None and ban_until > self.clock():
                return PlacePermission(
                    can_add_place=False,
                    reason=(
                        "you are banned from adding places until "
                        f"{ban_until.strftime(BAN_DATE_FORMAT)}"
                    ),
                    ban_until=ban_until,
                )
            self.db.clear_place_ban(user_id)
            logger.info("Expired place-add ban cleared for user %s", user_id)

        return PlacePermission(can_add_place=True)
