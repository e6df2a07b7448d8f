"""
Comment rate limiting.

Counts a user's comments created in the trailing window (soft-deleted ones
included) against a fixed quota. The limiter is advisory: it reports the
quota and the comment service decides to reject.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from commentguard.utils.database import DatabaseManager, get_database, utcnow
from commentguard.utils.logging import get_logger

logger = get_logger(__name__)

MAX_COMMENTS_PER_WINDOW = 5
WINDOW_SECONDS = 60


@dataclass
class RateLimitStatus:
    """Quota state for a user."""
    allowed: bool
    remaining: int
    reset_at: datetime


class RateLimiter:
    """
    Sliding-window comment counter backed by comment timestamps.

    reset_at is always now + window rather than the expiry of the oldest
    counted comment.
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        clock: Callable[[], datetime] = utcnow,
        limit: int = MAX_COMMENTS_PER_WINDOW,
        window_seconds: int = WINDOW_SECONDS,
    ) -> None:
        self.db = db or get_database()
        self.clock = clock
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)

    def check(self, user_id: str) -> RateLimitStatus:
        """
        Check a user's remaining comment quota.

        Args:
            user_id: User to check

        Returns:
            RateLimitStatus: allowed, remaining and reset time
        """
        now = self.clock()
        recent = self.db.count_user_comments(user_id, since=now - self.window)
        remaining = max(0, self.limit - recent)

        if remaining == 0:
            logger.debug("Rate limit reached for user %s (%d recent)", user_id, recent)

        return RateLimitStatus(
            allowed=remaining > 0,
            remaining=remaining,
            reset_at=now + self.window,
        )
