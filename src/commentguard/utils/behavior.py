"""
Suspicious behavior auditing.

Looks at a user's comment history for pattern-level abuse:
- Bursts: 3 or more comments within the last minute
- High deletion ratio: more than half of their comments deleted
- High report ratio: more than 0.3 reports per comment

The audit is informational. Callers log the result; nothing is blocked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from commentguard.utils.database import DatabaseManager, get_database, utcnow
from commentguard.utils.logging import get_logger

logger = get_logger(__name__)

BURST_WINDOW = timedelta(minutes=1)
BURST_COUNT = 3
DELETED_RATIO = 0.5
REPORT_RATIO = 0.3


@dataclass
class BehaviorReport:
    """Result of a behavior audit."""
    is_suspicious: bool
    reasons: list[str] = field(default_factory=list)


class SuspiciousBehaviorAuditor:
    """Flags users whose comment history looks abusive."""

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db or get_database()
        self.clock = clock

    def audit(self, user_id: str) -> BehaviorReport:
        """
        Audit a user's comment history.

        Args:
            user_id: User to audit

        Returns:
            BehaviorReport: Whether anything looked suspicious and why
        """
        reasons: list[str] = []

        recent = self.db.count_user_comments(user_id, since=self.clock() - BURST_WINDOW)
        if recent >= BURST_COUNT:
            reasons.append("too many comments in one minute")

        total = self.db.count_user_comments(user_id)
        if total > 0:
            deleted = self.db.count_user_comments(user_id, status="DELETED")
            if deleted / total > DELETED_RATIO:
                reasons.append("high ratio of deleted comments")

            reports = self.db.count_reports_against_user(user_id)
            if reports / total > REPORT_RATIO:
                reasons.append("high ratio of reports")

        return BehaviorReport(is_suspicious=bool(reasons), reasons=reasons)
