"""
Comment lifecycle controller.

Orchestrates the moderation components on every comment action:
- create: capability check, rate limit, content checks, censoring, penalty
- edit: re-censor content, or admin status changes
- delete: author soft delete, admin hard delete with penalty
- like/unlike: counters and like bonus for the author
- report: counter and report penalty for the author
- get/list: viewer-dependent rendering with pagination

State machine: ACTIVE <-> CENSORED on content edits, any state -> DELETED
on author deletion. HIDDEN is only set by administrators.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from commentguard.utils.bad_words import BadWordFilter
from commentguard.utils.behavior import SuspiciousBehaviorAuditor
from commentguard.utils.database import DatabaseManager, get_database, parse_ts, utcnow
from commentguard.utils.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    PolicyBlockedError,
    RateLimitedError,
)
from commentguard.utils.logging import get_logger
from commentguard.utils.permissions import Actor, can_manage, require_actor
from commentguard.utils.rate_limiter import RateLimiter
from commentguard.utils.settings import SettingsStore
from commentguard.utils.spam_detector import SpamDetector, get_spam_detector
from commentguard.utils.trust import TrustLedger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
TOP_SORT_CANDIDATES = 100


class CommentStatus(Enum):
    """Comment moderation states."""
    ACTIVE = "ACTIVE"
    CENSORED = "CENSORED"
    HIDDEN = "HIDDEN"
    DELETED = "DELETED"

    @classmethod
    def parse(cls, value: Any) -> "CommentStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidArgumentError(f"unknown comment status: {value}") from None


class ItemType(Enum):
    """Kinds of item a comment can be attached to."""
    RESTAURANT = "RESTAURANT"
    PLACE = "PLACE"
    CHECKLIST = "CHECKLIST"
    LIST_ITEM = "LIST_ITEM"

    @classmethod
    def parse(cls, value: Any) -> "ItemType":
        if isinstance(value, cls):
            return value
        if not value:
            raise InvalidArgumentError("item type is required")
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidArgumentError(f"unknown item type: {value}") from None


class SortOrder(Enum):
    """Comment list orderings."""
    NEWEST = "newest"
    TOP = "top"

    @classmethod
    def parse(cls, value: Any) -> "SortOrder":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "newest").strip().lower())
        except ValueError:
            raise InvalidArgumentError(f"unknown sort order: {value}") from None


VISIBLE_STATUSES = (CommentStatus.ACTIVE.value, CommentStatus.CENSORED.value)


def iso_timestamp(value: Any) -> Optional[str]:
    """Stored timestamp as ISO 8601, or None."""
    parsed = parse_ts(value)
    return parsed.isoformat() if parsed else None


def serialize_comment(
    comment: dict[str, Any],
    viewer: Optional[Actor],
    is_liked: bool = False,
) -> dict[str, Any]:
    """Render a comment row for a viewer (admins see raw text)."""
    show_raw = viewer is not None and viewer.is_admin
    return {
        "id": comment["id"],
        "user_id": comment["user_id"],
        "username": comment.get("username"),
        "item_type": comment["item_type"],
        "item_id": comment["item_id"],
        "content": comment["content"] if show_raw else comment["censored_content"],
        "has_bad_words": bool(comment["has_bad_words"]),
        "status": comment["status"],
        "like_count": comment["like_count"],
        "report_count": comment["report_count"],
        "created_at": iso_timestamp(comment["created_at"]),
        "updated_at": iso_timestamp(comment["updated_at"]),
        "is_liked": is_liked,
    }


class CommentService:
    """
    Comment lifecycle controller.

    Every collaborator can be injected; by default they share this
    service's database and clock.
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        settings: Optional[SettingsStore] = None,
        ledger: Optional[TrustLedger] = None,
        bad_words: Optional[BadWordFilter] = None,
        spam_detector: Optional[SpamDetector] = None,
        rate_limiter: Optional[RateLimiter] = None,
        auditor: Optional[SuspiciousBehaviorAuditor] = None,
        clock: Callable[[], datetime] = utcnow,
        enable_link_filter: bool = True,
        enable_spam_filter: bool = True,
        enable_ad_filter: bool = True,
    ) -> None:
        self.db = db or get_database()
        self.clock = clock
        self.settings = settings or SettingsStore(self.db, clock)
        self.ledger = ledger or TrustLedger(self.db, self.settings, clock)
        self.bad_words = bad_words or BadWordFilter(self.db)
        self.spam_detector = spam_detector or get_spam_detector()
        self.rate_limiter = rate_limiter or RateLimiter(self.db, clock)
        self.auditor = auditor or SuspiciousBehaviorAuditor(self.db, clock)
        self.enable_link_filter = enable_link_filter
        self.enable_spam_filter = enable_spam_filter
        self.enable_ad_filter = enable_ad_filter

    # ==================== Helpers ====================

    def _get_or_404(self, comment_id: int) -> dict[str, Any]:
        comment = self.db.get_comment(comment_id)
        if comment is None:
            raise NotFoundError(f"comment {comment_id} not found")
        return comment

    # ==================== Create ====================

    def create(
        self,
        actor: Optional[Actor],
        item_type: ItemType | str,
        item_id: Optional[str],
        content: Optional[str],
    ) -> dict[str, Any]:
        """
        Create a comment.

        Checks run in order: authentication, capability, rate limit, input,
        links, spam, advertising. A suspicious-behavior audit is logged but
        never blocks. Bad words are censored and cost the author
        bad_words_penalty points.

        Args:
            actor: Commenting user
            item_type: Type of the commented item
            item_id: Identifier of the commented item
            content: Comment text

        Returns:
            dict: The stored comment as seen by its author

        Raises:
            UnauthorizedError: Without an actor
            PolicyBlockedError: If the user is banned or scored too low
            RateLimitedError: If the user's quota is exhausted
            InvalidArgumentError: For bad input or rejected content
        """
        actor = require_actor(actor)

        permission = self.ledger.can_user_comment(actor.user_id)
        if not permission.can_comment:
            logger.warning(
                "Comment blocked for %s: %s", actor.user_id, permission.reason
            )
            raise PolicyBlockedError(
                permission.reason or "you cannot comment right now",
                ban_until=permission.ban_until,
            )

        now = self.clock()
        quota = self.rate_limiter.check(actor.user_id)
        if not quota.allowed:
            retry_after = max(0, math.ceil((quota.reset_at - now).total_seconds()))
            logger.warning("Rate limit hit by %s", actor.user_id)
            raise RateLimitedError(
                f"too many comments, please wait {retry_after} seconds",
                reset_at=quota.reset_at,
                retry_after=retry_after,
            )

        if not isinstance(content, str) or not content.strip():
            raise InvalidArgumentError("comment content is required")
        item_type = ItemType.parse(item_type)
        if not item_id or not str(item_id).strip():
            raise InvalidArgumentError("item id is required")
        item_id = str(item_id).strip()

        if self.enable_link_filter and self.spam_detector.contains_links(content):
            logger.warning("Comment with link rejected for %s", actor.user_id)
            raise InvalidArgumentError("links are not allowed in comments")

        if self.enable_spam_filter:
            spam = self.spam_detector.detect_spam(content)
            if spam.is_spam:
                logger.warning(
                    "Spam rejected for %s (confidence=%.2f): %s",
                    actor.user_id, spam.confidence, ", ".join(spam.reasons)
                )
                raise InvalidArgumentError(
                    "comment was detected as spam",
                    {"confidence": spam.confidence, "reasons": spam.reasons},
                )

        if self.enable_ad_filter:
            ad = self.spam_detector.detect_advertisement(content)
            if ad.is_advertisement:
                logger.warning(
                    "Advertisement rejected for %s (confidence=%.2f): %s",
                    actor.user_id, ad.confidence, ", ".join(ad.reasons)
                )
                raise InvalidArgumentError(
                    "advertising is not allowed in comments",
                    {"confidence": ad.confidence, "reasons": ad.reasons},
                )

        behavior = self.auditor.audit(actor.user_id)
        if behavior.is_suspicious:
            logger.warning(
                "Suspicious behavior for %s: %s",
                actor.user_id, ", ".join(behavior.reasons)
            )

        result = self.bad_words.filter_text(content)
        status = CommentStatus.CENSORED if result.has_matches else CommentStatus.ACTIVE

        comment = self.db.create_comment(
            user_id=actor.user_id,
            item_type=item_type.value,
            item_id=item_id,
            content=content.strip(),
            censored_content=result.censored_text.strip(),
            has_bad_words=result.has_matches,
            status=status.value,
            now=now,
        )
        logger.info(
            "Comment #%d created by %s on %s/%s (%s)",
            comment["id"], actor.user_id, item_type.value, item_id, status.value
        )

        if result.has_matches:
            score = self.settings.get_score_settings()
            self.ledger.apply_penalty(
                actor.user_id, score.bad_words_penalty, "bad words in comment"
            )

        return serialize_comment(comment, viewer=None)

    # ==================== Edit / Delete ====================

    def edit(
        self,
        actor: Optional[Actor],
        comment_id: int,
        content: Optional[str] = None,
        status: CommentStatus | str | None = None,
    ) -> dict[str, Any]:
        """
        Edit a comment's content, or (admins only) set its status.

        A content edit is re-censored but never penalized.

        Raises:
            ForbiddenError: If the actor is neither the author nor an admin
            ConflictError: When editing the content of a deleted comment
            InvalidArgumentError: When neither content nor status is usable
        """
        actor = require_actor(actor)
        comment = self._get_or_404(comment_id)

        if not can_manage(actor, comment["user_id"]):
            raise ForbiddenError("you may not edit this comment")

        now = self.clock()

        if actor.is_admin and status:
            new_status = CommentStatus.parse(status)
            self.db.set_comment_status(comment_id, new_status.value, now)
            logger.info(
                "Comment #%d status set to %s by %s",
                comment_id, new_status.value, actor.user_id
            )
            return serialize_comment(self._get_or_404(comment_id), actor)

        if content is not None and not isinstance(content, str):
            raise InvalidArgumentError("comment content must be text")
        if content is not None and content.strip():
            if comment["status"] == CommentStatus.DELETED.value:
                raise ConflictError("deleted comments cannot be edited")

            result = self.bad_words.filter_text(content)
            new_status = CommentStatus.CENSORED if result.has_matches else CommentStatus.ACTIVE
            self.db.update_comment_content(
                comment_id,
                content=content.strip(),
                censored_content=result.censored_text.strip(),
                has_bad_words=result.has_matches,
                status=new_status.value,
                now=now,
            )
            logger.info("Comment #%d edited by %s", comment_id, actor.user_id)
            return serialize_comment(self._get_or_404(comment_id), actor)

        raise InvalidArgumentError("content or status is required")

    def delete(self, actor: Optional[Actor], comment_id: int) -> bool:
        """
        Delete a comment.

        Authors soft-delete (status DELETED, no penalty). Admins penalize the
        author with deleted_by_admin_penalty and then remove the record.

        Returns:
            bool: True if the record was removed (admin path)
        """
        actor = require_actor(actor)
        comment = self._get_or_404(comment_id)

        if not can_manage(actor, comment["user_id"]):
            raise ForbiddenError("you may not delete this comment")

        if actor.is_admin:
            score = self.settings.get_score_settings()
            self.ledger.apply_penalty(
                comment["user_id"],
                score.deleted_by_admin_penalty,
                "comment deleted by admin",
            )
            self.db.delete_comment(comment_id)
            logger.info(
                "Comment #%d removed by admin %s (author %s)",
                comment_id, actor.user_id, comment["user_id"]
            )
            return True

        self.db.set_comment_status(comment_id, CommentStatus.DELETED.value, self.clock())
        logger.info("Comment #%d deleted by author %s", comment_id, actor.user_id)
        return False

    # ==================== Likes ====================

    def like_comment(self, actor: Optional[Actor], comment_id: int) -> dict[str, Any]:
        """
        Like a comment. The author gains like_bonus unless liking their own.

        Raises:
            ConflictError: If the actor already liked it
        """
        actor = require_actor(actor)
        comment = self._get_or_404(comment_id)

        like_count = self.db.add_like(actor.user_id, comment_id, self.clock())
        if like_count is None:
            raise ConflictError("you already liked this comment")

        if comment["user_id"] != actor.user_id:
            score = self.settings.get_score_settings()
            self.ledger.apply_bonus(comment["user_id"], score.like_bonus, "comment liked")

        return {"liked": True, "like_count": like_count}

    def unlike_comment(self, actor: Optional[Actor], comment_id: int) -> dict[str, Any]:
        """
        Withdraw a like, reversing the author's like bonus.

        Raises:
            ConflictError: If the actor has not liked it
        """
        actor = require_actor(actor)
        comment = self._get_or_404(comment_id)

        like_count = self.db.remove_like(actor.user_id, comment_id)
        if like_count is None:
            raise ConflictError("you have not liked this comment")

        if comment["user_id"] != actor.user_id:
            score = self.settings.get_score_settings()
            self.ledger.apply_bonus(comment["user_id"], -score.like_bonus, "comment like removed")

        return {"liked": False, "like_count": like_count}

    def toggle_like(self, actor: Optional[Actor], comment_id: int) -> dict[str, Any]:
        """Like the comment, or unlike it if already liked."""
        actor = require_actor(actor)
        self._get_or_404(comment_id)
        if self.db.has_like(actor.user_id, comment_id):
            return self.unlike_comment(actor, comment_id)
        return self.like_comment(actor, comment_id)

    # ==================== Reports ====================

    def report(
        self,
        actor: Optional[Actor],
        comment_id: int,
        reason: Optional[str],
    ) -> dict[str, Any]:
        """
        Report a comment. The author loses report_penalty points right away.

        Raises:
            InvalidArgumentError: Without a reason
            ConflictError: On self-reports and duplicate reports
        """
        actor = require_actor(actor)
        if not isinstance(reason, str) or not reason.strip():
            raise InvalidArgumentError("a report reason is required")

        comment = self._get_or_404(comment_id)
        if comment["user_id"] == actor.user_id:
            raise ConflictError("you cannot report your own comment")

        report_count = self.db.add_report(actor.user_id, comment_id, reason.strip(), self.clock())
        if report_count is None:
            raise ConflictError("you already reported this comment")

        logger.info(
            "Comment #%d reported by %s: %s", comment_id, actor.user_id, reason.strip()
        )

        score = self.settings.get_score_settings()
        self.ledger.apply_penalty(comment["user_id"], score.report_penalty, "comment reported")

        return {"reported": True, "report_count": report_count}

    # ==================== Reads ====================

    def get_comment(self, comment_id: int, viewer: Optional[Actor] = None) -> dict[str, Any]:
        """
        Get a single comment for a viewer.

        Non-admin viewers only see ACTIVE and CENSORED comments.
        """
        comment = self._get_or_404(comment_id)
        is_admin = viewer is not None and viewer.is_admin
        if not is_admin and comment["status"] not in VISIBLE_STATUSES:
            raise NotFoundError(f"comment {comment_id} not found")

        author = self.db.get_user(comment["user_id"])
        comment["username"] = author["username"] if author else None

        is_liked = viewer is not None and self.db.has_like(viewer.user_id, comment_id)
        return serialize_comment(comment, viewer, is_liked)

    def list_comments(
        self,
        item_type: ItemType | str,
        item_id: str,
        viewer: Optional[Actor] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort: SortOrder | str = SortOrder.NEWEST,
    ) -> dict[str, Any]:
        """
        List visible comments on an item.

        "top" ranks by like_count - report_count (newest first on ties) over
        at most min(100, limit * 5) candidates, so deep pages of a very busy
        item may come back short.

        Returns:
            dict: {"comments": [...], "pagination": {page, limit, total, total_pages}}
        """
        item_type = ItemType.parse(item_type)
        if not item_id:
            raise InvalidArgumentError("item id is required")
        sort = SortOrder.parse(sort)
        page = max(1, int(page))
        limit = min(MAX_PAGE_SIZE, max(1, int(limit)))
        offset = (page - 1) * limit

        total = self.db.count_comments(item_type.value, item_id, VISIBLE_STATUSES)

        if sort == SortOrder.NEWEST:
            rows = self.db.list_comments(
                item_type.value, item_id, VISIBLE_STATUSES,
                order_by="newest", limit=limit, offset=offset,
            )
        else:
            candidates = self.db.list_comments(
                item_type.value, item_id, VISIBLE_STATUSES,
                order_by="insertion", limit=min(TOP_SORT_CANDIDATES, limit * 5), offset=0,
            )
            candidates.sort(key=lambda c: (c["created_at"], c["id"]), reverse=True)
            candidates.sort(key=lambda c: c["like_count"] - c["report_count"], reverse=True)
            rows = candidates[offset:offset + limit]

        liked = self._liked_ids(viewer, (row["id"] for row in rows))

        return {
            "comments": [serialize_comment(row, viewer, row["id"] in liked) for row in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    def _liked_ids(self, viewer: Optional[Actor], comment_ids: Iterable[int]) -> set[int]:
        if viewer is None:
            return set()
        return self.db.get_liked_comment_ids(viewer.user_id, comment_ids)
