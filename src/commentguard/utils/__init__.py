"""
Utility modules for the moderation engine.

Provides:
- logging: Logging setup with secret filtering
- errors: Typed error taxonomy
- database: SQLite database manager
- settings: Settings store and score policy defaults
- bad_words: Bad word filter
- spam_detector: Spam/advertisement heuristics and link detection
- rate_limiter: Comment rate limiter
- behavior: Suspicious behavior auditor
- trust: Trust score ledger and capability checks
- permissions: Roles and actor checks
"""

from commentguard.utils.logging import get_logger, setup_logging
from commentguard.utils.errors import (
    ErrorKind,
    ModerationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    InvalidArgumentError,
    ConflictError,
    RateLimitedError,
    PolicyBlockedError,
    InternalError,
)
from commentguard.utils.database import get_database, DatabaseManager
from commentguard.utils.settings import SettingsStore, SettingCategory, ScoreSettings
from commentguard.utils.bad_words import BadWordFilter, FilterResult, BadWordMatch, Severity
from commentguard.utils.spam_detector import (
    get_spam_detector,
    SpamDetector,
    SpamResult,
    AdvertisementResult,
)
from commentguard.utils.rate_limiter import RateLimiter, RateLimitStatus
from commentguard.utils.behavior import SuspiciousBehaviorAuditor, BehaviorReport
from commentguard.utils.trust import (
    TrustLedger,
    BanTier,
    BanType,
    BanDecision,
    CommentPermission,
    PlacePermission,
)
from commentguard.utils.permissions import Actor, Role, require_actor, require_admin

__all__ = [
    "get_logger",
    "setup_logging",
    "ErrorKind",
    "ModerationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "InvalidArgumentError",
    "ConflictError",
    "RateLimitedError",
    "PolicyBlockedError",
    "InternalError",
    "get_database",
    "DatabaseManager",
    "SettingsStore",
    "SettingCategory",
    "ScoreSettings",
    "BadWordFilter",
    "FilterResult",
    "BadWordMatch",
    "Severity",
    "get_spam_detector",
    "SpamDetector",
    "SpamResult",
    "AdvertisementResult",
    "RateLimiter",
    "RateLimitStatus",
    "SuspiciousBehaviorAuditor",
    "BehaviorReport",
    "TrustLedger",
    "BanTier",
    "BanType",
    "BanDecision",
    "CommentPermission",
    "PlacePermission",
    "Actor",
    "Role",
    "require_actor",
    "require_admin",
]
