"""
Roles and permission checks.

The caller (dashboard or CLI) authenticates the user and hands the engine
an Actor. These helpers turn missing or insufficient actors into typed
errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from commentguard.utils.errors import ForbiddenError, UnauthorizedError
from commentguard.utils.logging import get_logger

logger = get_logger(__name__)


class Role(Enum):
    """User roles."""
    USER = "USER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Parse role text; anything unknown is a plain USER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.USER


@dataclass(frozen=True)
class Actor:
    """An authenticated user acting on the engine."""
    user_id: str
    role: Role = Role.USER
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_actor(actor: Optional[Actor]) -> Actor:
    """
    Ensure an action is performed by an authenticated user.

    Raises:
        UnauthorizedError: If there is no actor
    """
    if actor is None or not actor.user_id:
        raise UnauthorizedError("authentication required")
    return actor


def require_admin(actor: Optional[Actor]) -> Actor:
    """
    Ensure an action is performed by an administrator.

    Raises:
        UnauthorizedError: If there is no actor
        ForbiddenError: If the actor is not an admin
    """
    actor = require_actor(actor)
    if not actor.is_admin:
        logger.warning("Non-admin %s attempted an admin action", actor.user_id)
        raise ForbiddenError("administrator access required")
    return actor


def can_manage(actor: Actor, owner_id: str) -> bool:
    """Check whether an actor may modify a resource owned by owner_id."""
    return actor.is_admin or actor.user_id == owner_id
