"""
Shared fixtures for the CommentGuard tests.

Every test gets its own temporary SQLite database and a controllable clock.
"""

from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commentguard.utils.database import DatabaseManager
from commentguard.utils.permissions import Actor, Role
from commentguard.utils.settings import SettingsStore
from commentguard.utils.trust import TrustLedger


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Clock fixed at 2025-01-15 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def db():
    """Create a temporary database for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    db = DatabaseManager(db_path)
    yield db

    # Cleanup
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def settings(db, clock):
    return SettingsStore(db, clock)


@pytest.fixture
def ledger(db, settings, clock):
    return TrustLedger(db, settings, clock)


@pytest.fixture
def make_user(db, clock):
    """Factory creating a user record and returning its Actor."""
    def _make(user_id: str, role: Role = Role.USER, score: int = 0) -> Actor:
        db.get_or_create_user(user_id, user_id.title(), role=role.value, now=clock())
        if score:
            with db.get_connection() as conn:
                conn.execute("UPDATE users SET score = ? WHERE user_id = ?", (score, user_id))
        return Actor(user_id=user_id, role=role, username=user_id.title())
    return _make
