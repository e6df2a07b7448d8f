"""
SQLite database manager for the moderation engine.

Handles:
- Users and their trust/ban state
- Score history (audit trail of every ledger change)
- Comments with denormalized like/report counters
- Comment likes and reports
- Bad word list
- Key/value settings
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator, Iterable, Optional

from commentguard.utils.errors import InternalError
from commentguard.utils.logging import get_logger

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# Resolves a new score into (comment_ban_until, place_ban_until)
BanResolver = Callable[[int], "tuple[Optional[datetime], Optional[datetime]]"]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_ts(value: datetime) -> str:
    """Format a datetime for storage (UTC, fixed width so strings sort)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_ts(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.strptime(value, TIMESTAMP_FORMAT)
        except ValueError:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DatabaseManager:
    """
    SQLite database manager for the moderation engine.

    Each public method runs in its own transaction. Multi-field updates that
    must stay consistent (score + ban fields, join row + counter) are done
    inside a single method.
    """

    def __init__(self, db_path: str = "data/commentguard.db") -> None:
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()
        logger.info("Database initialized at %s", self.db_path)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection with automatic cleanup.

        Yields:
            sqlite3.Connection: Database connection

        Raises:
            InternalError: If SQLite reports a failure
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Database error: %s", e)
            raise InternalError("storage failure") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database tables."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    username TEXT,
                    role TEXT NOT NULL DEFAULT 'USER',
                    score INTEGER NOT NULL DEFAULT 0,
                    is_comment_banned BOOLEAN NOT NULL DEFAULT FALSE,
                    comment_ban_until TIMESTAMP,
                    is_place_add_banned BOOLEAN NOT NULL DEFAULT FALSE,
                    place_add_ban_until TIMESTAMP,
                    created_at TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS score_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    delta INTEGER NOT NULL,
                    new_score INTEGER NOT NULL,
                    reason TEXT,
                    created_at TIMESTAMP,
                    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS comments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    item_type TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    content TEXT NOT NULL,
                    censored_content TEXT,
                    has_bad_words BOOLEAN NOT NULL DEFAULT FALSE,
                    status TEXT NOT NULL DEFAULT 'ACTIVE',
                    like_count INTEGER NOT NULL DEFAULT 0,
                    report_count INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP,
                    updated_at TIMESTAMP,
                    FOREIGN KEY (user_id) REFERENCES users(user_id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS comment_likes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    comment_id INTEGER NOT NULL,
                    created_at TIMESTAMP,
                    UNIQUE(user_id, comment_id),
                    FOREIGN KEY (comment_id) REFERENCES comments(id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS comment_reports (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    comment_id INTEGER NOT NULL,
                    reason TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TIMESTAMP,
                    UNIQUE(user_id, comment_id),
                    FOREIGN KEY (comment_id) REFERENCES comments(id) ON DELETE CASCADE
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS bad_words (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    word TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    severity TEXT NOT NULL DEFAULT 'MODERATE',
                    is_active BOOLEAN NOT NULL DEFAULT TRUE,
                    created_at TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    category TEXT NOT NULL DEFAULT 'GENERAL',
                    description TEXT,
                    is_secret BOOLEAN NOT NULL DEFAULT FALSE,
                    updated_at TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_comments_user_created
                ON comments(user_id, created_at)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_comments_item
                ON comments(item_type, item_id, status)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_score_history_user
                ON score_history(user_id)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_settings_category
                ON settings(category)
            """)

            logger.debug("Database tables initialized")

    # ==================== User Methods ====================

    def get_or_create_user(
        self,
        user_id: str,
        username: str | None = None,
        role: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Get or create a user record, updating username/role if given."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()

            if row:
                if username and row["username"] != username:
                    cursor.execute(
                        "UPDATE users SET username = ? WHERE user_id = ?",
                        (username, user_id)
                    )
                if role and row["role"] != role:
                    cursor.execute(
                        "UPDATE users SET role = ? WHERE user_id = ?",
                        (role, user_id)
                    )
            else:
                cursor.execute(
                    """
                    INSERT INTO users (user_id, username, role, score, created_at)
                    VALUES (?, ?, ?, 0, ?)
                    """,
                    (user_id, username, role or "USER", format_ts(now or utcnow()))
                )

            cursor.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
            return dict(cursor.fetchone())

    def get_user(self, user_id: str) -> Optional[dict[str, Any]]:
        """Get a user record."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def set_user_role(self, user_id: str, role: str) -> bool:
        """Set a user's role."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE users SET role = ? WHERE user_id = ?",
                (role, user_id)
            )
            return cursor.rowcount > 0

    def apply_score_change(
        self,
        user_id: str,
        delta: int,
        reason: str,
        now: datetime,
        resolve_bans: BanResolver,
    ) -> Optional[dict[str, Any]]:
        """
        Add delta to a user's score and set bans derived from the new score.

        The score update, any ban fields returned by resolve_bans and the
        score history row are written in one transaction. Ban fields that
        resolve_bans returns as None are left as they are.

        Args:
            user_id: User whose score changes
            delta: Signed points to add
            reason: Why the score changed (recorded in score_history)
            now: Timestamp for the history row
            resolve_bans: Maps the new score to (comment_ban_until, place_ban_until)

        Returns:
            dict | None: Updated user record, or None if the user does not exist
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE users SET score = score + ? WHERE user_id = ?",
                (delta, user_id)
            )
            if cursor.rowcount == 0:
                return None

            cursor.execute("SELECT score FROM users WHERE user_id = ?", (user_id,))
            new_score = cursor.fetchone()["score"]

            comment_ban_until, place_ban_until = resolve_bans(new_score)
            if comment_ban_until is not None:
                cursor.execute(
                    """
                    UPDATE users
                    SET is_comment_banned = TRUE, comment_ban_until = ?
                    WHERE user_id = ?
                    """,
                    (format_ts(comment_ban_until), user_id)
                )
            if place_ban_until is not None:
                cursor.execute(
                    """
                    UPDATE users
                    SET is_place_add_banned = TRUE, place_add_ban_until = ?
                    WHERE user_id = ?
                    """,
                    (format_ts(place_ban_until), user_id)
                )

            cursor.execute(
                """
                INSERT INTO score_history (user_id, delta, new_score, reason, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, delta, new_score, reason, format_ts(now))
            )

            cursor.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
            return dict(cursor.fetchone())

    def set_bans(
        self,
        user_id: str,
        comment_ban_until: datetime | None = None,
        place_ban_until: datetime | None = None,
    ) -> bool:
        """Set comment and/or place-add bans explicitly (admin path)."""
        updates = []
        params: list[Any] = []

        if comment_ban_until is not None:
            updates.append("is_comment_banned = TRUE, comment_ban_until = ?")
            params.append(format_ts(comment_ban_until))
        if place_ban_until is not None:
            updates.append("is_place_add_banned = TRUE, place_add_ban_until = ?")
            params.append(format_ts(place_ban_until))

        if not updates:
            return False

        params.append(user_id)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE users SET {', '.join(updates)} WHERE user_id = ?",
                params
            )
            return cursor.rowcount > 0

    def clear_comment_ban(self, user_id: str) -> bool:
        """Clear a user's comment ban."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE users SET is_comment_banned = FALSE, comment_ban_until = NULL
                WHERE user_id = ?
                """,
                (user_id,)
            )
            return cursor.rowcount > 0

    def clear_place_ban(self, user_id: str) -> bool:
        """Clear a user's place-add ban."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE users SET is_place_add_banned = FALSE, place_add_ban_until = NULL
                WHERE user_id = ?
                """,
                (user_id,)
            )
            return cursor.rowcount > 0

    def get_score_history(self, user_id: str, limit: int = 50) -> list[dict[str, Any]]:
        """Get score history for a user, newest first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM score_history
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit)
            )
            return [dict(row) for row in cursor.fetchall()]

    # ==================== Comment Methods ====================

    def create_comment(
        self,
        user_id: str,
        item_type: str,
        item_id: str,
        content: str,
        censored_content: str,
        has_bad_words: bool,
        status: str,
        now: datetime,
    ) -> dict[str, Any]:
        """Insert a comment and return the stored record."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO comments
                (user_id, item_type, item_id, content, censored_content,
                 has_bad_words, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id, item_type, item_id, content, censored_content,
                    has_bad_words, status, format_ts(now), format_ts(now),
                )
            )
            cursor.execute("SELECT * FROM comments WHERE id = ?", (cursor.lastrowid,))
            return dict(cursor.fetchone())

    def get_comment(self, comment_id: int) -> Optional[dict[str, Any]]:
        """Get a comment by ID."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM comments WHERE id = ?", (comment_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def update_comment_content(
        self,
        comment_id: int,
        content: str,
        censored_content: str,
        has_bad_words: bool,
        status: str,
        now: datetime,
    ) -> bool:
        """Replace a comment's text and moderation fields."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE comments
                SET content = ?, censored_content = ?, has_bad_words = ?,
                    status = ?, updated_at = ?
                WHERE id = ?
                """,
                (content, censored_content, has_bad_words, status, format_ts(now), comment_id)
            )
            return cursor.rowcount > 0

    def set_comment_status(self, comment_id: int, status: str, now: datetime) -> bool:
        """Set a comment's status without touching its text."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE comments SET status = ?, updated_at = ? WHERE id = ?",
                (status, format_ts(now), comment_id)
            )
            return cursor.rowcount > 0

    def delete_comment(self, comment_id: int) -> bool:
        """Remove a comment record (likes and reports cascade)."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
            return cursor.rowcount > 0

    def count_user_comments(
        self,
        user_id: str,
        since: datetime | None = None,
        status: str | None = None,
    ) -> int:
        """Count a user's comments, optionally since a time or with a status."""
        query = "SELECT COUNT(*) AS count FROM comments WHERE user_id = ?"
        params: list[Any] = [user_id]
        if since is not None:
            query += " AND created_at >= ?"
            params.append(format_ts(since))
        if status is not None:
            query += " AND status = ?"
            params.append(status)

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            row = cursor.fetchone()
            return row["count"] if row else 0

    def count_reports_against_user(self, user_id: str) -> int:
        """Count reports filed against any of a user's comments."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT COUNT(*) AS count FROM comment_reports r
                JOIN comments c ON c.id = r.comment_id
                WHERE c.user_id = ?
                """,
                (user_id,)
            )
            row = cursor.fetchone()
            return row["count"] if row else 0

    def list_comments(
        self,
        item_type: str,
        item_id: str,
        statuses: Iterable[str],
        order_by: str = "newest",
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """
        List comments attached to an item.

        Args:
            item_type: Item type name
            item_id: Item identifier
            statuses: Statuses to include
            order_by: "newest" orders by creation time; anything else returns
                      rows in insertion order for the caller to rank
            limit: Maximum rows
            offset: Rows to skip
        """
        statuses = list(statuses)
        placeholders = ", ".join("?" for _ in statuses)
        order = "ORDER BY c.created_at DESC, c.id DESC" if order_by == "newest" else "ORDER BY c.id"

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT c.*, u.username FROM comments c
                LEFT JOIN users u ON u.user_id = c.user_id
                WHERE c.item_type = ? AND c.item_id = ? AND c.status IN ({placeholders})
                {order}
                LIMIT ? OFFSET ?
                """,
                (item_type, item_id, *statuses, limit, offset)
            )
            return [dict(row) for row in cursor.fetchall()]

    def count_comments(self, item_type: str, item_id: str, statuses: Iterable[str]) -> int:
        """Count comments attached to an item with the given statuses."""
        statuses = list(statuses)
        placeholders = ", ".join("?" for _ in statuses)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT COUNT(*) AS count FROM comments
                WHERE item_type = ? AND item_id = ? AND status IN ({placeholders})
                """,
                (item_type, item_id, *statuses)
            )
            row = cursor.fetchone()
            return row["count"] if row else 0

    def list_all_comments(
        self,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List comments across all items for moderation, newest first."""
        query = """
            SELECT c.*, u.username, u.score AS user_score,
                   u.is_comment_banned, u.is_place_add_banned
            FROM comments c
            LEFT JOIN users u ON u.user_id = c.user_id
        """
        params: list[Any] = []
        if status is not None:
            query += " WHERE c.status = ?"
            params.append(status)
        query += " ORDER BY c.created_at DESC, c.id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    # ==================== Like Methods ====================

    def has_like(self, user_id: str, comment_id: int) -> bool:
        """Check whether a user has liked a comment."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM comment_likes WHERE user_id = ? AND comment_id = ?",
                (user_id, comment_id)
            )
            return cursor.fetchone() is not None

    def add_like(self, user_id: str, comment_id: int, now: datetime) -> Optional[int]:
        """
        Record a like and increment the comment's like counter.

        Returns:
            int | None: New like count, or None if the like already existed
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO comment_likes (user_id, comment_id, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id, comment_id) DO NOTHING
                """,
                (user_id, comment_id, format_ts(now))
            )
            if cursor.rowcount == 0:
                return None
            cursor.execute(
                "UPDATE comments SET like_count = like_count + 1 WHERE id = ?",
                (comment_id,)
            )
            cursor.execute("SELECT like_count FROM comments WHERE id = ?", (comment_id,))
            return cursor.fetchone()["like_count"]

    def remove_like(self, user_id: str, comment_id: int) -> Optional[int]:
        """
        Remove a like and decrement the comment's like counter.

        Returns:
            int | None: New like count, or None if there was no like
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM comment_likes WHERE user_id = ? AND comment_id = ?",
                (user_id, comment_id)
            )
            if cursor.rowcount == 0:
                return None
            cursor.execute(
                "UPDATE comments SET like_count = like_count - 1 WHERE id = ?",
                (comment_id,)
            )
            cursor.execute("SELECT like_count FROM comments WHERE id = ?", (comment_id,))
            return cursor.fetchone()["like_count"]

    def count_likes(self, comment_id: int) -> int:
        """Count like rows for a comment."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS count FROM comment_likes WHERE comment_id = ?",
                (comment_id,)
            )
            return cursor.fetchone()["count"]

    def get_liked_comment_ids(self, user_id: str, comment_ids: Iterable[int]) -> set[int]:
        """Return the subset of comment_ids the user has liked."""
        comment_ids = list(comment_ids)
        if not comment_ids:
            return set()
        placeholders = ", ".join("?" for _ in comment_ids)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT comment_id FROM comment_likes
                WHERE user_id = ? AND comment_id IN ({placeholders})
                """,
                (user_id, *comment_ids)
            )
            return {row["comment_id"] for row in cursor.fetchall()}

    # ==================== Report Methods ====================

    def has_report(self, user_id: str, comment_id: int) -> bool:
        """Check whether a user has reported a comment."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM comment_reports WHERE user_id = ? AND comment_id = ?",
                (user_id, comment_id)
            )
            return cursor.fetchone() is not None

    def add_report(
        self,
        user_id: str,
        comment_id: int,
        reason: str,
        now: datetime,
    ) -> Optional[int]:
        """
        Record a report and increment the comment's report counter.

        Returns:
            int | None: New report count, or None if the user already reported it
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO comment_reports (user_id, comment_id, reason, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, comment_id) DO NOTHING
                """,
                (user_id, comment_id, reason, format_ts(now))
            )
            if cursor.rowcount == 0:
                return None
            cursor.execute(
                "UPDATE comments SET report_count = report_count + 1 WHERE id = ?",
                (comment_id,)
            )
            cursor.execute("SELECT report_count FROM comments WHERE id = ?", (comment_id,))
            return cursor.fetchone()["report_count"]

    def get_reports(self, comment_id: int) -> list[dict[str, Any]]:
        """Get reports filed against a comment."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM comment_reports WHERE comment_id = ? ORDER BY id",
                (comment_id,)
            )
            return [dict(row) for row in cursor.fetchall()]

    # ==================== Bad Word Methods ====================

    def add_bad_word(
        self,
        word: str,
        severity: str = "MODERATE",
        is_active: bool = True,
        now: datetime | None = None,
    ) -> int:
        """
        Add a bad word.

        Returns:
            int: ID of the new entry, or 0 if the word already exists
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO bad_words (word, severity, is_active, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(word) DO NOTHING
                """,
                (word, severity, is_active, format_ts(now or utcnow()))
            )
            if cursor.rowcount == 0:
                return 0
            logger.info("Added bad word '%s' (severity=%s)", word[:30], severity)
            return cursor.lastrowid or 0

    def get_bad_words(self, is_active: bool | None = None) -> list[dict[str, Any]]:
        """
        Get bad words, optionally filtered by active flag.

        Ordered by severity then word.
        """
        query = "SELECT * FROM bad_words"
        params: list[Any] = []
        if is_active is not None:
            query += " WHERE is_active = ?"
            params.append(is_active)
        query += " ORDER BY severity, word"

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def get_bad_word_by_id(self, word_id: int) -> dict[str, Any] | None:
        """Get a bad word by ID."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM bad_words WHERE id = ?", (word_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_bad_word_by_word(self, word: str) -> dict[str, Any] | None:
        """Get a bad word by its text (case-insensitive)."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM bad_words WHERE word = ?", (word,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def update_bad_word_by_id(
        self,
        word_id: int,
        word: str | None = None,
        severity: str | None = None,
        is_active: bool | None = None,
    ) -> bool:
        """
        Update a bad word by ID.

        Returns:
            bool: True if the word was updated
        """
        updates = []
        params: list[Any] = []

        if word is not None:
            updates.append("word = ?")
            params.append(word)
        if severity is not None:
            updates.append("severity = ?")
            params.append(severity)
        if is_active is not None:
            updates.append("is_active = ?")
            params.append(is_active)

        if not updates:
            return False

        params.append(word_id)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE bad_words SET {', '.join(updates)} WHERE id = ?",
                params
            )
            return cursor.rowcount > 0

    def remove_bad_word_by_id(self, word_id: int) -> bool:
        """Remove a bad word by its ID."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM bad_words WHERE id = ?", (word_id,))
            return cursor.rowcount > 0

    # ==================== Settings Methods ====================

    def get_settings(self, category: str | None = None) -> list[dict[str, Any]]:
        """Get settings, optionally restricted to one category."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            if category is None:
                cursor.execute("SELECT * FROM settings ORDER BY category, key")
            else:
                cursor.execute(
                    "SELECT * FROM settings WHERE category = ? ORDER BY key",
                    (category,)
                )
            return [dict(row) for row in cursor.fetchall()]

    def upsert_setting(
        self,
        key: str,
        value: str | None,
        category: str,
        description: str | None = None,
        is_secret: bool = False,
        now: datetime | None = None,
    ) -> None:
        """Insert or update a setting."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO settings (key, value, category, description, is_secret, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    category = excluded.category,
                    description = excluded.description,
                    is_secret = excluded.is_secret,
                    updated_at = excluded.updated_at
                """,
                (key, value, category, description, is_secret, format_ts(now or utcnow()))
            )


# Global database instance
_db: Optional[DatabaseManager] = None


def get_database(db_path: str | None = None) -> DatabaseManager:
    """
    Get the global database manager instance.

    Args:
        db_path: Database path (only used on first call)
    """
    global _db
    if _db is None:
        _db = DatabaseManager(db_path) if db_path else DatabaseManager()
    return _db
