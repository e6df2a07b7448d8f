"""
CommentGuard Dashboard - Flask JSON API

Exposes the comment lifecycle and the administrator operations over HTTP.
The acting user is read from the session cookie (user_id), which is issued
by the site's auth service using the shared SECRET_KEY.
"""

from __future__ import annotations

import os
import secrets
import sys
from datetime import timedelta
from functools import wraps
from pathlib import Path
from typing import Any, Optional

from flask import Flask, g, jsonify, request, session
from dotenv import load_dotenv

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commentguard.config import Config, parse_bool
from commentguard.services.admin import AdminService
from commentguard.services.comments import CommentService
from commentguard.utils.database import DatabaseManager
from commentguard.utils.errors import InvalidArgumentError, ModerationError, UnauthorizedError
from commentguard.utils.logging import get_logger, install_request_logging
from commentguard.utils.permissions import Actor, Role, require_admin

logger = get_logger(__name__)

# Load environment variables
ENV_FILE = Path(__file__).parent.parent / ".env"
load_dotenv(ENV_FILE)

app = Flask(__name__)
install_request_logging(app)

app.secret_key = os.getenv("SECRET_KEY") or secrets.token_hex(32)
app.permanent_session_lifetime = timedelta(hours=12)
app.config["DATABASE_PATH"] = os.getenv("DATABASE_PATH", "data/commentguard.db")
app.config["ENABLE_LINK_FILTER"] = parse_bool(os.getenv("ENABLE_LINK_FILTER"), True)
app.config["ENABLE_SPAM_FILTER"] = parse_bool(os.getenv("ENABLE_SPAM_FILTER"), True)
app.config["ENABLE_AD_FILTER"] = parse_bool(os.getenv("ENABLE_AD_FILTER"), True)

# One set of services per database path
_services: dict[str, tuple[DatabaseManager, CommentService, AdminService]] = {}


def configure_app(config: Config) -> None:
    """Apply a loaded Config to the Flask app."""
    app.secret_key = config.secret_key
    app.config["DATABASE_PATH"] = config.database_path
    app.config["ENABLE_LINK_FILTER"] = config.enable_link_filter
    app.config["ENABLE_SPAM_FILTER"] = config.enable_spam_filter
    app.config["ENABLE_AD_FILTER"] = config.enable_ad_filter


def get_services() -> tuple[DatabaseManager, CommentService, AdminService]:
    """Get (or build) the database and services for the configured path."""
    db_path = str(app.config["DATABASE_PATH"])
    if db_path not in _services:
        db = DatabaseManager(db_path)
        comments = CommentService(
            db,
            enable_link_filter=app.config["ENABLE_LINK_FILTER"],
            enable_spam_filter=app.config["ENABLE_SPAM_FILTER"],
            enable_ad_filter=app.config["ENABLE_AD_FILTER"],
        )
        admin = AdminService(db, comments.settings, comments.ledger)
        _services[db_path] = (db, comments, admin)
    return _services[db_path]


def safe_int(value: Any, default: int = 0, min_val: int | None = None, max_val: int | None = None) -> int:
    """Safely convert value to int with bounds checking.

    Args:
        value: Value to convert to integer
        default: Default value if conversion fails
        min_val: Optional minimum bound
        max_val: Optional maximum bound

    Returns:
        int: Converted and bounded integer value
    """
    try:
        result = int(value) if value is not None else default
    except (ValueError, TypeError):
        return default
    if min_val is not None:
        result = max(min_val, result)
    if max_val is not None:
        result = min(max_val, result)
    return result


def json_body() -> dict[str, Any]:
    """Request JSON body, or an empty dict."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgumentError("request body must be a JSON object")
    return data


def current_actor() -> Optional[Actor]:
    """Build the Actor for the session user, if any."""
    user_id = session.get("user_id")
    if not user_id:
        return None
    db, _, _ = get_services()
    user = db.get_or_create_user(str(user_id), session.get("username"))
    return Actor(user_id=user["user_id"], role=Role.parse(user["role"]), username=user["username"])


def actor_required(f):
    """Decorator to require a signed-in user for routes."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            raise UnauthorizedError("please sign in first")
        g.actor = actor
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require an administrator for routes."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.actor = require_admin(current_actor())
        return f(*args, **kwargs)
    return decorated_function


@app.errorhandler(ModerationError)
def handle_moderation_error(e: ModerationError):
    """Render engine errors with their mapped HTTP status."""
    if e.http_status >= 500:
        logger.error("%s on %s %s caused by %r", e.reason, request.method, request.path, e.__cause__)
    return jsonify(e.to_dict()), e.http_status


# ==================== Comments ====================

@app.route("/api/comments")
def list_comments():
    """List visible comments on an item."""
    _, comments, _ = get_services()
    result = comments.list_comments(
        item_type=request.args.get("item_type"),
        item_id=request.args.get("item_id"),
        viewer=current_actor(),
        page=safe_int(request.args.get("page"), default=1, min_val=1),
        limit=safe_int(request.args.get("limit"), default=20, min_val=1, max_val=100),
        sort=request.args.get("sort", "newest"),
    )
    return jsonify({
        "success": True,
        "data": result["comments"],
        "pagination": result["pagination"],
    })


@app.route("/api/comments", methods=["POST"])
@actor_required
def create_comment():
    """Create a comment."""
    _, comments, _ = get_services()
    data = json_body()
    comment = comments.create(
        g.actor,
        item_type=data.get("item_type"),
        item_id=data.get("item_id"),
        content=data.get("content"),
    )
    message = (
        "Comment saved, but some words were filtered"
        if comment["has_bad_words"]
        else "Comment saved"
    )
    return jsonify({"success": True, "data": comment, "message": message}), 201


@app.route("/api/comments/permission")
@actor_required
def comment_permission():
    """Tell the signed-in user whether they may comment."""
    _, comments, _ = get_services()
    permission = comments.ledger.can_user_comment(g.actor.user_id)
    return jsonify({"success": True, "data": permission.to_dict()})


@app.route("/api/comments/<int:comment_id>")
def get_comment(comment_id: int):
    """Get a single comment."""
    _, comments, _ = get_services()
    return jsonify({"success": True, "data": comments.get_comment(comment_id, current_actor())})


@app.route("/api/comments/<int:comment_id>", methods=["PUT"])
@actor_required
def update_comment(comment_id: int):
    """Edit a comment's content, or set its status (admins)."""
    _, comments, _ = get_services()
    data = json_body()
    comment = comments.edit(
        g.actor, comment_id, content=data.get("content"), status=data.get("status")
    )
    return jsonify({"success": True, "data": comment})


@app.route("/api/comments/<int:comment_id>", methods=["DELETE"])
@actor_required
def delete_comment(comment_id: int):
    """Delete a comment (soft for authors, hard for admins)."""
    _, comments, _ = get_services()
    removed = comments.delete(g.actor, comment_id)
    return jsonify({"success": True, "removed": removed})


@app.route("/api/comments/<int:comment_id>/like", methods=["POST"])
@actor_required
def like_comment(comment_id: int):
    """Toggle the signed-in user's like on a comment."""
    _, comments, _ = get_services()
    return jsonify({"success": True, "data": comments.toggle_like(g.actor, comment_id)})


@app.route("/api/comments/<int:comment_id>/report", methods=["POST"])
@actor_required
def report_comment(comment_id: int):
    """Report a comment."""
    _, comments, _ = get_services()
    data = json_body()
    result = comments.report(g.actor, comment_id, data.get("reason"))
    return jsonify({"success": True, "data": result})


# ==================== Admin: Bad Words ====================

@app.route("/api/admin/bad-words")
@admin_required
def list_bad_words():
    """List bad words, optionally filtered by is_active."""
    _, _, admin = get_services()
    is_active_arg = request.args.get("is_active")
    is_active = None if is_active_arg is None else parse_bool(is_active_arg)
    return jsonify({"success": True, "data": admin.list_bad_words(g.actor, is_active)})


@app.route("/api/admin/bad-words", methods=["POST"])
@admin_required
def add_bad_word():
    """Add a bad word."""
    _, _, admin = get_services()
    data = json_body()
    word = admin.add_bad_word(
        g.actor,
        data.get("word"),
        severity=data.get("severity") or "MODERATE",
        is_active=bool(data.get("is_active", True)),
    )
    return jsonify({"success": True, "data": word}), 201


@app.route("/api/admin/bad-words/<int:word_id>", methods=["PUT"])
@admin_required
def update_bad_word(word_id: int):
    """Update a bad word."""
    _, _, admin = get_services()
    data = json_body()
    is_active = data.get("is_active")
    word = admin.update_bad_word(
        g.actor,
        word_id,
        word=data.get("word"),
        severity=data.get("severity"),
        is_active=None if is_active is None else bool(is_active),
    )
    return jsonify({"success": True, "data": word})


@app.route("/api/admin/bad-words/<int:word_id>", methods=["DELETE"])
@admin_required
def delete_bad_word(word_id: int):
    """Delete a bad word."""
    _, _, admin = get_services()
    admin.delete_bad_word(g.actor, word_id)
    return jsonify({"success": True})


# ==================== Admin: Settings ====================

@app.route("/api/admin/settings")
@admin_required
def list_settings():
    """List settings (secret values masked)."""
    _, _, admin = get_services()
    return jsonify({"success": True, "data": admin.list_settings(g.actor)})


@app.route("/api/admin/settings", methods=["POST"])
@admin_required
def save_settings():
    """Save a batch of settings."""
    _, _, admin = get_services()
    entries = json_body().get("settings")
    if not isinstance(entries, list):
        raise InvalidArgumentError("settings must be a list")
    saved = admin.save_settings(g.actor, entries)
    return jsonify({"success": True, "saved": saved})


# ==================== Admin: Users ====================

@app.route("/api/admin/users/<user_id>/score", methods=["POST"])
@admin_required
def adjust_user_score(user_id: str):
    """Manually adjust a user's score."""
    _, _, admin = get_services()
    data = json_body()
    if "adjustment" not in data:
        raise InvalidArgumentError("adjustment is required")
    score = admin.adjust_score(g.actor, user_id, data["adjustment"], data.get("reason"))
    return jsonify({"success": True, "score": score})


@app.route("/api/admin/users/<user_id>/ban", methods=["POST"])
@admin_required
def ban_user(user_id: str):
    """Ban a user for a number of days."""
    _, _, admin = get_services()
    data = json_body()
    if "days" not in data:
        raise InvalidArgumentError("days is required")
    user = admin.ban_user(
        g.actor,
        user_id,
        data["days"],
        ban_type=data.get("ban_type") or "comment",
        reason=data.get("reason"),
    )
    return jsonify({"success": True, "data": user})


@app.route("/api/admin/users/<user_id>/score-history")
@admin_required
def user_score_history(user_id: str):
    """List a user's score changes."""
    _, _, admin = get_services()
    limit = safe_int(request.args.get("limit"), default=50, min_val=1, max_val=500)
    return jsonify({"success": True, "data": admin.score_history(g.actor, user_id, limit)})


# ==================== Admin: Moderation ====================

@app.route("/api/admin/comments")
@admin_required
def admin_list_comments():
    """List all comments for moderation."""
    _, _, admin = get_services()
    result = admin.list_comments(
        g.actor,
        status=request.args.get("status") or None,
        limit=safe_int(request.args.get("limit"), default=50, min_val=1, max_val=200),
        offset=safe_int(request.args.get("offset"), default=0, min_val=0),
    )
    return jsonify({"success": True, "data": result})


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=False)
