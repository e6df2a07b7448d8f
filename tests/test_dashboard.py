"""
Tests for the dashboard JSON API.

Uses Flask's test client against a temporary database. The signed-in
user is placed directly in the session.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# Add src and dashboard to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent / "dashboard"))

from app import app, get_services  # noqa: E402
from commentguard.utils.logging import REQUEST_LOGGER  # noqa: E402


@pytest.fixture
def client(tmp_path):
    app.config["TESTING"] = True
    app.config["DATABASE_PATH"] = str(tmp_path / "dashboard.db")
    app.config["ENABLE_LINK_FILTER"] = True
    app.config["ENABLE_SPAM_FILTER"] = True
    app.config["ENABLE_AD_FILTER"] = True
    with app.test_client() as client:
        yield client


def sign_in(client, user_id: str, admin: bool = False) -> None:
    db, _, _ = get_services()
    db.get_or_create_user(user_id, user_id.title(), role="ADMIN" if admin else None)
    with client.session_transaction() as sess:
        sess["user_id"] = user_id


def post_comment(client, content: str = "The garden is lovely in spring") -> dict:
    response = client.post("/api/comments", json={
        "item_type": "PLACE",
        "item_id": "p-1",
        "content": content,
    })
    assert response.status_code == 201
    return response.get_json()["data"]


class TestCommentRoutes:
    """Tests for the public comment API."""

    def test_create_requires_sign_in(self, client) -> None:
        response = client.post("/api/comments", json={"item_type": "PLACE", "item_id": "p-1"})
        assert response.status_code == 401
        body = response.get_json()
        assert body["success"] is False
        assert body["kind"] == "unauthorized"

    def test_create_and_list(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        assert comment["status"] == "ACTIVE"

        response = client.get("/api/comments?item_type=PLACE&item_id=p-1")
        body = response.get_json()
        assert response.status_code == 200
        assert body["success"] is True
        assert [c["id"] for c in body["data"]] == [comment["id"]]
        assert body["data"][0]["username"] == "Alice"
        assert body["pagination"]["total"] == 1

    def test_create_with_bad_words_reports_filtering(self, client) -> None:
        sign_in(client, "root", admin=True)
        client.post("/api/admin/bad-words", json={"word": "darn", "severity": "MILD"})

        sign_in(client, "alice")
        response = client.post("/api/comments", json={
            "item_type": "PLACE",
            "item_id": "p-1",
            "content": "That was a darn good dinner",
        })
        body = response.get_json()
        assert response.status_code == 201
        assert "filtered" in body["message"]
        assert body["data"]["content"] == "That was a **** good dinner"

    def test_link_rejected(self, client) -> None:
        sign_in(client, "alice")
        response = client.post("/api/comments", json={
            "item_type": "PLACE",
            "item_id": "p-1",
            "content": "Menus are posted on example.com daily",
        })
        assert response.status_code == 400
        assert response.get_json()["error"] == "links are not allowed in comments"

    def test_non_object_body_rejected(self, client) -> None:
        sign_in(client, "alice")
        response = client.post("/api/comments", json=["not", "an", "object"])
        assert response.status_code == 400

    def test_list_requires_item(self, client) -> None:
        response = client.get("/api/comments?item_type=PLACE")
        assert response.status_code == 400

    def test_permission(self, client) -> None:
        sign_in(client, "alice")
        body = client.get("/api/comments/permission").get_json()
        assert body["data"] == {"can_comment": True, "reason": None, "ban_until": None}

    def test_get_update_delete(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        url = f"/api/comments/{comment['id']}"

        assert client.get(url).get_json()["data"]["id"] == comment["id"]

        response = client.put(url, json={"content": "The garden is lovely in May"})
        assert response.get_json()["data"]["content"] == "The garden is lovely in May"

        response = client.delete(url)
        assert response.get_json()["removed"] is False
        assert client.get(url).status_code == 404

    def test_update_by_other_user_forbidden(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        sign_in(client, "bob")
        response = client.put(f"/api/comments/{comment['id']}", json={"content": "Not mine at all"})
        assert response.status_code == 403

    def test_like_toggle_and_report(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        sign_in(client, "bob")

        like_url = f"/api/comments/{comment['id']}/like"
        assert client.post(like_url).get_json()["data"] == {"liked": True, "like_count": 1}
        assert client.post(like_url).get_json()["data"] == {"liked": False, "like_count": 0}

        report_url = f"/api/comments/{comment['id']}/report"
        response = client.post(report_url, json={"reason": "rude"})
        assert response.get_json()["data"]["report_count"] == 1
        response = client.post(report_url, json={"reason": "rude"})
        assert response.status_code == 409

    def test_missing_comment(self, client) -> None:
        assert client.get("/api/comments/404").status_code == 404


class TestAdminRoutes:
    """Tests for the admin API."""

    def test_non_admin_forbidden(self, client) -> None:
        sign_in(client, "alice")
        response = client.get("/api/admin/bad-words")
        assert response.status_code == 403
        assert response.get_json()["kind"] == "forbidden"

    def test_anonymous_unauthorized(self, client) -> None:
        assert client.get("/api/admin/settings").status_code == 401

    def test_bad_word_crud(self, client) -> None:
        sign_in(client, "root", admin=True)
        response = client.post("/api/admin/bad-words", json={"word": "Darn"})
        assert response.status_code == 201
        word = response.get_json()["data"]
        assert word["word"] == "darn"
        assert word["severity"] == "MODERATE"

        assert client.post("/api/admin/bad-words", json={"word": "darn"}).status_code == 409

        response = client.put(f"/api/admin/bad-words/{word['id']}", json={"is_active": False})
        assert response.get_json()["data"]["is_active"] is False

        listed = client.get("/api/admin/bad-words?is_active=true").get_json()["data"]
        assert listed == []

        assert client.delete(f"/api/admin/bad-words/{word['id']}").status_code == 200
        assert client.delete(f"/api/admin/bad-words/{word['id']}").status_code == 404

    def test_settings(self, client) -> None:
        sign_in(client, "root", admin=True)
        response = client.post("/api/admin/settings", json={"settings": [
            {"key": "like_bonus", "value": "2", "category": "COMMENT_SCORES"},
            {"key": "maps_api_key", "value": "maps-secret-987", "category": "API_KEYS", "is_secret": True},
        ]})
        assert response.get_json()["saved"] == 2

        listed = {s["key"]: s for s in client.get("/api/admin/settings").get_json()["data"]}
        assert listed["like_bonus"]["value"] == "2"
        assert listed["maps_api_key"]["value"] == "********"

        response = client.post("/api/admin/settings", json={"settings": "like_bonus=2"})
        assert response.status_code == 400

    def test_score_ban_and_history(self, client) -> None:
        sign_in(client, "alice")
        sign_in(client, "root", admin=True)

        response = client.post("/api/admin/users/alice/score", json={"adjustment": -12, "reason": "spam"})
        assert response.get_json()["score"] == -12

        assert client.post("/api/admin/users/alice/score", json={}).status_code == 400

        response = client.post("/api/admin/users/alice/ban", json={"days": 3, "ban_type": "place"})
        assert response.get_json()["data"]["is_place_add_banned"] is True

        history = client.get("/api/admin/users/alice/score-history").get_json()["data"]
        assert history[0]["reason"] == "spam"
        assert history[0]["new_score"] == -12

        assert client.get("/api/admin/users/ghost/score-history").status_code == 404

    def test_admin_delete_and_moderation_list(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        sign_in(client, "root", admin=True)

        rows = client.get("/api/admin/comments").get_json()["data"]
        assert rows[0]["id"] == comment["id"]
        assert rows[0]["author_score"] == 0

        response = client.delete(f"/api/comments/{comment['id']}")
        assert response.get_json()["removed"] is True

        db, _, _ = get_services()
        assert db.get_user("alice")["score"] == -10
        assert client.get("/api/admin/comments").get_json()["data"] == []


class TestRequestValidation:
    """Malformed field types and storage failures map to typed errors."""

    def assert_invalid(self, response) -> None:
        assert response.status_code == 400
        body = response.get_json()
        assert body["success"] is False
        assert body["kind"] == "invalid_argument"

    def test_numeric_content_on_create(self, client) -> None:
        sign_in(client, "alice")
        self.assert_invalid(client.post("/api/comments", json={
            "item_type": "PLACE",
            "item_id": "p-1",
            "content": 12345678901,
        }))

    def test_numeric_content_on_edit(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        self.assert_invalid(client.put(f"/api/comments/{comment['id']}", json={"content": 42}))

    def test_numeric_report_reason(self, client) -> None:
        sign_in(client, "alice")
        comment = post_comment(client)
        sign_in(client, "bob")
        self.assert_invalid(client.post(f"/api/comments/{comment['id']}/report", json={"reason": 5}))

    def test_numeric_bad_word(self, client) -> None:
        sign_in(client, "root", admin=True)
        self.assert_invalid(client.post("/api/admin/bad-words", json={"word": 7}))

        word = client.post("/api/admin/bad-words", json={"word": "darn"}).get_json()["data"]
        self.assert_invalid(client.put(f"/api/admin/bad-words/{word['id']}", json={"word": ["heck"]}))

    def test_numeric_setting_key(self, client) -> None:
        sign_in(client, "root", admin=True)
        self.assert_invalid(client.post("/api/admin/settings", json={"settings": [
            {"key": 3, "value": "1"},
        ]}))

    def test_storage_failure_is_internal(self, client) -> None:
        db, _, _ = get_services()
        with db.get_connection() as conn:
            conn.execute("DROP TABLE comments")

        response = client.get("/api/comments?item_type=PLACE&item_id=p-1")
        assert response.status_code == 500
        body = response.get_json()
        assert body["success"] is False
        assert body["kind"] == "internal"
        assert body["error"] == "storage failure"


class TestRequestLogging:
    """Each API request is logged with its status and actor."""

    def request_lines(self, caplog) -> list[str]:
        return [r.getMessage() for r in caplog.records if r.name == REQUEST_LOGGER]

    def test_success_and_failure_lines(self, client, caplog) -> None:
        caplog.set_level(logging.INFO, logger=REQUEST_LOGGER)
        sign_in(client, "alice")

        client.get("/api/comments/permission")
        client.get("/api/admin/settings")

        lines = self.request_lines(caplog)
        assert "GET /api/comments/permission -> 200 actor=alice" in lines
        assert (
            "GET /api/admin/settings -> 403 actor=alice kind=forbidden: administrator access required"
            in lines
        )

    def test_failure_levels(self, client, caplog) -> None:
        caplog.set_level(logging.INFO, logger=REQUEST_LOGGER)
        client.get("/api/admin/settings")

        db, _, _ = get_services()
        with db.get_connection() as conn:
            conn.execute("DROP TABLE comments")
        client.get("/api/comments?item_type=PLACE&item_id=p-1")

        levels = {
            r.getMessage().split(" -> ")[1][:3]: r.levelno
            for r in caplog.records if r.name == REQUEST_LOGGER
        }
        assert levels == {"401": logging.WARNING, "500": logging.ERROR}
