"""
Tests for the settings store.

These tests verify:
- Score policy defaults and per-key overrides
- Fallback on empty or malformed values
- Category coercion and secret masking
- Seeding of default score settings
"""

from __future__ import annotations

import pytest

from commentguard.utils.errors import InvalidArgumentError
from commentguard.utils.settings import (
    SECRET_MASK,
    ScoreSettings,
    SettingCategory,
)


class TestScoreSettings:
    """Tests for reading the trust score policy."""

    def test_defaults_when_empty(self, settings) -> None:
        policy = settings.get_score_settings()
        assert policy == ScoreSettings()
        assert policy.bad_words_penalty == -5
        assert policy.report_penalty == -3
        assert policy.deleted_by_admin_penalty == -10
        assert policy.like_bonus == 1
        assert (policy.ban_threshold_1, policy.ban_threshold_2, policy.ban_threshold_3) == (-10, -15, -20)
        assert (policy.ban_days_1, policy.ban_days_2, policy.ban_days_3) == (1, 3, 7)
        assert policy.place_ban_days == 30

    def test_override_single_key(self, settings) -> None:
        settings.upsert("report_penalty", "-7", SettingCategory.COMMENT_SCORES)
        policy = settings.get_score_settings()
        assert policy.report_penalty == -7
        assert policy.bad_words_penalty == -5

    def test_empty_value_falls_back(self, settings) -> None:
        settings.upsert("like_bonus", "", SettingCategory.COMMENT_SCORES)
        assert settings.get_score_settings().like_bonus == 1

    def test_invalid_value_falls_back(self, settings) -> None:
        settings.upsert("ban_days_1", "two", SettingCategory.COMMENT_SCORES)
        assert settings.get_score_settings().ban_days_1 == 1

    def test_keys_in_other_categories_ignored(self, settings) -> None:
        settings.upsert("like_bonus", "9", SettingCategory.GENERAL)
        assert settings.get_score_settings().like_bonus == 1


class TestSettingsStore:
    """Tests for writing and listing settings."""

    def test_unknown_category_becomes_general(self, settings) -> None:
        settings.upsert("site_name", "Travel Guide", "SOMETHING_ELSE")
        assert settings.get_settings(SettingCategory.GENERAL) == {"site_name": "Travel Guide"}

    def test_category_text_is_case_insensitive(self, settings) -> None:
        settings.upsert("like_bonus", "2", "comment_scores")
        assert settings.get_score_settings().like_bonus == 2

    def test_upsert_overwrites(self, settings) -> None:
        settings.upsert("site_name", "One")
        settings.upsert("site_name", "Two")
        assert settings.get_settings("GENERAL")["site_name"] == "Two"

    def test_empty_key_rejected(self, settings) -> None:
        with pytest.raises(InvalidArgumentError):
            settings.upsert("   ", "x")

    def test_secret_values_masked_in_listing(self, settings) -> None:
        settings.upsert("maps_api_key", "abcd-1234-efgh", SettingCategory.API_KEYS, is_secret=True)
        settings.upsert("site_name", "Travel Guide")

        listed = {row["key"]: row for row in settings.list_settings()}
        assert listed["maps_api_key"]["value"] == SECRET_MASK
        assert listed["maps_api_key"]["is_secret"] is True
        assert listed["site_name"]["value"] == "Travel Guide"
        assert listed["site_name"]["is_secret"] is False

    def test_secret_value_still_readable_internally(self, settings) -> None:
        settings.upsert("maps_api_key", "abcd-1234-efgh", SettingCategory.API_KEYS, is_secret=True)
        assert settings.get_settings(SettingCategory.API_KEYS)["maps_api_key"] == "abcd-1234-efgh"

    def test_seed_score_defaults(self, settings) -> None:
        assert settings.seed_score_defaults() == 11
        raw = settings.get_settings(SettingCategory.COMMENT_SCORES)
        assert raw["ban_threshold_3"] == "-20"
        assert settings.seed_score_defaults() == 0

    def test_seed_keeps_existing_values(self, settings) -> None:
        settings.upsert("like_bonus", "3", SettingCategory.COMMENT_SCORES)
        assert settings.seed_score_defaults() == 10
        assert settings.get_score_settings().like_bonus == 3
