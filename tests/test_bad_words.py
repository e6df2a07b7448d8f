"""
Tests for the bad word filter.

Tests:
- Empty word lists leave text untouched
- Case-insensitive substring masking with equal-length asterisks
- One match entry per word, every occurrence masked
- Inactive words are ignored
- Filtering is idempotent
"""

from __future__ import annotations

import pytest

from commentguard.utils.bad_words import BadWordFilter, Severity, censor_text


class TestCensorText:
    """Tests for the pure censoring function."""

    def test_no_words_returns_text_unchanged(self) -> None:
        result = censor_text("Nice little cafe", [])
        assert result.censored_text == "Nice little cafe"
        assert result.has_matches is False
        assert result.matches == []

    def test_case_insensitive_masking(self) -> None:
        result = censor_text("That was DARN tasty", [("darn", Severity.MILD)])
        assert result.censored_text == "That was **** tasty"
        assert result.has_matches is True
        assert result.matches[0].word == "darn"
        assert result.matches[0].severity == Severity.MILD

    def test_no_word_boundary_requirement(self) -> None:
        result = censor_text("a darned shame", [("darn", Severity.MILD)])
        assert result.censored_text == "a ****ed shame"

    def test_repeated_word_yields_single_match(self) -> None:
        """Two occurrences produce one match entry and are both masked."""
        result = censor_text("darn it, darn it all", [("darn", Severity.MODERATE)])
        assert result.censored_text == "**** it, **** it all"
        assert len(result.matches) == 1

    def test_overlapping_words_both_masked(self) -> None:
        """Detection runs on the original text, so both words match."""
        words = [("badly", Severity.SEVERE), ("bad", Severity.MILD)]
        result = censor_text("cooked badly, served bad", words)
        assert result.censored_text == "cooked *****, served ***"
        assert {m.word for m in result.matches} == {"bad", "badly"}
        assert result.highest_severity == Severity.SEVERE

    def test_duplicate_words_in_list_deduplicated(self) -> None:
        words = [("darn", Severity.MILD), ("DARN", Severity.MILD)]
        result = censor_text("darn", words)
        assert len(result.matches) == 1

    def test_regex_characters_are_literal(self) -> None:
        result = censor_text("what the f.ck and fuck", [("f.ck", Severity.SEVERE)])
        assert result.censored_text == "what the **** and fuck"

    def test_filtering_is_idempotent(self) -> None:
        words = [("darn", Severity.MILD), ("heck", Severity.MILD)]
        once = censor_text("darn this heck of a place", words)
        twice = censor_text(once.censored_text, words)
        assert twice.censored_text == once.censored_text
        assert twice.has_matches is False

    def test_highest_severity_none_without_matches(self) -> None:
        assert censor_text("clean", [("darn", Severity.MILD)]).highest_severity is None


class TestBadWordFilter:
    """Tests for the database-backed filter."""

    @pytest.fixture
    def word_filter(self, db):
        return BadWordFilter(db)

    def test_empty_list(self, word_filter) -> None:
        result = word_filter.filter_text("Anything goes here")
        assert result.censored_text == "Anything goes here"
        assert result.has_matches is False

    def test_uses_active_words(self, db, word_filter) -> None:
        db.add_bad_word("darn", "MILD")
        result = word_filter.filter_text("Darn good kebab")
        assert result.censored_text == "**** good kebab"
        assert result.matches[0].severity == Severity.MILD

    def test_ignores_inactive_words(self, db, word_filter) -> None:
        db.add_bad_word("darn", "MILD", is_active=False)
        result = word_filter.filter_text("darn good kebab")
        assert result.has_matches is False

    def test_list_changes_apply_immediately(self, db, word_filter) -> None:
        assert word_filter.filter_text("heck yes").has_matches is False
        word_id = db.add_bad_word("heck", "MODERATE")
        assert word_filter.filter_text("heck yes").has_matches is True
        db.update_bad_word_by_id(word_id, is_active=False)
        assert word_filter.filter_text("heck yes").has_matches is False

    def test_unknown_severity_treated_as_moderate(self, db, word_filter) -> None:
        word_id = db.add_bad_word("heck", "MODERATE")
        with db.get_connection() as conn:
            conn.execute("UPDATE bad_words SET severity = 'WEIRD' WHERE id = ?", (word_id,))
        result = word_filter.filter_text("heck")
        assert result.matches[0].severity == Severity.MODERATE


class TestSeverity:
    """Tests for severity parsing."""

    def test_parse_is_case_insensitive(self) -> None:
        assert Severity.parse(" severe ") == Severity.SEVERE

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            Severity.parse("nuclear")
