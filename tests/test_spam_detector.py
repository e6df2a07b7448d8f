"""
Tests for spam, advertisement and link heuristics.

Tests:
- Link detection patterns
- Additive spam confidence
- Advertisement signals (keywords, phone numbers, e-mail)
"""

from __future__ import annotations

import pytest

from commentguard.utils.spam_detector import SpamDetector, get_spam_detector


@pytest.fixture
def detector():
    return SpamDetector()


class TestLinkDetection:
    """Tests for contains_links."""

    @pytest.mark.parametrize("text", [
        "see https://example.org/menu",
        "http://foo",
        "visit www.mysite",
        "go to example.com today",
        "bit.ly/abc123",
        "join t.me/travelgroup",
        "instagram.com/someone",
    ])
    def test_detects_links(self, detector, text) -> None:
        assert detector.contains_links(text) is True

    @pytest.mark.parametrize("text", [
        "The soup was great and the staff friendly",
        "غذای خوبی داشت",
        "Open from 9 to 5, closed on Fridays",
    ])
    def test_plain_text_has_no_links(self, detector, text) -> None:
        assert detector.contains_links(text) is False


class TestSpamDetection:
    """Tests for detect_spam."""

    def test_clean_comment(self, detector) -> None:
        result = detector.detect_spam("The view from the hill was lovely at sunset")
        assert result.is_spam is False
        assert result.confidence == 0
        assert result.reasons == []

    def test_short_comment_alone_is_not_spam(self, detector) -> None:
        result = detector.detect_spam("nice")
        assert result.confidence == 0.2
        assert result.reasons == ["comment too short"]
        assert result.is_spam is False

    def test_character_repetition(self, detector) -> None:
        result = detector.detect_spam("Sooooo good, really worth the trip")
        assert "excessive character repetition" in result.reasons
        assert result.confidence == 0.3
        assert result.is_spam is False

    def test_confidence_is_additive(self, detector) -> None:
        """Five repeated words in nine characters: 0.3 + 0.2."""
        result = detector.detect_spam("a a a a a")
        assert result.reasons == ["excessive word repetition", "comment too short"]
        assert result.confidence == 0.5
        assert result.is_spam is True

    def test_repeated_characters_and_short(self, detector) -> None:
        result = detector.detect_spam("!!!!!!!")
        assert result.confidence == 0.5
        assert result.is_spam is True

    def test_overlapping_keywords_both_count(self, detector) -> None:
        """'discount' and 'discount code' are two hits."""
        result = detector.detect_spam("Use this discount code at the counter please")
        assert "spam keyword usage" in result.reasons
        assert result.confidence == 0.4
        assert result.is_spam is False

    def test_persian_keywords(self, detector) -> None:
        result = detector.detect_spam("خرید فوری با تخفیف ویژه برای شما")
        assert "spam keyword usage" in result.reasons

    def test_all_signals(self, detector) -> None:
        result = detector.detect_spam("aaaaa aaaaa aaaaa aaaaa aaaaa free urgent")
        assert result.confidence == 1.0
        assert result.is_spam is True
        assert len(result.reasons) == 3


class TestAdvertisementDetection:
    """Tests for detect_advertisement."""

    def test_clean_comment(self, detector) -> None:
        result = detector.detect_advertisement("Friendly staff and quiet garden seating")
        assert result.is_advertisement is False
        assert result.confidence == 0

    def test_mobile_number(self, detector) -> None:
        result = detector.detect_advertisement("Call me on 09123456789 for details")
        assert result.reasons == ["phone number"]
        assert result.confidence == 0.3
        assert result.is_advertisement is False

    def test_eleven_digit_run(self, detector) -> None:
        result = detector.detect_advertisement("Number 12345678901 works")
        assert "phone number" in result.reasons

    def test_phone_and_email(self, detector) -> None:
        result = detector.detect_advertisement(
            "Call 09123456789 or write to sales@shop.ir for booking"
        )
        assert result.reasons == ["phone number", "email address"]
        assert result.confidence == 0.6
        assert result.is_advertisement is True

    def test_keywords_and_phone(self, detector) -> None:
        result = detector.detect_advertisement(
            "فروشگاه ما بهترین قیمت را دارد 09121112233"
        )
        assert "advertisement keyword usage" in result.reasons
        assert result.confidence == 0.7
        assert result.is_advertisement is True

    def test_all_signals_not_clamped(self, detector) -> None:
        result = detector.detect_advertisement(
            "cheap and free, call 09121112233 or mail a@b.co"
        )
        assert result.confidence == 1.0


class TestGlobalDetector:
    def test_singleton(self) -> None:
        assert get_spam_detector() is get_spam_detector()
