"""
Spam and advertisement heuristics for comments.

Provides stateless text classifiers:
- Link detection (URLs, bare domains, short links, social hosts)
- Spam scoring (character/word repetition, short text, spam keywords)
- Advertisement scoring (ad keywords, phone numbers, e-mail addresses)

Scores are additive and not clamped to 1.0.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from commentguard.utils.logging import get_logger

logger = get_logger(__name__)

SPAM_THRESHOLD = 0.5
ADVERTISEMENT_THRESHOLD = 0.5


@dataclass
class SpamResult:
    """Result of spam analysis."""
    is_spam: bool
    confidence: float
    reasons: list[str] = field(default_factory=list)


@dataclass
class AdvertisementResult:
    """Result of advertisement analysis."""
    is_advertisement: bool
    confidence: float
    reasons: list[str] = field(default_factory=list)


class SpamDetector:
    """
    Heuristic spam and advertisement detection for comments.

    Keyword lists cover the site's Persian audience plus English
    equivalents. Keyword hits are case-insensitive substring matches, so
    overlapping entries ("discount" and "discount code") both count.
    """

    LINK_PATTERNS: list[re.Pattern[str]] = [
        re.compile(r"https?://[^\s]+", re.IGNORECASE),
        re.compile(r"www\.[^\s]+", re.IGNORECASE),
        re.compile(r"[a-zA-Z0-9-]+\.[a-zA-Z]{2,}[^\s]*"),
        re.compile(r"bit\.ly/[^\s]+", re.IGNORECASE),
        re.compile(r"t\.me/[^\s]+", re.IGNORECASE),
        re.compile(r"instagram\.com/[^\s]+", re.IGNORECASE),
        re.compile(r"facebook\.com/[^\s]+", re.IGNORECASE),
        re.compile(r"twitter\.com/[^\s]+", re.IGNORECASE),
    ]

    SPAM_KEYWORDS: list[str] = [
        # Persian
        "خرید",        # purchase
        "فروش",        # sale
        "تخفیف",       # discount
        "کد تخفیف",    # discount code
        "لینک",        # link
        "کلیک کنید",   # click here
        "رایگان",      # free
        "فوری",        # urgent
        # English
        "buy now",
        "for sale",
        "discount",
        "discount code",
        "click here",
        "free",
        "urgent",
    ]

    AD_KEYWORDS: list[str] = [
        # Persian
        "خرید",          # purchase
        "فروش",          # sale
        "تخفیف",         # discount
        "کد تخفیف",      # discount code
        "پیشنهاد ویژه",  # special offer
        "فروشگاه",       # store
        "محصول",         # product
        "خدمات",         # services
        "قیمت",          # price
        "ارزان",         # cheap
        "رایگان",        # free
        # English
        "for sale",
        "discount",
        "discount code",
        "special offer",
        "our store",
        "our product",
        "our services",
        "best price",
        "cheap",
        "free",
    ]

    CHAR_REPEAT_PATTERN = re.compile(r"(.)\1{4,}")
    PHONE_PATTERNS: list[re.Pattern[str]] = [
        re.compile(r"[0-9]{11}"),
        re.compile(r"09[0-9]{9}"),
    ]
    EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

    WORD_REPEAT_LIMIT = 5
    MIN_LENGTH = 10
    KEYWORD_HITS = 2

    def contains_links(self, text: str) -> bool:
        """
        Check whether a text contains anything link-like.

        Args:
            text: Text to check

        Returns:
            bool: True if any link pattern matches
        """
        return any(pattern.search(text) for pattern in self.LINK_PATTERNS)

    def _keyword_hits(self, text: str, keywords: list[str]) -> list[str]:
        lower_text = text.lower()
        return [kw for kw in keywords if kw.lower() in lower_text]

    def detect_spam(self, text: str) -> SpamResult:
        """
        Score a text for spam.

        Signals (additive):
        - A character repeated 5+ times in a row: +0.3
        - Any whitespace token repeated 5+ times: +0.3
        - Fewer than 10 characters: +0.2
        - Two or more spam keywords: +0.4

        Args:
            text: Comment text

        Returns:
            SpamResult: is_spam when confidence >= 0.5
        """
        reasons: list[str] = []
        confidence = 0.0

        if self.CHAR_REPEAT_PATTERN.search(text):
            reasons.append("excessive character repetition")
            confidence += 0.3

        word_counts = Counter(text.split())
        if word_counts and max(word_counts.values()) >= self.WORD_REPEAT_LIMIT:
            reasons.append("excessive word repetition")
            confidence += 0.3

        if len(text) < self.MIN_LENGTH:
            reasons.append("comment too short")
            confidence += 0.2

        if len(self._keyword_hits(text, self.SPAM_KEYWORDS)) >= self.KEYWORD_HITS:
            reasons.append("spam keyword usage")
            confidence += 0.4

        confidence = round(confidence, 2)
        return SpamResult(
            is_spam=confidence >= SPAM_THRESHOLD,
            confidence=confidence,
            reasons=reasons,
        )

    def detect_advertisement(self, text: str) -> AdvertisementResult:
        """
        Score a text for advertising.

        Signals (additive):
        - Two or more advertisement keywords: +0.4
        - An 11-digit run or an 09xxxxxxxxx mobile number: +0.3
        - An e-mail address: +0.3

        Args:
            text: Comment text

        Returns:
            AdvertisementResult: is_advertisement when confidence >= 0.5
        """
        reasons: list[str] = []
        confidence = 0.0

        if len(self._keyword_hits(text, self.AD_KEYWORDS)) >= self.KEYWORD_HITS:
            reasons.append("advertisement keyword usage")
            confidence += 0.4

        if any(pattern.search(text) for pattern in self.PHONE_PATTERNS):
            reasons.append("phone number")
            confidence += 0.3

        if self.EMAIL_PATTERN.search(text):
            reasons.append("email address")
            confidence += 0.3

        confidence = round(confidence, 2)
        return AdvertisementResult(
            is_advertisement=confidence >= ADVERTISEMENT_THRESHOLD,
            confidence=confidence,
            reasons=reasons,
        )


# Global spam detector instance
_spam_detector: Optional[SpamDetector] = None


def get_spam_detector() -> SpamDetector:
    """Get the global spam detector instance."""
    global _spam_detector
    if _spam_detector is None:
        _spam_detector = SpamDetector()
    return _spam_detector
