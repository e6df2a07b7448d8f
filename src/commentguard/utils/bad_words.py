"""
Bad word filter for comment text.

Matches every active bad word as a case-insensitive literal substring
(no word boundaries), masks each occurrence with asterisks of the same
length, and reports which words matched with their severity.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from commentguard.utils.database import DatabaseManager, get_database
from commentguard.utils.logging import get_logger

logger = get_logger(__name__)

MASK_CHAR = "*"


class Severity(Enum):
    """How offensive a bad word is."""
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """
        Parse severity text.

        Raises:
            ValueError: If the value is not a known severity
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


@dataclass(frozen=True)
class BadWordMatch:
    """A bad word found in a text."""
    word: str
    severity: Severity


@dataclass
class FilterResult:
    """Result of filtering a text."""
    censored_text: str
    has_matches: bool
    matches: list[BadWordMatch] = field(default_factory=list)

    @property
    def highest_severity(self) -> Optional[Severity]:
        """Most severe matched word, if any."""
        order = [Severity.MILD, Severity.MODERATE, Severity.SEVERE]
        if not self.matches:
            return None
        return max((m.severity for m in self.matches), key=order.index)


def censor_text(text: str, words: Iterable[tuple[str, Severity]]) -> FilterResult:
    """
    Censor text against an explicit word list.

    Detection runs on the original text; masking accumulates on the censored
    copy, so overlapping words are all masked.

    Args:
        text: Text to filter
        words: (word, severity) pairs

    Returns:
        FilterResult: Censored text and matches
    """
    censored = text
    matches: list[BadWordMatch] = []
    seen: set[str] = set()

    for word, severity in words:
        if not word:
            continue
        pattern = re.compile(re.escape(word), re.IGNORECASE)
        if not pattern.search(text):
            continue

        key = word.lower()
        if key not in seen:
            seen.add(key)
            matches.append(BadWordMatch(word=word, severity=severity))

        censored = pattern.sub(lambda m: MASK_CHAR * len(m.group(0)), censored)

    return FilterResult(
        censored_text=censored,
        has_matches=bool(matches),
        matches=matches,
    )


class BadWordFilter:
    """
    Filters text against the active bad word list.

    The list is read from the database on every call so administrator edits
    apply to the next comment.
    """

    def __init__(self, db: Optional[DatabaseManager] = None) -> None:
        self.db = db or get_database()

    def get_active_words(self) -> list[tuple[str, Severity]]:
        """Load active bad words as (word, severity) pairs."""
        words = []
        for row in self.db.get_bad_words(is_active=True):
            try:
                severity = Severity.parse(row["severity"])
            except ValueError:
                logger.warning(
                    "Unknown severity %r for bad word #%s, treating as MODERATE",
                    row["severity"], row["id"]
                )
                severity = Severity.MODERATE
            words.append((row["word"], severity))
        return words

    def filter_text(self, text: str) -> FilterResult:
        """
        Censor a text against the active bad word list.

        Args:
            text: Text to filter

        Returns:
            FilterResult: Censored text, whether anything matched, and matches
        """
        words = self.get_active_words()
        if not words:
            return FilterResult(censored_text=text, has_matches=False)

        result = censor_text(text, words)
        if result.has_matches:
            logger.debug(
                "Bad words matched: %s",
                ", ".join(m.word for m in result.matches)
            )
        return result
