"""Character-level normalization shared by extraction and mention matching."""

from __future__ import annotations

import re

# Right/left curly quotes and the modifier-letter apostrophe
_APOSTROPHE_RE = re.compile("[‘’ʼ']")

TITLE_ABBREVIATIONS = ("mr", "mrs", "ms", "miss", "dr", "prof", "sr", "jr", "st")
_TITLE_PERIOD_RE = re.compile(
    r"\b(" + "|".join(TITLE_ABBREVIATIONS) + r")\.", re.IGNORECASE
)
_POSSESSIVE_RE = re.compile(r"'s$", re.IGNORECASE)


def normalize_apostrophes(text: str | None) -> str:
    """Map every apostrophe variant to a straight apostrophe."""
    if not text:
        return ""
    return _APOSTROPHE_RE.sub("'", text)


def strip_possessive(text: str) -> str:
    """Drop a trailing `'s` (any apostrophe style)."""
    return _POSSESSIVE_RE.sub("", normalize_apostrophes(text))


def normalize_for_match(text: str) -> str:
    """Lowercase, straighten apostrophes and drop title-abbreviation periods.

    `"Mr. Dursley's"` and `"mr dursley's"` normalize to the same key.
    """
    normalized = normalize_apostrophes(text).lower()
    return _TITLE_PERIOD_RE.sub(r"\1", normalized)
