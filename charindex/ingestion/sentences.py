"""Sentence splitting with protection for abbreviations, initials and decimals."""

from __future__ import annotations

import re
from typing import List

ABBREVIATIONS = (
    "Mr", "Mrs", "Ms", "Miss", "Dr", "Prof", "Sr", "Jr",
    "St", "vs", "etc", "Inc", "Ltd", "Co",
    "Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_DOT = "\x00"
_ELLIPSIS = "\x01"

_ABBREV_RE = re.compile(r"\b(" + "|".join(ABBREVIATIONS) + r")\.", re.IGNORECASE)
_INITIAL_RE = re.compile(r"\b([A-Z])\.")
_DECIMAL_RE = re.compile(r"(\d)\.(\d)")
# Terminal punctuation, optionally closed by a quote, followed by whitespace and a
# capital letter or opening quote.
_SENTENCE_END_RE = re.compile("([.!?][\"'”’]?)\\s+(?=[A-Z\"'“‘])")


def _restore(text: str) -> str:
    return text.replace(_DOT, ".").replace(_ELLIPSIS, "...")


def split_sentences(text: str) -> List[str]:
    """Split a paragraph into sentences."""
    if not text or not text.strip():
        return []

    processed = _ABBREV_RE.sub(lambda m: m.group(1) + _DOT, text)
    processed = _INITIAL_RE.sub(lambda m: m.group(1) + _DOT, processed)
    processed = processed.replace("...", _ELLIPSIS)
    processed = _DECIMAL_RE.sub(lambda m: m.group(1) + _DOT + m.group(2), processed)

    # re.split keeps the captured punctuation as every other element
    parts = _SENTENCE_END_RE.split(processed)
    sentences: List[str] = []
    for i in range(0, len(parts), 2):
        sentence = parts[i]
        if i + 1 < len(parts):
            sentence += parts[i + 1]
        sentence = _restore(sentence.strip())
        if sentence:
            sentences.append(sentence)

    return sentences
