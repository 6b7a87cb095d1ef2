"""Proper-noun extraction with positional and statistical tracking.

The manuscript is scanned line by line. Each whitespace token that is capitalized and not a
stopword or contraction starts a candidate sequence:

- A title (`Mr`, `Professor`, `Aunt`, ...) takes at most one following capitalized word.
- Otherwise up to two consecutive capitalized words are joined, stopping at a sentence
  boundary or right after a possessive.

Counts are keyed by the normalized form: possessive suffix, trailing period and title
periods removed (`"Mr. Dursley's"` -> `"Mr Dursley"`).
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from charindex.extraction.lexicon import Lexicon
from charindex.extraction.models import ExtractionMetadata, ExtractionResult, FirstAppearance, Mention
from charindex.ingestion.chapters import CHAPTER_HEADER_RE, front_matter_end, resolve_chapter_number
from charindex.ingestion.text_normalizer import TITLE_ABBREVIATIONS, normalize_apostrophes

CONTRACTION_PRONOUNS = frozenset(
    {"he", "she", "it", "that", "what", "who", "there", "here", "where"}
)
MAX_SEQUENCE_WORDS = 2

_LETTERS = "A-Za-zÀ-ɏ"
_LEADING_JUNK_RE = re.compile(rf"^[^{_LETTERS}]+")
_TRAILING_JUNK_RE = re.compile(rf"[^{_LETTERS}']+$")
_CONTRACTION_RE = re.compile(r"'(d|m|ll|re|ve|t)$", re.IGNORECASE)
_POSSESSIVE_RE = re.compile(r"'s$", re.IGNORECASE)
_SENTENCE_END_RE = re.compile("[.!?][\"'”’]?$")
_TITLE_PERIOD_RE = re.compile(rf"^[^{_LETTERS}]*[{_LETTERS}]+\.")


class _Candidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    form: str
    normalized: str
    is_possessive: bool
    has_title: bool
    title_type: Optional[str]
    end_index: int


class ProperNounExtractor:
    """Extract positioned proper-noun mentions from a manuscript."""

    def __init__(self, lexicon: Lexicon) -> None:
        self.lexicon = lexicon

    # -----------------------
    # Public API
    # -----------------------
    def extract(self, text: str) -> ExtractionResult:
        """Scan the whole manuscript and aggregate per-form statistics."""
        mentions: List[Mention] = []
        mention_counts: Dict[str, int] = {}
        possessive_counts: Dict[str, int] = {}
        sentence_start_counts: Dict[str, int] = {}
        first_appearances: Dict[str, FirstAppearance] = {}

        chapter = 0
        chapters_processed = 0
        paragraph = 0

        lines = text.split("\n")
        start = front_matter_end(lines)
        for line_index, line in enumerate(lines[start:], start):
            stripped = line.strip()

            header = CHAPTER_HEADER_RE.match(stripped)
            if header:
                chapter = resolve_chapter_number(header.group(1), chapter)
                chapters_processed += 1
                paragraph = 0
                logger.debug("Chapter header", chapter=chapter, title=header.group(2).strip())
                continue

            if not stripped:
                paragraph += 1
                continue

            for candidate, sentence_start in self._extract_from_line(line):
                mention = Mention(
                    form=candidate.form,
                    normalized=candidate.normalized,
                    is_possessive=candidate.is_possessive,
                    has_title=candidate.has_title,
                    title_type=candidate.title_type,
                    is_sentence_start=sentence_start,
                    chapter=chapter,
                    paragraph=paragraph,
                    line=line_index + 1,
                )
                mentions.append(mention)

                key = mention.normalized
                mention_counts[key] = mention_counts.get(key, 0) + 1
                if mention.is_possessive:
                    possessive_counts[key] = possessive_counts.get(key, 0) + 1
                if mention.is_sentence_start:
                    sentence_start_counts[key] = sentence_start_counts.get(key, 0) + 1
                if key not in first_appearances:
                    first_appearances[key] = FirstAppearance(
                        chapter=chapter, paragraph=paragraph, form=mention.form
                    )

        result = ExtractionResult(
            mentions=mentions,
            mention_counts=mention_counts,
            possessive_counts=possessive_counts,
            sentence_start_counts=sentence_start_counts,
            first_appearances=first_appearances,
            metadata=ExtractionMetadata(
                total_mentions=len(mentions),
                unique_forms=len(mention_counts),
                chapters_processed=chapters_processed,
            ),
        )
        logger.info(
            "Extracted proper nouns",
            mentions=result.metadata.total_mentions,
            unique_forms=result.metadata.unique_forms,
            chapters=chapters_processed,
        )
        return result

    def _extract_from_line(self, line: str) -> List[tuple[_Candidate, bool]]:
        """Return `(candidate, is_sentence_start)` pairs for one line."""
        words = line.split()
        sentence_starts = {0}
        for idx, word in enumerate(words[:-1]):
            if self._ends_sentence(word):
                sentence_starts.add(idx + 1)

        results: List[tuple[_Candidate, bool]] = []
        i = 0
        while i < len(words):
            word = words[i]
            clean = clean_token(word)

            if not clean or is_contraction(clean) or self.lexicon.is_stopword(clean):
                i += 1
                continue

            if is_capitalized(clean):
                candidate = self._extract_sequence(words, i)
                if candidate is not None:
                    results.append((candidate, i in sentence_starts))
                    i = candidate.end_index + 1
                    continue

            i += 1

        return results

    # -----------------------
    # Sequence building
    # -----------------------
    def _extract_sequence(self, words: List[str], start: int) -> Optional[_Candidate]:
        components: List[str] = []
        has_title = False
        title_type: Optional[str] = None
        end_index = start

        first = clean_token(words[start])
        if self.lexicon.is_title(first):
            has_title = True
            title_type = self.lexicon.title_type(first)
            # Surface form keeps the abbreviation period ("Mr.")
            components.append(first + "." if is_title_abbreviation(words[start]) else first)

            if start + 1 < len(words) and not self._ends_sentence(words[start]):
                nxt = clean_token(words[start + 1])
                if (
                    nxt
                    and not is_contraction(nxt)
                    and is_capitalized(nxt)
                    and not self.lexicon.is_stopword(_POSSESSIVE_RE.sub("", nxt))
                ):
                    components.append(nxt)
                    end_index = start + 1
        else:
            for i in range(start, len(words)):
                if len(components) >= MAX_SEQUENCE_WORDS:
                    break
                word = clean_token(words[i])
                if not word or is_contraction(word):
                    break
                if i > start and self._ends_sentence(words[i - 1]):
                    break

                possessive = bool(_POSSESSIVE_RE.search(word))
                base = _POSSESSIVE_RE.sub("", word)
                if not is_capitalized(base) or self.lexicon.is_stopword(base):
                    break

                end_index = i
                if possessive:
                    components.append(base + "'s")
                    break
                components.append(word)

        if not components:
            return None

        form = " ".join(components)
        normalized = normalize_form(form, self.lexicon if has_title else None)

        if self.lexicon.is_chapter_pattern(normalized) or len(normalized) < 2:
            return None

        return _Candidate(
            form=form,
            normalized=normalized,
            is_possessive="'s" in form,
            has_title=has_title,
            title_type=title_type,
            end_index=end_index,
        )

    def _ends_sentence(self, word: str) -> bool:
        if not _SENTENCE_END_RE.search(word):
            return False
        # "Mr." does not end a sentence; "Professor." does
        return not is_title_abbreviation(word)


# -----------------------
# Token helpers
# -----------------------
def clean_token(word: str) -> str:
    """Strip surrounding punctuation and quotes, keeping a possessive `'s`."""
    if not word:
        return ""
    cleaned = normalize_apostrophes(word)
    cleaned = _LEADING_JUNK_RE.sub("", cleaned)
    cleaned = _TRAILING_JUNK_RE.sub("", cleaned)
    return cleaned.rstrip("'")


def is_title_abbreviation(word: str) -> bool:
    """True for `Mr.`, `Dr.` and other abbreviations whose period is not a full stop."""
    if not _TITLE_PERIOD_RE.match(normalize_apostrophes(word)):
        return False
    return clean_token(word).lower() in TITLE_ABBREVIATIONS


def is_contraction(word: str) -> bool:
    """Distinguish `He's`/`I'd`/`can't` from a possessive like `Harry's`."""
    if not word:
        return False
    normalized = normalize_apostrophes(word)
    if _POSSESSIVE_RE.search(normalized):
        return _POSSESSIVE_RE.sub("", normalized).lower() in CONTRACTION_PRONOUNS
    return bool(_CONTRACTION_RE.search(normalized))


def is_capitalized(word: str) -> bool:
    if not word:
        return False
    first = word[0]
    return first == first.upper() and first != first.lower()


def normalize_form(form: str, lexicon: Lexicon | None = None) -> str:
    """Drop a possessive suffix, a trailing period and, if titled, the title's period."""
    normalized = _POSSESSIVE_RE.sub("", normalize_apostrophes(form))
    normalized = normalized.rstrip(".")
    if lexicon is not None:
        words = normalized.split(" ")
        if words and lexicon.is_title(words[0]):
            words[0] = words[0].rstrip(".")
        normalized = " ".join(words)
    return normalized
