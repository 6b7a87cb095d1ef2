"""Remove entity groups that are statistically likely to be false positives.

Heuristics, evaluated in order (first match excludes the group):

1. `sentence_start_ratio_high`: most mentions sit at a sentence start, so the "name" is
   probably an ordinary capitalized word.
2. `truncated_phrase`: the first word of a two-word name also starts several other
   two-word groups (a clipped common prefix).
3. `list_separated_names`: a rare two-word name whose words mostly appear as separate list
   members ("Malfoy, Crabbe, and Goyle").
4. `both_words_high_frequency`: both words of a rare two-word name are frequent on their own.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from charindex.extraction.models import ExtractionResult
from charindex.normalization.models import EntityGroup, ExcludedGroup
from charindex.utils.config import JunkFilterConfig


class FilterResult(BaseModel):
    clean: List[EntityGroup] = Field(default_factory=list)
    excluded: List[ExcludedGroup] = Field(default_factory=list)


class _Exclusion(BaseModel):
    reason: str
    evidence: str


class JunkFilter:
    """Split entity groups into clean and excluded sets."""

    def __init__(self, config: JunkFilterConfig | None = None) -> None:
        self.config = config or JunkFilterConfig()

    def filter(
        self, groups: List[EntityGroup], extraction: ExtractionResult, full_text: str
    ) -> FilterResult:
        first_word_counts = Counter(g.words[0] for g in groups if len(g.words) == 2)
        result = FilterResult()

        for group in groups:
            ratio = sentence_start_ratio(group, extraction.sentence_start_counts)
            exclusion = self._check(group, ratio, first_word_counts, extraction, full_text)

            if exclusion is not None:
                logger.debug(
                    "Excluding group",
                    name=group.canonical_name,
                    reason=exclusion.reason,
                    evidence=exclusion.evidence,
                )
                result.excluded.append(
                    ExcludedGroup(
                        text=group.canonical_name,
                        mentions=group.total_mentions,
                        reason=exclusion.reason,
                        evidence=exclusion.evidence,
                        sentence_start_ratio=round(ratio, 2),
                    )
                )
            else:
                result.clean.append(group.model_copy(update={"sentence_start_ratio": round(ratio, 2)}))

        logger.info("Filtered junk", clean=len(result.clean), excluded=len(result.excluded))
        return result

    def _check(
        self,
        group: EntityGroup,
        ratio: float,
        first_word_counts: Counter,
        extraction: ExtractionResult,
        full_text: str,
    ) -> Optional[_Exclusion]:
        cfg = self.config
        total = group.total_mentions
        words = group.words

        if ratio > cfg.max_sentence_start_ratio and total >= cfg.min_mentions_for_ratio:
            return _Exclusion(
                reason="sentence_start_ratio_high",
                evidence=f"{ratio * 100:.0f}% of mentions at sentence start",
            )

        if len(words) != 2:
            return None

        others = first_word_counts.get(words[0], 0) - 1
        if others >= cfg.truncated_prefix_min_groups:
            return _Exclusion(
                reason="truncated_phrase",
                evidence=f'"{words[0]}" appears as first word in {others + 1} two-word entities',
            )

        if total < cfg.list_separation_max_mentions:
            evidence = self._list_separation(group.canonical_name, words, full_text)
            if evidence is not None:
                return _Exclusion(reason="list_separated_names", evidence=evidence)

        if total < cfg.high_frequency_max_mentions:
            first_count = extraction.mention_counts.get(words[0], 0)
            second_count = extraction.mention_counts.get(words[1], 0)
            floor = cfg.high_frequency_min_word_mentions
            if first_count >= floor and second_count >= floor:
                return _Exclusion(
                    reason="both_words_high_frequency",
                    evidence=(
                        f'Both "{words[0]}" ({first_count}) and "{words[1]}" ({second_count}) '
                        "are high-frequency standalone entities"
                    ),
                )

        return None

    def _list_separation(self, name: str, words: List[str], full_text: str) -> Optional[str]:
        first, second = (re.escape(w) for w in words)
        full_count = _count(rf"\b{re.escape(name)}\b", full_text)
        and_count = _count(rf"\b{first}\s*,?\s+(?:and|or)\s+{second}\b", full_text)
        comma_count = _count(rf"\b{first}\s*,\s*{second}\s*,", full_text)
        floor = self.config.list_separation_min_occurrences

        if and_count >= floor and and_count > full_count:
            return (
                f'"{words[0]} and {words[1]}" pattern appears {and_count} times '
                f'vs "{name}" {full_count} times'
            )
        if comma_count >= floor and comma_count > full_count:
            return f'"{words[0]}, {words[1]}," list pattern appears {comma_count} times'
        return None


def sentence_start_ratio(group: EntityGroup, sentence_start_counts: Dict[str, int]) -> float:
    """Fraction of a group's mentions that open a sentence."""
    total = group.total_mentions
    if total <= 0:
        return 0.0
    keys = {v.lookup_key for v in group.variants}
    starts = sum(sentence_start_counts.get(k, 0) for k in keys)
    return starts / total


def _count(pattern: str, text: str) -> int:
    return len(re.findall(pattern, text, re.IGNORECASE))
