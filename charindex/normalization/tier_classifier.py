"""Split filtered groups into confirmed characters and review candidates."""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from charindex.extraction.lexicon import Lexicon
from charindex.extraction.models import ExtractionResult
from charindex.normalization.entity_ids import generate_entity_id
from charindex.normalization.models import Entity, EntityGroup, VariantForm
from charindex.utils.config import TierConfig


class TierResult(BaseModel):
    confirmed: List[Entity] = Field(default_factory=list)
    candidates: List[Entity] = Field(default_factory=list)
    low_frequency: int = 0


class TierClassifier:
    """Assign each clean group to the confirmed tier, the candidate tier, or neither.

    Confirmation rules (first match wins):

    - `title_pattern`: the group has a titled variant or its name starts with a title.
    - `full_name_both_parts_independent`: both words of a two-word name are frequent
      single-word groups in their own right.
    - `single_name_with_possessive`: a frequent one-word name that is often possessive.
    - `variant_with_possessive`: the same test applied to a one-word variant of a
      two-word name.

    A bare title ("Mr") or title plus initial ("Mrs P") is never confirmed.
    """

    def __init__(self, lexicon: Lexicon, config: TierConfig | None = None) -> None:
        self.lexicon = lexicon
        self.config = config or TierConfig()

    def classify(self, groups: List[EntityGroup], extraction: ExtractionResult) -> TierResult:
        single_word_totals = {g.canonical_name: g.total_mentions for g in groups if len(g.words) == 1}
        result = TierResult()

        for group in groups:
            reason = self.qualification(group, single_word_totals, extraction)
            if reason is not None:
                result.confirmed.append(_to_entity(group, qualified_by=reason))
            elif group.total_mentions >= self.config.min_candidate_mentions:
                result.candidates.append(
                    _to_entity(
                        group,
                        notes=self.candidate_notes(group),
                        sentence_start_ratio=group.sentence_start_ratio or 0.0,
                    )
                )
            else:
                result.low_frequency += 1

        result.confirmed.sort(key=lambda e: -e.mentions)
        result.candidates.sort(key=lambda e: -e.mentions)

        logger.info(
            "Tiered entities",
            confirmed=len(result.confirmed),
            candidates=len(result.candidates),
            low_frequency=result.low_frequency,
        )
        return result

    def qualification(
        self,
        group: EntityGroup,
        single_word_totals: Dict[str, int],
        extraction: ExtractionResult,
    ) -> Optional[str]:
        """Return the confirmation reason for a group, or None."""
        cfg = self.config
        name = group.canonical_name
        words = group.words

        if self.lexicon.is_bare_title(name):
            return None

        if group.has_title_evidence or (words and self.lexicon.is_title(words[0])):
            return "title_pattern"

        if len(words) == 2:
            if all(single_word_totals.get(w, 0) >= cfg.min_independent_part_mentions for w in words):
                return "full_name_both_parts_independent"

        if len(words) == 1 and group.total_mentions >= cfg.min_mentions_for_possessive_confirm:
            if extraction.possessive_counts.get(name, 0) >= cfg.min_possessive_for_confirm:
                return "single_name_with_possessive"

        if len(words) == 2:
            for variant in group.variants:
                if variant.form.endswith("'s") or len(variant.form.split()) != 1:
                    continue
                count = extraction.mention_counts.get(variant.lookup_key, variant.count)
                if (
                    count >= cfg.min_mentions_for_possessive_confirm
                    and extraction.possessive_counts.get(variant.lookup_key, 0) >= cfg.min_possessive_for_confirm
                ):
                    return "variant_with_possessive"

        return None

    def candidate_notes(self, group: EntityGroup) -> str:
        notes: List[str] = []
        words = group.words

        if len(words) == 1:
            if any(v.form.endswith("'s") for v in group.variants):
                notes.append("Has possessive form")
            else:
                notes.append("No possessive form")
            if group.total_mentions >= self.config.high_frequency_note_mentions:
                notes.append("High frequency single word")
        else:
            notes.append(f"{len(words)}-word name")

        if any(
            v.form.endswith("s") and not v.form.endswith("'s") and v.form != group.canonical_name
            for v in group.variants
        ):
            notes.append("Has plural form")

        return ", ".join(notes) or "Needs review"


def _to_entity(group: EntityGroup, **extra: object) -> Entity:
    return Entity(
        id=generate_entity_id(group.canonical_name),
        canonical_name=group.canonical_name,
        mentions=group.total_mentions,
        variants=[VariantForm(form=v.form, count=v.count) for v in group.variants],
        first_appearance=group.first_appearance,
        **extra,
    )
