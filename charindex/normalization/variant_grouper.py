"""Group related name variants into entity candidates.

Conservative linkage: a false merge is worse than a missed one. A form, once claimed by a
group, never joins a second group. Linkage runs in priority order:

1. Two-word full names ("Harry Potter") anchor a group and claim their frequent single-word
   parts ("Harry", "Potter") plus any titled form ending in one of the parts ("Mr Potter").
2. Remaining titled names ("Professor Dumbledore") form their own group; if the bare name
   is still unclaimed it is attached and becomes the canonical name.
3. Remaining frequent single names become singleton groups.

Possessive occurrences are reported as a separate `X's` variant so that a group's total
always equals the number of underlying mentions.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from charindex.extraction.models import ExtractionResult, FirstAppearance
from charindex.ingestion.text_normalizer import strip_possessive
from charindex.normalization.models import (
    EntityGroup,
    FullNameEvidence,
    SingleNameEvidence,
    TitledNameEvidence,
    VariantForm,
)
from charindex.utils.config import GroupingConfig


class _TitledForm(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    name: str
    title_type: Optional[str] = None


class _CategorizedForms(BaseModel):
    full_names: List[str]
    titled_names: Dict[str, _TitledForm]
    single_names: Dict[str, int]


class VariantGrouper:
    """Cluster extracted forms into `EntityGroup`s."""

    def __init__(self, config: GroupingConfig | None = None) -> None:
        self.config = config or GroupingConfig()

    def group(self, extraction: ExtractionResult) -> List[EntityGroup]:
        forms = self._categorize(extraction)
        logger.debug(
            "Categorized forms",
            full_names=len(forms.full_names),
            titled_names=len(forms.titled_names),
            single_names=len(forms.single_names),
        )

        groups = self._build_groups(forms, extraction)
        kept = [g for g in groups if g.total_mentions >= self.config.min_mentions]
        kept.sort(key=lambda g: (-g.total_mentions, g.canonical_name))

        logger.info(
            "Grouped variants",
            groups=len(groups),
            kept=len(kept),
            min_mentions=self.config.min_mentions,
        )
        return kept

    # -----------------------
    # Categorization
    # -----------------------
    @staticmethod
    def _categorize(extraction: ExtractionResult) -> _CategorizedForms:
        full_names: Dict[str, None] = {}
        titled_names: Dict[str, _TitledForm] = {}
        single_names: Dict[str, int] = {}

        for mention in extraction.mentions:
            key = mention.normalized
            words = key.split()
            if mention.has_title and len(words) >= 2:
                if key not in titled_names:
                    titled_names[key] = _TitledForm(
                        title=words[0], name=" ".join(words[1:]), title_type=mention.title_type
                    )
            elif len(words) >= 2:
                full_names.setdefault(key, None)
            elif len(words) == 1:
                single_names[key] = extraction.mention_counts.get(key, 0)

        return _CategorizedForms(
            full_names=list(full_names),
            titled_names=titled_names,
            single_names=single_names,
        )

    # -----------------------
    # Linkage
    # -----------------------
    def _build_groups(
        self, forms: _CategorizedForms, extraction: ExtractionResult
    ) -> List[EntityGroup]:
        counts = extraction.mention_counts
        floor = self.config.anchor_floor
        assigned: set[str] = set()
        groups: List[EntityGroup] = []

        def display(key: str) -> str:
            appearance = extraction.first_appearances.get(key)
            if appearance is not None and appearance.form:
                return strip_possessive(appearance.form)
            return key

        def variants_for(key: str) -> List[VariantForm]:
            possessive = extraction.possessive_counts.get(key, 0)
            bare = counts.get(key, 0) - possessive
            name = display(key)
            variants = []
            if bare > 0:
                variants.append(VariantForm(form=name, count=bare, key=key))
            if possessive > 0:
                variants.append(VariantForm(form=f"{name}'s", count=possessive, key=key))
            return variants

        # Priority 1: two-word full names
        for key in forms.full_names:
            if key in assigned:
                continue
            count = counts.get(key, 0)
            if count < floor:
                continue
            parts = key.split()
            if len(parts) != 2:
                continue

            part_counts = [forms.single_names.get(p, 0) for p in parts]
            limit = count * self.config.both_parts_ratio
            if all(c > limit for c in part_counts):
                logger.debug(
                    "Skipping full name with two frequent parts",
                    name=key,
                    count=count,
                    part_counts=part_counts,
                )
                continue

            variants = variants_for(key)
            evidence = FullNameEvidence(parts=parts)
            assigned.add(key)

            for part in parts:
                if part in assigned or forms.single_names.get(part, 0) < floor:
                    continue
                variants.extend(variants_for(part))
                assigned.add(part)

            for titled_key, titled in forms.titled_names.items():
                if titled_key in assigned:
                    continue
                if titled.name.split()[-1] in parts:
                    variants.extend(variants_for(titled_key))
                    assigned.add(titled_key)
                    evidence.title_patterns.append(titled.title)

            groups.append(
                EntityGroup(canonical_name=display(key), variants=variants, evidence=evidence)
            )

        # Priority 2: titled names not linked to a full name
        for titled_key, titled in forms.titled_names.items():
            if titled_key in assigned:
                continue
            canonical = display(titled_key)
            variants = variants_for(titled_key)
            assigned.add(titled_key)

            if titled.name not in assigned and titled.name in forms.single_names:
                variants.extend(variants_for(titled.name))
                assigned.add(titled.name)
                canonical = display(titled.name)

            groups.append(
                EntityGroup(
                    canonical_name=canonical,
                    variants=variants,
                    evidence=TitledNameEvidence(title=titled.title, title_type=titled.title_type),
                )
            )

        # Priority 3: frequent single names
        for key, count in forms.single_names.items():
            if key in assigned or count < floor:
                continue
            assigned.add(key)
            groups.append(
                EntityGroup(
                    canonical_name=display(key),
                    variants=variants_for(key),
                    evidence=SingleNameEvidence(
                        has_possessive=extraction.possessive_counts.get(key, 0) > 0
                    ),
                )
            )

        return [
            group.model_copy(
                update={"first_appearance": _earliest_appearance(group, extraction.first_appearances)}
            )
            for group in groups
        ]


def _earliest_appearance(
    group: EntityGroup, first_appearances: Dict[str, FirstAppearance]
) -> FirstAppearance:
    earliest: Optional[FirstAppearance] = None
    for variant in group.variants:
        appearance = first_appearances.get(variant.lookup_key)
        if appearance is None:
            continue
        if earliest is None or appearance.sort_key() < earliest.sort_key():
            earliest = appearance
    if earliest is None:
        return FirstAppearance()
    return FirstAppearance(chapter=earliest.chapter, paragraph=earliest.paragraph)
