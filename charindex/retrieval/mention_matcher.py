"""Find resolved entities in running text.

Every canonical name and variant (plus its de-possessivized base form) becomes a lookup
key. Keys are normalized for matching only: case, apostrophe style and title-abbreviation
periods are ignored, so "Mr. Dursley" in the text matches a "Mr Dursley" variant. Display
uses the variant text as stored on the entity.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Pattern

from loguru import logger
from pydantic import BaseModel, ConfigDict

from charindex.ingestion.text_normalizer import normalize_for_match, strip_possessive
from charindex.normalization.models import Entity
from charindex.retrieval.models import SentenceSlot, SnippetMention


class LookupEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_id: str
    variant: str


def build_variant_lookup(entities: Iterable[Entity]) -> Dict[str, LookupEntry]:
    """Map normalized forms to the entity that claimed them first."""
    lookup: Dict[str, LookupEntry] = {}

    for entity in entities:
        canonical = normalize_for_match(entity.canonical_name)
        lookup.setdefault(canonical, LookupEntry(entity_id=entity.id, variant=entity.canonical_name))

        for variant in entity.variants:
            variant_norm = normalize_for_match(variant.form)
            if len(variant_norm) < 2:
                continue

            base = strip_possessive(variant.form)
            lookup.setdefault(normalize_for_match(base), LookupEntry(entity_id=entity.id, variant=base))
            lookup.setdefault(variant_norm, LookupEntry(entity_id=entity.id, variant=variant.form))

    return lookup


def build_match_pattern(lookup: Dict[str, LookupEntry]) -> Optional[Pattern[str]]:
    """One alternation over all keys, longest first, with an optional possessive."""
    if not lookup:
        return None
    keys = sorted(lookup, key=len, reverse=True)
    alternation = "|".join(re.escape(k) for k in keys)
    return re.compile(rf"\b({alternation})(?:'s)?\b", re.IGNORECASE)


class MentionMatcher:
    """Locate entity mentions, at most one per entity per text."""

    def __init__(self, entities: Iterable[Entity]) -> None:
        self.lookup = build_variant_lookup(entities)
        self.pattern = build_match_pattern(self.lookup)
        logger.debug("Built mention lookup", keys=len(self.lookup))

    def find(self, text: str, slot: SentenceSlot = "match") -> List[SnippetMention]:
        if self.pattern is None or not text or not text.strip():
            return []

        mentions: List[SnippetMention] = []
        seen: set[str] = set()
        for match in self.pattern.finditer(normalize_for_match(text)):
            entry = self.lookup.get(normalize_for_match(match.group(1)))
            if entry is None or entry.entity_id in seen:
                continue
            seen.add(entry.entity_id)
            mentions.append(SnippetMention(entity=entry.entity_id, variant=entry.variant, sentence=slot))
        return mentions
