"""Entity resolution: variant grouping, junk filtering, tiering and co-reference merge."""

from charindex.normalization.coref_merger import CorefMerger, CorefResponseError, CorefResult, apply_merges
from charindex.normalization.entity_ids import generate_entity_id
from charindex.normalization.entity_store import load_entities, write_entities
from charindex.normalization.junk_filter import FilterResult, JunkFilter
from charindex.normalization.models import (
    CorefStats,
    Entity,
    EntityGroup,
    ExcludedGroup,
    FullNameEvidence,
    SingleNameEvidence,
    TitledNameEvidence,
    VariantForm,
)
from charindex.normalization.tier_classifier import TierClassifier, TierResult
from charindex.normalization.variant_grouper import VariantGrouper

__all__ = [
    "CorefMerger",
    "CorefResponseError",
    "CorefResult",
    "CorefStats",
    "Entity",
    "EntityGroup",
    "ExcludedGroup",
    "FilterResult",
    "FullNameEvidence",
    "JunkFilter",
    "SingleNameEvidence",
    "TierClassifier",
    "TierResult",
    "TitledNameEvidence",
    "VariantForm",
    "VariantGrouper",
    "apply_merges",
    "generate_entity_id",
    "load_entities",
    "write_entities",
]
