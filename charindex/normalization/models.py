"""Data models for entity groups, tiered entities and co-reference statistics.

Persisted records use camelCase keys; dump them with `by_alias=True, exclude_none=True`.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from charindex.extraction.models import FirstAppearance
from charindex.utils.llm_client import TokenUsage


class CamelModel(BaseModel):
    """Base for records that are written to JSON with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VariantForm(CamelModel):
    """One surface form of an entity and how often it occurred."""

    form: str
    count: int = Field(ge=0)
    # Normalized extraction key the form was counted under
    key: Optional[str] = Field(default=None, exclude=True)

    @property
    def lookup_key(self) -> str:
        return self.key or self.form


class FullNameEvidence(CamelModel):
    kind: Literal["full_name"] = "full_name"
    parts: List[str] = Field(default_factory=list)
    title_patterns: List[str] = Field(default_factory=list)


class TitledNameEvidence(CamelModel):
    kind: Literal["titled_name"] = "titled_name"
    title: str
    title_type: Optional[str] = None


class SingleNameEvidence(CamelModel):
    kind: Literal["single_name"] = "single_name"
    has_possessive: bool = False


Evidence = Annotated[
    Union[FullNameEvidence, TitledNameEvidence, SingleNameEvidence],
    Field(discriminator="kind"),
]


class EntityGroup(CamelModel):
    """Surface forms believed to denote one entity, before tiering."""

    canonical_name: str
    variants: List[VariantForm] = Field(default_factory=list)
    evidence: Evidence
    first_appearance: FirstAppearance = Field(default_factory=FirstAppearance)
    sentence_start_ratio: Optional[float] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_mentions(self) -> int:
        return sum(v.count for v in self.variants)

    @property
    def words(self) -> List[str]:
        return self.canonical_name.split()

    @property
    def has_title_evidence(self) -> bool:
        if isinstance(self.evidence, TitledNameEvidence):
            return True
        return isinstance(self.evidence, FullNameEvidence) and bool(self.evidence.title_patterns)


class Entity(CamelModel):
    """A confirmed character or a candidate awaiting review."""

    id: str
    canonical_name: str
    mentions: int = Field(ge=0)
    variants: List[VariantForm] = Field(default_factory=list)
    qualified_by: Optional[str] = None
    sentence_start_ratio: Optional[float] = None
    notes: Optional[str] = None
    merged_from: Optional[List[str]] = None
    first_appearance: FirstAppearance = Field(default_factory=FirstAppearance)


class ExcludedGroup(CamelModel):
    """A group removed by the junk filter, kept for audit."""

    text: str
    mentions: int
    reason: str
    evidence: str
    sentence_start_ratio: float = 0.0


class AppliedMerge(CamelModel):
    primary: str
    merged: List[str]
    new_mention_count: int


class SkippedMerge(CamelModel):
    group: Any
    reason: str


class CorefStats(CamelModel):
    """Summary of one co-reference merge run."""

    groups_identified: int = 0
    entities_merged: int = 0
    applied_merges: List[AppliedMerge] = Field(default_factory=list)
    skipped_merges: List[SkippedMerge] = Field(default_factory=list)
    llm_tokens_used: Optional[TokenUsage] = None
    error: Optional[str] = None
