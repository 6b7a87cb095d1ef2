"""Shared data models for proper-noun extraction."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FirstAppearance(BaseModel):
    """Earliest position of a form in the manuscript."""

    model_config = ConfigDict(frozen=True)

    chapter: int = 0
    paragraph: int = 0
    form: Optional[str] = Field(default=None, exclude=True)

    def sort_key(self) -> tuple[int, int]:
        return (self.chapter, self.paragraph)


class Mention(BaseModel):
    """One located occurrence of a proper-noun-like token sequence."""

    model_config = ConfigDict(frozen=True)

    form: str
    normalized: str
    is_possessive: bool = False
    has_title: bool = False
    title_type: Optional[str] = None
    is_sentence_start: bool = False
    chapter: int = 0
    paragraph: int = 0
    line: int = 0

    @property
    def word_count(self) -> int:
        return len(self.normalized.split())


class ExtractionMetadata(BaseModel):
    """Summary counters for an extraction run."""

    total_mentions: int = 0
    unique_forms: int = 0
    chapters_processed: int = 0


class ExtractionResult(BaseModel):
    """Mentions in document order plus aggregate counts keyed by normalized form."""

    mentions: List[Mention] = Field(default_factory=list)
    mention_counts: Dict[str, int] = Field(default_factory=dict)
    possessive_counts: Dict[str, int] = Field(default_factory=dict)
    sentence_start_counts: Dict[str, int] = Field(default_factory=dict)
    first_appearances: Dict[str, FirstAppearance] = Field(default_factory=dict)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)
