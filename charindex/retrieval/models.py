"""Snippet records and the derived lookup indices."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import Field

from charindex.normalization.models import CamelModel

SentenceSlot = Literal["before", "match", "after"]


class SnippetLocation(CamelModel):
    """Paragraph plus either one sentence index or an inclusive sentence range."""

    paragraph_index: int
    sentence_index: Optional[int] = None
    sentence_range: Optional[List[int]] = None

    @property
    def start(self) -> int:
        if self.sentence_index is not None:
            return self.sentence_index
        return (self.sentence_range or [0, 0])[0]

    @property
    def end(self) -> int:
        if self.sentence_index is not None:
            return self.sentence_index
        return (self.sentence_range or [0, 0])[-1]


class SnippetText(CamelModel):
    before: str = ""
    match: str
    after: str = ""


class SnippetMention(CamelModel):
    entity: str
    variant: str
    sentence: SentenceSlot = "match"


class Snippet(CamelModel):
    """A before/match/after window around a sentence that mentions an entity."""

    id: str
    chapter: int
    chapter_title: str = ""
    location: SnippetLocation
    text: SnippetText
    entities: List[str] = Field(default_factory=list)
    mentions: List[SnippetMention] = Field(default_factory=list)

    def sort_key(self) -> tuple[int, int, int]:
        return (self.chapter, self.location.paragraph_index, self.location.start)


class SnippetIndices(CamelModel):
    entity_index: Dict[str, List[str]] = Field(default_factory=dict)
    cooccurrence_index: Dict[str, List[str]] = Field(default_factory=dict)
    chapter_index: Dict[str, List[str]] = Field(default_factory=dict)


def snippet_id(position: int) -> str:
    return f"s_{position:04d}"
