"""Read-only query interface over a snippet output directory.

Files are loaded lazily on first use and cached for the lifetime of the store.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from loguru import logger
from pydantic import BaseModel

from charindex.normalization.entity_store import load_entities
from charindex.normalization.models import Entity
from charindex.retrieval.index_builder import pair_key
from charindex.retrieval.models import Snippet

SNIPPETS_FILE = "snippets.jsonl"
ENTITY_INDEX_FILE = "entity_index.json"
COOCCURRENCE_INDEX_FILE = "cooccurrence_index.json"
ENTITIES_FILE = "confirmed_characters.json"


class EntitySummary(BaseModel):
    id: str
    name: str
    snippet_count: int
    mention_count: int


class SnippetStore:
    """Look up entities and their snippets in a finished output directory."""

    def __init__(self, data_dir: str | Path, entities_file: str | Path | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.entities_file = Path(entities_file) if entities_file else self.data_dir / ENTITIES_FILE
        self._snippets: Optional[Dict[str, Snippet]] = None
        self._entity_index: Optional[Dict[str, List[str]]] = None
        self._cooccurrence_index: Optional[Dict[str, List[str]]] = None
        self._entities: Optional[List[Entity]] = None

    # -----------------------
    # Lazy loading
    # -----------------------
    @property
    def snippets(self) -> Dict[str, Snippet]:
        if self._snippets is None:
            path = self._require(SNIPPETS_FILE)
            self._snippets = {}
            with open(path, encoding="utf-8") as f:
                for line in f:
                    if line.strip():
                        snippet = Snippet.model_validate_json(line)
                        self._snippets[snippet.id] = snippet
            logger.debug("Loaded snippets", count=len(self._snippets))
        return self._snippets

    @property
    def entity_index(self) -> Dict[str, List[str]]:
        if self._entity_index is None:
            self._entity_index = self._load_json(ENTITY_INDEX_FILE)
        return self._entity_index

    @property
    def cooccurrence_index(self) -> Dict[str, List[str]]:
        if self._cooccurrence_index is None:
            self._cooccurrence_index = self._load_json(COOCCURRENCE_INDEX_FILE)
        return self._cooccurrence_index

    @property
    def entities(self) -> List[Entity]:
        if self._entities is None:
            self._entities = load_entities(self.entities_file)
        return self._entities

    def _require(self, name: str) -> Path:
        path = self.data_dir / name
        if not path.exists():
            raise FileNotFoundError(f"Snippet output file not found: {path}")
        return path

    def _load_json(self, name: str) -> Dict[str, Any]:
        data = json.loads(self._require(name).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Index file root must be a mapping/dict: {name}")
        return data

    # -----------------------
    # Queries
    # -----------------------
    def find_entity(self, term: str) -> Optional[Entity]:
        """Resolve a search term by id, exact name, partial name, then variant."""
        needle = term.lower().strip()
        if not needle:
            return None

        for entity in self.entities:
            if entity.id == needle:
                return entity
        for entity in self.entities:
            if entity.canonical_name.lower() == needle:
                return entity
        for entity in self.entities:
            if needle in entity.canonical_name.lower():
                return entity
        for entity in self.entities:
            if any(needle in v.form.lower() for v in entity.variants):
                return entity
        return None

    def entity_context(self, name: str, max_snippets: int = 10) -> List[Snippet]:
        entity = self.find_entity(name)
        if entity is None:
            return []
        return self._resolve(self.entity_index.get(entity.id, []), max_snippets)

    def cooccurrence_context(self, first: str, second: str, max_snippets: int = 10) -> List[Snippet]:
        a = self.find_entity(first)
        b = self.find_entity(second)
        if a is None or b is None:
            return []
        return self._resolve(self.cooccurrence_index.get(pair_key(a.id, b.id), []), max_snippets)

    def snippet_count(self, entity_id: str) -> int:
        return len(self.entity_index.get(entity_id, []))

    def list_entities(self, sort_by: Literal["snippets", "mentions"] = "snippets") -> List[EntitySummary]:
        summaries = [
            EntitySummary(
                id=e.id,
                name=e.canonical_name,
                snippet_count=self.snippet_count(e.id),
                mention_count=e.mentions,
            )
            for e in self.entities
        ]
        if sort_by == "mentions":
            summaries.sort(key=lambda s: -s.mention_count)
        else:
            summaries.sort(key=lambda s: -s.snippet_count)
        return summaries

    def search(self, term: str) -> Optional[EntitySummary]:
        entity = self.find_entity(term)
        if entity is None:
            return None
        return EntitySummary(
            id=entity.id,
            name=entity.canonical_name,
            snippet_count=self.snippet_count(entity.id),
            mention_count=entity.mentions,
        )

    def _resolve(self, snippet_ids: List[str], max_snippets: int) -> List[Snippet]:
        found = (self.snippets.get(sid) for sid in snippet_ids[:max_snippets])
        return [s for s in found if s is not None]


def format_snippet(snippet: Snippet) -> str:
    """Plain-text rendering for terminal output."""
    return "\n".join(
        [
            f"[{snippet.id}] Chapter {snippet.chapter}: {snippet.chapter_title}",
            f"  Before: {snippet.text.before or '(start)'}",
            f"  Match: {snippet.text.match}",
            f"  After: {snippet.text.after or '(end)'}",
            f"  Entities: {', '.join(snippet.entities)}",
        ]
    )
