"""Entity, co-occurrence and chapter lookups derived from a final snippet list.

Indices are always rebuilt from scratch so they can never drift from the snippets.
"""

from __future__ import annotations

from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Sequence

from pydantic import BaseModel

from charindex.retrieval.models import Snippet, SnippetIndices

PAIR_SEPARATOR = "+"


class CooccurrencePair(BaseModel):
    pair: str
    count: int
    snippets: List[str]


def pair_key(first: str, second: str) -> str:
    """Order-independent key for two entity ids."""
    a, b = sorted((first, second))
    return f"{a}{PAIR_SEPARATOR}{b}"


def build_entity_index(snippets: Sequence[Snippet]) -> Dict[str, List[str]]:
    index: Dict[str, set[str]] = defaultdict(set)
    for snippet in snippets:
        for entity_id in snippet.entities:
            index[entity_id].add(snippet.id)
    return {entity_id: sorted(ids) for entity_id, ids in index.items()}


def build_cooccurrence_index(snippets: Sequence[Snippet]) -> Dict[str, List[str]]:
    index: Dict[str, set[str]] = defaultdict(set)
    for snippet in snippets:
        for a, b in combinations(sorted(set(snippet.entities)), 2):
            index[pair_key(a, b)].add(snippet.id)
    return {key: sorted(ids) for key, ids in index.items()}


def build_chapter_index(snippets: Sequence[Snippet]) -> Dict[str, List[str]]:
    index: Dict[str, List[str]] = defaultdict(list)
    for snippet in snippets:
        index[str(snippet.chapter)].append(snippet.id)
    return dict(index)


def build_indices(snippets: Sequence[Snippet]) -> SnippetIndices:
    return SnippetIndices(
        entity_index=build_entity_index(snippets),
        cooccurrence_index=build_cooccurrence_index(snippets),
        chapter_index=build_chapter_index(snippets),
    )


def top_cooccurrences(cooccurrence_index: Dict[str, List[str]], limit: int = 20) -> List[CooccurrencePair]:
    """Most frequent entity pairs, largest snippet count first."""
    pairs = [
        CooccurrencePair(pair=key, count=len(ids), snippets=ids)
        for key, ids in cooccurrence_index.items()
    ]
    pairs.sort(key=lambda p: -p.count)
    return pairs[:limit]
