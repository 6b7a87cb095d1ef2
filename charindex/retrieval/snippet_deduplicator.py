"""Merge nearby snippets from the same paragraph."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Tuple

from loguru import logger

from charindex.ingestion.sentences import split_sentences
from charindex.retrieval.models import Snippet, SnippetLocation, SnippetText, snippet_id

DEFAULT_MAX_GAP = 2


def combine_text(*texts: str) -> str:
    """Concatenate texts sentence by sentence, dropping exact repeats."""
    seen: Dict[str, None] = {}
    for text in texts:
        if not text or not text.strip():
            continue
        for sentence in split_sentences(text):
            seen.setdefault(sentence, None)
    return " ".join(seen)


def merge_snippets(a: Snippet, b: Snippet) -> Snippet:
    """Merge `b` (later in the paragraph) into `a`."""
    return a.model_copy(
        update={
            "text": SnippetText(
                before=a.text.before,
                match=combine_text(a.text.match, a.text.after, b.text.before, b.text.match),
                after=b.text.after,
            ),
            "entities": list(dict.fromkeys([*a.entities, *b.entities])),
            "mentions": list(
                {(m.entity, m.variant, m.sentence): m for m in [*a.mentions, *b.mentions]}.values()
            ),
            "location": SnippetLocation(
                paragraph_index=a.location.paragraph_index,
                sentence_range=[a.location.start, b.location.end],
            ),
        }
    )


def dedupe_snippets(snippets: List[Snippet], max_gap: int = DEFAULT_MAX_GAP) -> List[Snippet]:
    """Merge snippets whose sentence gap is at most `max_gap`, then renumber ids."""
    if not snippets:
        return []

    groups: Dict[Tuple[int, int], List[Snippet]] = defaultdict(list)
    for snippet in snippets:
        groups[(snippet.chapter, snippet.location.paragraph_index)].append(snippet)

    deduped: List[Snippet] = []
    for group in groups.values():
        group.sort(key=lambda s: s.location.start)
        current = group[0]
        for nxt in group[1:]:
            if nxt.location.start - current.location.end <= max_gap:
                current = merge_snippets(current, nxt)
            else:
                deduped.append(current)
                current = nxt
        deduped.append(current)

    deduped.sort(key=lambda s: s.sort_key())
    result = [s.model_copy(update={"id": snippet_id(i)}) for i, s in enumerate(deduped)]

    logger.info("Deduplicated snippets", before=len(snippets), after=len(result))
    return result
