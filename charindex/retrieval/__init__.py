"""Mention matching, snippet extraction, deduplication, indexing and querying."""

from charindex.retrieval.index_builder import (
    build_chapter_index,
    build_cooccurrence_index,
    build_entity_index,
    build_indices,
    pair_key,
    top_cooccurrences,
)
from charindex.retrieval.mention_matcher import MentionMatcher, build_variant_lookup
from charindex.retrieval.models import Snippet, SnippetIndices, SnippetLocation, SnippetMention, SnippetText
from charindex.retrieval.snippet_deduplicator import combine_text, dedupe_snippets, merge_snippets
from charindex.retrieval.snippet_extractor import SnippetExtractor
from charindex.retrieval.snippet_store import SnippetStore, format_snippet

__all__ = [
    "MentionMatcher",
    "Snippet",
    "SnippetExtractor",
    "SnippetIndices",
    "SnippetLocation",
    "SnippetMention",
    "SnippetStore",
    "SnippetText",
    "build_chapter_index",
    "build_cooccurrence_index",
    "build_entity_index",
    "build_indices",
    "build_variant_lookup",
    "combine_text",
    "dedupe_snippets",
    "format_snippet",
    "merge_snippets",
    "pair_key",
    "top_cooccurrences",
]
