"""Manuscript parsing: chapters, paragraphs, sentences and text normalization."""

from charindex.ingestion.chapters import (
    Chapter,
    front_matter_end,
    parse_chapter_number,
    parse_chapters,
    resolve_chapter_number,
    split_paragraphs,
    strip_front_matter,
)
from charindex.ingestion.sentences import split_sentences
from charindex.ingestion.text_normalizer import normalize_apostrophes, normalize_for_match, strip_possessive

__all__ = [
    "Chapter",
    "front_matter_end",
    "normalize_apostrophes",
    "normalize_for_match",
    "parse_chapter_number",
    "parse_chapters",
    "resolve_chapter_number",
    "split_paragraphs",
    "split_sentences",
    "strip_front_matter",
    "strip_possessive",
]
