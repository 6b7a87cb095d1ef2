"""Proper-noun mention extraction."""

from charindex.extraction.lexicon import Lexicon
from charindex.extraction.models import ExtractionMetadata, ExtractionResult, FirstAppearance, Mention
from charindex.extraction.proper_noun_extractor import ProperNounExtractor

__all__ = [
    "ExtractionMetadata",
    "ExtractionResult",
    "FirstAppearance",
    "Lexicon",
    "Mention",
    "ProperNounExtractor",
]
