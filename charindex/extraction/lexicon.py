"""Stopword and title-pattern tables.

Loaded once by the caller and passed to every component that needs them.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

import yaml
from loguru import logger

from charindex.ingestion.text_normalizer import normalize_apostrophes
from charindex.utils.config import LexiconConfig

DEFAULT_TITLE_TYPE = "honorific"


def _load_yaml_mapping(path: Path) -> Dict:
    if not path.exists():
        raise FileNotFoundError(f"Lexicon file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Lexicon file root must be a mapping/dict: {path}")
    return data


class Lexicon:
    """Lookup tables for stopwords, structural headings and titles."""

    def __init__(
        self,
        stopwords: Iterable[str] = (),
        title_patterns: Mapping[str, str] | None = None,
        chapter_start_patterns: Iterable[str] = (),
    ) -> None:
        self.stopwords: FrozenSet[str] = frozenset(
            normalize_apostrophes(word).lower() for word in stopwords
        )
        self.title_types: Dict[str, str] = {
            pattern.lower().rstrip("."): title_type
            for pattern, title_type in (title_patterns or {}).items()
        }
        self.chapter_start_patterns: FrozenSet[str] = frozenset(
            pattern.lower() for pattern in chapter_start_patterns
        )
        titles = "|".join(re.escape(t) for t in sorted(self.title_types, key=len, reverse=True))
        self._bare_title_re = (
            re.compile(rf"^(?:{titles})\.?(?:\s+[A-Z])?$", re.IGNORECASE) if titles else None
        )

    @classmethod
    def from_config(cls, config: LexiconConfig | None = None) -> "Lexicon":
        """Load the stopword and title-pattern YAML files named by `config`."""
        config = config or LexiconConfig()
        stop_data = _load_yaml_mapping(Path(config.stopwords_file))
        title_data = _load_yaml_mapping(Path(config.title_patterns_file))

        title_patterns: Dict[str, str] = {}
        for entry in title_data.get("patterns", []) or []:
            if isinstance(entry, dict) and entry.get("pattern"):
                title_patterns[str(entry["pattern"])] = str(entry.get("type") or DEFAULT_TITLE_TYPE)
            elif isinstance(entry, str):
                title_patterns[entry] = DEFAULT_TITLE_TYPE

        lexicon = cls(
            stopwords=[str(w) for w in stop_data.get("words", []) or []],
            title_patterns=title_patterns,
            chapter_start_patterns=[str(p) for p in stop_data.get("chapter_start_patterns", []) or []],
        )
        logger.debug(
            "Loaded lexicon",
            stopwords=len(lexicon.stopwords),
            titles=len(lexicon.title_types),
        )
        return lexicon

    def is_stopword(self, word: str) -> bool:
        return normalize_apostrophes(word).lower() in self.stopwords

    def is_title(self, word: str) -> bool:
        return word.lower().rstrip(".") in self.title_types

    def title_type(self, word: str) -> Optional[str]:
        return self.title_types.get(word.lower().rstrip("."))

    def is_chapter_pattern(self, form: str) -> bool:
        return form.lower() in self.chapter_start_patterns

    def is_bare_title(self, name: str) -> bool:
        """True for a title alone (`"Mr"`) or a title plus one letter (`"Mrs P"`)."""
        if self._bare_title_re is None:
            return False
        return bool(self._bare_title_re.match(name.strip()))
