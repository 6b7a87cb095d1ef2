"""Tests for stopword / title lookup tables."""

from __future__ import annotations

from pathlib import Path

import pytest

from charindex.extraction.lexicon import Lexicon
from charindex.utils.config import LexiconConfig


@pytest.fixture(scope="module")
def lexicon() -> Lexicon:
    return Lexicon.from_config()


def test_packaged_lexicon_loads(lexicon: Lexicon) -> None:
    assert lexicon.is_stopword("The")
    assert lexicon.is_stopword("it’s")
    assert not lexicon.is_stopword("Harry")
    assert lexicon.is_title("Mr.")
    assert lexicon.is_title("professor")
    assert lexicon.title_type("Aunt") == "family"
    assert lexicon.is_chapter_pattern("Chapter")


@pytest.mark.parametrize("name", ["Mr", "Mrs.", "Mrs P", "Professor", "mr d"])
def test_bare_titles(lexicon: Lexicon, name: str) -> None:
    assert lexicon.is_bare_title(name)


@pytest.mark.parametrize("name", ["Mr Dursley", "Harry", "Professor McGonagall"])
def test_not_bare_titles(lexicon: Lexicon, name: str) -> None:
    assert not lexicon.is_bare_title(name)


def test_custom_title_patterns(tmp_path: Path) -> None:
    stop = tmp_path / "stop.yaml"
    titles = tmp_path / "titles.yaml"
    stop.write_text("words: [the]\nchapter_start_patterns: [chapter]\n", encoding="utf-8")
    titles.write_text("patterns:\n  - pattern: Ser\n    type: nobility\n  - Maester\n", encoding="utf-8")

    lexicon = Lexicon.from_config(LexiconConfig(stopwords_file=stop, title_patterns_file=titles))

    assert lexicon.title_type("ser") == "nobility"
    assert lexicon.title_type("Maester") == "honorific"
    assert not lexicon.is_title("Mr")


def test_missing_lexicon_file(tmp_path: Path) -> None:
    config = LexiconConfig(stopwords_file=tmp_path / "nope.yaml")
    with pytest.raises(FileNotFoundError):
        Lexicon.from_config(config)


def test_non_mapping_lexicon_file(tmp_path: Path) -> None:
    bad = tmp_path / "stop.yaml"
    bad.write_text("- the\n- a\n", encoding="utf-8")
    with pytest.raises(ValueError):
        Lexicon.from_config(LexiconConfig(stopwords_file=bad))
