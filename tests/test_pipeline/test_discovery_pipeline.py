"""Tests for the end-to-end discovery pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import pytest

from charindex.pipeline.discovery_pipeline import DiscoveryPipeline
from charindex.utils.config import Config, CorefConfig, GroupingConfig, TierConfig
from charindex.utils.llm_client import CompletionRequest, CompletionResponse, TokenUsage

BOOK = """---
title: Test
---
## CHAPTER ONE: The Letter

Mr. Dursley hated Harry. Harry looked at Mr. Dursley.

Malfoy, Crabbe, and Goyle laughed.
Malfoy, Crabbe, and Goyle laughed.
Malfoy, Crabbe, and Goyle laughed.
"""


class FakeProvider:
    def __init__(self, text: str = '{"merges": []}', error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls = 0

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return CompletionResponse(generated_text=self.text, token_usage=TokenUsage(prompt_tokens=10))


@pytest.fixture
def config() -> Config:
    return Config(
        grouping=GroupingConfig(min_mentions=1),
        tiers=TierConfig(min_candidate_mentions=1),
        coref=CorefConfig(enabled=False),
    )


@pytest.fixture
def book(tmp_path: Path) -> Path:
    path = tmp_path / "book.md"
    path.write_text(BOOK, encoding="utf-8")
    return path


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_discover_tiers_and_exclusions(config: Config) -> None:
    result = DiscoveryPipeline(config).discover(BOOK, source="book.md")

    assert [(e.canonical_name, e.qualified_by) for e in result.confirmed] == [("Mr. Dursley", "title_pattern")]
    assert [e.canonical_name for e in result.candidates] == ["Goyle", "Harry"]
    assert [e.text for e in result.filtered.excluded] == ["Malfoy Crabbe"]
    assert result.coref is None
    assert result.coref_applied is False

    stats = result.stats
    assert stats.source == "book.md"
    assert stats.confirmed_characters == 1
    assert stats.candidates == 2
    assert stats.excluded == 1
    assert stats.exclusion_reasons == {"list_separated_names": 1}
    assert stats.coref_merges == {"skipped": True}


def test_low_frequency_groups_count_as_excluded() -> None:
    config = Config(grouping=GroupingConfig(min_mentions=1), coref=CorefConfig(enabled=False))

    result = DiscoveryPipeline(config).discover(BOOK)

    assert [e.canonical_name for e in result.confirmed] == ["Mr. Dursley"]
    assert result.candidates == []
    assert result.low_frequency == 2
    assert result.stats.exclusion_reasons == {"list_separated_names": 1, "low_frequency": 2}
    assert result.stats.excluded == 3


def test_run_writes_output_files(config: Config, book: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"

    DiscoveryPipeline(config).run(book, out)

    confirmed = _read(out / "confirmed_characters.json")
    assert confirmed["metadata"]["source"] == "book.md"
    assert confirmed["metadata"]["tier"] == "confirmed_characters"
    assert confirmed["metadata"]["count"] == 1
    assert confirmed["metadata"]["pipeline"] == "charindex-discovery"
    assert confirmed["metadata"]["corefApplied"] is False

    entity = confirmed["entities"][0]
    assert entity["id"] == "mr_dursley"
    assert entity["canonicalName"] == "Mr. Dursley"
    assert entity["mentions"] == 2
    assert entity["qualifiedBy"] == "title_pattern"
    assert entity["variants"] == [{"form": "Mr. Dursley", "count": 2}]
    assert entity["firstAppearance"] == {"chapter": 1, "paragraph": 1}
    assert "mergedFrom" not in entity

    candidates = _read(out / "candidates.json")
    harry = next(e for e in candidates["entities"] if e["id"] == "harry")
    assert harry["notes"] == "No possessive form"
    assert harry["sentenceStartRatio"] == 0.5

    stats = _read(out / "stats.json")
    assert stats["confirmedCharacters"] == 1
    assert stats["corefMerges"] == {"skipped": True}
    assert stats["topConfirmedByMentions"][0]["name"] == "Mr. Dursley"

    raw = _read(out / "debug" / "raw_extractions.json")
    assert raw["mentionCounts"]["Mr Dursley"] == 2
    assert raw["chaptersProcessed"] == 1

    excluded = _read(out / "debug" / "excluded.json")
    assert excluded["totalExcluded"] == 1
    assert excluded["excluded"][0]["reason"] == "list_separated_names"

    assert not (out / "debug" / "llm_coref_response.json").exists()


def test_run_with_coref(config: Config, book: Path, tmp_path: Path) -> None:
    provider = FakeProvider('{"merges": [["Harry", "Nobody"]]}')
    out = tmp_path / "out"

    result = DiscoveryPipeline(config, provider=provider).run(book, out, use_coref=True)

    assert provider.calls == 1
    assert result.coref_applied is True
    confirmed = _read(out / "confirmed_characters.json")
    assert confirmed["metadata"]["pipeline"] == "charindex-discovery-coref"
    assert confirmed["metadata"]["corefApplied"] is True

    stats = _read(out / "stats.json")
    assert stats["corefMerges"]["groupsIdentified"] == 1
    assert stats["corefMerges"]["skippedMerges"][0]["reason"] == "Only 1 of 2 names found in entities"

    debug = _read(out / "debug" / "llm_coref_response.json")
    assert debug["parsed_merges"] == [["Harry", "Nobody"]]
    assert "Mr. Dursley (2)" in debug["prompt"]


def test_coref_failure_keeps_tiers(config: Config) -> None:
    provider = FakeProvider(error=RuntimeError("network down"))

    result = DiscoveryPipeline(config, provider=provider).discover(BOOK, use_coref=True)

    assert [e.canonical_name for e in result.confirmed] == ["Mr. Dursley"]
    assert [e.canonical_name for e in result.candidates] == ["Goyle", "Harry"]
    assert result.coref_applied is False
    assert result.stats.coref_merges["error"] == "LLM call failed: network down"


def test_run_missing_input(config: Config, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        DiscoveryPipeline(config).run(tmp_path / "missing.md", tmp_path / "out")
