"""Entity discovery: manuscript text in, tiered character lists out.

Stages: proper-noun extraction, variant grouping, junk filtering, tiering and (optionally)
LLM co-reference merge. `discover()` is pure; `run()` reads the manuscript and writes:

- `confirmed_characters.json`, `candidates.json`
- `stats.json`
- `debug/raw_extractions.json`, `debug/excluded.json`
- `debug/llm_coref_response.json` (only when the merge step produced a response)
"""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from charindex.extraction.lexicon import Lexicon
from charindex.extraction.models import ExtractionResult
from charindex.extraction.proper_noun_extractor import ProperNounExtractor
from charindex.normalization.coref_merger import CorefMerger, CorefResult
from charindex.normalization.entity_store import write_entities
from charindex.normalization.junk_filter import FilterResult, JunkFilter
from charindex.normalization.models import CamelModel, Entity, EntityGroup
from charindex.normalization.tier_classifier import TierClassifier
from charindex.normalization.variant_grouper import VariantGrouper
from charindex.utils.config import Config
from charindex.utils.llm_client import CompletionProvider, create_completion_provider

PIPELINE_NAME = "charindex-discovery"
TOP_N = 10


class DiscoveryStats(CamelModel):
    """Run summary written to `stats.json`."""

    source: str = ""
    confirmed_characters: int = 0
    candidates: int = 0
    excluded: int = 0
    exclusion_reasons: Dict[str, int] = Field(default_factory=dict)
    coref_merges: Dict[str, Any] = Field(default_factory=lambda: {"skipped": True})
    top_confirmed_by_mentions: List[Dict[str, Any]] = Field(default_factory=list)
    top_candidates_by_mentions: List[Dict[str, Any]] = Field(default_factory=list)


class DiscoveryResult(BaseModel):
    extraction: ExtractionResult
    groups: List[EntityGroup] = Field(default_factory=list)
    filtered: FilterResult = Field(default_factory=FilterResult)
    confirmed: List[Entity] = Field(default_factory=list)
    candidates: List[Entity] = Field(default_factory=list)
    low_frequency: int = 0
    coref: Optional[CorefResult] = None
    stats: DiscoveryStats = Field(default_factory=DiscoveryStats)

    @property
    def coref_applied(self) -> bool:
        return self.coref is not None and self.coref.stats.error is None


class DiscoveryPipeline:
    """Run the entity discovery stages with one shared configuration."""

    def __init__(
        self,
        config: Config | None = None,
        *,
        lexicon: Lexicon | None = None,
        provider: CompletionProvider | None = None,
    ) -> None:
        self.config = config or Config()
        self.lexicon = lexicon or Lexicon.from_config(self.config.lexicon)
        self._provider = provider

        self.extractor = ProperNounExtractor(self.lexicon)
        self.grouper = VariantGrouper(self.config.grouping)
        self.junk_filter = JunkFilter(self.config.junk_filter)
        self.classifier = TierClassifier(self.lexicon, self.config.tiers)

    @property
    def provider(self) -> CompletionProvider:
        if self._provider is None:
            self._provider = create_completion_provider(self.config.coref.llm)
        return self._provider

    # -----------------------
    # Public API
    # -----------------------
    def discover(self, text: str, *, source: str = "", use_coref: bool | None = None) -> DiscoveryResult:
        use_coref = self.config.coref.enabled if use_coref is None else use_coref

        extraction = self.extractor.extract(text)
        groups = self.grouper.group(extraction)
        filtered = self.junk_filter.filter(groups, extraction, text)
        tiers = self.classifier.classify(filtered.clean, extraction)

        confirmed, candidates = tiers.confirmed, tiers.candidates
        coref: Optional[CorefResult] = None
        if use_coref:
            coref = CorefMerger(self.provider, self.config.coref).resolve(confirmed, candidates)
            confirmed, candidates = coref.confirmed, coref.candidates

        result = DiscoveryResult(
            extraction=extraction,
            groups=groups,
            filtered=filtered,
            confirmed=confirmed,
            candidates=candidates,
            low_frequency=tiers.low_frequency,
            coref=coref,
        )
        result.stats = self._compute_stats(result, source)

        logger.info(
            "Discovery complete",
            confirmed=len(confirmed),
            candidates=len(candidates),
            excluded=result.stats.excluded,
            coref_applied=result.coref_applied,
        )
        return result

    def run(
        self, input_path: str | Path, output_dir: str | Path, *, use_coref: bool | None = None
    ) -> DiscoveryResult:
        input_path = Path(input_path)
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")

        logger.info("Reading manuscript", path=str(input_path))
        text = input_path.read_text(encoding="utf-8")
        result = self.discover(text, source=input_path.name, use_coref=use_coref)

        output_dir = Path(output_dir)
        debug_dir = output_dir / "debug"
        debug_dir.mkdir(parents=True, exist_ok=True)

        pipeline = f"{PIPELINE_NAME}-coref" if result.coref is not None else PIPELINE_NAME
        for filename, tier, entities in (
            ("confirmed_characters.json", "confirmed_characters", result.confirmed),
            ("candidates.json", "candidates", result.candidates),
        ):
            write_entities(
                output_dir / filename,
                entities,
                source=input_path.name,
                tier=tier,
                pipeline=pipeline,
                coref_applied=result.coref_applied,
            )

        _write_json(output_dir / "stats.json", result.stats.model_dump(mode="json", by_alias=True))
        _write_json(
            debug_dir / "raw_extractions.json",
            {
                "totalMentions": result.extraction.metadata.total_mentions,
                "uniqueForms": result.extraction.metadata.unique_forms,
                "chaptersProcessed": result.extraction.metadata.chapters_processed,
                "mentionCounts": result.extraction.mention_counts,
                "possessiveCounts": result.extraction.possessive_counts,
                "sentenceStartCounts": result.extraction.sentence_start_counts,
            },
        )
        _write_json(
            debug_dir / "excluded.json",
            {
                "totalExcluded": len(result.filtered.excluded),
                "excluded": [e.model_dump(mode="json", by_alias=True) for e in result.filtered.excluded],
            },
        )
        if result.coref is not None and result.coref.debug is not None:
            _write_json(
                debug_dir / "llm_coref_response.json",
                result.coref.debug.model_dump(mode="json", by_alias=True),
            )

        logger.info("Discovery output written", output_dir=str(output_dir))
        return result

    # -----------------------
    # Stats
    # -----------------------
    def _compute_stats(self, result: DiscoveryResult, source: str) -> DiscoveryStats:
        reasons = Counter(item.reason for item in result.filtered.excluded)
        if result.low_frequency > 0:
            reasons["low_frequency"] = result.low_frequency

        coref_merges: Dict[str, Any] = {"skipped": True}
        if result.coref is not None:
            coref_merges = result.coref.stats.model_dump(mode="json", by_alias=True, exclude_none=True)

        return DiscoveryStats(
            source=source,
            confirmed_characters=len(result.confirmed),
            candidates=len(result.candidates),
            excluded=len(result.filtered.excluded) + result.low_frequency,
            exclusion_reasons=dict(reasons),
            coref_merges=coref_merges,
            top_confirmed_by_mentions=[
                {
                    "name": e.canonical_name,
                    "mentions": e.mentions,
                    "qualifiedBy": e.qualified_by,
                    "mergedFrom": e.merged_from,
                }
                for e in result.confirmed[:TOP_N]
            ],
            top_candidates_by_mentions=[
                {"name": e.canonical_name, "mentions": e.mentions} for e in result.candidates[:TOP_N]
            ],
        )


def _write_json(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
