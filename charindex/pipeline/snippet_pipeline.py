"""Snippet extraction: resolved entities plus manuscript in, queryable corpus out.

`extract()` is pure. `run()` reads the manuscript and entity file(s) and writes:

- `snippets.jsonl` (one snippet per line)
- `entity_index.json`, `cooccurrence_index.json`, `chapter_index.json`
- `stats.json`
- `review.md` (human-readable audit)
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from charindex.ingestion.chapters import parse_chapters
from charindex.normalization.entity_store import load_entities
from charindex.normalization.models import CamelModel, Entity
from charindex.retrieval.index_builder import build_indices, top_cooccurrences
from charindex.retrieval.mention_matcher import MentionMatcher
from charindex.retrieval.models import Snippet, SnippetIndices
from charindex.retrieval.snippet_deduplicator import dedupe_snippets
from charindex.retrieval.snippet_extractor import SnippetExtractor
from charindex.utils.config import Config, SnippetConfig

CANDIDATES_FILE = "candidates.json"
TOP_PAIRS = 10


class ExtractionSummary(CamelModel):
    total_snippets: int = 0
    before_dedup: int = 0
    dedup_reduction: str = "0%"


class CoverageSummary(CamelModel):
    snippets_with_multiple_entities: int = 0
    avg_entities_per_snippet: float = 0.0


class EntitySnippetStats(CamelModel):
    canonical_name: str
    snippets: int
    mentions: int


class PairSummary(CamelModel):
    pair: str
    snippets: int


class CooccurrenceSummary(CamelModel):
    total_pairs: int = 0
    top_pairs: List[PairSummary] = Field(default_factory=list)


class SnippetStats(CamelModel):
    """Run summary written to `stats.json`."""

    source: str = ""
    extraction: ExtractionSummary = Field(default_factory=ExtractionSummary)
    entities: Dict[str, int] = Field(default_factory=dict)
    coverage: CoverageSummary = Field(default_factory=CoverageSummary)
    by_entity: Dict[str, EntitySnippetStats] = Field(default_factory=dict)
    by_chapter: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    cooccurrences: CooccurrenceSummary = Field(default_factory=CooccurrenceSummary)


class SnippetResult(BaseModel):
    entities: List[Entity] = Field(default_factory=list)
    raw_count: int = 0
    snippets: List[Snippet] = Field(default_factory=list)
    indices: SnippetIndices = Field(default_factory=SnippetIndices)
    stats: SnippetStats = Field(default_factory=SnippetStats)


class SnippetPipeline:
    """Match entities back into the manuscript and index the resulting snippets."""

    def __init__(self, config: Config | SnippetConfig | None = None) -> None:
        if isinstance(config, Config):
            config = config.snippets
        self.config = config or SnippetConfig()

    def extract(self, text: str, entities: Sequence[Entity], *, source: str = "") -> SnippetResult:
        chapters = parse_chapters(text)
        matcher = MentionMatcher(entities)
        raw = SnippetExtractor(matcher, self.config.context_sentences).extract(chapters)
        snippets = dedupe_snippets(raw, self.config.max_sentence_gap)
        indices = build_indices(snippets)

        result = SnippetResult(
            entities=list(entities),
            raw_count=len(raw),
            snippets=snippets,
            indices=indices,
        )
        result.stats = compute_stats(result, source)

        logger.info(
            "Snippet extraction complete",
            chapters=len(chapters),
            snippets=len(snippets),
            before_dedup=len(raw),
            pairs=len(indices.cooccurrence_index),
        )
        return result

    def run(
        self,
        input_path: str | Path,
        entities_file: str | Path,
        output_dir: str | Path,
        *,
        include_candidates: bool | None = None,
    ) -> SnippetResult:
        input_path = Path(input_path)
        entities_file = Path(entities_file)
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")

        entities = load_entities(entities_file)
        logger.info("Loaded entities", path=str(entities_file), count=len(entities))

        include = self.config.include_candidates if include_candidates is None else include_candidates
        if include:
            candidates_path = entities_file.parent / CANDIDATES_FILE
            if candidates_path.exists():
                candidates = load_entities(candidates_path)
                entities = [*entities, *candidates]
                logger.info("Included candidates", count=len(candidates))
            else:
                logger.warning("Candidates file not found", path=str(candidates_path))

        text = input_path.read_text(encoding="utf-8")
        result = self.extract(text, entities, source=input_path.name)

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        with open(output_dir / "snippets.jsonl", "w", encoding="utf-8") as f:
            for snippet in result.snippets:
                f.write(snippet.model_dump_json(by_alias=True, exclude_none=True) + "\n")

        _write_json(output_dir / "entity_index.json", result.indices.entity_index)
        _write_json(output_dir / "cooccurrence_index.json", result.indices.cooccurrence_index)
        _write_json(output_dir / "chapter_index.json", result.indices.chapter_index)
        _write_json(output_dir / "stats.json", result.stats.model_dump(mode="json", by_alias=True))
        (output_dir / "review.md").write_text(
            render_review(result, entities_file=entities_file.name), encoding="utf-8"
        )

        logger.info("Snippet output written", output_dir=str(output_dir))
        return result


def compute_stats(result: SnippetResult, source: str = "") -> SnippetStats:
    snippets = result.snippets
    indices = result.indices
    total = len(snippets)
    raw = result.raw_count

    reduction = f"{round((1 - total / raw) * 100)}%" if raw > 0 else "0%"
    avg_entities = sum(len(s.entities) for s in snippets) / total if total else 0.0

    return SnippetStats(
        source=source,
        extraction=ExtractionSummary(total_snippets=total, before_dedup=raw, dedup_reduction=reduction),
        entities={"totalUsed": len(result.entities)},
        coverage=CoverageSummary(
            snippets_with_multiple_entities=sum(1 for s in snippets if len(s.entities) > 1),
            avg_entities_per_snippet=round(avg_entities, 1),
        ),
        by_entity={
            e.id: EntitySnippetStats(
                canonical_name=e.canonical_name,
                snippets=len(indices.entity_index.get(e.id, [])),
                mentions=e.mentions,
            )
            for e in result.entities
        },
        by_chapter={chapter: {"snippets": len(ids)} for chapter, ids in indices.chapter_index.items()},
        cooccurrences=CooccurrenceSummary(
            total_pairs=len(indices.cooccurrence_index),
            top_pairs=[
                PairSummary(pair=p.pair, snippets=p.count)
                for p in top_cooccurrences(indices.cooccurrence_index, TOP_PAIRS)
            ],
        ),
    )


def render_review(result: SnippetResult, *, entities_file: str = "confirmed_characters.json") -> str:
    """Markdown audit of a snippet run."""
    stats = result.stats
    entity_index = result.indices.entity_index
    entities = result.entities
    lines: list[str] = []

    lines.append("# Extraction Review")
    lines.append("")
    lines.append(f"**Source:** {stats.source}")
    lines.append(f"**Entities:** {len(entities)} from {entities_file}")
    lines.append(f"**Generated:** {datetime.now(UTC).isoformat()}")
    lines.append("")
    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Total Snippets | {stats.extraction.total_snippets} |")
    lines.append(f"| Before Dedup | {stats.extraction.before_dedup} |")
    lines.append(f"| Dedup Reduction | {stats.extraction.dedup_reduction} |")
    lines.append(f"| Co-occurrence Pairs | {stats.cooccurrences.total_pairs} |")
    lines.append(f"| Avg Entities/Snippet | {stats.coverage.avg_entities_per_snippet} |")

    missing = [e for e in entities if e.id not in entity_index]
    lines.append("")
    lines.append("## Entity Coverage")
    lines.append("")
    if not missing:
        lines.append(f"All {len(entities)} entities have snippets.")
    else:
        lines.append(f"{len(missing)} entities have no snippets:")
        lines.append("")
        for entity in missing:
            lines.append(f"- {entity.canonical_name}")

    ranked = sorted(entities, key=lambda e: -len(entity_index.get(e.id, [])))
    lines.append("")
    lines.append("### Top 10 by Snippet Count")
    lines.append("")
    lines.append("| Entity | Snippets | Mentions | Coverage |")
    lines.append("|--------|----------|----------|----------|")
    for entity in ranked[:10]:
        count = len(entity_index.get(entity.id, []))
        coverage = round(count / entity.mentions * 100) if entity.mentions > 0 else 0
        lines.append(f"| {entity.canonical_name} | {count} | {entity.mentions} | {coverage}% |")

    lines.append("")
    lines.append("### Bottom 5 by Snippet Count")
    lines.append("")
    lines.append("| Entity | Snippets | Mentions |")
    lines.append("|--------|----------|----------|")
    for entity in list(reversed(ranked[-5:])):
        lines.append(
            f"| {entity.canonical_name} | {len(entity_index.get(entity.id, []))} | {entity.mentions} |"
        )

    lines.append("")
    lines.append("## Co-occurrences")
    lines.append("")
    lines.append("| Pair | Snippets |")
    lines.append("|------|----------|")
    for pair in stats.cooccurrences.top_pairs:
        lines.append(f"| {pair.pair.replace('+', ' + ')} | {pair.snippets} |")

    by_id = {s.id: s for s in result.snippets}
    lines.append("")
    lines.append("## Sample Snippets")
    for entity in ranked[:5]:
        lines.append("")
        lines.append(f"### {entity.canonical_name}")
        for sid in entity_index.get(entity.id, [])[:3]:
            snippet = by_id.get(sid)
            if snippet is None:
                continue
            lines.append("")
            lines.append(f"**[{snippet.id}]** Chapter {snippet.chapter}: {snippet.chapter_title}")
            lines.append(f"> **Before:** {snippet.text.before or '(start of paragraph)'}")
            lines.append(f"> **Match:** {snippet.text.match}")
            lines.append(f"> **After:** {snippet.text.after or '(end of paragraph)'}")
            lines.append(">")
            lines.append(f"> *Entities: {', '.join(snippet.entities)}*")

    issues: list[str] = []
    reduction = int(stats.extraction.dedup_reduction.rstrip("%") or 0)
    if reduction > 50:
        issues.append(
            f"- **High dedup ratio ({reduction}%)**: expected 15-25%. Review merged snippets."
        )
    if missing:
        names = ", ".join(e.canonical_name for e in missing)
        issues.append(f"- **Missing entities ({len(missing)})**: {names}")

    lines.append("")
    lines.append("## Potential Issues")
    lines.append("")
    lines.extend(issues or ["No issues detected."])

    lines.append("")
    lines.append("## Files Generated")
    lines.append("")
    lines.append(f"- `snippets.jsonl`: {stats.extraction.total_snippets} snippets")
    lines.append(f"- `entity_index.json`: {len(entity_index)} entities indexed")
    lines.append(f"- `cooccurrence_index.json`: {stats.cooccurrences.total_pairs} entity pairs")
    lines.append(f"- `chapter_index.json`: {len(result.indices.chapter_index)} chapters")
    lines.append("- `stats.json`: full statistics")
    lines.append("- `review.md`: this file")
    lines.append("")
    return "\n".join(lines)


def _write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
