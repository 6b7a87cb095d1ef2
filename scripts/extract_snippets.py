#!/usr/bin/env python3
"""Snippet extraction CLI script.

Finds every mention of the discovered entities and writes a queryable snippet corpus:
- snippets.jsonl
- entity_index.json / cooccurrence_index.json / chapter_index.json
- stats.json / review.md

Usage:
    python scripts/extract_snippets.py --input book.md --entities out/confirmed_characters.json --output out/
    python scripts/extract_snippets.py --input book.md --entities out/confirmed_characters.json \
        --output out/ --include-candidates --context-sentences 2
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from charindex.pipeline.snippet_pipeline import SnippetPipeline  # noqa: E402
from charindex.retrieval.index_builder import top_cooccurrences  # noqa: E402
from charindex.utils.config import load_config  # noqa: E402
from charindex.utils.logging import configure_logging  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract entity snippets and build lookup indices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--input", "-i", type=Path, required=True, help="Manuscript (Markdown)")
    parser.add_argument(
        "--entities", "-e", type=Path, required=True, help="confirmed_characters.json from discovery"
    )
    parser.add_argument("--output", "-o", type=Path, required=True, help="Output directory")
    parser.add_argument(
        "--include-candidates",
        action="store_true",
        help="Also match entities from candidates.json next to the entities file",
    )
    parser.add_argument(
        "--context-sentences",
        type=int,
        default=None,
        help="Sentences of context on each side (default: snippets.context_sentences)",
    )
    parser.add_argument("--config", "-c", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        configure_logging(verbose=args.verbose)
        logger.error(str(exc))
        sys.exit(1)

    configure_logging(config.logging, verbose=args.verbose)
    if args.context_sentences is not None:
        config.snippets.context_sentences = args.context_sentences

    pipeline = SnippetPipeline(config)
    try:
        result = pipeline.run(
            args.input,
            args.entities,
            args.output,
            include_candidates=True if args.include_candidates else None,
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error(str(exc))
        sys.exit(1)

    stats = result.stats
    logger.info(
        "Done. Snippets={} (before dedup {}, reduction {})",
        stats.extraction.total_snippets,
        stats.extraction.before_dedup,
        stats.extraction.dedup_reduction,
    )
    for pair in top_cooccurrences(result.indices.cooccurrence_index, 5):
        logger.info("  {}: {} snippets", pair.pair, pair.count)


if __name__ == "__main__":
    main()
