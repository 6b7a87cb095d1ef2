#!/usr/bin/env python3
"""Entity discovery CLI script.

Extracts proper nouns from a Markdown manuscript and writes tiered character lists:
- confirmed_characters.json / candidates.json
- stats.json
- debug/ (raw extraction counts, excluded groups, LLM co-reference response)

Usage:
    python scripts/run_discovery.py --input book.md --output out/
    python scripts/run_discovery.py --input book.md --output out/ --min-mentions 5 --no-coref
    python scripts/run_discovery.py --input book.md --output out/ --config config/config.yaml
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from charindex.pipeline.discovery_pipeline import DiscoveryPipeline  # noqa: E402
from charindex.utils.config import load_config  # noqa: E402
from charindex.utils.logging import configure_logging  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Discover character entities in a manuscript",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--input", "-i", type=Path, required=True, help="Manuscript (Markdown)")
    parser.add_argument("--output", "-o", type=Path, required=True, help="Output directory")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: built-in defaults + environment)",
    )
    parser.add_argument(
        "--min-mentions",
        type=int,
        default=None,
        help="Minimum mentions for a candidate (default: tiers.min_candidate_mentions)",
    )
    parser.add_argument("--no-coref", action="store_true", help="Skip LLM co-reference merge")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        configure_logging(verbose=args.verbose)
        logger.error(str(exc))
        sys.exit(1)

    configure_logging(config.logging, verbose=args.verbose)
    if args.min_mentions is not None:
        config.tiers.min_candidate_mentions = args.min_mentions

    pipeline = DiscoveryPipeline(config)
    try:
        result = pipeline.run(args.input, args.output, use_coref=False if args.no_coref else None)
    except FileNotFoundError as exc:
        logger.error(str(exc))
        sys.exit(1)

    if result.coref is not None and result.coref.stats.error:
        logger.warning("Continuing with unmerged entities: {}", result.coref.stats.error)

    stats = result.stats
    logger.info(
        "Done. Confirmed={}, Candidates={}, Excluded={}",
        stats.confirmed_characters,
        stats.candidates,
        stats.excluded,
    )
    for reason, count in stats.exclusion_reasons.items():
        logger.info("  excluded {}: {}", reason, count)
    for rank, entity in enumerate(result.confirmed[:10], start=1):
        logger.info(
            "  {}. {} ({} mentions, {})", rank, entity.canonical_name, entity.mentions, entity.qualified_by
        )


if __name__ == "__main__":
    main()
