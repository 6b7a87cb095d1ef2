#!/usr/bin/env python3
"""Query a snippet output directory.

Usage:
    python scripts/query_entities.py --data-dir out/ --entity "Quirrell" --max 5
    python scripts/query_entities.py --data-dir out/ --entity "Quirrell" --with "Snape"
    python scripts/query_entities.py --data-dir out/ --list
    python scripts/query_entities.py --data-dir out/ --search "dumble" --json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from charindex.retrieval.models import Snippet  # noqa: E402
from charindex.retrieval.snippet_store import EntitySummary, SnippetStore, format_snippet  # noqa: E402
from charindex.utils.logging import configure_logging  # noqa: E402

console = Console()


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _show_entities(entities: List[EntitySummary]) -> None:
    table = Table(title=f"All Entities ({len(entities)})")
    table.add_column("Entity", style="bold")
    table.add_column("Id", style="dim")
    table.add_column("Snippets", justify="right")
    table.add_column("Mentions", justify="right")
    for e in entities:
        table.add_row(e.name, e.id, str(e.snippet_count), str(e.mention_count))
    console.print(table)


def _show_snippets(title: str, snippets: List[Snippet]) -> None:
    console.print(f"\n[bold blue]{escape(title)}[/bold blue]\n")
    if not snippets:
        console.print("[yellow]No snippets found.[/yellow]")
    for snippet in snippets:
        console.print(Panel(Text(format_snippet(snippet)), border_style="green"))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Look up entity context in extracted snippets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--data-dir", "-d", type=Path, required=True, help="Snippet output directory")
    parser.add_argument(
        "--entities",
        type=Path,
        default=None,
        help="Entity file (default: <data-dir>/confirmed_characters.json)",
    )
    parser.add_argument("--entity", help="Entity name, id or variant")
    parser.add_argument("--with", dest="with_entity", help="Second entity for co-occurrence lookup")
    parser.add_argument("--list", action="store_true", help="List all entities")
    parser.add_argument("--search", help="Find the entity matching a search term")
    parser.add_argument("--max", type=int, default=10, help="Maximum snippets to return")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()
    configure_logging(verbose=args.verbose)

    store = SnippetStore(args.data_dir, args.entities)
    try:
        if args.list:
            entities = store.list_entities()
            if args.json:
                _print_json([e.model_dump() for e in entities])
            else:
                _show_entities(entities)

        elif args.search:
            found = store.search(args.search)
            if args.json:
                _print_json(found.model_dump() if found else None)
            elif found:
                table = Table(title=f"Found: {found.name}", show_header=False)
                table.add_row("Id", found.id)
                table.add_row("Snippets", str(found.snippet_count))
                table.add_row("Mentions", str(found.mention_count))
                console.print(table)
            else:
                console.print(f'[yellow]No entity found matching "{escape(args.search)}"[/yellow]')

        elif args.entity:
            if args.with_entity:
                snippets = store.cooccurrence_context(args.entity, args.with_entity, args.max)
                a = store.find_entity(args.entity)
                b = store.find_entity(args.with_entity)
                title = (
                    f"{a.canonical_name if a else args.entity} + "
                    f"{b.canonical_name if b else args.with_entity} ({len(snippets)} snippets)"
                )
            else:
                snippets = store.entity_context(args.entity, args.max)
                entity = store.find_entity(args.entity)
                total = store.snippet_count(entity.id) if entity else 0
                name = entity.canonical_name if entity else args.entity
                title = f"{name} ({total} total, showing {len(snippets)})"

            if args.json:
                _print_json([s.model_dump(mode="json", by_alias=True, exclude_none=True) for s in snippets])
            else:
                _show_snippets(title, snippets)
        else:
            parser.print_help()
    except (FileNotFoundError, ValueError) as exc:
        logger.error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
