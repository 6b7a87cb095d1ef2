"""Automated demo pipeline for charindex.

This script runs discovery, snippet extraction and a few queries against the sample manuscript.
"""

import subprocess
import sys
from pathlib import Path


def run_command(command: list[str], description: str):
    print(f"\n>>> {description}...")
    print(f"Running: {' '.join(command)}")
    try:
        subprocess.run(command, check=True)
    except subprocess.CalledProcessError as e:
        print(f"Error during {description}: {e}")
        sys.exit(1)


def main():
    root_dir = Path(__file__).parent.parent
    sample_book = root_dir / "examples" / "sample_book.md"
    output_dir = root_dir / "data" / "demo"

    if not sample_book.exists():
        print(f"Error: Sample manuscript not found at {sample_book}")
        sys.exit(1)

    scripts = root_dir / "scripts"

    # 1. Discovery (no LLM merge so the demo runs without API keys)
    run_command(
        [
            sys.executable,
            str(scripts / "run_discovery.py"),
            "--input", str(sample_book),
            "--output", str(output_dir / "discovery"),
            "--min-mentions", "3",
            "--no-coref",
        ],
        "Discovering characters",
    )

    # 2. Snippets
    run_command(
        [
            sys.executable,
            str(scripts / "extract_snippets.py"),
            "--input", str(sample_book),
            "--entities", str(output_dir / "discovery" / "confirmed_characters.json"),
            "--output", str(output_dir / "snippets"),
            "--include-candidates",
        ],
        "Extracting snippets",
    )

    # 3. Queries
    query = [
        sys.executable,
        str(scripts / "query_entities.py"),
        "--data-dir", str(output_dir / "snippets"),
        "--entities", str(output_dir / "discovery" / "confirmed_characters.json"),
    ]
    run_command([*query, "--list"], "Listing entities")
    run_command([*query, "--entity", "Reyes", "--with", "Mara", "--max", "3"], "Co-occurrence query")

    print("\n" + "=" * 50)
    print("Demo Pipeline Complete!")
    print("=" * 50)
    print("\nNext steps:")
    print(f"1. Review the discovery stats in {output_dir / 'discovery' / 'stats.json'}")
    print(f"2. Read the snippet audit in {output_dir / 'snippets' / 'review.md'}")
    print("3. Re-run discovery without --no-coref to try the LLM merge step")


if __name__ == "__main__":
    main()
