# main.py
"""CLI entry point for the narrative context engine."""

from __future__ import annotations

import argparse
import sys

from orchestration.cli_runner import run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assemble a bounded continuation prompt for a chapter."
    )
    parser.add_argument("project_id", help="Project id")
    parser.add_argument("chapter_id", help="Chapter id")
    parser.add_argument(
        "--cursor",
        type=int,
        default=None,
        help="Cursor offset in the chapter text (default: end of chapter)",
    )
    parser.add_argument(
        "--max-tokens", type=int, default=None, help="Token budget for the prompt"
    )
    parser.add_argument(
        "--story", default=None, help="YAML story file to read instead of Neo4j"
    )
    parser.add_argument(
        "--separated",
        action="store_true",
        help="Print a system prompt and a user context separately",
    )
    parser.add_argument(
        "--quality", action="store_true", help="Print the context quality report"
    )
    parser.add_argument(
        "--check", action="store_true", help="Run the consistency checks"
    )
    parser.add_argument(
        "--detect-new",
        action="store_true",
        help="List name-like strings not in the character roster",
    )
    parser.add_argument(
        "--stats", action="store_true", help="Print project size statistics"
    )
    return parser


def main() -> None:
    """Parse command-line arguments and assemble the context."""
    args = build_parser().parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
