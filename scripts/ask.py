#!/usr/bin/env python3
"""
Ask Gemini from the command line, without starting the API server.

Runs one search and then any follow-ups in the same in-memory session,
printing the answer text and cited sources. Needs GOOGLE_API_KEY (or
GEMINI_API_KEY) in .env or the environment.

Run from project root:

    python scripts/ask.py "what is new in python 3.13"
    python scripts/ask.py "best hiking near Oslo" -f "which one is shortest?"
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.agent.results import GenerationResult
from app.services.search_service import follow_up, start_search


def _print_outcome(outcome) -> bool:
    if not isinstance(outcome, GenerationResult):
        print(f"Failed: {outcome}", file=sys.stderr)
        return False
    print(outcome.text)
    for i, source in enumerate(outcome.sources, start=1):
        print(f"  [{i}] {source.title} - {source.url}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Search with Gemini and ask follow-ups.")
    parser.add_argument("query", help="Initial search query.")
    parser.add_argument(
        "-f",
        "--follow-up",
        action="append",
        default=[],
        help="Follow-up question (repeatable, asked in order).",
    )
    args = parser.parse_args()

    session, outcome = start_search(args.query)
    print(f"session: {session.session_id} (tools={'on' if session.tools_enabled else 'off'})\n")
    if not _print_outcome(outcome):
        sys.exit(1)

    for question in args.follow_up:
        print(f"\n> {question}\n")
        if not _print_outcome(follow_up(session.session_id, question)):
            sys.exit(1)


if __name__ == "__main__":
    main()
