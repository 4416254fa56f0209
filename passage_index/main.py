#!/usr/bin/env python3
"""
CLI for looking up passages and their related media.
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .api import BibleAPI, create_api
from .utils.types import MediaProximity

HELP_TEXT = """Commands:
  <reference>  - show a passage, e.g. "Ephesians 1:1-4,6"
  /media       - toggle related media output
  /books       - list books
  /help        - show this help
  /quit        - exit"""


class QueryLog:
    """Appends one JSON line per query to <log_dir>/queries.jsonl."""

    def __init__(self, log_dir: Optional[str] = None):
        self.path: Optional[Path] = None
        if log_dir:
            run_dir = Path(log_dir) / datetime.now().strftime("%Y%m%d-%H%M%S")
            run_dir.mkdir(parents=True, exist_ok=True)
            self.path = run_dir / "queries.jsonl"

    def write(self, payload: dict) -> None:
        if not self.path:
            return
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False) + "\n")
        except OSError as e:
            print(f"Failed to write log entry: {e}", file=sys.stderr)


def format_media(matches: List[MediaProximity]) -> str:
    lines = []
    for match in matches:
        for item in match.media:
            tags = f" [{', '.join(item.tags)}]" if item.tags else ""
            lines.append(f"  ({match.label}){tags} {item.content}")
    return "\n".join(lines)


def answer(api: BibleAPI, text: str, show_media: bool, log: QueryLog) -> str:
    passage = api.parse_reference(text)
    if passage is None:
        log.write({"query": text, "passage": None})
        return "No passage found"

    output = api.format_passage(passage)
    matches = api.related_media(passage) if show_media else []
    if matches:
        output += "\n\nRelated media:\n" + format_media(matches)

    log.write({
        "query": text,
        "passage": passage.label(),
        "book": passage.book,
        "media": [
            {"proximity": m.label, "count": len(m.media)}
            for m in matches
        ],
    })
    return output


def interactive_mode(api: BibleAPI, log: QueryLog, show_media: bool = True):
    print("=" * 60)
    print("Passage lookup")
    print("=" * 60)
    print(HELP_TEXT)
    print()

    while True:
        try:
            user_input = input("passage> ").strip()
        except (KeyboardInterrupt, EOFError):
            print()
            break

        if not user_input:
            continue

        if user_input.startswith("/"):
            cmd = user_input.lower()

            if cmd in ["/quit", "/exit", "/q"]:
                break

            elif cmd == "/media":
                show_media = not show_media
                print(f"Related media {'on' if show_media else 'off'}.")
                continue

            elif cmd == "/books":
                for book in api.list_books():
                    print(f"  {book['id']:>3} {book['name']}: {book['chapter_count']} chapters")
                continue

            elif cmd == "/help":
                print(HELP_TEXT)
                continue

            else:
                print(f"Unknown command: {user_input}")
                continue

        print()
        print(answer(api, user_input, show_media, log))
        print()


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Look up Bible passages and related media",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "-q", "--query",
        type=str,
        help="Single reference to look up (non-interactive mode)"
    )
    parser.add_argument(
        "--bible",
        type=str,
        default=os.getenv("PASSAGE_BIBLE_PATH"),
        help="Path to the JSON Bible"
    )
    parser.add_argument(
        "--media",
        type=str,
        default=os.getenv("PASSAGE_MEDIA_PATH"),
        help="Path to related media JSON"
    )
    parser.add_argument(
        "--no-media",
        action="store_true",
        help="Do not show related media"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=os.getenv("PASSAGE_LOG_DIR"),
        help="Directory for per-run query logs"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        api = create_api(bible_path=args.bible, media_path=args.media)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        sys.exit(1)

    log = QueryLog(args.log_dir)

    if args.query:
        print(answer(api, args.query, not args.no_media, log))
    else:
        interactive_mode(api, log, show_media=not args.no_media)


if __name__ == "__main__":
    main()
