"""
Convert hand-written related media into the ingestion format.

Input items name their passages as plain references::

    {"tags": ["note"], "content": "...", "references": ["Eph 1:1-4", "Col 1:2"]}

Each reference is resolved against the Bible to a book id and canonical
segments. References that are already objects ({"book": 49, "segments":
"1:1-4"}) are passed through after validation.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv
from tqdm import tqdm

from .api import BibleAPI
from .bible import BibleData
from .utils.loaders import load_raw_media, media_from_dict, save_media
from .utils.types import BookPassageRange, MediaItem

logger = logging.getLogger(__name__)


def normalize_item(
    api: BibleAPI, raw: Dict[str, Any], *, strict: bool = False
) -> Tuple[MediaItem, List[str]]:
    """Resolve the references of one authoring-format item; returns the item and unresolved references."""
    if not isinstance(raw, dict):
        raise ValueError(f"Media item is not an object: {raw!r}")
    references: List[BookPassageRange] = []
    unresolved: List[str] = []
    passthrough: List[Dict[str, Any]] = []
    for ref in raw.get("references") or []:
        if isinstance(ref, dict):
            passthrough.append(ref)
            continue
        resolved = api.resolve_reference(str(ref))
        if resolved is None:
            if strict:
                raise ValueError(f"Could not resolve reference {ref!r}")
            logger.warning("Skipping unresolved reference %r", ref)
            unresolved.append(str(ref))
            continue
        references.append(resolved)

    item = media_from_dict({**raw, "references": passthrough})
    item.references = references + item.references
    return item, unresolved


def normalize_media(
    api: BibleAPI,
    raw_items: Sequence[Dict[str, Any]],
    *,
    strict: bool = False,
    progress: bool = True,
) -> Tuple[List[MediaItem], List[str]]:
    items: List[MediaItem] = []
    unresolved: List[str] = []
    for raw in tqdm(raw_items, desc="Resolving references", disable=not progress):
        item, missing = normalize_item(api, raw, strict=strict)
        unresolved.extend(missing)
        if not item.references:
            logger.warning("Media item has no usable references: %.40r", item.content)
        items.append(item)
    return items, unresolved


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()

    ap = argparse.ArgumentParser(description="Resolve related media references for ingestion.")
    ap.add_argument("--input", required=True, help="Path to media in authoring format.")
    ap.add_argument("--out", required=True, help="Output path for ingestion-format media JSON.")
    ap.add_argument("--bible", default=os.getenv("PASSAGE_BIBLE_PATH"), help="Path to the JSON Bible.")
    ap.add_argument("--strict", action="store_true", help="Fail on the first unresolved reference.")
    ap.add_argument(
        "--segment-objects",
        action="store_true",
        help="Write segments as objects instead of label strings.",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    if not args.bible:
        print("Error: pass --bible or set PASSAGE_BIBLE_PATH.", file=sys.stderr)
        sys.exit(1)

    try:
        api = BibleAPI(BibleData.load(args.bible))
        raw_items = load_raw_media(args.input)
        items, unresolved = normalize_media(api, raw_items, strict=args.strict)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    save_media(items, out, segment_labels=not args.segment_objects)

    print(f"Wrote {len(items)} media item(s) to {out}")
    if unresolved:
        print(f"{len(unresolved)} reference(s) could not be resolved:")
        for ref in unresolved:
            print(f"- {ref}")


if __name__ == "__main__":
    main()
