from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..segments import PassageSegments, parse_segments, segment_from_dict, segment_to_dict
from .types import (
    BookPassageRange,
    BookRecord,
    JSONBible,
    MediaItem,
    Translation,
    WordIndices,
)

logger = logging.getLogger(__name__)


def _read_json(path: str | Path) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found at {p}")
    return json.loads(p.read_text(encoding="utf-8"))


def load_bible(path: str | Path) -> JSONBible:
    """Load a JSON Bible ({"translation": {...}, "bible": [books]})."""
    raw = _read_json(path)
    return bible_from_dict(raw)


def bible_from_dict(raw: Dict[str, Any]) -> JSONBible:
    try:
        t = raw["translation"]
        books_raw = raw["bible"]
    except KeyError as e:
        raise ValueError(f"Bible data is missing the {e.args[0]!r} field") from None
    if not isinstance(t, dict) or not isinstance(books_raw, list):
        raise ValueError("Bible data needs a 'translation' object and a 'bible' list")

    translation = Translation(
        name=t.get("name", ""),
        language=t.get("language", ""),
        abbreviation=t.get("abbreviation", ""),
    )

    books: List[BookRecord] = []
    for b in books_raw:
        if not isinstance(b, dict):
            raise ValueError(f"Book record is not an object: {b!r}")
        for field_name in ("id", "book"):
            if field_name not in b:
                raise ValueError(f"Book record is missing {field_name!r}")
        try:
            books.append(
                BookRecord(
                    id=int(b["id"]),
                    book=str(b["book"]),
                    abbreviations=[str(a) for a in b.get("abbreviations") or []],
                    content=[list(chapter) for chapter in b.get("content") or []],
                )
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid book record {b.get('id')!r}: {e}") from e
    books.sort(key=lambda x: x.id)
    logger.debug("Loaded %d book(s) of %s", len(books), translation.abbreviation or "bible")
    return JSONBible(translation=translation, bible=books)


def segments_from_json(raw: Any) -> PassageSegments:
    """
    Segments are stored either as a label string ("1:1-4,5-7") or as a list
    of segment objects ({"chapter": 1, "verse": 2}, ...).
    """
    if isinstance(raw, str):
        segments = parse_segments(raw)
        if segments is None:
            raise ValueError(f"Invalid passage segments: {raw!r}")
        return segments
    if isinstance(raw, list):
        return PassageSegments([segment_from_dict(s) for s in raw])
    raise ValueError(f"Invalid passage segments: {raw!r}")


def _words_from_json(raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, WordIndices]]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Reference 'words' must be an object: {raw!r}")
    words: Dict[str, WordIndices] = {}
    for translation, w in raw.items():
        if not isinstance(w, dict):
            raise ValueError(f"Word indices for {translation!r} must be an object: {w!r}")
        words[translation] = WordIndices(start=w.get("start"), end=w.get("end"))
    return words


def media_from_dict(raw: Dict[str, Any]) -> MediaItem:
    if not isinstance(raw, dict):
        raise ValueError(f"Media item is not an object: {raw!r}")
    if "content" not in raw:
        raise ValueError(f"Media item is missing 'content': {raw!r}")
    references: List[BookPassageRange] = []
    for r in raw.get("references") or []:
        if not isinstance(r, dict) or "book" not in r or "segments" not in r:
            raise ValueError(f"Media reference needs 'book' and 'segments': {r!r}")
        try:
            book = int(r["book"])
        except (TypeError, ValueError):
            raise ValueError(f"Media reference has an invalid 'book': {r['book']!r}") from None
        references.append(
            BookPassageRange(
                book=book,
                segments=segments_from_json(r["segments"]),
                words=_words_from_json(r.get("words")),
            )
        )
    return MediaItem(
        tags=list(raw.get("tags") or []),
        content=raw["content"],
        references=references,
    )


def media_to_dict(item: MediaItem, segment_labels: bool = True) -> Dict[str, Any]:
    references = []
    for r in item.references:
        if segment_labels:
            segments: Any = r.segments.label()
        else:
            segments = [segment_to_dict(s) for s in r.segments]
        ref: Dict[str, Any] = {"book": r.book, "segments": segments}
        if r.words is not None:
            ref["words"] = {
                translation: {k: v for k, v in (("start", w.start), ("end", w.end)) if v is not None}
                for translation, w in r.words.items()
            }
        references.append(ref)
    return {"tags": list(item.tags), "references": references, "content": item.content}


def load_media(path: str | Path) -> List[MediaItem]:
    """Load related media in ingestion format (a flat list of items)."""
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of media items in {path}")
    items = [media_from_dict(m) for m in raw]
    logger.debug("Loaded %d media item(s) from %s", len(items), path)
    return items


def save_media(items: Sequence[MediaItem], path: str | Path, segment_labels: bool = True) -> None:
    p = Path(path)
    data = [media_to_dict(m, segment_labels=segment_labels) for m in items]
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def load_raw_media(path: str | Path) -> List[Dict[str, Any]]:
    """Load media in authoring format, where references are plain strings like "Eph 1:1-4"."""
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of media items in {path}")
    return raw
