from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..segments import PassageSegments, Segment


@dataclass
class WordIndices:
    """Start/end word offsets of a reference within one translation."""
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass
class BookPassageRange:
    """Segments of one book that a media item is attached to."""
    book: int
    segments: PassageSegments
    # translation abbreviation -> word offsets; not used for indexing
    words: Optional[Dict[str, WordIndices]] = None


@dataclass
class MediaItem:
    """Related media (a note, audio link, cross reference...) and the passages it belongs to."""
    tags: List[str]
    content: str
    references: List[BookPassageRange] = field(default_factory=list)


@dataclass
class MediaProximity:
    """
    One bucket matched by a media query.

    ``proximity`` is the stored range that overlapped the query, so callers
    can show which part of a broad reference the media belongs to.
    """
    media: List[MediaItem]
    proximity: Segment

    @property
    def label(self) -> str:
        return self.proximity.label()


@dataclass
class Translation:
    name: str
    language: str
    abbreviation: str


@dataclass
class BookRecord:
    """A book as stored in the JSON Bible: chapters of verses, ``None`` for missing verses."""
    id: int
    book: str
    abbreviations: List[str]
    content: List[List[Optional[str]]]


@dataclass
class JSONBible:
    translation: Translation
    bible: List[BookRecord]


@dataclass
class BibleVerse:
    """A verse reached while walking a passage; ``content`` is ``None`` for omitted verses."""
    book: int
    chapter: int
    verse: int
    content: Optional[str]
