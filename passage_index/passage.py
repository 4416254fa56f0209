"""
Passages: a book plus the segments parsed from a reference, and walking the
verses they cover.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List

from .bible import BibleData
from .segments import PassageSegments, Segment
from .utils.types import BibleVerse


@dataclass(frozen=True)
class Passage:
    book: int
    book_name: str
    segments: PassageSegments

    def label(self) -> str:
        return f"{self.book_name} {self.segments.label()}"

    def verses(self, data: BibleData) -> Iterator[BibleVerse]:
        return iter_passage_verses(data, self.book, self.segments)


def iter_segment_verses(data: BibleData, book: int, segment: Segment) -> Iterator[BibleVerse]:
    """
    Every verse from the start of ``segment`` to its end, inclusive.

    Crosses into verse 1 of the next chapter when a chapter runs out, and
    stops at the first verse that does not exist in the data.
    """
    chapter, verse = segment.start_chapter, segment.start_verse
    end_chapter, end_verse = segment.end_chapter, segment.end_verse
    while (chapter, verse) <= (end_chapter, end_verse):
        current = data.get_verse(book, chapter, verse)
        if current is None:
            return
        yield current
        verse += 1
        if verse > data.chapter_verse_count(book, chapter):
            chapter += 1
            verse = 1


def iter_passage_verses(data: BibleData, book: int, segments: PassageSegments) -> Iterator[BibleVerse]:
    for segment in segments:
        yield from iter_segment_verses(data, book, segment)


def group_by_chapter(verses: List[BibleVerse]) -> List[List[BibleVerse]]:
    """Split consecutive verses into runs that share a chapter."""
    groups: List[List[BibleVerse]] = []
    for v in verses:
        if groups and groups[-1][-1].chapter == v.chapter:
            groups[-1].append(v)
        else:
            groups.append([v])
    return groups
