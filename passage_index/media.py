"""
Related media organized by book.

Every media item is attached to one or more passages. Each segment of those
passages lands in one of three indexes of the book, depending on its shape:

- ``1:2``      exact verses      chapter -> verse -> [media]
- ``1:2-5``    in-chapter ranges chapter -> OverlapIndex[Interval]
- ``1:2-3:4``  chapter ranges    OverlapIndex[ChapterVerseInterval]

Queries are routed the same way, so a query only looks at the index matching
the shape of the query segment.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .segments import ChapterRange, ChapterVerse, ChapterVerseRange, Segment
from .utils.indexing import OverlapIndex
from .utils.ranges import ChapterVerseInterval, Interval
from .utils.types import MediaItem, MediaProximity

logger = logging.getLogger(__name__)


class RelatedMediaBook:
    """References to all the related media of one book."""

    def __init__(self) -> None:
        self.chapter_verse: Dict[int, Dict[int, List[MediaItem]]] = {}
        self.chapter_verse_range: Dict[int, OverlapIndex[Interval, MediaItem]] = {}
        self.chapter_range: OverlapIndex[ChapterVerseInterval, MediaItem] = OverlapIndex()

    def add(self, segment: Segment, item: MediaItem) -> None:
        if isinstance(segment, ChapterVerse):
            verses = self.chapter_verse.setdefault(segment.chapter, {})
            verses.setdefault(segment.verse, []).append(item)
        elif isinstance(segment, ChapterVerseRange):
            index = self.chapter_verse_range.get(segment.chapter)
            if index is None:
                index = OverlapIndex()
                self.chapter_verse_range[segment.chapter] = index
            index.insert(segment.interval, item)
        elif isinstance(segment, ChapterRange):
            self.chapter_range.insert(segment.interval, item)
        else:
            raise TypeError(f"Unknown segment type: {type(segment).__name__}")

    def get_chapter_verse_media(self, chapter: int, verse: int) -> Optional[MediaProximity]:
        media = self.chapter_verse.get(chapter, {}).get(verse)
        if media is None:
            return None
        return MediaProximity(media=media, proximity=ChapterVerse(chapter, verse))

    def get_chapter_verse_range_media(
        self, chapter: int, start_verse: int, end_verse: int
    ) -> Optional[List[MediaProximity]]:
        index = self.chapter_verse_range.get(chapter)
        if index is None:
            return None
        matches = [
            MediaProximity(media=media, proximity=ChapterVerseRange(chapter, key))
            for key, media in index.iter_overlapping(Interval(start_verse, end_verse))
        ]
        return matches or None

    def get_chapter_range_media(
        self, start_chapter: int, start_verse: int, end_chapter: int, end_verse: int
    ) -> Optional[List[MediaProximity]]:
        probe = ChapterVerseInterval.from_parts(start_chapter, start_verse, end_chapter, end_verse)
        matches = [
            MediaProximity(media=media, proximity=ChapterRange(key.start, key.end))
            for key, media in self.chapter_range.iter_overlapping(probe)
        ]
        return matches or None

    def query(self, segment: Segment) -> Optional[List[MediaProximity]]:
        if isinstance(segment, ChapterVerse):
            match = self.get_chapter_verse_media(segment.chapter, segment.verse)
            return [match] if match is not None else None
        if isinstance(segment, ChapterVerseRange):
            return self.get_chapter_verse_range_media(
                segment.chapter, segment.interval.start, segment.interval.end
            )
        if isinstance(segment, ChapterRange):
            return self.get_chapter_range_media(
                segment.start_chapter, segment.start_verse, segment.end_chapter, segment.end_verse
            )
        raise TypeError(f"Unknown segment type: {type(segment).__name__}")


class MediaOrganizer:
    """
    Related media for every book, keyed by book id.

    Built once with ``ingest`` and read-only afterwards. A media item attached
    to several passages is stored by reference in every matching bucket.
    """

    def __init__(self) -> None:
        self.books: Dict[int, RelatedMediaBook] = {}
        self.items: List[MediaItem] = []

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, book: object) -> bool:
        return book in self.books

    def __iter__(self) -> Iterator[MediaItem]:
        return iter(self.items)

    def book_ids(self) -> List[int]:
        return sorted(self.books)

    def get_book(self, book: int) -> Optional[RelatedMediaBook]:
        return self.books.get(book)

    def ingest(self, items: Iterable[MediaItem]) -> int:
        """Index ``items``; returns how many were added."""
        added = 0
        for item in items:
            for reference in item.references:
                book = self.books.get(reference.book)
                if book is None:
                    book = RelatedMediaBook()
                    self.books[reference.book] = book
                for segment in reference.segments:
                    book.add(segment, item)
            self.items.append(item)
            added += 1
        logger.debug("Ingested %d media item(s) across %d book(s)", added, len(self.books))
        return added

    def query(self, book: int, segment: Segment) -> Optional[List[MediaProximity]]:
        """
        Media overlapping ``segment`` in ``book``.

        Returns ``None`` when the book has no media or nothing overlaps.
        """
        related = self.books.get(book)
        if related is None:
            return None
        return related.query(segment)

    def query_segments(self, book: int, segments: Iterable[Segment]) -> List[MediaProximity]:
        """Concatenated matches for every segment of a passage, in segment order."""
        results: List[MediaProximity] = []
        for segment in segments:
            matches = self.query(book, segment)
            if matches:
                results.extend(matches)
        return results
