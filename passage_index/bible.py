"""
Bible text and book names.

Holds the verse text of one translation and recognizes book names and
abbreviations in free text.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .utils.loaders import load_bible
from .utils.types import BibleVerse, JSONBible, Translation

logger = logging.getLogger(__name__)


class BibleData:
    """Verse content and book lookup for one translation."""

    def __init__(self, bible: JSONBible):
        self.translation: Translation = bible.translation
        # lowercase name/abbreviation without a trailing period -> book id
        self.abbreviations_to_book_id: Dict[str, int] = {}
        self.book_id_to_name: Dict[int, str] = {}
        # book id -> chapters -> verses (content or None), all index 0
        self.contents: Dict[int, List[List[Optional[str]]]] = {}

        for book in bible.bible:
            self.book_id_to_name[book.id] = book.book
            for name in [book.book, *book.abbreviations]:
                key = name.strip().lower().rstrip(".")
                if key:
                    self.abbreviations_to_book_id[key] = book.id
            self.contents[book.id] = book.content

        self.book_regex = self._build_book_regex()

    @classmethod
    def load(cls, path: str | Path) -> "BibleData":
        return cls(load_bible(path))

    def _build_book_regex(self) -> re.Pattern:
        # Longest first so "1 John" wins over "John".
        names = sorted(self.abbreviations_to_book_id, key=len, reverse=True)
        if not names:
            # matches nothing
            return re.compile(r"(?!x)x")
        book_pattern = "|".join(re.escape(name) for name in names)
        # the trailing period allows abbreviations like "Eph."
        return re.compile(rf"\b(?:{book_pattern})\b\.?", re.IGNORECASE)

    def get_book_id(self, book: str) -> Optional[int]:
        return self.abbreviations_to_book_id.get(book.strip().lower().rstrip("."))

    def find_first_book_mention(self, text: str) -> Optional[Tuple[int, int]]:
        """Return ``(book_id, end_offset)`` for the first book name in ``text``."""
        match = self.book_regex.search(text)
        if match is None:
            return None
        book_id = self.get_book_id(match.group(0))
        if book_id is None:
            return None
        return book_id, match.end()

    def book_name(self, book: int) -> Optional[str]:
        return self.book_id_to_name.get(book)

    def book_ids(self) -> List[int]:
        return sorted(self.book_id_to_name)

    def chapter_count(self, book: int) -> int:
        return len(self.contents.get(book, []))

    def chapter_verse_count(self, book: int, chapter: int) -> int:
        """Number of verses in a chapter, 0 when the book or chapter is unknown."""
        chapters = self.contents.get(book)
        if chapters is None or chapter < 1 or chapter > len(chapters):
            return 0
        return len(chapters[chapter - 1])

    def has_verse(self, book: int, chapter: int, verse: int) -> bool:
        return 1 <= verse <= self.chapter_verse_count(book, chapter)

    def get_verse_text(self, book: int, chapter: int, verse: int) -> Optional[str]:
        """
        Text of a verse, or ``None``.

        ``None`` also covers verses that exist in the numbering but have no
        text in this translation (e.g. Matthew 17:21 or Acts 8:37 in the ESV).
        """
        if not self.has_verse(book, chapter, verse):
            return None
        return self.contents[book][chapter - 1][verse - 1]

    def get_verse(self, book: int, chapter: int, verse: int) -> Optional[BibleVerse]:
        if not self.has_verse(book, chapter, verse):
            return None
        return BibleVerse(
            book=book,
            chapter=chapter,
            verse=verse,
            content=self.contents[book][chapter - 1][verse - 1],
        )

    def list_books(self) -> List[dict]:
        return [
            {"id": book_id, "name": self.book_id_to_name[book_id], "chapter_count": self.chapter_count(book_id)}
            for book_id in self.book_ids()
        ]
