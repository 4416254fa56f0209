from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

ChapterVerseCoord = Tuple[int, int]


@dataclass(frozen=True, order=True)
class Interval:
    """Inclusive 1-D range, used for verse ranges within a chapter."""
    start: int
    end: int

    @classmethod
    def point(cls, value: int) -> "Interval":
        return cls(value, value)

    def overlaps(self, other: "Interval") -> bool:
        # there is no gap between the edges
        return not (other.end < self.start or other.start > self.end)


@dataclass(frozen=True, order=True)
class ChapterVerseInterval:
    """
    Inclusive range over (chapter, verse) coordinates.

    Coordinates compare chapter first, then verse, so 2:30 < 3:1.
    """
    start: ChapterVerseCoord
    end: ChapterVerseCoord

    @classmethod
    def from_parts(
        cls,
        start_chapter: int,
        start_verse: int,
        end_chapter: int,
        end_verse: int,
    ) -> "ChapterVerseInterval":
        return cls((start_chapter, start_verse), (end_chapter, end_verse))

    @classmethod
    def point(cls, chapter: int, verse: int) -> "ChapterVerseInterval":
        return cls((chapter, verse), (chapter, verse))

    @property
    def start_chapter(self) -> int:
        return self.start[0]

    @property
    def start_verse(self) -> int:
        return self.start[1]

    @property
    def end_chapter(self) -> int:
        return self.end[0]

    @property
    def end_verse(self) -> int:
        return self.end[1]

    def overlaps(self, other: "ChapterVerseInterval") -> bool:
        return not (other.end < self.start or other.start > self.end)
