"""
Passage segments: the chapter/verse part of a scripture reference.

A reference such as ``Ephesians 1:1-4,5-7,2:2-3:4,6`` is made of segments::

    1:1-4      ChapterVerseRange
    5-7        ChapterVerseRange (chapter 1 carried over)
    2:2-3:4    ChapterRange
    6          ChapterVerse (chapter 3 carried over)

``parse_segments`` turns the text after the book name into a
``PassageSegments`` sequence and ``PassageSegments.label`` renders it back in
canonical form.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union, overload

from .utils.ranges import ChapterVerseCoord, ChapterVerseInterval, Interval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChapterVerse:
    """A single verse, e.g. ``1:2`` in ``John 1:2``."""
    chapter: int
    verse: int

    @property
    def start_chapter(self) -> int:
        return self.chapter

    @property
    def start_verse(self) -> int:
        return self.verse

    @property
    def end_chapter(self) -> int:
        return self.chapter

    @property
    def end_verse(self) -> int:
        return self.verse

    def label(self) -> str:
        return f"{self.chapter}:{self.verse}"


@dataclass(frozen=True)
class ChapterVerseRange:
    """A verse range inside one chapter, e.g. ``1:2-3`` in ``John 1:2-3``."""
    chapter: int
    interval: Interval

    @classmethod
    def from_parts(cls, chapter: int, start_verse: int, end_verse: int) -> "ChapterVerseRange":
        return cls(chapter, Interval(start_verse, end_verse))

    @property
    def start_chapter(self) -> int:
        return self.chapter

    @property
    def start_verse(self) -> int:
        return self.interval.start

    @property
    def end_chapter(self) -> int:
        return self.chapter

    @property
    def end_verse(self) -> int:
        return self.interval.end

    def label(self) -> str:
        return f"{self.chapter}:{self.interval.start}-{self.interval.end}"


@dataclass(frozen=True)
class ChapterRange:
    """A range crossing chapter boundaries, e.g. ``1:2-3:4`` in ``John 1:2-3:4``."""
    start: ChapterVerseCoord
    end: ChapterVerseCoord

    @classmethod
    def from_parts(
        cls,
        start_chapter: int,
        start_verse: int,
        end_chapter: int,
        end_verse: int,
    ) -> "ChapterRange":
        return cls((start_chapter, start_verse), (end_chapter, end_verse))

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

    @property
    def interval(self) -> ChapterVerseInterval:
        return ChapterVerseInterval(self.start, self.end)

    def label(self) -> str:
        return f"{self.start[0]}:{self.start[1]}-{self.end[0]}:{self.end[1]}"


Segment = Union[ChapterVerse, ChapterVerseRange, ChapterRange]


def _segment_tail(segment: Segment, previous_chapter: Optional[int]) -> str:
    """Label of one segment, dropping the chapter when it continues the previous one."""
    same_chapter = previous_chapter is not None and previous_chapter == segment.start_chapter
    if isinstance(segment, ChapterVerse):
        if same_chapter:
            return str(segment.verse)
        return segment.label()
    if isinstance(segment, ChapterVerseRange):
        if same_chapter:
            return f"{segment.interval.start}-{segment.interval.end}"
        return segment.label()
    if isinstance(segment, ChapterRange):
        if same_chapter:
            return f"{segment.start_verse}-{segment.end_chapter}:{segment.end_verse}"
        return segment.label()
    raise TypeError(f"Unknown segment type: {type(segment).__name__}")


class PassageSegments(Sequence[Segment]):
    """Ordered, immutable list of segments making up one reference."""

    __slots__ = ("_segments",)

    def __init__(self, segments: Sequence[Segment] = ()):
        self._segments: Tuple[Segment, ...] = tuple(segments)

    @overload
    def __getitem__(self, index: int) -> Segment: ...

    @overload
    def __getitem__(self, index: slice) -> "PassageSegments": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return PassageSegments(self._segments[index])
        return self._segments[index]

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PassageSegments):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __repr__(self) -> str:
        return f"PassageSegments({list(self._segments)!r})"

    def label(self) -> str:
        """
        Canonical label, e.g. ``1:1-4,5-7,2:2-3:4,6``.

        A segment that starts in the chapter the previous one ended in is
        written without its chapter and joined with ``,``. A change of chapter
        is joined with ``; `` unless the segment is a cross-chapter range,
        whose label already names both chapters.
        """
        previous_chapter: Optional[int] = None
        parts: List[str] = []
        for segment in self._segments:
            if previous_chapter is not None:
                if previous_chapter == segment.start_chapter or isinstance(segment, ChapterRange):
                    parts.append(",")
                else:
                    parts.append("; ")
            parts.append(_segment_tail(segment, previous_chapter))
            previous_chapter = segment.end_chapter
        return "".join(parts)

    @classmethod
    def try_parse(cls, text: str) -> Optional["PassageSegments"]:
        return parse_segments(text)


# Hyphen, non-breaking hyphen, figure/en/em dashes, horizontal bar, minus sign,
# small and full-width hyphen-minus.
DASH_VARIANTS = re.compile("[\u2010-\u2015\u2212\uFE58\uFE63\uFF0D]")

VALID_REFERENCE_SEGMENT = re.compile(r"^ *\d+:\d+(?: *[,:;-] *\d+)*")

NON_SEGMENT_CHARACTERS = re.compile(r"[^\d,:;-]+")

TRAILING_NON_DIGITS = re.compile(r"\D+$")

SEGMENT_SPLITTERS = re.compile(r"[,;]")


class ReferenceNumberTooLong(ValueError):
    """A chapter or verse number has more digits than ``int()`` will convert."""


def _to_int(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        if token.isdigit():
            raise ReferenceNumberTooLong(
                f"Reference number with {len(token)} digits is too long"
            ) from None
        # the anchor pattern only lets digits and separators through
        raise RuntimeError(f"Reference piece {token!r} is not numeric") from None


def _split_chapter_verse(piece: str) -> Optional[Tuple[int, int]]:
    """``"3:4"`` -> ``(3, 4)``; ``None`` for a bare verse number."""
    if ":" not in piece:
        return None
    parts = piece.split(":")
    return _to_int(parts[0]), _to_int(parts[-1])


def parse_segments(text: str) -> Optional[PassageSegments]:
    """
    Parse the chapter/verse part of a reference.

    ``text`` is whatever follows the book name, e.g. ``" 1:1-2,4-6 says..."``.
    It must open with an explicit ``chapter:verse``; otherwise ``None`` is
    returned. Characters between the numbers that are not separators
    (footnote markers, stray punctuation) are dropped.
    """
    text = DASH_VARIANTS.sub("-", text)
    match = VALID_REFERENCE_SEGMENT.match(text)
    if match is None:
        return None

    cleaned = NON_SEGMENT_CHARACTERS.sub("", match.group(0))
    cleaned = TRAILING_NON_DIGITS.sub("", cleaned)
    try:
        segments = _build_segments(cleaned)
    except ReferenceNumberTooLong as e:
        logger.debug("Rejected %.40r...: %s", match.group(0), e)
        return None

    logger.debug("Parsed %r into %d segment(s)", match.group(0), len(segments))
    return PassageSegments(segments)


def _build_segments(cleaned: str) -> List[Segment]:
    # a bare verse number belongs to the last chapter named
    chapter = 1
    segments: List[Segment] = []
    for token in SEGMENT_SPLITTERS.split(cleaned):
        if "-" in token:
            pieces = token.split("-")
            left, right = pieces[0], pieces[-1]
            left_cv = _split_chapter_verse(left)
            right_cv = _split_chapter_verse(right)
            if left_cv is not None and right_cv is not None:
                chapter = right_cv[0]
                segments.append(ChapterRange(left_cv, right_cv))
            elif left_cv is not None:
                chapter = left_cv[0]
                segments.append(ChapterVerseRange(chapter, Interval(left_cv[1], _to_int(right))))
            elif right_cv is not None:
                start = (chapter, _to_int(left))
                chapter = right_cv[0]
                segments.append(ChapterRange(start, right_cv))
            else:
                segments.append(ChapterVerseRange(chapter, Interval(_to_int(left), _to_int(right))))
        else:
            chapter_verse = _split_chapter_verse(token)
            if chapter_verse is not None:
                chapter = chapter_verse[0]
                segments.append(ChapterVerse(chapter, chapter_verse[1]))
            else:
                segments.append(ChapterVerse(chapter, _to_int(token)))

    return segments


def _int_field(raw: dict, name: str) -> int:
    if name not in raw:
        raise ValueError(f"Passage segment is missing {name!r}: {raw!r}")
    try:
        return int(raw[name])
    except (TypeError, ValueError):
        raise ValueError(f"Passage segment has an invalid {name!r}: {raw[name]!r}") from None


def segment_from_dict(raw: dict) -> Segment:
    """Build a segment from its JSON object form (see ``segment_to_dict``)."""
    if not isinstance(raw, dict):
        raise ValueError(f"Not a passage segment: {raw!r}")
    if "start_chapter" in raw:
        return ChapterRange.from_parts(
            _int_field(raw, "start_chapter"),
            _int_field(raw, "start_verse"),
            _int_field(raw, "end_chapter"),
            _int_field(raw, "end_verse"),
        )
    if "start_verse" in raw:
        return ChapterVerseRange.from_parts(
            _int_field(raw, "chapter"), _int_field(raw, "start_verse"), _int_field(raw, "end_verse")
        )
    if "verse" in raw:
        return ChapterVerse(_int_field(raw, "chapter"), _int_field(raw, "verse"))
    raise ValueError(f"Not a passage segment: {raw!r}")


def segment_to_dict(segment: Segment) -> dict:
    if isinstance(segment, ChapterVerse):
        return {"chapter": segment.chapter, "verse": segment.verse}
    if isinstance(segment, ChapterVerseRange):
        return {
            "chapter": segment.chapter,
            "start_verse": segment.interval.start,
            "end_verse": segment.interval.end,
        }
    if isinstance(segment, ChapterRange):
        return {
            "start_chapter": segment.start_chapter,
            "start_verse": segment.start_verse,
            "end_chapter": segment.end_chapter,
            "end_verse": segment.end_verse,
        }
    raise TypeError(f"Unknown segment type: {type(segment).__name__}")
