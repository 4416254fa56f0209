"""
Bible API: parses references against the loaded Bible and looks up related
media for them.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from .bible import BibleData
from .formatting import PassageFormatter
from .media import MediaOrganizer
from .passage import Passage
from .segments import parse_segments
from .utils.loaders import load_media
from .utils.types import BookPassageRange, MediaItem, MediaProximity

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class BibleAPI:
    """
    Bible text plus the related media indexed against it.

    Media is added during loading; after that the API is read-only.
    """

    def __init__(self, data: BibleData, media: Optional[MediaOrganizer] = None):
        self.data = data
        self.media = media if media is not None else MediaOrganizer()
        self.formatter = PassageFormatter()

    def add_media(self, items: Iterable[MediaItem]) -> int:
        return self.media.ingest(items)

    def parse_reference(self, text: str) -> Optional[Passage]:
        """
        Parse the first reference in ``text``, e.g. "see Eph. 1:1-4 for...".

        Returns ``None`` when no book is named or the book is not directly
        followed by ``chapter:verse``.
        """
        mention = self.data.find_first_book_mention(text)
        if mention is None:
            logger.debug("No book name in %r", text)
            return None
        book_id, end = mention
        segments = parse_segments(text[end:])
        if segments is None:
            logger.debug("No chapter:verse after book %d in %r", book_id, text)
            return None
        return Passage(book=book_id, book_name=self.data.book_name(book_id) or "", segments=segments)

    def resolve_reference(self, text: str) -> Optional[BookPassageRange]:
        passage = self.parse_reference(text)
        if passage is None:
            return None
        return BookPassageRange(book=passage.book, segments=passage.segments)

    def related_media(self, passage: Passage) -> List[MediaProximity]:
        """Media overlapping any segment of ``passage``, grouped by segment."""
        return self.media.query_segments(passage.book, passage.segments)

    def format_passage(self, passage: Passage, formatter: Optional[PassageFormatter] = None) -> str:
        return (formatter or self.formatter).format_passage(passage, self.data)

    def list_books(self) -> List[dict]:
        return self.data.list_books()


def _resolve_path(explicit: Optional[str], env_var: str, default_name: str) -> Path:
    if explicit:
        return Path(explicit)
    env_path = os.getenv(env_var)
    if env_path:
        return Path(env_path)
    return DEFAULT_DATA_DIR / default_name


def create_api(bible_path: Optional[str] = None, media_path: Optional[str] = None) -> BibleAPI:
    """
    Load the Bible and, when present, the related media.

    Paths come from the arguments, then PASSAGE_BIBLE_PATH /
    PASSAGE_MEDIA_PATH, then ``data/bible.json`` / ``data/related_media.json``.
    A missing Bible is an error; a missing media file is not.
    """
    bible_file = _resolve_path(bible_path, "PASSAGE_BIBLE_PATH", "bible.json")
    if not bible_file.exists():
        raise FileNotFoundError(f"Bible data not found at {bible_file}")
    api = BibleAPI(BibleData.load(bible_file))

    media_file = _resolve_path(media_path, "PASSAGE_MEDIA_PATH", "related_media.json")
    if media_file.exists():
        added = api.add_media(load_media(media_file))
        logger.info("Loaded %d related media item(s) from %s", added, media_file)
    elif media_path:
        raise FileNotFoundError(f"Related media not found at {media_file}")
    else:
        logger.info("No related media at %s", media_file)
    return api
