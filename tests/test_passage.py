"""
Tests for passage parsing against the Bible, verse traversal and formatting.
"""

import dataclasses
import sys
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from passage_index.api import BibleAPI
from passage_index.bible import BibleData
from passage_index.formatting import FormattingTemplate, PassageFormatter, TemplateVariableError
from passage_index.passage import group_by_chapter, iter_segment_verses
from passage_index.segments import ChapterVerse, ChapterVerseRange
from passage_index.utils.loaders import bible_from_dict

from sample_data import SAMPLE_BIBLE


def refs(verses):
    return [(v.chapter, v.verse) for v in verses]


class TestParseReference(unittest.TestCase):

    def setUp(self):
        self.api = BibleAPI(BibleData(bible_from_dict(SAMPLE_BIBLE)))

    def test_parse_reference(self):
        passage = self.api.parse_reference("Ephesians 1:1-2,4-6,22-2:2,5,3:21-4:2")
        self.assertEqual(passage.book, 49)
        self.assertEqual(passage.book_name, "Ephesians")
        self.assertEqual(len(passage.segments), 5)
        self.assertEqual(passage.label(), "Ephesians 1:1-2,4-6,22-2:2,5,3:21-4:2")

    def test_reference_inside_text(self):
        passage = self.api.parse_reference("As Paul writes in Eph. 2:1–3 we were dead")
        self.assertEqual(passage.book, 49)
        self.assertEqual(list(passage.segments), [ChapterVerseRange.from_parts(2, 1, 3)])

    def test_numbered_book(self):
        passage = self.api.parse_reference("1 John 1:2")
        self.assertEqual(passage.book, 62)
        self.assertEqual(list(passage.segments), [ChapterVerse(1, 2)])

    def test_no_passage(self):
        self.assertIsNone(self.api.parse_reference("no reference here"))
        self.assertIsNone(self.api.parse_reference("John 3"))
        self.assertIsNone(self.api.parse_reference("John chapter 3:16"))

    def test_resolve_reference(self):
        resolved = self.api.resolve_reference("Jn 1:1-2")
        self.assertEqual(resolved.book, 43)
        self.assertEqual(resolved.segments.label(), "1:1-2")
        self.assertIsNone(self.api.resolve_reference("Nowhere 1:1"))


class TestTraversal(unittest.TestCase):

    def setUp(self):
        self.data = BibleData(bible_from_dict(SAMPLE_BIBLE))
        self.api = BibleAPI(self.data)

    def verses(self, reference):
        return list(self.api.parse_reference(reference).verses(self.data))

    def test_within_chapter(self):
        self.assertEqual(refs(self.verses("Eph 1:2-4")), [(1, 2), (1, 3), (1, 4)])

    def test_across_chapters(self):
        self.assertEqual(refs(self.verses("Eph 1:4-2:2")), [(1, 4), (1, 5), (2, 1), (2, 2)])

    def test_segments_in_order(self):
        self.assertEqual(refs(self.verses("Eph 2:1,1:5")), [(2, 1), (1, 5)])

    def test_verse_without_text_is_yielded(self):
        verses = self.verses("Eph 3:1-3")
        self.assertEqual(refs(verses), [(3, 1), (3, 2), (3, 3)])
        self.assertIsNone(verses[1].content)

    def test_stops_at_end_of_book(self):
        self.assertEqual(refs(self.verses("Eph 4:2-6:1")), [(4, 2), (4, 3)])
        self.assertEqual(refs(self.verses("Eph 4:2-9")), [(4, 2), (4, 3)])

    def test_missing_start(self):
        self.assertEqual(self.verses("Eph 1:9"), [])
        self.assertEqual(self.verses("Eph 1:9-2:1"), [])

    def test_segment_iterator(self):
        verses = list(iter_segment_verses(self.data, 43, ChapterVerseRange.from_parts(1, 2, 3)))
        self.assertEqual([v.content for v in verses], ["verse 1.2", "verse 1.3"])

    def test_group_by_chapter(self):
        groups = group_by_chapter(self.verses("Eph 1:4-2:2"))
        self.assertEqual([refs(g) for g in groups], [[(1, 4), (1, 5)], [(2, 1), (2, 2)]])


class TestFormattingTemplate(unittest.TestCase):

    def test_fill(self):
        template = FormattingTemplate.from_template("[{chapter}:{verse}] {content}")
        self.assertEqual(template.variables(), ["chapter", "verse", "content"])
        self.assertEqual(template.fill({"chapter": 1, "verse": 2, "content": "x"}), "[1:2] x")

    def test_escaped_braces(self):
        template = FormattingTemplate.from_template(r"\{{name}\} end")
        self.assertEqual(template.fill({"name": "a"}), "{a} end")

    def test_plain_text(self):
        self.assertEqual(FormattingTemplate.from_template("no vars").fill({}), "no vars")

    def test_malformed(self):
        for text in ("{open", "close}", "{a{b}}", "}{"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    FormattingTemplate.from_template(text)

    def test_unknown_variable(self):
        template = FormattingTemplate.from_template("{missing}")
        with self.assertRaises(TemplateVariableError):
            template.fill({})
        with self.assertRaises(KeyError):
            template.fill({"other": 1})


class TestPassageFormatter(unittest.TestCase):

    def setUp(self):
        self.api = BibleAPI(BibleData(bible_from_dict(SAMPLE_BIBLE)))

    def test_default_format(self):
        passage = self.api.parse_reference("Ephesians 1:1-2")
        self.assertEqual(
            self.api.format_passage(passage),
            "### Ephesians 1:1-2\n\n[1:1] verse 1.1\n[1:2] verse 1.2",
        )

    def test_skips_verses_without_text(self):
        passage = self.api.parse_reference("Ephesians 1:1,3:1-3")
        self.assertEqual(
            self.api.format_passage(passage),
            "### Ephesians 1:1; 3:1-3\n\n[1:1] verse 1.1\n\n[3:1] verse 3.1\n[3:3] verse 3.3",
        )

    def test_chapter_template(self):
        formatter = PassageFormatter(
            verse="{verse}",
            join_verses=" ",
            chapter="<{chapter}:{start_verse}-{end_verse}>{verses}",
            join_chapters="|",
            text="{segments}",
        )
        passage = self.api.parse_reference("Eph 1:4-2:2")
        self.assertEqual(self.api.format_passage(passage, formatter), "<1:4-5>4 5|<2:1-2>1 2")

    def test_segment_template(self):
        formatter = PassageFormatter(
            verse="{content}",
            segment="{book} {label}: {verses}",
            join_segments=" / ",
            text="{segments}",
        )
        passage = self.api.parse_reference("John 1:1,2:2")
        self.assertEqual(
            self.api.format_passage(passage, formatter),
            "John 1:1: verse 1.1 / John 2:2: verse 2.2",
        )

    def test_formatter_is_immutable(self):
        """Templates are parsed once, so changing them means building a new formatter."""
        formatter = PassageFormatter()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            formatter.verse = "{content}"

        plain = dataclasses.replace(formatter, verse="{content}", text="{segments}")
        passage = self.api.parse_reference("John 1:1-2")
        self.assertEqual(self.api.format_passage(passage, plain), "verse 1.1\nverse 1.2")
        with self.assertRaises(ValueError):
            dataclasses.replace(formatter, verse="{content")

    def test_bad_template_fails_early(self):
        with self.assertRaises(ValueError):
            PassageFormatter(verse="{chapter")
        with self.assertRaises(TemplateVariableError):
            passage = self.api.parse_reference("John 1:1")
            self.api.format_passage(passage, PassageFormatter(verse="{nope}"))


if __name__ == "__main__":
    unittest.main()
