"""
Tests for loading the API from disk, related media lookup, the media build
step and the CLI answer path.
"""

import contextlib
import io
import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from passage_index.api import BibleAPI, create_api
from passage_index.bible import BibleData
from passage_index import build_media, main
from passage_index.build_media import normalize_media
from passage_index.main import QueryLog, answer
from passage_index.utils.loaders import bible_from_dict

from sample_data import SAMPLE_BIBLE, write_sample_bible, write_sample_media


class TestCreateAPI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.bible_path = write_sample_bible(self.dir)
        self.media_path = write_sample_media(self.dir)

    def tearDown(self):
        self.tmp.cleanup()

    def test_explicit_paths(self):
        api = create_api(str(self.bible_path), str(self.media_path))
        self.assertEqual(api.data.book_ids(), [43, 49, 62])
        self.assertEqual(len(api.media), 2)

    def test_paths_from_environment(self):
        env = {"PASSAGE_BIBLE_PATH": str(self.bible_path), "PASSAGE_MEDIA_PATH": str(self.media_path)}
        with mock.patch.dict(os.environ, env):
            api = create_api()
        self.assertEqual(len(api.media), 2)

    def test_media_is_optional(self):
        with mock.patch.dict(os.environ, {"PASSAGE_MEDIA_PATH": str(self.dir / "none.json")}):
            api = create_api(str(self.bible_path))
        self.assertEqual(len(api.media), 0)

    def test_missing_files(self):
        with self.assertRaises(FileNotFoundError):
            create_api(str(self.dir / "missing.json"))
        with self.assertRaises(FileNotFoundError):
            create_api(str(self.bible_path), str(self.dir / "missing.json"))


class TestRelatedMedia(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.api = create_api(str(write_sample_bible(self.dir)), str(write_sample_media(self.dir)))

    def tearDown(self):
        self.tmp.cleanup()

    def related(self, reference):
        return self.api.related_media(self.api.parse_reference(reference))

    def test_range_overlap(self):
        matches = self.related("Eph 1:2-3")
        self.assertEqual([m.label for m in matches], ["1:1-2"])
        self.assertEqual(matches[0].media[0].content, "Greeting")

    def test_cross_chapter_overlap(self):
        matches = self.related("Ephesians 2:1-3:21")
        self.assertEqual([m.label for m in matches], ["3:21-4:2"])

    def test_point_matches_exact_verse(self):
        self.assertEqual([m.media[0].content for m in self.related("John 1:1")], ["Sermon on unity"])
        self.assertEqual(self.related("John 1:2"), [])
        self.assertEqual(self.related("Eph 1:1"), [])

    def test_one_result_per_matching_segment(self):
        matches = self.related("Eph 1:1-2,3:1-4:3")
        self.assertEqual([m.label for m in matches], ["1:1-2", "3:21-4:2"])


class TestNormalizeMedia(unittest.TestCase):

    def setUp(self):
        self.api = BibleAPI(BibleData(bible_from_dict(SAMPLE_BIBLE)))
        self.raw = [
            {
                "tags": ["note"],
                "content": "Mixed references",
                "references": ["Eph 1:1-4", "Nowhere 1:1", {"book": 43, "segments": "1:1"}],
            }
        ]

    def test_resolves_string_references(self):
        items, unresolved = normalize_media(self.api, self.raw, progress=False)
        self.assertEqual(len(items), 1)
        refs = items[0].references
        self.assertEqual([(r.book, r.segments.label()) for r in refs], [(49, "1:1-4"), (43, "1:1")])
        self.assertEqual(unresolved, ["Nowhere 1:1"])

    def test_strict(self):
        with self.assertRaises(ValueError):
            normalize_media(self.api, self.raw, strict=True, progress=False)

    def test_normalized_items_can_be_ingested(self):
        items, _ = normalize_media(self.api, self.raw, progress=False)
        self.api.add_media(items)
        matches = self.api.related_media(self.api.parse_reference("Eph 1:3-5"))
        self.assertEqual(matches[0].media[0].content, "Mixed references")


class TestAnswer(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.api = create_api(str(write_sample_bible(self.dir)), str(write_sample_media(self.dir)))
        self.log = QueryLog(str(self.dir / "logs"))

    def tearDown(self):
        self.tmp.cleanup()

    def test_passage_with_media(self):
        output = answer(self.api, "Eph 1:2-3", True, self.log)
        self.assertEqual(
            output,
            "### Ephesians 1:2-3\n\n[1:2] verse 1.2\n[1:3] verse 1.3"
            "\n\nRelated media:\n  (1:1-2) [note] Greeting",
        )

    def test_media_off(self):
        output = answer(self.api, "Eph 1:2-3", False, self.log)
        self.assertNotIn("Related media", output)

    def test_no_passage(self):
        self.assertEqual(answer(self.api, "hello", True, self.log), "No passage found")

    def test_log_lines(self):
        answer(self.api, "Eph 1:2-3", True, self.log)
        answer(self.api, "hello", True, self.log)
        lines = self.log.path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 2)
        first = json.loads(lines[0])
        self.assertEqual(first["passage"], "Ephesians 1:2-3")
        self.assertEqual(first["media"], [{"proximity": "1:1-2", "count": 1}])
        self.assertIsNone(json.loads(lines[1])["passage"])

    def test_log_disabled(self):
        log = QueryLog(None)
        self.assertIsNone(log.path)
        answer(self.api, "Eph 1:1", True, log)


class TestCommandLineErrors(unittest.TestCase):
    """Bad data files end the run with a message instead of a traceback."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, entry_point, argv):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as cm:
            entry_point(argv)
        return cm.exception.code, stderr.getvalue()

    def test_lookup_with_broken_bible(self):
        bible = self.dir / "bible.json"
        bible.write_text(json.dumps({"translation": {}, "bible": [{"id": 1, "content": []}]}), encoding="utf-8")
        code, err = self.run_cli(main.main, ["--bible", str(bible), "-q", "John 1:1"])
        self.assertEqual(code, 1)
        self.assertIn("'book'", err)

    def test_lookup_with_broken_media(self):
        media = self.dir / "media.json"
        media.write_text(
            json.dumps([{"content": "x", "references": [{"book": 49, "segments": [{"chapter": 1}]}]}]),
            encoding="utf-8",
        )
        code, err = self.run_cli(
            main.main, ["--bible", str(write_sample_bible(self.dir)), "--media", str(media), "-q", "Eph 1:1"]
        )
        self.assertEqual(code, 1)
        self.assertIn("Error loading data", err)

    def test_build_with_broken_input(self):
        raw = self.dir / "raw.json"
        raw.write_text(json.dumps(["not an item"]), encoding="utf-8")
        code, err = self.run_cli(
            build_media.main,
            ["--input", str(raw), "--out", str(self.dir / "out.json"), "--bible", str(write_sample_bible(self.dir))],
        )
        self.assertEqual(code, 1)
        self.assertIn("not an object", err)
        self.assertFalse((self.dir / "out.json").exists())


if __name__ == "__main__":
    unittest.main()
