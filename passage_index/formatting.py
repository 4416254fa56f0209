"""
Text templates and passage formatting.

Templates are plain text with ``{name}`` placeholders; ``\\{`` and ``\\}``
produce literal braces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Tuple

from .bible import BibleData
from .passage import Passage, group_by_chapter, iter_segment_verses


class TemplateVariableError(KeyError):
    """A template used a variable that the caller does not provide."""


class FormattingTemplate:
    def __init__(self, parts: List[Tuple[bool, str]], source: str = ""):
        # (is_variable, text) pairs
        self.parts = parts
        self.source = source

    def __repr__(self) -> str:
        return f"FormattingTemplate({self.source!r})"

    @classmethod
    def from_template(cls, template: str) -> "FormattingTemplate":
        parts: List[Tuple[bool, str]] = []
        raw: List[str] = []
        i = 0
        while i < len(template):
            ch = template[i]
            if ch == "\\" and i + 1 < len(template) and template[i + 1] in "{}":
                raw.append(template[i + 1])
                i += 2
                continue
            if ch == "}":
                raise ValueError(f"Improperly formatted template: {template!r}")
            if ch == "{":
                close = template.find("}", i + 1)
                if close == -1 or "{" in template[i + 1 : close]:
                    raise ValueError(f"Improperly formatted template: {template!r}")
                if raw:
                    parts.append((False, "".join(raw)))
                    raw = []
                parts.append((True, template[i + 1 : close]))
                i = close + 1
                continue
            raw.append(ch)
            i += 1
        if raw:
            parts.append((False, "".join(raw)))
        return cls(parts, source=template)

    def variables(self) -> List[str]:
        return [text for is_variable, text in self.parts if is_variable]

    def fill(self, values: Mapping[str, object]) -> str:
        output: List[str] = []
        for is_variable, text in self.parts:
            if not is_variable:
                output.append(text)
                continue
            if text not in values:
                raise TemplateVariableError(f"'{text}' is not a valid template identifier.")
            output.append(str(values[text]))
        return "".join(output)


@dataclass(frozen=True)
class PassageFormatter:
    """
    Templates used to render a passage.

    verse:    book, chapter, verse, content
    chapter:  book, chapter, start_verse, end_verse, verses
              (one per chapter inside a segment)
    segment:  book, label, verses
    text:     book, label, segments
    The join_* strings glue consecutive verses, chapters and segments.
    Frozen; use ``dataclasses.replace`` to derive a formatter with other templates.
    """
    verse: str = "[{chapter}:{verse}] {content}"
    join_verses: str = "\n"
    chapter: str = "{verses}"
    join_chapters: str = "\n"
    segment: str = "{verses}"
    join_segments: str = "\n\n"
    text: str = "### {book} {label}\n\n{segments}"

    _templates: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # parse once, fail early on bad templates
        templates = {
            name: FormattingTemplate.from_template(getattr(self, name))
            for name in ("verse", "chapter", "segment", "text")
        }
        object.__setattr__(self, "_templates", templates)

    def format_passage(self, passage: Passage, data: BibleData) -> str:
        """Render ``passage``; verses without text are left out."""
        book = passage.book_name
        rendered_segments: List[str] = []
        for segment in passage.segments:
            verses = [
                v for v in iter_segment_verses(data, passage.book, segment) if v.content is not None
            ]
            if not verses:
                continue
            rendered_chapters: List[str] = []
            for group in group_by_chapter(verses):
                lines = [
                    self._templates["verse"].fill(
                        {"book": book, "chapter": v.chapter, "verse": v.verse, "content": v.content}
                    )
                    for v in group
                ]
                rendered_chapters.append(
                    self._templates["chapter"].fill(
                        {
                            "book": book,
                            "chapter": group[0].chapter,
                            "start_verse": group[0].verse,
                            "end_verse": group[-1].verse,
                            "verses": self.join_verses.join(lines),
                        }
                    )
                )
            rendered_segments.append(
                self._templates["segment"].fill(
                    {
                        "book": book,
                        "label": segment.label(),
                        "verses": self.join_chapters.join(rendered_chapters),
                    }
                )
            )
        return self._templates["text"].fill(
            {
                "book": book,
                "label": passage.segments.label(),
                "segments": self.join_segments.join(rendered_segments),
            }
        )
