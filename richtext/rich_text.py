# richtext/rich_text.py
"""
Data model for annotated display text.

A ``RichText`` is a flattened string plus:
- ``highlights``: ascending, non-overlapping ``(TextRange, Highlight)`` pairs
- ``link_ranges`` / ``link_urls``: two tables correlated by index

``RichTextBuilder`` is the mutable form used while a document is rendered.
Several markdown blocks may be rendered into the same builder before it is
turned into an immutable ``RichText`` with ``build()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional


class TextRange(NamedTuple):
    """Half-open range ``[start, end)`` of string indices."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return max(self.end - self.start, 0)

    def contains(self, other: "TextRange") -> bool:
        """Inclusive containment: ``other`` lies entirely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def contains_offset(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def shift(self, delta: int) -> "TextRange":
        return TextRange(self.start + delta, self.end + delta)


@dataclass(frozen=True)
class HighlightStyle:
    bold: bool = False
    italic: bool = False
    underline: bool = False

    @property
    def is_default(self) -> bool:
        return not (self.bold or self.italic or self.underline)


UNDERLINE = HighlightStyle(underline=True)


@dataclass(frozen=True)
class HighlightId:
    """Opaque syntax category produced by a language tokenizer."""

    name: str


class HighlightKind(str, Enum):
    CODE = "code"
    SYNTAX = "syntax"
    STYLE = "style"
    MENTION = "mention"
    SELF_MENTION = "self_mention"


@dataclass(frozen=True)
class Highlight:
    kind: HighlightKind
    syntax_id: Optional[HighlightId] = None
    style: Optional[HighlightStyle] = None

    @classmethod
    def code(cls) -> "Highlight":
        return cls(HighlightKind.CODE)

    @classmethod
    def syntax(cls, syntax_id: HighlightId) -> "Highlight":
        return cls(HighlightKind.SYNTAX, syntax_id=syntax_id)

    @classmethod
    def styled(cls, style: HighlightStyle) -> "Highlight":
        return cls(HighlightKind.STYLE, style=style)

    @classmethod
    def mention(cls, is_self_mention: bool = False) -> "Highlight":
        if is_self_mention:
            return cls(HighlightKind.SELF_MENTION)
        return cls(HighlightKind.MENTION)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.syntax_id is not None:
            data["syntax_id"] = self.syntax_id.name
        if self.style is not None:
            data["style"] = {
                "bold": self.style.bold,
                "italic": self.style.italic,
                "underline": self.style.underline,
            }
        return data


@dataclass(frozen=True)
class Mention:
    """
    Extra span of the source markdown to re-tag in the output, e.g. a user
    reference. Callers pass mentions sorted by ``range.start`` and
    non-overlapping.
    """

    range: TextRange
    is_self_mention: bool = False


@dataclass(frozen=True)
class RichText:
    text: str
    highlights: tuple[tuple[TextRange, Highlight], ...] = ()
    link_ranges: tuple[TextRange, ...] = ()
    link_urls: tuple[str, ...] = ()

    def link_url_at(self, offset: int) -> Optional[str]:
        """
        Return the URL of the link covering ``offset`` in ``text``.

        Example:
            >>> doc = render_markdown("[docs](http://x)", [], registry)
            >>> doc.link_url_at(2)
            'http://x'
        """
        for ix, link_range in enumerate(self.link_ranges):
            if link_range.contains_offset(offset):
                return self.link_urls[ix]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "highlights": [
                {"range": [r.start, r.end], **highlight.to_dict()}
                for r, highlight in self.highlights
            ],
            "links": [
                {"range": [r.start, r.end], "url": url}
                for r, url in zip(self.link_ranges, self.link_urls)
            ],
        }


@dataclass
class RichTextBuilder:
    """Mutable output buffer shared by the rendering procedures."""

    chunks: list[str] = field(default_factory=list)
    length: int = 0
    highlights: list[tuple[TextRange, Highlight]] = field(default_factory=list)
    link_ranges: list[TextRange] = field(default_factory=list)
    link_urls: list[str] = field(default_factory=list)

    def push(self, value: str) -> TextRange:
        """Append ``value`` and return the range it now occupies."""
        start = self.length
        if value:
            self.chunks.append(value)
            self.length += len(value)
        return TextRange(start, self.length)

    def is_empty(self) -> bool:
        return self.length == 0

    def ends_with(self, suffix: str) -> bool:
        for chunk in reversed(self.chunks):
            if chunk:
                return chunk.endswith(suffix)
        return False

    def push_link(self, link_range: TextRange, url: str) -> None:
        self.link_ranges.append(link_range)
        self.link_urls.append(url)

    @property
    def text(self) -> str:
        if len(self.chunks) > 1:
            self.chunks = ["".join(self.chunks)]
        return self.chunks[0] if self.chunks else ""

    def build(self) -> RichText:
        """
        Freeze the buffer into a ``RichText``.

        Trailing whitespace is trimmed. Ranges reaching into the trimmed tail
        are clamped to the new length and dropped when they become empty.
        """
        text = self.text.rstrip()
        limit = len(text)

        highlights = []
        for r, highlight in self.highlights:
            clamped = TextRange(r.start, min(r.end, limit))
            if clamped.length:
                highlights.append((clamped, highlight))

        link_ranges = []
        link_urls = []
        for r, url in zip(self.link_ranges, self.link_urls):
            clamped = TextRange(r.start, min(r.end, limit))
            if clamped.length:
                link_ranges.append(clamped)
                link_urls.append(url)

        return RichText(
            text=text,
            highlights=tuple(highlights),
            link_ranges=tuple(link_ranges),
            link_urls=tuple(link_urls),
        )
