# richtext/markdown/events.py
"""
Markdown event stream built on markdown-it-py.

markdown-it-py produces a flat token list with nested inline children. The
renderer wants a flat sequence of start/end/text events where every event
carries the range of source text it came from, so this module:

1. Maps block tokens to their source lines via ``token.map``
2. Locates inline text and code tokens inside their block with a running
   cursor, so text events point at the exact characters they render
3. Drops the paragraph tokens markdown-it marks hidden in tight lists
4. Emits code blocks as start, one text event, end

Escapes and entities arrive as separate ``text_special`` tokens and are
located by their markup. A token that still cannot be found verbatim (code
blocks nested in list items) gets an empty range, and the cursor moves to the
end of its block so later tokens are not matched inside it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterator, Optional

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from ..rich_text import TextRange
from .config import get_markdown_config


class EventKind(str, Enum):
    START = "start"
    END = "end"
    TEXT = "text"
    CODE = "code"
    HTML = "html"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"
    RULE = "rule"
    TASK_MARKER = "task_marker"
    FOOTNOTE_REFERENCE = "footnote_reference"


class TagKind(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCK_QUOTE = "block_quote"
    CODE_BLOCK = "code_block"
    LIST = "list"
    ITEM = "item"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    LINK = "link"
    IMAGE = "image"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    FOOTNOTE_DEFINITION = "footnote_definition"


@dataclass(frozen=True)
class Tag:
    kind: TagKind
    level: Optional[int] = None  # heading level
    fenced: bool = False  # code block
    info: str = ""  # fenced code block language name
    start_number: Optional[int] = None  # ordered list, None for bullet lists
    url: Optional[str] = None  # link / image destination
    title: str = ""
    label: str = ""  # footnote definition


@dataclass(frozen=True)
class Event:
    kind: EventKind
    source_range: TextRange
    tag: Optional[Tag] = None
    text: str = ""
    checked: bool = False  # task list marker


# Container tokens that map 1:1 onto start/end tags
_SIMPLE_BLOCK_TAGS = {
    "blockquote": TagKind.BLOCK_QUOTE,
    "list_item": TagKind.ITEM,
    "table": TagKind.TABLE,
    "thead": TagKind.TABLE_HEAD,
    "tr": TagKind.TABLE_ROW,
    "th": TagKind.TABLE_CELL,
    "td": TagKind.TABLE_CELL,
}

_SIMPLE_INLINE_TAGS = {
    "em": TagKind.EMPHASIS,
    "strong": TagKind.STRONG,
    "s": TagKind.STRIKETHROUGH,
}

_PLUGINS = {
    "tasklists": tasklists_plugin,
    "footnote": footnote_plugin,
}

_TASK_CHECKBOX_CLASS = "task-list-item-checkbox"

# Trailing `{#id .class key=value}` block of a heading line
_HEADING_ATTRIBUTES = re.compile(r"\s*\{[^{}\n]*\}\s*$")


@lru_cache(maxsize=1)
def _default_parser() -> MarkdownIt:
    return create_parser(get_markdown_config())


def create_parser(config: dict) -> MarkdownIt:
    """
    Build a parser from a configuration dict, see ``get_markdown_config``.

    Unknown plugin names raise ``KeyError``; unknown rule names raise the
    ``ValueError`` markdown-it-py reports for them.
    """
    parser = MarkdownIt(config.get("preset", "commonmark"), config.get("options"))
    enable = config.get("enable") or []
    if enable:
        parser.enable(enable)
    for name in config.get("plugins") or []:
        parser.use(_PLUGINS[name])
    if config.get("heading_attributes"):
        parser.core.ruler.push("heading_attributes", _strip_heading_attributes)
    disable = config.get("disable") or []
    if disable:
        parser.disable(disable)
    return parser


def _strip_heading_attributes(state: StateCore) -> None:
    """Drop a trailing attribute block from heading text."""
    tokens = state.tokens
    for index, token in enumerate(tokens):
        if token.type != "inline" or index == 0 or tokens[index - 1].type != "heading_open":
            continue
        children = token.children or []
        if not children or children[-1].type != "text":
            continue
        last = children[-1]
        stripped = _HEADING_ATTRIBUTES.sub("", last.content)
        if stripped != last.content:
            last.content = stripped
            token.content = _HEADING_ATTRIBUTES.sub("", token.content)


def _split_open_close(token_type: str) -> tuple[str, Optional[EventKind]]:
    if token_type.endswith("_open"):
        return token_type[: -len("_open")], EventKind.START
    if token_type.endswith("_close"):
        return token_type[: -len("_close")], EventKind.END
    return token_type, None


class _SourceMap:
    """Line offsets and a forward-only cursor into the markdown source."""

    def __init__(self, source: str):
        self.source = source
        self.line_starts = [0]
        for index, char in enumerate(source):
            if char == "\n":
                self.line_starts.append(index + 1)
        self.cursor = 0

    def offset_of_line(self, line: int) -> int:
        if line < len(self.line_starts):
            return self.line_starts[line]
        return len(self.source)

    def block_range(self, token: Token) -> TextRange:
        if not token.map:
            return TextRange(self.cursor, self.cursor)
        begin, end = token.map
        return TextRange(self.offset_of_line(begin), self.offset_of_line(end))

    def rest(self) -> TextRange:
        return TextRange(self.cursor, len(self.source))

    def empty(self) -> TextRange:
        return TextRange(self.cursor, self.cursor)

    def locate(self, content: str, window: TextRange) -> TextRange:
        """
        Find ``content`` at or after the cursor, inside ``window``.

        When it is not there the cursor skips to the end of the window and an
        empty range is returned.
        """
        if not content:
            return self.empty()
        start = max(self.cursor, window.start)
        index = self.source.find(content, start, max(window.end, start))
        if index < 0:
            self.cursor = max(self.cursor, window.end)
            return self.empty()
        self.cursor = index + len(content)
        return TextRange(index, self.cursor)

    def locate_code_span(self, content: str, window: TextRange) -> TextRange:
        """Find inline code whose line endings were folded into spaces."""
        if "\n" in self.source[window.start : window.end] and " " in content:
            pattern = "".join("[ \n]" if char == " " else re.escape(char) for char in content)
            match = re.compile(pattern).search(
                self.source, max(self.cursor, window.start), max(window.end, self.cursor)
            )
            if match:
                self.cursor = match.end()
                return TextRange(match.start(), match.end())
        return self.locate(content, window)

    def locate_markup(self, markup: str, content: str, window: TextRange) -> TextRange:
        """
        Find the source ``markup`` of an escape or entity rendered as
        ``content``.

        A backslash escape maps onto the escaped character, so the range has
        the length of the rendered text. An entity keeps its whole markup.
        """
        found = self.locate(markup or content, window)
        if found.length and markup.endswith(content) and len(markup) > len(content):
            return TextRange(found.end - len(content), found.end)
        return found


def parse_events(source: str, config: Optional[dict] = None) -> Iterator[Event]:
    """
    Parse ``source`` and yield events in document order.

    Args:
        source: Markdown text
        config: Optional parser configuration, see ``get_markdown_config``

    Returns:
        Iterator of ``Event`` objects
    """
    parser = _default_parser() if config is None else create_parser(config)
    tokens = parser.parse(source)
    source_map = _SourceMap(source)
    yield from _block_events(tokens, source_map)


def _block_events(tokens: list[Token], source_map: _SourceMap) -> Iterator[Event]:
    # Range of the innermost block seen with a line map, for tokens without one
    scope = source_map.rest()

    for token in tokens:
        name, nesting = _split_open_close(token.type)
        block_range = source_map.block_range(token)
        if token.map:
            scope = block_range

        if token.type == "inline":
            if not token.map:
                block_range = TextRange(source_map.cursor, max(scope.end, source_map.cursor))
            yield from _inline_events(token.children or [], source_map, block_range)
            continue

        if name == "paragraph":
            if token.hidden:
                continue
            yield Event(nesting, block_range, Tag(TagKind.PARAGRAPH))
            continue

        if name == "heading":
            yield Event(nesting, block_range, Tag(TagKind.HEADING, level=int(token.tag[1:])))
            continue

        if name == "bullet_list":
            yield Event(nesting, block_range, Tag(TagKind.LIST))
            continue

        if name == "ordered_list":
            start = token.attrGet("start")
            start_number = int(start) if start is not None else 1
            yield Event(nesting, block_range, Tag(TagKind.LIST, start_number=start_number))
            continue

        if name in _SIMPLE_BLOCK_TAGS and nesting is not None:
            yield Event(nesting, block_range, Tag(_SIMPLE_BLOCK_TAGS[name]))
            continue

        if name == "footnote_reference" and nesting is not None:
            label = (token.meta or {}).get("label", "")
            if nesting is EventKind.START:
                block_range = source_map.locate(f"[^{label}]:", source_map.rest())
            yield Event(nesting, block_range, Tag(TagKind.FOOTNOTE_DEFINITION, label=label))
            continue

        if token.type in ("fence", "code_block"):
            fenced = token.type == "fence"
            info = token.info.strip().split()[0] if fenced and token.info.strip() else ""
            tag = Tag(TagKind.CODE_BLOCK, fenced=fenced, info=info)
            yield Event(EventKind.START, block_range, tag)
            if token.content:
                text_range = source_map.locate(token.content, block_range)
                yield Event(EventKind.TEXT, text_range, text=token.content)
            yield Event(EventKind.END, block_range, tag)
            continue

        if token.type == "html_block":
            yield Event(EventKind.HTML, block_range, text=token.content)
            continue

        if token.type == "hr":
            yield Event(EventKind.RULE, block_range)
            continue

        # tbody and anything unknown carry no meaning for the renderer


def _inline_events(
    children: list[Token], source_map: _SourceMap, window: TextRange
) -> Iterator[Event]:
    after_task_marker = False

    for child in children:
        name, nesting = _split_open_close(child.type)
        strip_leading, after_task_marker = after_task_marker, False

        if child.type == "text":
            content = child.content.lstrip() if strip_leading else child.content
            if content:
                yield Event(EventKind.TEXT, source_map.locate(content, window), text=content)
            continue

        if child.type == "text_special":
            if child.content:
                found = source_map.locate_markup(child.markup, child.content, window)
                yield Event(EventKind.TEXT, found, text=child.content)
            continue

        if child.type == "code_inline":
            found = source_map.locate_code_span(child.content, window)
            yield Event(EventKind.CODE, found, text=child.content)
            continue

        if child.type == "softbreak":
            yield Event(EventKind.SOFT_BREAK, source_map.empty())
            continue

        if child.type == "hardbreak":
            yield Event(EventKind.HARD_BREAK, source_map.empty())
            continue

        if child.type == "html_inline" and _TASK_CHECKBOX_CLASS in child.content:
            # The checkbox replaces the leading "[ ]" / "[x]" of the item text
            start = source_map.source.find("[", max(source_map.cursor, window.start), window.end)
            marker = source_map.empty()
            if start >= 0:
                marker = source_map.locate(source_map.source[start : start + 3], window)
            checked = "checked" in child.content
            yield Event(EventKind.TASK_MARKER, marker, checked=checked)
            after_task_marker = True
            continue

        if child.type == "html_inline":
            yield Event(EventKind.HTML, source_map.locate(child.content, window), text=child.content)
            continue

        if child.type == "footnote_ref":
            label = (child.meta or {}).get("label", "")
            found = source_map.locate(f"[^{label}]", window)
            yield Event(EventKind.FOOTNOTE_REFERENCE, found, text=label)
            continue

        if name == "link" and nesting is not None:
            tag = Tag(
                TagKind.LINK,
                url=child.attrGet("href") if nesting is EventKind.START else None,
                title=child.attrGet("title") or "",
            )
            yield Event(nesting, source_map.empty(), tag)
            continue

        if child.type == "image":
            tag = Tag(TagKind.IMAGE, url=child.attrGet("src"), title=child.attrGet("title") or "")
            yield Event(EventKind.START, source_map.empty(), tag)
            yield from _inline_events(child.children or [], source_map, window)
            yield Event(EventKind.END, source_map.empty(), tag)
            continue

        if name in _SIMPLE_INLINE_TAGS and nesting is not None:
            yield Event(nesting, source_map.empty(), Tag(_SIMPLE_INLINE_TAGS[name]))
            continue
