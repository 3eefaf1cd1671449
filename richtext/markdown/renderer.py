# richtext/markdown/renderer.py
"""
Fold a markdown event stream into annotated display text.

The renderer walks the events once and appends to a ``RichTextBuilder``:
- text runs get one explicit style highlight (bold / italic / underline),
  merged with the previous run when the style and offsets line up
- links add an underline and an entry in the link tables
- fenced code blocks are tokenized by the resolved language
- list items get "- " or "1. " markers, nested lists are indented by two
  spaces per level
- mentions supplied by the caller are re-tagged at their output offsets
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..language import Language, LanguageRegistry, language_now_or_never
from ..rich_text import (
    UNDERLINE,
    Highlight,
    HighlightStyle,
    Mention,
    RichText,
    RichTextBuilder,
    TextRange,
)
from .code_blocks import render_code
from .events import EventKind, Tag, TagKind, parse_events

logger = logging.getLogger(__name__)

INDENT = "  "


@dataclass
class ListFrame:
    # Next marker number for ordered lists, None for bullet lists
    number: Optional[int]
    has_content: bool = False


@dataclass
class _FoldState:
    mentions: deque
    bold_depth: int = 0
    italic_depth: int = 0
    link_url: Optional[str] = None
    current_language: Optional[Language] = None
    list_stack: list[ListFrame] = field(default_factory=list)
    # Index of the highlight the next text run may extend
    run_index: Optional[int] = None

    def effective_style(self) -> HighlightStyle:
        return HighlightStyle(
            bold=self.bold_depth > 0,
            italic=self.italic_depth > 0,
            underline=self.link_url is not None,
        )


def render_markdown(
    block: str,
    mentions: Iterable[Mention],
    language_registry: Optional[LanguageRegistry],
    language: Optional[Language] = None,
    config: Optional[dict] = None,
) -> RichText:
    """
    Render a markdown block into a ``RichText``.

    Args:
        block: Markdown source
        mentions: Mentions into ``block``, sorted by start, non-overlapping
        language_registry: Resolves fenced code block languages by name
        language: Language for indented code blocks
        config: Optional parser configuration

    Returns:
        The rendered document, trimmed of trailing whitespace

    Example:
        >>> doc = render_markdown("**bold** text", [], registry)
        >>> doc.text
        'bold text'
    """
    builder = RichTextBuilder()
    render_markdown_into(builder, block, mentions, language_registry, language, config)
    return builder.build()


def render_markdown_into(
    builder: RichTextBuilder,
    block: str,
    mentions: Iterable[Mention],
    language_registry: Optional[LanguageRegistry],
    language: Optional[Language] = None,
    config: Optional[dict] = None,
) -> None:
    """Render ``block`` by appending to an existing builder."""
    state = _FoldState(mentions=deque(mentions))

    for event in parse_events(block, config):
        kind = event.kind

        if kind is EventKind.TEXT:
            if state.current_language is not None:
                render_code(builder, event.text, state.current_language)
            else:
                _render_text(builder, state, event.text, event.source_range)
        elif kind is EventKind.CODE:
            _render_code_span(builder, state, event.text)
        elif kind is EventKind.START:
            _start_tag(builder, state, event.tag, language_registry, language)
        elif kind is EventKind.END:
            _end_tag(state, event.tag)
        elif kind in (EventKind.SOFT_BREAK, EventKind.HARD_BREAK):
            builder.push("\n")


def _render_text(
    builder: RichTextBuilder, state: _FoldState, text: str, source_range: TextRange
) -> None:
    spliced = _splice_mentions(state, source_range, len(text), builder.length)
    span = builder.push(text)
    style = state.effective_style()

    if state.link_url is not None:
        builder.push_link(span, state.link_url)

    # Style runs go around mentions so highlights never overlap
    cursor = span.start
    for mention_range, highlight in spliced:
        if not style.is_default and mention_range.start > cursor:
            _push_style_run(builder, state, TextRange(cursor, mention_range.start), style)
        builder.highlights.append((mention_range, highlight))
        cursor = max(cursor, mention_range.end)

    if not style.is_default and cursor < span.end:
        _push_style_run(builder, state, TextRange(cursor, span.end), style)


def _push_style_run(
    builder: RichTextBuilder, state: _FoldState, run: TextRange, style: HighlightStyle
) -> None:
    """Extend the previous style run when it is contiguous and identical."""
    highlight = Highlight.styled(style)
    last = len(builder.highlights) - 1
    if last >= 0 and state.run_index == last:
        last_range, last_highlight = builder.highlights[last]
        if last_range.end == run.start and last_highlight == highlight:
            builder.highlights[last] = (TextRange(last_range.start, run.end), highlight)
            return

    builder.highlights.append((run, highlight))
    state.run_index = len(builder.highlights) - 1


def _splice_mentions(
    state: _FoldState, source_range: TextRange, text_length: int, destination_start: int
) -> list:
    """
    Pop the mentions contained in ``source_range`` and map them to output
    offsets starting at ``destination_start``.

    A mention straddling markup is never contained in a single text event and
    is dropped once the events have moved past its start. So is a mention
    inside an entity, whose source and rendered text differ in length.
    """
    delta = destination_start - source_range.start
    spliced = []
    mentions = state.mentions
    while mentions:
        mention = mentions[0]
        if mention.range.start < source_range.start:
            mentions.popleft()
            logger.debug(f"Dropping mention {tuple(mention.range)}: not inside a single text run")
            continue
        if not source_range.contains(mention.range):
            break
        mentions.popleft()
        if source_range.length != text_length:
            logger.debug(f"Dropping mention {tuple(mention.range)}: text differs from its source")
            continue
        spliced.append((mention.range.shift(delta), Highlight.mention(mention.is_self_mention)))
    return spliced


def _render_code_span(builder: RichTextBuilder, state: _FoldState, text: str) -> None:
    span = builder.push(text)
    if state.link_url is not None:
        builder.highlights.append((span, Highlight.styled(UNDERLINE)))
        builder.push_link(span, state.link_url)


def _start_tag(
    builder: RichTextBuilder,
    state: _FoldState,
    tag: Tag,
    language_registry: Optional[LanguageRegistry],
    language: Optional[Language],
) -> None:
    kind = tag.kind

    if kind is TagKind.PARAGRAPH:
        new_paragraph(builder, state.list_stack)
    elif kind is TagKind.HEADING:
        new_paragraph(builder, state.list_stack)
        state.bold_depth += 1
    elif kind is TagKind.CODE_BLOCK:
        new_paragraph(builder, state.list_stack)
        if tag.fenced:
            state.current_language = _resolve_language(language_registry, tag.info)
        else:
            state.current_language = language
    elif kind is TagKind.EMPHASIS:
        state.italic_depth += 1
    elif kind is TagKind.STRONG:
        state.bold_depth += 1
    elif kind is TagKind.LINK:
        state.link_url = tag.url
    elif kind is TagKind.LIST:
        state.list_stack.append(ListFrame(number=tag.start_number))
    elif kind is TagKind.ITEM:
        _start_item(builder, state.list_stack)


def _end_tag(state: _FoldState, tag: Tag) -> None:
    kind = tag.kind

    if kind in (TagKind.HEADING, TagKind.STRONG):
        state.bold_depth -= 1
    elif kind is TagKind.EMPHASIS:
        state.italic_depth -= 1
    elif kind is TagKind.CODE_BLOCK:
        state.current_language = None
    elif kind is TagKind.LINK:
        state.link_url = None
    elif kind is TagKind.LIST:
        state.list_stack.pop()


def _start_item(builder: RichTextBuilder, list_stack: list[ListFrame]) -> None:
    if not list_stack:
        return
    frame = list_stack[-1]
    frame.has_content = False

    if not builder.is_empty() and not builder.ends_with("\n"):
        builder.push("\n")
    builder.push(INDENT * (len(list_stack) - 1))

    if frame.number is not None:
        builder.push(f"{frame.number}. ")
        frame.number += 1
    else:
        builder.push("- ")


def new_paragraph(builder: RichTextBuilder, list_stack: list[ListFrame]) -> None:
    """
    Separate the next block from the previous one.

    The first block inside a list item shares the line of the item marker.
    Later blocks get a blank line and are indented under the marker.
    """
    is_continuation = False
    if list_stack:
        frame = list_stack[-1]
        if frame.has_content:
            is_continuation = True
        else:
            frame.has_content = True
            return

    if not builder.is_empty():
        if not builder.ends_with("\n"):
            builder.push("\n")
        builder.push("\n")

    builder.push(INDENT * max(len(list_stack) - 1, 0))
    if is_continuation:
        builder.push(INDENT)


def _resolve_language(
    language_registry: Optional[LanguageRegistry], name: str
) -> Optional[Language]:
    """Probe the registry once; anything not ready now renders as plain text."""
    if language_registry is None or not name:
        return None
    language = language_now_or_never(language_registry.language_for_name(name))
    if language is None:
        logger.debug(f"Language {name!r} not available, rendering code block as plain text")
    return language
