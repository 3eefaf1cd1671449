# richtext/markdown/code_blocks.py

from ..language import Language
from ..rich_text import Highlight, RichTextBuilder, TextRange


def render_code(builder: RichTextBuilder, content: str, language: Language) -> None:
    """
    Append ``content`` verbatim and annotate every character of it.

    Tokens returned by the language become syntax highlights. Every gap
    before, between and after them becomes a generic code highlight, so the
    appended span is fully covered. No merging happens here.
    """
    start = builder.push(content).start
    offset = 0
    for token_range, highlight_id in language.highlight_text(content):
        if token_range.start > offset:
            builder.highlights.append(
                (TextRange(start + offset, start + token_range.start), Highlight.code())
            )
        builder.highlights.append((token_range.shift(start), Highlight.syntax(highlight_id)))
        offset = token_range.end
    if offset < len(content):
        builder.highlights.append(
            (TextRange(start + offset, start + len(content)), Highlight.code())
        )
