"""
Markdown to annotated display text.

Renders a markdown block into a flat string plus style, code, syntax and
mention highlights and a table of link ranges.
"""

from .language import Language, LanguageNotFound, LanguageRegistry, language_now_or_never
from .markdown import render_code, render_markdown, render_markdown_into
from .rich_text import (
    Highlight,
    HighlightId,
    HighlightKind,
    HighlightStyle,
    Mention,
    RichText,
    RichTextBuilder,
    TextRange,
)

__version__ = "0.1.0"

__all__ = [
    "Highlight",
    "HighlightId",
    "HighlightKind",
    "HighlightStyle",
    "Language",
    "LanguageNotFound",
    "LanguageRegistry",
    "Mention",
    "RichText",
    "RichTextBuilder",
    "TextRange",
    "language_now_or_never",
    "render_code",
    "render_markdown",
    "render_markdown_into",
]
