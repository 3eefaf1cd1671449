# richtext/markdown/__init__.py

from .code_blocks import render_code
from .config import get_markdown_config
from .events import Event, EventKind, Tag, TagKind, parse_events
from .renderer import new_paragraph, render_markdown, render_markdown_into

__all__ = [
    "Event",
    "EventKind",
    "Tag",
    "TagKind",
    "get_markdown_config",
    "new_paragraph",
    "parse_events",
    "render_code",
    "render_markdown",
    "render_markdown_into",
]
