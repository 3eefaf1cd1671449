# richtext/cli.py
"""
Command line entry point: render a markdown file and print the annotated
document as JSON.

    richtext notes.md --mention 6:12 --self-mention 20:25
    cat notes.md | python -m richtext
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from . import __version__
from .language import LanguageRegistry, language_now_or_never
from .markdown import EventKind, TagKind, parse_events, render_markdown
from .rich_text import Mention, TextRange

logger = logging.getLogger(__name__)


def _parse_range(value: str) -> TextRange:
    try:
        start, end = (int(part) for part in value.split(":"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START:END, got {value!r}")
    if start < 0 or end < start:
        raise argparse.ArgumentTypeError(f"invalid range {value!r}")
    return TextRange(start, end)


def _build_parser(prog_name: str):
    parser = argparse.ArgumentParser(
        prog=prog_name,
        description="Render markdown into text with highlights and links, printed as JSON",
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        help="Markdown file (reads stdin when omitted)",
    )
    parser.add_argument(
        "--mention",
        action="append",
        default=[],
        type=_parse_range,
        metavar="START:END",
        help="Source range to tag as a mention (repeatable)",
    )
    parser.add_argument(
        "--self-mention",
        action="append",
        default=[],
        type=_parse_range,
        metavar="START:END",
        help="Source range to tag as a mention of the current user (repeatable)",
    )
    parser.add_argument(
        "--default-language",
        help="Language for indented code blocks, e.g. python",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log fallbacks (unknown languages, dropped mentions) to stderr",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _collect_mentions(args) -> list[Mention]:
    mentions = [Mention(r) for r in args.mention]
    mentions.extend(Mention(r, is_self_mention=True) for r in args.self_mention)
    return sorted(mentions, key=lambda mention: mention.range.start)


def _read_source(path: Path | None) -> str:
    if path is None:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _load_languages(registry: LanguageRegistry, source: str, names) -> None:
    """
    Start loading every language the document needs and wait for them, so
    the render itself finds them ready.
    """
    names = [name for name in names if name]
    for event in parse_events(source):
        if event.kind is EventKind.START and event.tag.kind is TagKind.CODE_BLOCK:
            if event.tag.info:
                names.append(event.tag.info)
    futures = [registry.language_for_name(name) for name in names]
    wait(futures)
    logger.debug(f"Loaded {len(futures)} code block languages")


def main(argv=None, prog_name=None):
    args_list = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser(prog_name or "richtext")
    args = parser.parse_args(args_list)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        source = _read_source(args.input)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1

    with ThreadPoolExecutor(max_workers=4) as executor:
        registry = LanguageRegistry.from_pygments(executor)
        _load_languages(registry, source, [args.default_language])

        default_language = None
        if args.default_language:
            default_language = language_now_or_never(
                registry.language_for_name(args.default_language)
            )
            if default_language is None:
                print(f"error: unknown language {args.default_language!r}", file=sys.stderr)
                return 1

        document = render_markdown(source, _collect_mentions(args), registry, default_language)
    logger.debug(
        f"Rendered {len(document.text)} characters, "
        f"{len(document.highlights)} highlights, {len(document.link_ranges)} links"
    )
    print(json.dumps(document.to_dict(), indent=2, ensure_ascii=False))
    return 0
