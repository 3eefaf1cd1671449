# richtext/language.py
"""
Languages and the registry used to resolve fenced code block names.

Lookups through ``LanguageRegistry.language_for_name`` return a
``concurrent.futures.Future``. When the registry owns an executor, loading a
lexer happens in the background and the future may not be done yet; renderers
probe it once with ``language_now_or_never`` and fall back to plain text.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from typing import Callable, Iterable, Optional

from pygments.lexer import Lexer
from pygments.lexers import get_all_lexers, get_lexer_by_name
from pygments.token import Text

from .rich_text import HighlightId, TextRange

logger = logging.getLogger(__name__)

LanguageLoader = Callable[[], "Language"]


class LanguageNotFound(LookupError):
    pass


def highlight_id_for_token(token_type) -> Optional[HighlightId]:
    """
    Map a Pygments token type to a highlight id.

    ``Token.Keyword.Namespace`` becomes ``keyword.namespace``. Plain text and
    whitespace carry no highlight.
    """
    if token_type in Text:
        return None
    name = ".".join(part.lower() for part in token_type)
    return HighlightId(name) if name else None


class Language:
    def __init__(self, name: str, lexer: Lexer):
        self.name = name
        self.lexer = lexer

    def __repr__(self):
        return f"Language({self.name!r})"

    def highlight_text(self, text: str) -> list[tuple[TextRange, HighlightId]]:
        """
        Tokenize ``text`` and return ascending, non-overlapping ranges relative
        to ``text``. Adjacent tokens with the same id are coalesced.
        """
        spans: list[tuple[TextRange, HighlightId]] = []
        for index, token_type, value in self.lexer.get_tokens_unprocessed(text):
            if not value:
                continue
            highlight_id = highlight_id_for_token(token_type)
            if highlight_id is None:
                continue
            end = index + len(value)
            if spans and spans[-1][1] == highlight_id and spans[-1][0].end == index:
                spans[-1] = (TextRange(spans[-1][0].start, end), highlight_id)
            else:
                spans.append((TextRange(index, end), highlight_id))
        return spans


def _load_pygments_language(name: str, alias: str) -> Language:
    return Language(name, get_lexer_by_name(alias))


class LanguageRegistry:
    """
    Thread-safe mapping of language names to ``Language`` futures.

    Names and aliases are matched case-insensitively. Each language is loaded
    at most once; repeated lookups return the same future.

    Without an executor the loader runs inside ``language_for_name``, which
    blocks the caller while the lexer module is imported. That suits tests
    and callers that look languages up before rendering. Renderers that must
    never wait pass an executor.
    """

    def __init__(self, executor: Optional[Executor] = None):
        self._executor = executor
        self._lock = threading.Lock()
        self._loaders: dict[str, LanguageLoader] = {}
        self._canonical: dict[str, str] = {}
        self._futures: dict[str, Future] = {}

    @classmethod
    def from_pygments(cls, executor: Optional[Executor] = None) -> "LanguageRegistry":
        """Register every lexer Pygments ships, keyed by its aliases."""
        registry = cls(executor)
        for name, aliases, _filenames, _mimetypes in get_all_lexers():
            if not aliases:
                continue
            registry.register(
                name,
                lambda name=name, alias=aliases[0]: _load_pygments_language(name, alias),
                aliases=aliases,
            )
        return registry

    def register(
        self, name: str, loader: LanguageLoader, aliases: Iterable[str] = ()
    ) -> None:
        key = name.lower()
        with self._lock:
            self._loaders[key] = loader
            self._canonical.setdefault(key, key)
            for alias in aliases:
                self._canonical.setdefault(alias.lower(), key)

    def add(self, language: Language, aliases: Iterable[str] = ()) -> None:
        """Register an already loaded language; lookups resolve immediately."""
        key = language.name.lower()
        future: Future = Future()
        future.set_result(language)
        with self._lock:
            self._loaders[key] = lambda: language
            self._futures[key] = future
            self._canonical[key] = key
            for alias in aliases:
                self._canonical[alias.lower()] = key

    def language_names(self) -> list[str]:
        with self._lock:
            return sorted(self._loaders)

    def language_for_name(self, name: str) -> Future:
        with self._lock:
            key = self._canonical.get(name.strip().lower())
            if key is None:
                future: Future = Future()
                future.set_exception(LanguageNotFound(name))
                return future

            future = self._futures.get(key)
            if future is not None:
                return future

            loader = self._loaders[key]
            if self._executor is not None:
                future = self._executor.submit(loader)
            else:
                future = Future()
                try:
                    future.set_result(loader())
                except Exception as e:
                    logger.warning(f"Failed to load language {name!r}: {e}")
                    future.set_exception(e)
            self._futures[key] = future
            return future


def language_now_or_never(future: Future) -> Optional[Language]:
    """Return the resolved language if it is available right now."""
    if not future.done() or future.cancelled():
        return None
    if future.exception() is not None:
        return None
    return future.result()
