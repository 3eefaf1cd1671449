import pytest
from pygments.lexers.special import TextLexer

from richtext import Language, LanguageRegistry


@pytest.fixture(scope="session")
def registry():
    """Registry with every Pygments lexer, loaded synchronously."""
    return LanguageRegistry.from_pygments()


@pytest.fixture
def plain_language():
    """A language whose tokenizer never reports a token."""
    return Language("plain", TextLexer())


@pytest.fixture
def plain_registry(plain_language):
    registry = LanguageRegistry()
    registry.add(plain_language, aliases=["txt"])
    return registry
