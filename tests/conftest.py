"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from souvenir.lexer import tokenize
from souvenir.tokens import GrammarRevision, Token, TokenKind


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns the top-level tokens."""

    def _lex(source: str, revision: GrammarRevision = GrammarRevision.STRICT) -> list[Token]:
        return tokenize(source, revision=revision)

    return _lex


def assert_kinds(tokens: list[Token], expected: list[TokenKind]) -> None:
    """Assert that the token kinds match the expected list."""
    actual = [t.kind for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_lexemes(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token lexemes match the expected list."""
    actual = [t.lexeme for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def find_tokens(tokens: list[Token], kind: TokenKind) -> list[Token]:
    """Return all tokens of the given kind, nested ones included."""
    return [t for top in tokens for t in top.walk() if t.kind == kind]


def reconstruct(source: str, tokens: list[Token]) -> str:
    """Rebuild source from token lexemes and the skipped text between them."""
    if not tokens:
        return source
    parts = [source[: tokens[0].span.start.offset]]
    for prev, tok in zip(tokens, tokens[1:]):
        parts.append(prev.lexeme)
        parts.append(source[prev.span.end.offset : tok.span.start.offset])
    parts.append(tokens[-1].lexeme)
    parts.append(source[tokens[-1].span.end.offset :])
    return "".join(parts)
