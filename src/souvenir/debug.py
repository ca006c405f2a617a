"""--debug token tree dump to stderr."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from souvenir.tokens import Token


def format_token(token: Token) -> str:
    """Render ``line:col-line:col KIND 'lexeme'`` for one token."""
    start, end = token.span.start, token.span.end
    text = f"{start.line}:{start.column}-{end.line}:{end.column} {token.kind.name} {token.lexeme!r}"
    if not token.terminated:
        text += " (unterminated)"
    return text


def dump_tokens(tokens: Iterable[Token], *, file: TextIO | None = None) -> None:
    """Print a human-readable token tree to *file* (default: stderr)."""
    out = file if file is not None else sys.stderr
    for tok in tokens:
        _dump_token(tok, 0, out)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_token(tok: Token, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}{format_token(tok)}\n")
    for child in tok.children:
        _dump_token(child, depth + 1, f)
