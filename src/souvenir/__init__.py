"""Souvenir narrative scripting language lexer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from souvenir.lexer import LexResult
    from souvenir.tokens import GrammarRevision

__version__ = "0.1.0"


def lex(
    source: str,
    filename: str = "input.svr",
    start: int = 0,
    revision: GrammarRevision | None = None,
) -> LexResult:
    """Classify Souvenir source into tokens and diagnostics."""
    from souvenir.lexer import lex as _lex
    from souvenir.tokens import GrammarRevision

    return _lex(source, filename, start, revision or GrammarRevision.STRICT)
