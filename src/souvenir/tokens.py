"""Token kinds, data structures, vocabularies, and character classification helpers."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable


class TokenKind(Enum):
    # Scene structure
    EQUALS = auto()  # =
    SCENE_DEF = auto()  # == at line start
    SCENE_NAME = auto()  # lowercase word after ==, -> or :
    SCENE_ARGS = auto()  # ( ... ) region after a scene name
    MOD_NAME = auto()  # word before :
    MOD_SEP = auto()  # :
    DIVERT = auto()  # ->

    # Names and literals
    LABEL = auto()  # 'name
    MACRO = auto()  # ?NAME
    ATOM = auto()  # #name
    VARIABLE_NAME = auto()  # Name (letters only)
    RANDOM = auto()  # 3d6
    NUMBER = auto()  # 503
    ARITHMETIC = auto()  # - + * / < <=

    # Regions
    COMMENT = auto()  # -- to end of line
    STRING = auto()  # "> " to end of line
    TEMPLATE = auto()  # {{ ... }} inside a string

    # Reserved words
    KEYWORD_MATCH = auto()  # trap given listen weave branch when if then
    KEYWORD_COMMAND = auto()  # let trace wait disarm spawn
    KEYWORD = auto()  # from
    RESERVED = auto()  # Self _

    # Block markers
    CHOICE = auto()  # |
    SEND = auto()  # <-
    END = auto()  # ;;


REGION_KINDS = frozenset(
    {TokenKind.COMMENT, TokenKind.STRING, TokenKind.TEMPLATE, TokenKind.SCENE_ARGS}
)

MATCH_KEYWORDS = frozenset({"trap", "given", "listen", "weave", "branch", "when", "if", "then"})
COMMAND_KEYWORDS = frozenset({"let", "trace", "wait", "disarm", "spawn"})
OTHER_KEYWORDS = frozenset({"from"})
RESERVED_IDENTIFIERS = frozenset({"Self", "_"})


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position (end exclusive)."""

    start: Position
    end: Position

    @property
    def length(self) -> int:
        return self.end.offset - self.start.offset


@dataclass(frozen=True, slots=True)
class Token:
    """A classified slice of source text.

    Region tokens (see REGION_KINDS) hold the tokens recognized inside them in
    ``children``; their lexeme covers the whole region including delimiters.
    ``terminated`` is False for a region closed implicitly without its end
    marker.
    """

    kind: TokenKind
    lexeme: str
    span: Span
    children: tuple[Token, ...] = ()
    terminated: bool = True

    def walk(self) -> Iterator[Token]:
        """Yield this token and every nested token, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


def is_word_char(ch: str) -> bool:
    """Return True if ch can appear inside a word."""
    return ch.isalnum() or ch == "_"


def is_digit(ch: str) -> bool:
    """Return True if ch is an ASCII decimal digit."""
    return ch != "" and ch in "0123456789"


def is_variable_start(ch: str) -> bool:
    """Return True if ch is an uppercase letter (not merely an uppercase symbol)."""
    return ch.isupper() and ch.isalpha()


def is_horizontal_ws(ch: str) -> bool:
    return ch != "" and ch in " \t"


def _is_atom_char(ch: str) -> bool:
    return ch.islower() or is_digit(ch) or ch == "_"


def _is_macro_char(ch: str) -> bool:
    return ch.isupper() or is_digit(ch) or ch == "_"


def _is_name_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


class GrammarRevision(Enum):
    """Identifier-casing conventions.

    STRICT is the current rule set. LEGACY accepts any word character where
    STRICT insists on a particular case, matching older scripts.
    """

    STRICT = "strict"
    LEGACY = "legacy"


@dataclass(frozen=True, slots=True)
class Grammar:
    """Per-revision predicates for the first and following characters of names."""

    revision: GrammarRevision
    scene_start: Callable[[str], bool]
    scene_char: Callable[[str], bool]
    label_start: Callable[[str], bool]
    atom_start: Callable[[str], bool]
    atom_char: Callable[[str], bool]
    macro_start: Callable[[str], bool]
    macro_char: Callable[[str], bool]


STRICT_GRAMMAR = Grammar(
    revision=GrammarRevision.STRICT,
    scene_start=str.islower,
    scene_char=is_word_char,
    label_start=str.islower,
    atom_start=str.islower,
    atom_char=_is_atom_char,
    macro_start=str.isupper,
    macro_char=_is_macro_char,
)

LEGACY_GRAMMAR = Grammar(
    revision=GrammarRevision.LEGACY,
    scene_start=_is_name_start,
    scene_char=is_word_char,
    label_start=_is_name_start,
    atom_start=_is_name_start,
    atom_char=is_word_char,
    macro_start=_is_name_start,
    macro_char=is_word_char,
)


def grammar_for(revision: GrammarRevision) -> Grammar:
    if revision is GrammarRevision.LEGACY:
        return LEGACY_GRAMMAR
    return STRICT_GRAMMAR
