"""Souvenir lexer — classifies script text into a stream of tokens.

Scanning is a hand-written cascade. At each position the rules are tried in a
fixed order; among rules that share a first character the longest marker wins
(``--`` over ``-``, ``->`` over ``-``, ``<-`` and ``<=`` over ``<``, ``==`` at
line start over ``=``). Two pieces of state narrow the cascade:

* an ``Expectation`` left by the previous token (after ``->`` the next word is
  tried as a scene reference before anything else), and
* a stack of open regions (string, template, scene arguments), each of which
  only recognizes its own small set of nested tokens.

Input that matches nothing is skipped and reported as a diagnostic; the lexer
never raises.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto

from souvenir.errors import Diagnostic, DiagnosticKind
from souvenir.tokens import (
    COMMAND_KEYWORDS,
    MATCH_KEYWORDS,
    OTHER_KEYWORDS,
    RESERVED_IDENTIFIERS,
    GrammarRevision,
    Position,
    Span,
    Token,
    TokenKind,
    grammar_for,
    is_digit,
    is_variable_start,
    is_word_char,
)


class Expectation(Enum):
    NONE = auto()
    SCENE_NAME = auto()  # after ==
    SCENE_REF = auto()  # after ->, spawn or a module separator; module names allowed
    SCENE_ARGS = auto()  # after a scene name; ( opens an argument list
    MOD_SEP = auto()  # after a module name; : is the separator


class _Mode(Enum):
    NORMAL = auto()
    STRING = auto()
    TEMPLATE = auto()
    SCENE_ARGS = auto()


@dataclass(slots=True)
class _Region:
    kind: TokenKind
    mode: _Mode
    start: Position
    children: list[Token] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LexResult:
    """Tokens and diagnostics from a complete scan."""

    tokens: list[Token]
    diagnostics: list[Diagnostic]
    source: str
    filename: str = "input.svr"

    def format_diagnostics(self) -> list[str]:
        return [d.format(self.source, self.filename) for d in self.diagnostics]


class Lexer:
    """Tokenize Souvenir source text into a lazy stream of Token objects.

    A Lexer is single-use: iterate it once, or call ``tokenize()``. Build a
    fresh Lexer to scan the same text again.
    """

    def __init__(
        self,
        source: str,
        filename: str = "input.svr",
        start: int = 0,
        revision: GrammarRevision = GrammarRevision.STRICT,
    ) -> None:
        start = max(0, min(start, len(source)))
        self._source = source
        self._filename = filename
        self._grammar = grammar_for(revision)
        self._pos = start
        self._line = source.count("\n", 0, start) + 1
        line_start = source.rfind("\n", 0, start) + 1
        self._col = start - line_start + 1
        # Only spaces and tabs consumed so far on the current line.
        self._line_blank = source[line_start:start].strip(" \t") == ""
        self._expect = Expectation.NONE
        self._regions: list[_Region] = []
        self._ready: list[Token] = []
        self._skip_start: Position | None = None
        self._skip_end: Position | None = None
        self.diagnostics: list[Diagnostic] = []

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def expectation(self) -> Expectation:
        return self._expect

    def __iter__(self) -> Iterator[Token]:
        while self._pos < len(self._source):
            self._step()
            if self._ready:
                ready, self._ready = self._ready, []
                yield from ready
        self._finish()
        ready, self._ready = self._ready, []
        yield from ready

    def tokenize(self) -> list[Token]:
        """Tokenize the remaining source and return the token list."""
        return list(self)

    def _step(self) -> None:
        mode = self._regions[-1].mode if self._regions else _Mode.NORMAL
        if mode == _Mode.NORMAL:
            self._lex_normal()
        elif mode == _Mode.STRING:
            self._lex_string()
        elif mode == _Mode.TEMPLATE:
            self._lex_template()
        elif mode == _Mode.SCENE_ARGS:
            self._lex_scene_args()

    def _finish(self) -> None:
        """Close whatever is still open at end of input."""
        self._flush_skipped()
        while self._regions:
            # A string ends at end of line, so end of input closes it cleanly.
            self._close_region(terminated=self._regions[-1].kind == TokenKind.STRING)

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
            self._line_blank = True
        else:
            self._col += 1
            if ch not in " \t":
                self._line_blank = False
        return ch

    def _advance_while(self, pred: Callable[[str], bool]) -> None:
        while self._pos < len(self._source) and pred(self._peek()):
            self._advance()

    def _at_line_end(self) -> bool:
        ch = self._peek()
        return ch == "\n" or (ch == "\r" and self._peek(1) == "\n")

    def _at_line_start(self) -> bool:
        """True if only horizontal whitespace precedes the cursor on its line."""
        return self._line_blank

    def _word_end(self) -> int:
        end = self._pos
        while end < len(self._source) and is_word_char(self._source[end]):
            end += 1
        return end

    def _emit(
        self,
        kind: TokenKind,
        start: Position,
        children: tuple[Token, ...] = (),
        terminated: bool = True,
    ) -> Token:
        self._flush_skipped()
        end = self._current_pos()
        lexeme = self._source[start.offset : end.offset]
        tok = Token(kind, lexeme, Span(start, end), children, terminated)
        if self._regions:
            self._regions[-1].children.append(tok)
        else:
            self._ready.append(tok)
        return tok

    def _emit_chars(self, kind: TokenKind, count: int) -> Token:
        start = self._current_pos()
        for _ in range(count):
            self._advance()
        return self._emit(kind, start)

    # ------------------------------------------------------------------
    # Unrecognized input
    # ------------------------------------------------------------------

    def _skip(self) -> None:
        """Skip one character as unrecognized, merging with an adjacent run."""
        pos = self._current_pos()
        if self._skip_end is None or self._skip_end.offset != pos.offset:
            self._flush_skipped()
            self._skip_start = pos
        self._advance()
        self._skip_end = self._current_pos()

    def _skip_word(self) -> None:
        end = self._word_end()
        while self._pos < end:
            self._skip()

    def _flush_skipped(self) -> None:
        if self._skip_start is None or self._skip_end is None:
            return
        text = self._source[self._skip_start.offset : self._skip_end.offset]
        self.diagnostics.append(
            Diagnostic(
                DiagnosticKind.UNRECOGNIZED_SPAN,
                f"unrecognized input '{text}'",
                Span(self._skip_start, self._skip_end),
            )
        )
        self._skip_start = None
        self._skip_end = None

    # ------------------------------------------------------------------
    # Region management
    # ------------------------------------------------------------------

    def _open_region(self, kind: TokenKind, mode: _Mode, marker_len: int) -> None:
        self._flush_skipped()
        start = self._current_pos()
        for _ in range(marker_len):
            self._advance()
        self._regions.append(_Region(kind, mode, start))

    def _close_region(self, terminated: bool = True) -> Token:
        region = self._regions.pop()
        self._flush_skipped()
        if not terminated:
            end = self._current_pos()
            self.diagnostics.append(
                Diagnostic(
                    DiagnosticKind.UNTERMINATED_REGION,
                    _UNTERMINATED_MESSAGES[region.kind],
                    Span(region.start, end),
                )
            )
        return self._emit(region.kind, region.start, tuple(region.children), terminated)

    # ------------------------------------------------------------------
    # Normal mode
    # ------------------------------------------------------------------

    def _lex_normal(self) -> None:
        ch = self._peek()

        if ch == "\n":
            self._advance()
            self._expect = Expectation.NONE
            return

        if ch in " \t\r":
            # Horizontal whitespace keeps the pending expectation alive.
            self._advance()
            return

        if self._expect != Expectation.NONE:
            expect = self._expect
            self._expect = Expectation.NONE
            if self._lex_expected(expect):
                return

        if ch == "=":
            if self._peek(1) == "=" and self._peek(2) != "=" and self._at_line_start():
                self._emit_chars(TokenKind.SCENE_DEF, 2)
                self._expect = Expectation.SCENE_NAME
            else:
                self._emit_chars(TokenKind.EQUALS, 1)
            return

        if ch == "-":
            nxt = self._peek(1)
            if nxt == "-":
                self._lex_comment()
            elif nxt == ">":
                self._emit_chars(TokenKind.DIVERT, 2)
                self._expect = Expectation.SCENE_REF
            else:
                self._emit_chars(TokenKind.ARITHMETIC, 1)
            return

        if ch == "<":
            nxt = self._peek(1)
            if nxt == "-":
                self._emit_chars(TokenKind.SEND, 2)
            elif nxt == "=":
                self._emit_chars(TokenKind.ARITHMETIC, 2)
            else:
                self._emit_chars(TokenKind.ARITHMETIC, 1)
            return

        if ch in "+*/":
            self._emit_chars(TokenKind.ARITHMETIC, 1)
            return

        if ch == ";" and self._peek(1) == ";":
            self._emit_chars(TokenKind.END, 2)
            return

        if ch == "|":
            self._emit_chars(TokenKind.CHOICE, 1)
            return

        if ch == ">" and self._peek(1) == " ":
            self._open_region(TokenKind.STRING, _Mode.STRING, 2)
            return

        if ch == "'":
            g = self._grammar
            self._lex_prefixed(TokenKind.LABEL, g.label_start, g.scene_char)
            return

        if ch == "?":
            g = self._grammar
            self._lex_prefixed(TokenKind.MACRO, g.macro_start, g.macro_char)
            return

        if ch == "#":
            g = self._grammar
            self._lex_prefixed(TokenKind.ATOM, g.atom_start, g.atom_char)
            return

        if is_digit(ch):
            self._lex_number()
            return

        if is_word_char(ch):
            self._lex_word()
            return

        self._skip()

    def _lex_expected(self, expect: Expectation) -> bool:
        """Try the restricted candidates for expect; False falls back to the cascade."""
        ch = self._peek()

        if expect in (Expectation.SCENE_NAME, Expectation.SCENE_REF):
            if not self._grammar.scene_start(ch):
                return False
            if expect == Expectation.SCENE_REF and self._at_module_name():
                self._lex_module_name()
                return True
            start = self._current_pos()
            self._advance_while(self._grammar.scene_char)
            self._emit(TokenKind.SCENE_NAME, start)
            self._expect = Expectation.SCENE_ARGS
            return True

        if expect == Expectation.SCENE_ARGS and ch == "(":
            self._open_region(TokenKind.SCENE_ARGS, _Mode.SCENE_ARGS, 1)
            return True

        if expect == Expectation.MOD_SEP and ch == ":":
            self._emit_chars(TokenKind.MOD_SEP, 1)
            self._expect = Expectation.SCENE_REF
            return True

        return False

    def _at_module_name(self) -> bool:
        """True if a name at the cursor is followed by ':' and a word character."""
        if not self._grammar.scene_start(self._peek()):
            return False
        end = self._word_end()
        following = self._source[end + 1 : end + 2]
        return self._source[end : end + 1] == ":" and is_word_char(following)

    def _lex_module_name(self) -> None:
        start = self._current_pos()
        self._advance_while(is_word_char)
        self._emit(TokenKind.MOD_NAME, start)
        self._expect = Expectation.MOD_SEP

    def _lex_word(self) -> None:
        ch = self._peek()
        if self._at_module_name():
            self._lex_module_name()
            return

        word = self._source[self._pos : self._word_end()]
        if word in MATCH_KEYWORDS:
            self._emit_chars(TokenKind.KEYWORD_MATCH, len(word))
        elif word in COMMAND_KEYWORDS:
            self._emit_chars(TokenKind.KEYWORD_COMMAND, len(word))
            if word == "spawn":
                self._expect = Expectation.SCENE_REF
        elif word in OTHER_KEYWORDS:
            self._emit_chars(TokenKind.KEYWORD, len(word))
        elif word in RESERVED_IDENTIFIERS:
            self._emit_chars(TokenKind.RESERVED, len(word))
        elif is_variable_start(ch):
            self._lex_variable()
        else:
            self._skip_word()

    def _lex_variable(self) -> None:
        """Uppercase letter then letters only; digits and underscores end the name."""
        start = self._current_pos()
        self._advance()
        self._advance_while(str.isalpha)
        lexeme = self._source[start.offset : self._pos]
        kind = TokenKind.RESERVED if lexeme in RESERVED_IDENTIFIERS else TokenKind.VARIABLE_NAME
        self._emit(kind, start)

    def _lex_prefixed(
        self,
        kind: TokenKind,
        start_pred: Callable[[str], bool],
        char_pred: Callable[[str], bool],
    ) -> None:
        """Lex a one-character sigil followed by a name, or skip the sigil."""
        if not start_pred(self._peek(1)):
            self._skip()
            return
        start = self._current_pos()
        self._advance()
        self._advance()
        self._advance_while(char_pred)
        self._emit(kind, start)

    def _lex_number(self) -> None:
        start = self._current_pos()
        self._advance_while(is_digit)
        if self._peek() == "d" and is_digit(self._peek(1)):
            self._advance()
            self._advance_while(is_digit)
            self._emit(TokenKind.RANDOM, start)
        else:
            self._emit(TokenKind.NUMBER, start)

    def _lex_comment(self) -> None:
        start = self._current_pos()
        while self._pos < len(self._source) and not self._at_line_end():
            self._advance()
        self._emit(TokenKind.COMMENT, start)

    # ------------------------------------------------------------------
    # String mode ("> " to end of line)
    # ------------------------------------------------------------------

    def _lex_string(self) -> None:
        if self._at_line_end():
            self._close_region()
            return

        if self._peek() == "{" and self._peek(1) == "{":
            self._open_region(TokenKind.TEMPLATE, _Mode.TEMPLATE, 2)
            return

        # Plain narrative text stays unclassified inside the string.
        self._advance()
        while (
            self._pos < len(self._source)
            and not self._at_line_end()
            and not (self._peek() == "{" and self._peek(1) == "{")
        ):
            self._advance()

    # ------------------------------------------------------------------
    # Template mode ({{ ... }} inside a string)
    # ------------------------------------------------------------------

    def _lex_template(self) -> None:
        ch = self._peek()

        if ch == "}" and self._peek(1) == "}":
            self._advance()
            self._advance()
            self._close_region()
            return

        if self._at_line_end():
            # The enclosing string ends here, so the template cannot continue.
            self._close_region(terminated=False)
            return

        if ch in " \t\r":
            self._advance()
        elif is_variable_start(ch):
            self._lex_variable()
        elif is_word_char(ch):
            self._skip_word()
        else:
            self._skip()

    # ------------------------------------------------------------------
    # Scene argument mode (( ... ) after a scene name)
    # ------------------------------------------------------------------

    def _lex_scene_args(self) -> None:
        ch = self._peek()

        if ch == ")":
            self._advance()
            self._close_region()
            return

        if ch in " \t\r\n,":
            self._advance()
            return

        if ch == "#":
            self._lex_prefixed(TokenKind.ATOM, self._grammar.atom_start, self._grammar.atom_char)
        elif is_digit(ch):
            self._lex_number()
        elif is_variable_start(ch):
            self._lex_variable()
        elif is_word_char(ch):
            self._skip_word()
        else:
            self._skip()


_UNTERMINATED_MESSAGES = {
    TokenKind.TEMPLATE: "unterminated template (expected '}}' before end of line)",
    TokenKind.SCENE_ARGS: "unterminated scene arguments (expected ')')",
}


def tokenize(
    source: str,
    filename: str = "input.svr",
    start: int = 0,
    revision: GrammarRevision = GrammarRevision.STRICT,
) -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source, filename, start, revision).tokenize()


def lex(
    source: str,
    filename: str = "input.svr",
    start: int = 0,
    revision: GrammarRevision = GrammarRevision.STRICT,
) -> LexResult:
    """Tokenize source text and collect diagnostics."""
    lexer = Lexer(source, filename, start, revision)
    tokens = lexer.tokenize()
    return LexResult(tokens, list(lexer.diagnostics), source, filename)
