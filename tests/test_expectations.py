"""Test contextual chaining: what one token makes the lexer try next."""

from souvenir.lexer import Expectation, Lexer
from souvenir.tokens import TokenKind

from .conftest import assert_kinds


class TestExpectationState:
    def test_divert_expects_scene_reference(self):
        lexer = Lexer("-> start")
        it = iter(lexer)
        assert next(it).kind == TokenKind.DIVERT
        assert lexer.expectation == Expectation.SCENE_REF

    def test_scene_def_expects_scene_name(self):
        lexer = Lexer("== start")
        it = iter(lexer)
        next(it)
        assert lexer.expectation == Expectation.SCENE_NAME

    def test_scene_name_expects_args(self):
        lexer = Lexer("== start")
        it = iter(lexer)
        next(it)
        assert next(it).kind == TokenKind.SCENE_NAME
        assert lexer.expectation == Expectation.SCENE_ARGS

    def test_module_name_expects_separator(self):
        lexer = Lexer("-> story:start")
        it = iter(lexer)
        next(it)
        assert next(it).kind == TokenKind.MOD_NAME
        assert lexer.expectation == Expectation.MOD_SEP


class TestChaining:
    def test_spawn_takes_scene_with_args(self, lex):
        tokens = lex("spawn worker(A)")
        assert_kinds(
            tokens,
            [TokenKind.KEYWORD_COMMAND, TokenKind.SCENE_NAME, TokenKind.SCENE_ARGS],
        )

    def test_let_does_not_expect_scene(self, lex):
        assert_kinds(lex("let x"), [TokenKind.KEYWORD_COMMAND])

    def test_newline_clears_expectation(self, lex):
        tokens = lex("->\nstart")
        assert_kinds(tokens, [TokenKind.DIVERT])

    def test_whitespace_keeps_expectation(self, lex):
        tokens = lex("->  \t start")
        assert_kinds(tokens, [TokenKind.DIVERT, TokenKind.SCENE_NAME])

    def test_expectation_consumed_by_other_token(self, lex):
        tokens = lex("-> 3 start")
        assert_kinds(tokens, [TokenKind.DIVERT, TokenKind.NUMBER])

    def test_divert_to_label(self, lex):
        tokens = lex("-> 'label")
        assert_kinds(tokens, [TokenKind.DIVERT, TokenKind.LABEL])

    def test_keyword_as_scene_name(self, lex):
        tokens = lex("-> when")
        assert_kinds(tokens, [TokenKind.DIVERT, TokenKind.SCENE_NAME])

    def test_consecutive_headers(self, lex):
        tokens = lex("== start\n== next(A)\n")
        assert_kinds(
            tokens,
            [
                TokenKind.SCENE_DEF,
                TokenKind.SCENE_NAME,
                TokenKind.SCENE_DEF,
                TokenKind.SCENE_NAME,
                TokenKind.SCENE_ARGS,
            ],
        )

    def test_args_expectation_ends_after_other_token(self, lex):
        tokens = lex("-> go 1 (A)")
        assert_kinds(
            tokens,
            [TokenKind.DIVERT, TokenKind.SCENE_NAME, TokenKind.NUMBER, TokenKind.VARIABLE_NAME],
        )
