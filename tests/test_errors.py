"""Test diagnostics: unrecognized spans, unterminated regions, and formatting."""

import pytest

from souvenir.errors import DiagnosticKind
from souvenir.lexer import lex


class TestUnrecognizedSpans:
    def test_skipped_input_reported(self):
        result = lex("let @ x")
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNRECOGNIZED_SPAN] * 2
        assert [d.span.start.column for d in result.diagnostics] == [5, 7]

    def test_adjacent_skips_merge(self):
        result = lex("@@x")
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].message == "unrecognized input '@@x'"
        assert result.diagnostics[0].span.length == 3

    def test_whitespace_not_reported(self):
        assert lex("   \n\t\r\n").diagnostics == []

    def test_string_content_not_reported(self):
        assert lex("> @@ whatever ** {{ Name }}\n").diagnostics == []

    def test_template_text_reported(self):
        result = lex("> Hi {{ lower @ Name }}\n")
        assert [d.message for d in result.diagnostics] == [
            "unrecognized input 'lower'",
            "unrecognized input '@'",
        ]
        assert [d.span.start.column for d in result.diagnostics] == [9, 15]

    def test_comment_content_not_reported(self):
        assert lex("-- @@ }}\n").diagnostics == []

    def test_scanning_continues_after_skip(self):
        result = lex("@ -> start")
        assert [t.kind.name for t in result.tokens] == ["DIVERT", "SCENE_NAME"]

    @pytest.mark.parametrize(
        "source",
        ["\0", "}}{{))((", "été ÉTÉ", "->->->", "==(==)", "?#'", "\r"],
    )
    def test_never_raises(self, source):
        lex(source)


class TestUnterminatedRegions:
    def test_scene_args(self):
        result = lex("== start(A")
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNTERMINATED_REGION]
        assert "')'" in result.diagnostics[0].message

    def test_template(self):
        result = lex("> {{Name\n")
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNTERMINATED_REGION]
        assert "'}}'" in result.diagnostics[0].message

    def test_tokens_before_region_kept(self):
        result = lex("let X = 1\n-> go(A")
        assert [t.kind.name for t in result.tokens] == [
            "KEYWORD_COMMAND",
            "VARIABLE_NAME",
            "EQUALS",
            "NUMBER",
            "DIVERT",
            "SCENE_NAME",
            "SCENE_ARGS",
        ]


class TestDiagnosticFormatting:
    def test_format_contains_line(self):
        result = lex("let @ x")
        formatted = result.diagnostics[0].format(result.source)
        assert "let @ x" in formatted

    def test_format_contains_position(self):
        result = lex("let @ x")
        formatted = result.diagnostics[0].format(result.source)
        assert "input.svr:1:5" in formatted

    def test_format_contains_carets(self):
        result = lex("  @@@")
        formatted = result.diagnostics[0].format(result.source)
        assert formatted.splitlines()[-1].endswith("   ^^^")

    def test_unrecognized_is_a_note(self):
        result = lex("@")
        assert result.diagnostics[0].format(result.source).startswith("note:")

    def test_unterminated_is_an_error(self):
        result = lex("-> go(")
        assert result.diagnostics[0].format(result.source).startswith("error:")

    def test_custom_filename(self):
        result = lex("line1\n@", filename="ring.svr")
        formatted = result.format_diagnostics()
        assert len(formatted) == 1
        assert "ring.svr:2:1" in formatted[0]
