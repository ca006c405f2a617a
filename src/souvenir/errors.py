"""Diagnostic and error types with formatted source context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from souvenir.tokens import Span


class DiagnosticKind(Enum):
    UNRECOGNIZED_SPAN = auto()  # text no eligible rule matched; skipped
    UNTERMINATED_REGION = auto()  # region closed without its end marker


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal problem found while lexing, reported alongside the tokens."""

    kind: DiagnosticKind
    message: str
    span: Span

    def format(self, source: str, filename: str = "input.svr") -> str:
        lines = source.splitlines(keepends=True)
        line_idx = self.span.start.line - 1
        col = self.span.start.column

        # Build the source line (strip trailing newline for display)
        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        # Underline the full span when on one line, otherwise to end of line
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = max(1, len(source_line) - col + 1)

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(self.span.start.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        severity = "error" if self.kind is DiagnosticKind.UNTERMINATED_REGION else "note"
        return (
            f"{severity}: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{self.span.start.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )


class ConfigError(Exception):
    """Raised for invalid configuration values (revision, highlight table)."""
