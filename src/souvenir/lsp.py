"""Minimal LSP server for Souvenir — lexer diagnostics and semantic tokens."""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable, Mapping

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    SemanticTokens,
    SemanticTokensLegend,
    SemanticTokensParams,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import PositionCodec

from souvenir import __version__
from souvenir.errors import DiagnosticKind
from souvenir.highlight import DEFAULT_CATEGORIES, HighlightCategory
from souvenir.lexer import lex, tokenize
from souvenir.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

# Standard LSP semantic token types for each display category.
SEMANTIC_TOKEN_TYPES: Mapping[HighlightCategory, str] = {
    HighlightCategory.STRING: "string",
    HighlightCategory.NUMBER: "number",
    HighlightCategory.KEYWORD: "keyword",
    HighlightCategory.IDENTIFIER: "variable",
    HighlightCategory.STATEMENT: "keyword",
    HighlightCategory.TAG: "decorator",
    HighlightCategory.CONSTANT: "enumMember",
    HighlightCategory.DELIMITER: "operator",
    HighlightCategory.SPECIAL: "operator",
    HighlightCategory.MACRO: "macro",
    HighlightCategory.FUNCTION: "function",
    HighlightCategory.PREPROC: "macro",
    HighlightCategory.LABEL: "label",
    HighlightCategory.CONDITIONAL: "keyword",
    HighlightCategory.COMMENT: "comment",
    HighlightCategory.OPERATOR: "operator",
}

LEGEND = SemanticTokensLegend(
    token_types=sorted(set(SEMANTIC_TOKEN_TYPES.values())),
    token_modifiers=[],
)

server = LanguageServer(
    "souvenir-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)


def _severity(kind: DiagnosticKind) -> DiagnosticSeverity:
    if kind == DiagnosticKind.UNTERMINATED_REGION:
        return DiagnosticSeverity.Error
    return DiagnosticSeverity.Information


def _validate(ls: LanguageServer, uri: str) -> None:
    """Lex the document and publish its diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    result = lex(doc.source, filename)

    # Lexer columns count code points; the client counts in its own units.
    codec = doc.position_codec
    lines = doc.lines

    def to_client(line: int, column: int) -> Position:
        return codec.position_to_client_units(
            lines, Position(line=line - 1, character=column - 1)
        )

    diagnostics: list[Diagnostic] = []
    for d in result.diagnostics:
        diagnostics.append(
            Diagnostic(
                range=Range(
                    start=to_client(d.span.start.line, d.span.start.column),
                    end=to_client(d.span.end.line, d.span.end.column),
                ),
                message=d.message,
                severity=_severity(d.kind),
                source="souvenir",
            )
        )

    logger.debug("publishing %d diagnostics for %s", len(diagnostics), uri)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


def _segments(
    tokens: Iterable[Token], categories: Mapping[TokenKind, HighlightCategory]
) -> list[tuple[int, int, HighlightCategory]]:
    """Flatten region tokens into non-overlapping (start, end, category) runs."""
    out: list[tuple[int, int, HighlightCategory]] = []
    for tok in tokens:
        category = categories[tok.kind]
        cursor = tok.span.start.offset
        for child in tok.children:
            if child.span.start.offset > cursor:
                out.append((cursor, child.span.start.offset, category))
            out.extend(_segments([child], categories))
            cursor = child.span.end.offset
        if tok.span.end.offset > cursor:
            out.append((cursor, tok.span.end.offset, category))
    return out


def encode_semantic_tokens(
    source: str,
    tokens: Iterable[Token],
    categories: Mapping[TokenKind, HighlightCategory] = DEFAULT_CATEGORIES,
    codec: PositionCodec | None = None,
) -> list[int]:
    """Encode tokens in the LSP relative five-integer format.

    Runs that cross a line break are split, since clients expect single-line
    semantic tokens. Columns and lengths are measured in the client's code
    units (UTF-16 unless *codec* says otherwise).
    """
    if codec is None:
        codec = PositionCodec()
    line_starts = [0] + [i + 1 for i, ch in enumerate(source) if ch == "\n"]
    type_index = {name: i for i, name in enumerate(LEGEND.token_types)}

    data: list[int] = []
    prev_line = 0
    prev_char = 0
    for start, end, category in _segments(tokens, categories):
        index = type_index[SEMANTIC_TOKEN_TYPES[category]]
        while start < end:
            line = bisect.bisect_right(line_starts, start) - 1
            line_end = source.find("\n", start, end)
            piece_end = end if line_end == -1 else line_end
            if piece_end > start:
                char = codec.client_num_units(source[line_starts[line] : start])
                length = codec.client_num_units(source[start:piece_end])
                delta_line = line - prev_line
                delta_char = char - prev_char if delta_line == 0 else char
                data.extend([delta_line, delta_char, length, index, 0])
                prev_line, prev_char = line, char
            start = piece_end + 1 if line_end != -1 else end
    return data


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, LEGEND)
def semantic_tokens_full(ls: LanguageServer, params: SemanticTokensParams) -> SemanticTokens:
    doc = ls.workspace.get_text_document(params.text_document.uri)
    data = encode_semantic_tokens(
        doc.source, tokenize(doc.source), codec=doc.position_codec
    )
    return SemanticTokens(data=data)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    server.start_io()
