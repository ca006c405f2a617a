"""Command-line interface for the Souvenir lexer."""

from __future__ import annotations

import argparse
import json
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from souvenir.errors import ConfigError
from souvenir.highlight import HighlightCategory, resolve_categories
from souvenir.lexer import LexResult
from souvenir.tokens import GrammarRevision, Token, TokenKind

OUTPUT_FORMATS = ("text", "json")


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    output_format: str
    revision: GrammarRevision
    start: int
    categories: dict[TokenKind, HighlightCategory]
    strict: bool
    watch: bool
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="souvenir",
        description="Souvenir script lexer: print the classified token stream",
    )
    p.add_argument("input", help="Input .svr file")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: text)",
    )
    p.add_argument(
        "--revision",
        choices=[r.value for r in GrammarRevision],
        default=None,
        help="Identifier-casing rules (default: strict)",
    )
    p.add_argument(
        "--start",
        type=int,
        default=0,
        metavar="OFFSET",
        help="Character offset to start scanning from (default: 0)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover souvenir.toml)",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any diagnostic is reported",
    )
    p.add_argument("--watch", action="store_true", help="Watch for changes and re-lex")
    p.add_argument("--debug", action="store_true", help="Dump token tree to stderr")
    return p


def parse_revision(name: str) -> GrammarRevision:
    """Map a revision name (``strict``/``legacy``) to a GrammarRevision."""
    try:
        return GrammarRevision(name.strip().lower())
    except ValueError:
        raise ConfigError(f"unknown grammar revision '{name}'") from None


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "souvenir.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    try:
        config = load_config(config_path, input_dir)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid config file: {exc}") from exc

    # Grammar revision: config < CLI
    revision = GrammarRevision.STRICT
    cfg_lexer = config.get("lexer")
    if isinstance(cfg_lexer, dict):
        cfg_revision = cfg_lexer.get("revision")
        if isinstance(cfg_revision, str):
            revision = parse_revision(cfg_revision)
    if args.revision is not None:
        revision = parse_revision(args.revision)

    # Output format: config < CLI
    output_format = "text"
    cfg_output = config.get("output")
    if isinstance(cfg_output, dict):
        cfg_format = cfg_output.get("format")
        if isinstance(cfg_format, str):
            if cfg_format not in OUTPUT_FORMATS:
                raise ConfigError(f"unknown output format '{cfg_format}'")
            output_format = cfg_format
    if args.format is not None:
        output_format = args.format

    # Highlight categories: defaults < config
    cfg_highlight = config.get("highlight")
    categories = resolve_categories(cfg_highlight if isinstance(cfg_highlight, dict) else None)

    if args.start < 0:
        raise argparse.ArgumentTypeError(f"start offset must not be negative: {args.start}")

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        output_format=output_format,
        revision=revision,
        start=args.start,
        categories=categories,
        strict=args.strict,
        watch=args.watch,
        debug=args.debug,
    )


def lex_file(options: CliOptions) -> LexResult:
    """Read and lex a Souvenir file."""
    from souvenir.debug import dump_tokens
    from souvenir.lexer import lex

    source = options.input_file.read_text(encoding="utf-8")
    result = lex(source, str(options.input_file), options.start, options.revision)

    if options.debug:
        dump_tokens(result.tokens)

    return result


def token_to_dict(token: Token, categories: dict[TokenKind, HighlightCategory]) -> dict[str, Any]:
    """JSON-ready form of a token and its nested tokens."""
    data: dict[str, Any] = {
        "kind": token.kind.name,
        "category": categories[token.kind].value,
        "lexeme": token.lexeme,
        "start": token.span.start.offset,
        "end": token.span.end.offset,
        "line": token.span.start.line,
        "column": token.span.start.column,
    }
    if token.children:
        data["children"] = [token_to_dict(c, categories) for c in token.children]
    if not token.terminated:
        data["terminated"] = False
    return data


def render_tokens(result: LexResult, options: CliOptions) -> str:
    """Render the token stream in the requested output format."""
    if options.output_format == "json":
        payload = [token_to_dict(t, options.categories) for t in result.tokens]
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    lines: list[str] = []
    for top in result.tokens:
        for tok in top.walk():
            pos = tok.span.start
            category = options.categories[tok.kind].value
            lines.append(f"{pos.line}:{pos.column}\t{tok.kind.name}\t{category}\t{tok.lexeme!r}")
    return "".join(line + "\n" for line in lines)


def _report(result: LexResult) -> None:
    for message in result.format_diagnostics():
        print(message, file=sys.stderr)


def _write(options: CliOptions, text: str) -> None:
    if options.output_file:
        options.output_file.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
        sys.stdout.flush()


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, re-lex on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    result = lex_file(options)
                except (OSError, UnicodeDecodeError) as exc:
                    print(f"error: {exc}", file=sys.stderr)
                else:
                    _report(result)
                    _write(options, render_tokens(result, options))
                    print(f"Lexed {options.input_file}", file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, ConfigError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    try:
        result = lex_file(options)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _report(result)
    _write(options, render_tokens(result, options))

    if options.strict and result.diagnostics:
        return 1
    return 0
