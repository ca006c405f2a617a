"""Display categories for token kinds.

Every TokenKind maps to exactly one HighlightCategory. The table is plain data
so a host can replace entries (see the ``[highlight]`` config table) without
touching the lexer.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from souvenir.errors import ConfigError
from souvenir.tokens import TokenKind


class HighlightCategory(Enum):
    STRING = "String"
    NUMBER = "Number"
    KEYWORD = "Keyword"
    IDENTIFIER = "Identifier"
    STATEMENT = "Statement"
    TAG = "Tag"
    CONSTANT = "Constant"
    DELIMITER = "Delimiter"
    SPECIAL = "Special"
    MACRO = "Macro"
    FUNCTION = "Function"
    PREPROC = "PreProc"
    LABEL = "Label"
    CONDITIONAL = "Conditional"
    COMMENT = "Comment"
    OPERATOR = "Operator"


DEFAULT_CATEGORIES: Mapping[TokenKind, HighlightCategory] = {
    TokenKind.EQUALS: HighlightCategory.OPERATOR,
    TokenKind.SCENE_DEF: HighlightCategory.PREPROC,
    TokenKind.SCENE_NAME: HighlightCategory.FUNCTION,
    TokenKind.SCENE_ARGS: HighlightCategory.DELIMITER,
    TokenKind.MOD_NAME: HighlightCategory.IDENTIFIER,
    TokenKind.MOD_SEP: HighlightCategory.DELIMITER,
    TokenKind.DIVERT: HighlightCategory.SPECIAL,
    TokenKind.LABEL: HighlightCategory.LABEL,
    TokenKind.MACRO: HighlightCategory.MACRO,
    TokenKind.ATOM: HighlightCategory.CONSTANT,
    TokenKind.VARIABLE_NAME: HighlightCategory.IDENTIFIER,
    TokenKind.RANDOM: HighlightCategory.NUMBER,
    TokenKind.NUMBER: HighlightCategory.NUMBER,
    TokenKind.ARITHMETIC: HighlightCategory.OPERATOR,
    TokenKind.COMMENT: HighlightCategory.COMMENT,
    TokenKind.STRING: HighlightCategory.STRING,
    TokenKind.TEMPLATE: HighlightCategory.TAG,
    TokenKind.KEYWORD_MATCH: HighlightCategory.CONDITIONAL,
    TokenKind.KEYWORD_COMMAND: HighlightCategory.STATEMENT,
    TokenKind.KEYWORD: HighlightCategory.KEYWORD,
    TokenKind.RESERVED: HighlightCategory.SPECIAL,
    TokenKind.CHOICE: HighlightCategory.DELIMITER,
    TokenKind.SEND: HighlightCategory.OPERATOR,
    TokenKind.END: HighlightCategory.STATEMENT,
}


def parse_kind(name: str) -> TokenKind:
    """Look up a TokenKind by name, case-insensitively (``scene_name``)."""
    try:
        return TokenKind[name.strip().upper()]
    except KeyError:
        raise ConfigError(f"unknown token kind '{name}'") from None


def parse_category(name: str) -> HighlightCategory:
    """Look up a category by its display name (``PreProc``), case-insensitively."""
    wanted = name.strip().lower()
    for category in HighlightCategory:
        if category.value.lower() == wanted:
            return category
    raise ConfigError(f"unknown highlight category '{name}'")


def resolve_categories(
    overrides: Mapping[str, str] | None = None,
) -> dict[TokenKind, HighlightCategory]:
    """Merge ``{kind_name: category_name}`` overrides over the default table."""
    table = dict(DEFAULT_CATEGORIES)
    for kind_name, category_name in (overrides or {}).items():
        if not isinstance(category_name, str):
            raise ConfigError(f"highlight category for '{kind_name}' must be a string")
        table[parse_kind(kind_name)] = parse_category(category_name)
    return table
