"""Syntax highlighting service for fenced code blocks.

Contract: tokenize_line(language, line, state) -> (pairs, new_state), or None
when the service does not recognize the language. Pairs are
(category, substring) and concatenate back to the line. The state is opaque
to callers; they pass the previous line's state back in so multi-line
constructs (block comments, triple-quoted strings) continue.

Services may also offer tokenize_block(language, lines) -> rows | None.
highlight_lines prefers it, so a whole fence is lexed in one pass instead of
once per line.

Pygments does the lexing. It is the same engine Rich's Syntax uses for
user-authored code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.token import Comment, Keyword, Literal, Name, Number, Operator, Punctuation, String
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

Pairs = list[tuple[str, str]]


class Highlighter(Protocol):
    def tokenize_line(
        self, language: str, line: str, state: object | None
    ) -> tuple[Pairs, object] | None:
        ...


# Fence labels that pygments does not know by that name.
LANGUAGE_ALIASES: dict[str, str] = {
    "h": "c",
    "md": "markdown",
    "rs": "rust",
    "sh": "bash",
    "js": "javascript",
    "py": "python",
    "rb": "ruby",
}


# Most specific first: the first ancestor match decides the category.
_CATEGORY_BY_TOKEN: tuple[tuple[object, str], ...] = (
    (Comment, "comment"),
    (Keyword.Constant, "literal"),
    (Keyword, "keyword"),
    (Name.Builtin, "keyword2"),
    (Name.Function, "function"),
    (Name.Class, "function"),
    (Name.Decorator, "function"),
    (String, "string"),
    (Number, "number"),
    (Literal, "literal"),
    (Operator, "operator"),
    (Punctuation, "operator"),
    (Name, "symbol"),
)


def category_for(ttype) -> str:
    for parent, category in _CATEGORY_BY_TOKEN:
        if ttype in parent:
            return category
    return "normal"


def _append(pairs: Pairs, category: str, piece: str) -> None:
    if pairs and pairs[-1][0] == category:
        pairs[-1] = (category, pairs[-1][1] + piece)
    else:
        pairs.append((category, piece))


def _whole(pairs: Pairs, line: str) -> Pairs:
    # Lexers may drop characters they consider insignificant; keep the line whole.
    if "".join(p for _, p in pairs) != line:
        return [("normal", line)] if line else []
    return pairs


@dataclass(frozen=True)
class _LineState:
    lexer: Lexer
    history: str  # block text before the current line, newline-terminated


class PygmentsHighlighter:
    """Highlighter backed by pygments lexers, resolved and cached per language."""

    def __init__(self) -> None:
        self._lexers: dict[str, Lexer | None] = {}

    def resolve(self, language: str) -> Lexer | None:
        if language not in self._lexers:
            name = LANGUAGE_ALIASES.get(language, language)
            try:
                self._lexers[language] = get_lexer_by_name(
                    name, stripnl=False, stripall=False, ensurenl=False
                )
            except ClassNotFound:
                logger.debug("no lexer for fence language %r", language)
                self._lexers[language] = None
        return self._lexers[language]

    def tokenize_line(
        self, language: str, line: str, state: object | None
    ) -> tuple[Pairs, object] | None:
        """Single-line entry point; re-lexes the lines seen so far.

        Whole blocks should go through tokenize_block, which lexes once.
        """
        if isinstance(state, _LineState):
            lexer, history = state.lexer, state.history
        else:
            lexer, history = self.resolve(language), ""
        if lexer is None:
            return None

        text = history + line + "\n"
        start, end = len(history), len(history) + len(line)
        pairs: Pairs = []
        for index, ttype, value in lexer.get_tokens_unprocessed(text):
            lo = max(index, start)
            hi = min(index + len(value), end)
            if lo < hi:
                _append(pairs, category_for(ttype), text[lo:hi])
        return _whole(pairs, line), _LineState(lexer, text)

    def tokenize_block(self, language: str, lines: tuple[str, ...]) -> list[Pairs] | None:
        """Lex the block in one pass and split the token stream at newlines."""
        lexer = self.resolve(language)
        if lexer is None:
            return None
        rows: list[Pairs] = [[] for _ in lines]
        row = 0
        text = "\n".join(lines) + "\n"
        for _, ttype, value in lexer.get_tokens_unprocessed(text):
            category = category_for(ttype)
            for i, piece in enumerate(value.split("\n")):
                if i:
                    row += 1
                if piece and row < len(rows):
                    _append(rows[row], category, piece)
        return [_whole(pairs, line) for pairs, line in zip(rows, lines)]


def highlight_lines(
    highlighter: Highlighter, language: str, lines: tuple[str, ...]
) -> list[Pairs] | None:
    """Tokenize a whole code block, or None if the language is declined."""
    tokenize_block = getattr(highlighter, "tokenize_block", None)
    if tokenize_block is not None:
        return tokenize_block(language, lines)

    # Line-only services get the previous line's state threaded through.
    state: object | None = None
    rows: list[Pairs] = []
    for line in lines:
        result = highlighter.tokenize_line(language, line, state)
        if result is None:
            return None
        pairs, state = result
        rows.append(pairs)
    return rows
