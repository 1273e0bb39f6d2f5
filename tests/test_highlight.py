"""Tests for notemark.core.highlight — pygments-backed line tokenizer."""

import time

import pytest
from pygments.token import Token

from notemark.core.highlight import (
    _CATEGORY_BY_TOKEN,
    PygmentsHighlighter,
    category_for,
    highlight_lines,
)
from notemark.core.theme import SYNTAX_CATEGORIES


@pytest.fixture
def highlighter():
    return PygmentsHighlighter()


class TestResolve:
    def test_known_language(self, highlighter):
        assert highlighter.resolve("python") is not None

    def test_alias(self, highlighter):
        assert highlighter.resolve("py") is not None
        assert highlighter.resolve("rs") is not None

    def test_unknown_language_declines(self, highlighter):
        assert highlighter.resolve("nosuchlang") is None
        assert highlighter.tokenize_line("nosuchlang", "x", None) is None

    def test_lexer_cached(self, highlighter):
        assert highlighter.resolve("python") is highlighter.resolve("python")


class TestTokenizeLine:
    @pytest.mark.parametrize(
        "line",
        ["x = 1", "def f(a, b):", "    return a  # trailing", "", "   ", "print('hi')"],
    )
    def test_pairs_reconstruct_line(self, highlighter, line):
        pairs, _ = highlighter.tokenize_line("python", line, None)
        assert "".join(text for _, text in pairs) == line

    def test_categories(self, highlighter):
        pairs, _ = highlighter.tokenize_line("python", "def f():", None)
        assert ("keyword", "def") in pairs
        assert ("function", "f") in pairs

    def test_comment(self, highlighter):
        pairs, _ = highlighter.tokenize_line("python", "# hi", None)
        assert pairs == [("comment", "# hi")]

    def test_adjacent_same_category_merged(self, highlighter):
        pairs, _ = highlighter.tokenize_line("python", "f():", None)
        categories = [c for c, _ in pairs]
        assert all(a != b for a, b in zip(categories, categories[1:]))

    def test_state_carries_open_string(self, highlighter):
        rows = highlight_lines(highlighter, "python", ('s = """abc', 'still"""', "x"))
        assert rows[1] == [("string", 'still"""')]
        assert rows[2] == [("symbol", "x")]


def test_highlight_lines_declines_unknown(highlighter):
    assert highlight_lines(highlighter, "nosuchlang", ("a", "b")) is None


# ─── Whole-block lexing ──────────────────────────────────────────────────────

SAMPLE = (
    "import os",
    "",
    "class Thing:",
    "    \"\"\"Doc",
    "    spans lines.\"\"\"",
    "    def run(self, n=3):",
    "        return [os.sep * i for i in range(n)]  # tail",
)


class _CountingLexer:
    def __init__(self, lexer):
        self.lexer = lexer
        self.calls = 0

    def get_tokens_unprocessed(self, text):
        self.calls += 1
        return self.lexer.get_tokens_unprocessed(text)


class TestTokenizeBlock:
    def test_matches_line_by_line(self, highlighter):
        state = None
        expected = []
        for line in SAMPLE:
            pairs, state = highlighter.tokenize_line("python", line, state)
            expected.append(pairs)
        assert highlighter.tokenize_block("python", SAMPLE) == expected

    def test_rows_reconstruct_lines(self, highlighter):
        rows = highlight_lines(highlighter, "python", SAMPLE)
        assert ["".join(t for _, t in pairs) for pairs in rows] == list(SAMPLE)

    def test_block_lexed_once(self, highlighter):
        counting = _CountingLexer(highlighter.resolve("python"))
        highlighter._lexers["python"] = counting
        highlight_lines(highlighter, "python", SAMPLE * 50)
        assert counting.calls == 1

    def test_long_block_scales_linearly(self, highlighter):
        def elapsed(repeat):
            lines = SAMPLE * repeat
            start = time.perf_counter()
            rows = highlight_lines(highlighter, "python", lines)
            assert len(rows) == len(lines)
            return time.perf_counter() - start

        elapsed(5)  # warm the lexer
        small = elapsed(60)
        large = elapsed(240)
        # 4x the lines; a quadratic pass would take ~16x as long.
        assert large < small * 10 + 0.05

    def test_empty_block(self, highlighter):
        assert highlight_lines(highlighter, "python", ()) == []

    def test_line_only_service_gets_state_threaded(self):
        seen = []

        class LineOnly:
            def tokenize_line(self, language, line, state):
                seen.append(state)
                return [("normal", line)], len(seen)

        rows = highlight_lines(LineOnly(), "x", ("a", "b", "c"))
        assert rows == [[("normal", "a")], [("normal", "b")], [("normal", "c")]]
        assert seen == [None, 1, 2]


@pytest.mark.parametrize(
    "ttype, category",
    [
        (Token.Keyword, "keyword"),
        (Token.Keyword.Constant, "literal"),
        (Token.Name.Builtin, "keyword2"),
        (Token.Name.Function, "function"),
        (Token.Literal.String.Double, "string"),
        (Token.Literal.Number.Integer, "number"),
        (Token.Comment.Single, "comment"),
        (Token.Operator, "operator"),
        (Token.Name, "symbol"),
        (Token.Text, "normal"),
    ],
)
def test_category_for(ttype, category):
    assert category_for(ttype) == category


def test_categories_are_known_syntax_colors():
    produced = {category for _, category in _CATEGORY_BY_TOKEN} | {category_for(Token.Text)}
    assert produced <= set(SYNTAX_CATEGORIES)
