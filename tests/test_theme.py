"""Tests for notemark.core.theme — Textual theme to layout colors."""

import re

import pytest
from textual.theme import BUILTIN_THEMES

from notemark.core.theme import (
    DEFAULT_THEME,
    SYNTAX_CATEGORIES,
    SYNTAX_PALETTE,
    _hex,
    build_note_colors,
    resolve_theme,
)

HEX = re.compile(r"^#[0-9A-F]{6}([0-9A-F]{2})?$")

COLOR_FIELDS = (
    "text",
    "header",
    "code",
    "bullet",
    "rule",
    "header_rule",
    "code_bg",
    "background",
    "dim",
    "accent",
)


class TestHex:
    def test_hex_passthrough_uppercased(self):
        assert _hex("#abcdef", "#000000") == "#ABCDEF"

    def test_named_color(self):
        assert _hex("red", "#000000") == "#FF0000"

    def test_ansi_default_uses_fallback(self):
        assert _hex("ansi_default", "#123456") == "#123456"

    def test_none_and_garbage_use_fallback(self):
        assert _hex(None, "#123456") == "#123456"
        assert _hex("not a color", "#123456") == "#123456"


@pytest.mark.parametrize("name", sorted(BUILTIN_THEMES))
def test_every_builtin_theme_maps_to_hex(name):
    colors = build_note_colors(BUILTIN_THEMES[name])
    for field in COLOR_FIELDS:
        assert HEX.match(getattr(colors, field)), (name, field)
    for category in SYNTAX_CATEGORIES:
        assert HEX.match(colors.syntax[category]), (name, category)


def test_dark_flag_follows_theme():
    assert build_note_colors(BUILTIN_THEMES["textual-dark"]).dark is True
    assert build_note_colors(BUILTIN_THEMES["textual-light"]).dark is False


def test_header_uses_primary():
    theme = BUILTIN_THEMES["textual-dark"]
    colors = build_note_colors(theme)
    assert colors.header == _hex(theme.primary, "#000000")


def test_unknown_category_falls_back_to_code(colors):
    assert colors.for_category("keyword") == colors.syntax["keyword"]
    assert colors.for_category("bogus") == colors.code


def test_resolve_theme():
    assert resolve_theme("nord") is BUILTIN_THEMES["nord"]
    assert resolve_theme("no-such-theme") is BUILTIN_THEMES[DEFAULT_THEME]
    assert resolve_theme(None) is BUILTIN_THEMES[DEFAULT_THEME]


def test_syntax_map_covers_every_category():
    colors = build_note_colors(BUILTIN_THEMES["textual-dark"])
    assert set(SYNTAX_CATEGORIES) <= set(colors.syntax)
    assert set(colors.syntax) - set(SYNTAX_CATEGORIES) == {"error"}


def test_categories_sharing_a_slot_share_a_color():
    colors = build_note_colors(BUILTIN_THEMES["nord"])
    assert SYNTAX_PALETTE["literal"] == SYNTAX_PALETTE["operator"]
    assert colors.syntax["literal"] == colors.syntax["operator"] == colors.accent


def test_comment_sits_between_text_and_background():
    colors = build_note_colors(BUILTIN_THEMES["textual-dark"])
    assert colors.syntax["comment"] not in (colors.text, colors.background)
    assert colors.header_rule == colors.syntax["comment"]
