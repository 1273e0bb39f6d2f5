"""Colors the layout compiler needs, derived from a Textual Theme.

// [LAW:one-source-of-truth] All theme-derived colors live in NoteColors.
// [LAW:single-enforcer] build_note_colors() is the sole Theme -> NoteColors mapping.

A theme change is treated like a content change: the owning view bumps its
theme version and reloads layout assets with a fresh NoteColors.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from textual.color import Color, ColorParseError
from textual.theme import BUILTIN_THEMES, Theme

DEFAULT_THEME = "textual-dark"

# Highlighter category -> palette slot it is painted with.
SYNTAX_PALETTE: dict[str, str] = {
    "normal": "foreground",
    "symbol": "foreground",
    "comment": "faint",
    "keyword": "primary",
    "keyword2": "secondary",
    "number": "warning",
    "literal": "accent",
    "string": "success",
    "operator": "accent",
    "function": "secondary",
}
SYNTAX_CATEGORIES: tuple[str, ...] = tuple(SYNTAX_PALETTE)

# Theme attribute -> (value on dark themes, value on light themes) when unset.
_THEME_DEFAULTS: dict[str, tuple[str, str]] = {
    "primary": ("#0178D4", "#0178D4"),
    "secondary": ("#0178D4", "#0178D4"),
    "accent": ("#0178D4", "#0178D4"),
    "warning": ("#FFA62B", "#FFA62B"),
    "success": ("#4EBF71", "#4EBF71"),
    "error": ("#BA3C5B", "#BA3C5B"),
    "foreground": ("#E0E0E0", "#1E1E1E"),
    "background": ("#1E1E1E", "#E0E0E0"),
    "surface": ("#2B2B2B", "#D0D0D0"),
}


@dataclass(frozen=True)
class NoteColors:
    text: str
    header: str
    code: str
    bullet: str
    rule: str
    header_rule: str
    code_bg: str
    background: str
    dim: str
    accent: str
    dark: bool = True
    syntax: dict[str, str] = field(default_factory=dict)

    def for_category(self, category: str) -> str:
        """Color for a highlighter category, default code color if unknown."""
        return self.syntax.get(category, self.code)


def _hex(value: str | None, fallback: str) -> str:
    """A theme color as #RRGGBB; unset, terminal-default or unparseable gives fallback."""
    if not value or value == "ansi_default":
        return fallback
    try:
        return Color.parse(value).hex
    except ColorParseError:
        return fallback


def _blend(a: str, b: str, factor: float) -> str:
    return Color.parse(a).blend(Color.parse(b), factor).hex


def _palette(textual_theme: Theme) -> dict[str, str]:
    pick = 0 if textual_theme.dark else 1
    palette = {
        slot: _hex(getattr(textual_theme, slot, None), defaults[pick])
        for slot, defaults in _THEME_DEFAULTS.items()
    }
    palette["dim"] = _blend(palette["foreground"], palette["background"], 0.5)
    palette["faint"] = _blend(palette["foreground"], palette["background"], 0.4)
    return palette


def build_note_colors(textual_theme: Theme) -> NoteColors:
    """Map a Textual Theme to NoteColors; every field is a hex string, never None."""
    palette = _palette(textual_theme)
    syntax = {category: palette[slot] for category, slot in SYNTAX_PALETTE.items()}

    return NoteColors(
        text=palette["foreground"],
        header=syntax["keyword"],
        code=syntax["string"],
        bullet=syntax["number"],
        rule=palette["dim"],
        header_rule=syntax["comment"],
        code_bg=palette["surface"],
        background=palette["background"],
        dim=palette["dim"],
        accent=palette["accent"],
        dark=textual_theme.dark,
        syntax=syntax | {"error": palette["error"]},
    )


def resolve_theme(name: str | None) -> Theme:
    """Look up a built-in Textual theme by name, falling back to the default."""
    return BUILTIN_THEMES.get(name or DEFAULT_THEME, BUILTIN_THEMES[DEFAULT_THEME])
