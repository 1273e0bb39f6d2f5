"""Tests for notemark.tui.raster — draw commands to terminal cells."""

from rich.style import Style

from notemark.core.drawlist import RectCommand, TextCommand
from notemark.core.metrics import FontRef, FontRole
from notemark.tui.raster import RULE_GLYPH, rasterize_rows
from tests.harness import strips_to_text

# 10x20 px cells; a 14px cell font is 18px tall, so text at y=20k sits on row k.
CELL_W, CELL_H = 10, 20
BASE = Style(color="#FFFFFF", bgcolor="#000000")
REGULAR = FontRef(FontRole.REGULAR, 14)


def raster(commands, rows=2, cols=8, first_row=0):
    return rasterize_rows(commands, first_row, rows, cols, CELL_W, CELL_H, BASE)


def styles_of(strip):
    """Per-cell styles of a strip."""
    out = []
    for seg in strip._segments:
        out.extend([seg.style] * len(seg.text))
    return out


def test_blank_rows():
    strips = raster([])
    assert strips_to_text(strips) == " " * 8 + "\n" + " " * 8
    assert all(strip.cell_length == 8 for strip in strips)


def test_text_lands_on_row_and_column():
    strips = raster([TextCommand(20, 20, "hi", REGULAR, "#FF0000")])
    assert strips_to_text(strips).split("\n") == [" " * 8, "  hi    "]
    cell = styles_of(strips[1])[2]
    assert cell.color == Style(color="#FF0000").color
    assert cell.bgcolor == BASE.bgcolor


def test_fonts_map_to_bold_and_italic():
    strips = raster(
        [
            TextCommand(0, 0, "b", FontRef(FontRole.BOLD, 14), "#FFFFFF"),
            TextCommand(10, 0, "i", FontRef(FontRole.ITALIC, 14), "#FFFFFF"),
        ],
        rows=1,
    )
    bold, italic = styles_of(strips[0])[:2]
    assert bold.bold and not bold.italic
    assert italic.italic and not italic.bold


def test_thick_rect_paints_background_under_text():
    strips = raster(
        [
            RectCommand(0, 0, 30, 20, "#112233"),
            TextCommand(0, 0, "ab", REGULAR, "#FFFFFF"),
        ],
        rows=1,
    )
    cells = styles_of(strips[0])
    bg = Style(bgcolor="#112233").bgcolor
    assert [c.bgcolor == bg for c in cells[:4]] == [True, True, True, False]
    assert strips_to_text(strips).startswith("ab ")


def test_thin_rect_without_text_is_a_line():
    strips = raster([RectCommand(0, 9, 50, 2, "#FF0000")], rows=1)
    assert strips_to_text(strips) == RULE_GLYPH * 5 + "   "


def test_thin_rect_over_text_strikes_it():
    strips = raster(
        [
            RectCommand(-2, 9, 34, 2, "#FFFFFF"),
            TextCommand(0, 0, "abc", REGULAR, "#FFFFFF"),
        ],
        rows=1,
    )
    assert strips_to_text(strips) == "abc     "
    cells = styles_of(strips[0])
    assert [bool(c.strike) for c in cells[:4]] == [True, True, True, False]


def test_wide_glyphs_take_two_cells():
    strips = raster([TextCommand(0, 0, "日本", REGULAR, "#FFFFFF")], rows=1, cols=6)
    assert strips_to_text(strips) == "日本  "
    assert strips[0].cell_length == 6


def test_text_clipped_at_right_edge():
    strips = raster([TextCommand(50, 0, "overflow", REGULAR, "#FFFFFF")], rows=1)
    assert strips_to_text(strips) == "     ove"


def test_rows_outside_band_ignored():
    commands = [TextCommand(0, 0, "top", REGULAR, "#FFFFFF"), TextCommand(0, 40, "low", REGULAR, "#FFFFFF")]
    strips = raster(commands, rows=1, first_row=2)
    assert strips_to_text(strips) == "low     "


def test_first_col_shifts_everything_left():
    commands = [
        RectCommand(0, 0, 100, 20, "#333333"),
        TextCommand(50, 0, "overflow", REGULAR, "#FFFFFF"),
        RectCommand(0, 29, 80, 2, "#888888"),
    ]
    strips = rasterize_rows(commands, 0, 2, 8, CELL_W, CELL_H, BASE, first_col=5)
    assert strips_to_text(strips).split("\n") == ["overflow", RULE_GLYPH * 3 + " " * 5]
    backgrounds = [s.bgcolor for s in styles_of(strips[0])]
    assert backgrounds[:5] == [Style(bgcolor="#333333").bgcolor] * 5
    assert backgrounds[5:] == [BASE.bgcolor] * 3


def test_text_left_of_first_col_is_cut():
    strips = rasterize_rows(
        [TextCommand(0, 0, "abcdef", REGULAR, "#FFFFFF")], 0, 1, 8, CELL_W, CELL_H, BASE, first_col=4
    )
    assert strips_to_text(strips) == "ef      "
