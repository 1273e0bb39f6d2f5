"""Paint draw commands onto a grid of terminal cells.

The layout compiler speaks pixels; a terminal only has cells. Each cell is
cell_w x cell_h pixels and a command lands on the cells whose centers it
covers. Painting runs in three passes so emission order inside a block does
not matter:

1. thick rects (code backgrounds, checkboxes, inline code) set cell backgrounds
2. text commands write glyphs, keeping the background underneath
3. thin rects (under half a cell tall) strike through text they cross,
   otherwise draw a horizontal line

// [LAW:dataflow-not-control-flow] rasterize_rows() is pure: commands in, Strips out.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

from rich.cells import cell_len
from rich.segment import Segment
from rich.style import Style
from textual.strip import Strip

from notemark.core.drawlist import DrawCommand, RectCommand, TextCommand
from notemark.core.metrics import Font, FontRef, FontRole
from notemark.core.viewport import command_height

RULE_GLYPH = "─"
_EPS = 1e-6

_FACE_STYLES: dict[FontRole, Style] = {
    FontRole.REGULAR: Style(),
    FontRole.BOLD: Style(bold=True),
    FontRole.ITALIC: Style(italic=True),
    FontRole.CODE: Style(),
}

_STRIKE = Style(strike=True)


def _covered(start: float, length: float, cell: float) -> range:
    """Cells whose center lies inside [start, start + length).

    A span too small to cover any center still claims the cell holding its
    own center.
    """
    lo = math.ceil((start - cell / 2) / cell - _EPS)
    hi = math.ceil((start + length - cell / 2) / cell - _EPS)
    if hi <= lo:
        mid = math.floor((start + length / 2) / cell + _EPS)
        return range(mid, mid + 1)
    return range(lo, hi)


def _shift(cols: range, first_col: int) -> range:
    return range(cols.start - first_col, cols.stop - first_col)


class _Grid:
    """Row-major cells for a band of rows: one glyph and one Style per cell."""

    def __init__(self, first_row: int, row_count: int, cols: int, base_style: Style) -> None:
        self.first_row = first_row
        self.cols = cols
        self.chars = [[" "] * cols for _ in range(row_count)]
        self.styles = [[base_style] * cols for _ in range(row_count)]

    def _row(self, row: int) -> int | None:
        local = row - self.first_row
        if 0 <= local < len(self.chars):
            return local
        return None

    def fill(self, rows: range, cols: range, style: Style) -> None:
        for row in rows:
            local = self._row(row)
            if local is None:
                continue
            line = self.styles[local]
            for col in cols:
                if 0 <= col < self.cols:
                    line[col] = line[col] + style

    def put(self, row: int, col: int, text: str, style: Style) -> None:
        local = self._row(row)
        if local is None:
            return
        chars = self.chars[local]
        styles = self.styles[local]
        for ch in text:
            width = cell_len(ch)
            if width == 0:
                continue
            if col < 0:
                col += width
                continue
            if col + width > self.cols:
                break
            if chars[col] == "" and col > 0:
                # Overwriting the right half of a wide glyph.
                chars[col - 1] = " "
            chars[col] = ch
            styles[col] = styles[col] + style
            if width == 2:
                chars[col + 1] = ""
                styles[col + 1] = styles[col]
            col += width

    def has_text(self, row: int, cols: range) -> bool:
        local = self._row(row)
        if local is None:
            return False
        chars = self.chars[local]
        return any(0 <= c < self.cols and chars[c].strip() for c in cols)

    def strike(self, row: int, cols: range) -> None:
        local = self._row(row)
        if local is None:
            return
        chars = self.chars[local]
        styles = self.styles[local]
        for col in cols:
            if 0 <= col < self.cols and chars[col].strip():
                styles[col] = styles[col] + _STRIKE

    def to_strips(self) -> list[Strip]:
        strips = []
        for chars, styles in zip(self.chars, self.styles):
            segments: list[Segment] = []
            run: list[str] = []
            run_style: Style | None = None
            for ch, style in zip(chars, styles):
                if ch == "":
                    continue
                if style != run_style and run:
                    segments.append(Segment("".join(run), run_style))
                    run = []
                run_style = style
                run.append(ch)
            if run:
                segments.append(Segment("".join(run), run_style))
            strips.append(Strip(segments, self.cols))
        return strips


def _text_row(cmd: TextCommand, cell_h: float, fonts: Mapping[FontRef, Font] | None) -> int:
    # The row holding the glyph's vertical center.
    return math.floor((cmd.y + command_height(cmd, fonts) / 2) / cell_h + _EPS)


def rasterize_rows(
    commands: Iterable[DrawCommand],
    first_row: int,
    row_count: int,
    cols: int,
    cell_w: float,
    cell_h: float,
    base_style: Style,
    fonts: Mapping[FontRef, Font] | None = None,
    first_col: int = 0,
) -> list[Strip]:
    """Render rows [first_row, first_row + row_count) as Strips of cols cells.

    first_col is the document column drawn at the strip's left edge, so a
    horizontally scrolled view paints only what it shows.
    """
    grid = _Grid(first_row, row_count, cols, base_style)
    thick: list[RectCommand] = []
    thin: list[RectCommand] = []
    texts: list[TextCommand] = []
    for cmd in commands:
        if isinstance(cmd, TextCommand):
            texts.append(cmd)
        elif cmd.h < cell_h / 2:
            thin.append(cmd)
        else:
            thick.append(cmd)

    for rect in thick:
        grid.fill(
            _covered(rect.y, rect.h, cell_h),
            _shift(_covered(rect.x, rect.w, cell_w), first_col),
            Style(bgcolor=rect.color),
        )

    for cmd in texts:
        face = _FACE_STYLES[cmd.font.role]
        grid.put(
            _text_row(cmd, cell_h, fonts),
            math.floor(cmd.x / cell_w + _EPS) - first_col,
            cmd.text,
            face + Style(color=cmd.color),
        )

    for rect in thin:
        row = math.floor((rect.y + rect.h / 2) / cell_h + _EPS)
        cols_range = _shift(_covered(rect.x, rect.w, cell_w), first_col)
        if grid.has_text(row, cols_range):
            grid.strike(row, cols_range)
        else:
            start = max(cols_range.start, 0)
            stop = min(cols_range.stop, cols)
            if stop > start:
                grid.put(row, start, RULE_GLYPH * (stop - start), Style(color=rect.color))

    return grid.to_strips()
