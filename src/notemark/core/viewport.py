"""Cull a draw list down to the commands near the visible window.

Layout emits commands block by block in increasing y, so the scan stops at
the first command below the window instead of walking the whole document.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from notemark.core.drawlist import DrawCommand, RectCommand
from notemark.core.metrics import Font, FontRef, cell_font

DEFAULT_BUFFER = 100  # px kept above and below the window


def command_height(cmd: DrawCommand, fonts: Mapping[FontRef, Font] | None = None) -> float:
    if isinstance(cmd, RectCommand):
        return cmd.h
    font = fonts.get(cmd.font) if fonts is not None else None
    if font is None:
        font = cell_font(cmd.font.role, cmd.font.size)
    return font.line_height()


def visible_commands(
    commands: Iterable[DrawCommand],
    scroll_y: float,
    viewport_height: float,
    buffer: float = DEFAULT_BUFFER,
    fonts: Mapping[FontRef, Font] | None = None,
) -> Iterator[DrawCommand]:
    """Yield commands whose vertical extent meets the buffered window."""
    top = scroll_y - buffer
    bottom = scroll_y + viewport_height + buffer
    for cmd in commands:
        if cmd.y > bottom:
            break
        if cmd.y + command_height(cmd, fonts) < top:
            continue
        yield cmd
