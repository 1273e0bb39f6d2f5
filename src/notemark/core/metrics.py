"""Font metric service consumed by the layout compiler.

The compiler never measures glyphs itself. It asks a FontProvider for a Font
per (role, size) and then only calls width_of()/line_height() on it. Fonts
are resolved once per asset load (theme change), never per layout pass.

CellFontProvider is the built-in provider: a monospace metric over terminal
cells, using Rich's cell_len so wide (CJK, emoji) characters count double.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rich.cells import cell_len


class FontRole(Enum):
    REGULAR = "regular"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"


@dataclass(frozen=True)
class FontRef:
    """Logical font identifier carried by text draw commands."""

    role: FontRole
    size: int


class Font(Protocol):
    ref: FontRef

    def width_of(self, text: str) -> float:
        ...

    def line_height(self) -> float:
        ...


class FontProvider(Protocol):
    def load(self, role: FontRole, size: int) -> Font:
        ...


# ─── Terminal cell metrics ───────────────────────────────────────────────────

ADVANCE_RATIO = 0.6  # cell width / font size
LINE_HEIGHT_RATIO = 1.25  # line height / font size


@dataclass(frozen=True)
class CellFont:
    ref: FontRef
    advance: float
    height: float

    def width_of(self, text: str) -> float:
        return cell_len(text) * self.advance

    def line_height(self) -> float:
        return self.height


@functools.lru_cache(maxsize=None)
def cell_font(role: FontRole, size: int) -> CellFont:
    """Memoized by (role, size): each pair is built exactly once."""
    return CellFont(
        ref=FontRef(role, size),
        advance=size * ADVANCE_RATIO,
        height=float(round(size * LINE_HEIGHT_RATIO)),
    )


class CellFontProvider:
    def load(self, role: FontRole, size: int) -> Font:
        return cell_font(role, size)


# ─── Resolved font set ───────────────────────────────────────────────────────

# Size offsets over the base size for header levels 1..5.
HEADER_SIZE_OFFSETS: tuple[int, ...] = (10, 6, 4, 2, 0)
HEADER_FONT_LEVELS = len(HEADER_SIZE_OFFSETS)


@dataclass(frozen=True)
class FontSet:
    regular: Font
    bold: Font
    italic: Font
    code: Font
    # headers[level - 1][role]; code spans in headers use the header's regular face
    headers: tuple[dict[FontRole, Font], ...]

    def body(self, role: FontRole) -> Font:
        return {
            FontRole.REGULAR: self.regular,
            FontRole.BOLD: self.bold,
            FontRole.ITALIC: self.italic,
            FontRole.CODE: self.code,
        }[role]

    def header(self, level: int, role: FontRole = FontRole.REGULAR) -> Font:
        level = max(1, min(level, HEADER_FONT_LEVELS))
        faces = self.headers[level - 1]
        return faces.get(role, faces[FontRole.REGULAR])

    def by_ref(self) -> dict[FontRef, Font]:
        """Index every resolved font by its ref, for consumers of draw commands."""
        fonts = [self.regular, self.bold, self.italic, self.code]
        for faces in self.headers:
            fonts.extend(faces.values())
        return {f.ref: f for f in fonts}


def load_fonts(provider: FontProvider, base_size: int) -> FontSet:
    """Resolve every role the layout needs for one base font size."""
    headers = []
    for offset in HEADER_SIZE_OFFSETS:
        size = base_size + offset
        regular = provider.load(FontRole.REGULAR, size)
        headers.append(
            {
                FontRole.REGULAR: regular,
                FontRole.BOLD: provider.load(FontRole.BOLD, size),
                FontRole.ITALIC: provider.load(FontRole.ITALIC, size),
                FontRole.CODE: regular,
            }
        )
    return FontSet(
        regular=provider.load(FontRole.REGULAR, base_size),
        bold=provider.load(FontRole.BOLD, base_size),
        italic=provider.load(FontRole.ITALIC, base_size),
        code=provider.load(FontRole.CODE, base_size),
        headers=tuple(headers),
    )
