"""Scrollable terminal view of one Markdown document.

NoteView owns the document text, the layout assets and a LayoutCache. Its
width in cells becomes a pixel wrap width for the layout compiler; each
visible row is culled from the draw list and painted by the rasterizer.

// [LAW:one-source-of-truth] (version, width, theme_version) keys every cached layout; rows add the scroll offset.
// [LAW:single-enforcer] Only set_text() bumps the version, only set_colors() the theme version.
"""

from __future__ import annotations

import logging
import math

from rich.segment import Segment
from rich.style import Style
from textual.cache import LRUCache
from textual.geometry import Size
from textual.scroll_view import ScrollView
from textual.strip import Strip

import notemark.core.blocks
import notemark.core.layout
import notemark.core.viewport
import notemark.tui.raster
from notemark.core.cache import LayoutCache
from notemark.core.config import NoteConfig
from notemark.core.drawlist import LayoutResult
from notemark.core.highlight import Highlighter
from notemark.core.layout import LayoutAssets
from notemark.core.metrics import FontProvider
from notemark.core.theme import NoteColors, build_note_colors, resolve_theme

logger = logging.getLogger(__name__)

EMPTY_HINT = "empty document"


class NoteView(ScrollView):
    """Virtual-rendering document display using the Line API."""

    DEFAULT_CSS = """
    NoteView {
        height: 1fr;
        overflow-y: scroll;
        overflow-x: auto;
    }
    """

    def __init__(
        self,
        text: str = "",
        config: NoteConfig | None = None,
        colors: NoteColors | None = None,
        highlighter: Highlighter | None = None,
        provider: FontProvider | None = None,
        *,
        id: str | None = None,
    ) -> None:
        super().__init__(id=id)
        self._config = config or NoteConfig()
        self._highlighter = highlighter
        self._provider = provider
        self._text = text
        self._version = 0
        self._theme_version = 0
        self._cache = LayoutCache()
        self._line_cache: LRUCache = LRUCache(1024)
        self._assets: LayoutAssets = self._load_assets(
            colors or build_note_colors(resolve_theme(self._config.theme))
        )

    # ─── Inputs ──────────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return self._text

    @property
    def version(self) -> int:
        return self._version

    @property
    def theme_version(self) -> int:
        return self._theme_version

    @property
    def assets(self) -> LayoutAssets:
        return self._assets

    def set_text(self, text: str) -> None:
        """Replace the document; every text change is a new version."""
        self._text = text
        self._version += 1
        self._invalidate()

    def set_colors(self, colors: NoteColors) -> None:
        """Reload layout assets for a new palette."""
        self._assets = self._load_assets(colors)
        self._theme_version += 1
        logger.debug("theme version -> %d", self._theme_version)
        self._invalidate()

    def _load_assets(self, colors: NoteColors) -> LayoutAssets:
        return notemark.core.layout.load_assets(
            self._config, colors, provider=self._provider, highlighter=self._highlighter
        )

    def _invalidate(self) -> None:
        self._line_cache.clear()
        if self.is_mounted:
            self._update_virtual_size()
            self.refresh()

    # ─── Geometry ────────────────────────────────────────────────────────

    @property
    def cell_size(self) -> tuple[float, float]:
        """Pixel size of one terminal cell: the body font's advance and line height."""
        regular = self._assets.fonts.regular
        return regular.width_of(" "), regular.line_height()

    @property
    def _content_width(self) -> int:
        """Columns available to layout; one is left for the scrollbar gutter."""
        return max(1, self.scrollable_content_region.width - 1)

    @property
    def layout_width(self) -> float:
        cell_w, _ = self.cell_size
        return self._content_width * cell_w

    def _compute(self, text: str, width: float) -> LayoutResult:
        blocks = notemark.core.blocks.parse_blocks(
            text, paragraph_join=self._config.paragraph_join
        )
        return notemark.core.layout.compute_layout(blocks, width, self._assets)

    def layout_result(self) -> LayoutResult:
        return self._cache.get(
            self._text, self._version, self.layout_width, self._theme_version, self._compute
        )

    def _update_virtual_size(self) -> None:
        result = self.layout_result()
        cell_w, cell_h = self.cell_size
        rows = math.ceil(result.content_height / cell_h) if result.commands else 0
        # Code lines never wrap; the view scrolls sideways to reach their ends.
        cols = max(self._content_width, math.ceil(result.content_width / cell_w))
        self.virtual_size = Size(cols, rows)

    def on_mount(self) -> None:
        self._update_virtual_size()

    def on_resize(self, event) -> None:
        self._line_cache.clear()
        self._update_virtual_size()

    # ─── Line API ────────────────────────────────────────────────────────

    @property
    def _base_style(self) -> Style:
        colors = self._assets.colors
        return Style(color=colors.text, bgcolor=colors.background)

    def _render_empty(self, y: int, width: int) -> Strip:
        if y != self.scrollable_content_region.height // 2:
            return Strip.blank(width, self._base_style)
        left = max(0, (width - len(EMPTY_HINT)) // 2)
        hint = Style(color=self._assets.colors.dim, bgcolor=self._assets.colors.background)
        strip = Strip([Segment(" " * left, self._base_style), Segment(EMPTY_HINT, hint)])
        return strip.crop_extend(0, width, self._base_style)

    def render_line(self, y: int) -> Strip:
        """Line API: render viewport row y, starting at the scrolled-to column."""
        scroll_x, scroll_y = self.scroll_offset
        actual_y = scroll_y + y
        width = self.scrollable_content_region.width
        result = self.layout_result()

        if not result.commands:
            return self._render_empty(y, width).apply_style(self.rich_style)

        key = (actual_y, scroll_x, width, self._version, self._theme_version)
        if key in self._line_cache:
            return self._line_cache[key]

        cell_w, cell_h = self.cell_size
        fonts = self._assets.fonts.by_ref()
        near = notemark.core.viewport.visible_commands(
            result.commands, actual_y * cell_h, cell_h, fonts=fonts
        )
        (strip,) = notemark.tui.raster.rasterize_rows(
            near,
            actual_y,
            1,
            width,
            cell_w,
            cell_h,
            self._base_style,
            fonts=fonts,
            first_col=scroll_x,
        )
        strip = strip.apply_style(self.rich_style)
        self._line_cache[key] = strip
        return strip
