"""Textual app hosting a single NoteView for one file.

// [LAW:locality-or-seam] Theme cycling and reload live here; NoteView only renders.
"""

from __future__ import annotations

import logging
from pathlib import Path

from textual.app import App, ComposeResult

import notemark.io.settings
from notemark.core.config import NoteConfig
from notemark.core.highlight import PygmentsHighlighter
from notemark.core.theme import build_note_colors
from notemark.tui.note_view import NoteView

logger = logging.getLogger(__name__)


class NoteApp(App):
    """Read-only Markdown viewer."""

    BINDINGS = [
        ("r", "reload", "Reload"),
        ("right_square_bracket", "next_theme", "Next theme"),
        ("left_square_bracket", "prev_theme", "Previous theme"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, path: Path, config: NoteConfig | None = None, persist: bool = True):
        super().__init__()
        self._path = Path(path)
        self._config = config or NoteConfig()
        self._persist = persist
        self._view_id = "note-view"
        self.title = self._path.name

    def compose(self) -> ComposeResult:
        yield NoteView(
            self._read(),
            config=self._config,
            highlighter=PygmentsHighlighter(),
            id=self._view_id,
        )

    def on_mount(self) -> None:
        if self._config.theme in self.available_themes:
            self.theme = self._config.theme
        else:
            logger.warning("unknown theme %r, keeping %s", self._config.theme, self.theme)
        self._apply_theme()

    @property
    def note_view(self) -> NoteView:
        return self.query_one(f"#{self._view_id}", NoteView)

    def _read(self) -> str:
        try:
            return self._path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.error("cannot read %s: %s", self._path, exc)
            return ""

    def _apply_theme(self) -> None:
        self.note_view.set_colors(build_note_colors(self.current_theme))

    def watch_theme(self, theme_name: str) -> None:
        if not self.is_running:
            return
        self._apply_theme()

    # ─── Actions ─────────────────────────────────────────────────────────

    def action_reload(self) -> None:
        self.note_view.set_text(self._read())
        logger.info("reloaded %s", self._path)

    def cycle_theme(self, direction: int) -> None:
        """Step to the next (+1) or previous (-1) theme in name order.

        // [LAW:dataflow-not-control-flow] Sets app.theme; watch_theme() does the rest.
        """
        names = sorted(self.available_themes.keys())
        current_index = names.index(self.theme)
        new_name = names[(current_index + direction) % len(names)]
        self.theme = new_name
        if self._persist:
            notemark.io.settings.save_theme(new_name)
        self.notify(f"Theme: {new_name}")

    def action_next_theme(self) -> None:
        self.cycle_theme(1)

    def action_prev_theme(self) -> None:
        self.cycle_theme(-1)
