"""Pytest configuration and shared fixtures for notemark tests."""

from pathlib import Path

import pytest

from notemark.core.config import NoteConfig
from notemark.core.layout import load_assets
from notemark.core.metrics import CellFontProvider
from notemark.core.theme import NoteColors


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_dirs(tmp_path, monkeypatch):
    """Keep settings and log files out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NOTEMARK_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("NOTEMARK_LOG_LEVEL", raising=False)


@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    """Redirect settings file to a temp directory."""
    settings_file = tmp_path / "settings.json"
    monkeypatch.setattr(
        "notemark.io.settings.get_config_path",
        lambda: settings_file,
    )
    return settings_file


# ---------------------------------------------------------------------------
# Layout fixtures
# ---------------------------------------------------------------------------

SYNTAX = {
    "normal": "#E0E0E0",
    "symbol": "#E0E0E0",
    "comment": "#6A6A6A",
    "keyword": "#0178D4",
    "keyword2": "#004578",
    "number": "#FFA62B",
    "literal": "#FF0088",
    "string": "#4EBF71",
    "operator": "#FF0088",
    "function": "#004578",
}


@pytest.fixture
def colors() -> NoteColors:
    return NoteColors(
        text="#E0E0E0",
        header="#0178D4",
        code="#4EBF71",
        bullet="#FFA62B",
        rule="#7F7F7F",
        header_rule="#6A6A6A",
        code_bg="#2B2B2B",
        background="#1E1E1E",
        dim="#7F7F7F",
        accent="#FF0088",
        dark=True,
        syntax=dict(SYNTAX),
    )


@pytest.fixture
def config() -> NoteConfig:
    return NoteConfig()


@pytest.fixture
def assets(config, colors):
    """Layout assets at the default 14px base size with terminal cell metrics."""
    return load_assets(config, colors, provider=CellFontProvider())


@pytest.fixture
def write_note(tmp_path):
    """Write a Markdown file and return its path."""

    def _write(text: str, name: str = "note.md") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
