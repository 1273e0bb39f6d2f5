"""Tests for NoteConfig and notemark.io.settings — settings persistence."""

import json
import logging

import pytest

import notemark.io.settings
from notemark.core.blocks import ParagraphJoin
from notemark.core.config import NoteConfig


class TestNoteConfig:
    def test_defaults(self):
        config = NoteConfig.from_mapping({})
        assert config == NoteConfig()
        assert config.font_size == 14
        assert config.paragraph_join is ParagraphJoin.SPACE
        assert config.theme == "textual-dark"

    def test_valid_values(self):
        config = NoteConfig.from_mapping(
            {
                "font_size": 18,
                "header_rules": False,
                "paragraph_join": "newline",
                "theme": "nord",
                "log_level": "debug",
            }
        )
        assert config == NoteConfig(
            font_size=18,
            header_rules=False,
            paragraph_join=ParagraphJoin.NEWLINE,
            theme="nord",
            log_level="DEBUG",
        )

    @pytest.mark.parametrize(
        "key, value",
        [
            ("font_size", 2),
            ("font_size", "14"),
            ("font_size", True),
            ("header_rules", "yes"),
            ("paragraph_join", "tab"),
            ("theme", ""),
            ("log_level", 10),
        ],
    )
    def test_invalid_value_falls_back_with_warning(self, key, value, caplog):
        with caplog.at_level(logging.WARNING, logger="notemark.core.config"):
            config = NoteConfig.from_mapping({key: value})
        assert config == NoteConfig()
        assert key in caplog.text

    def test_to_mapping_round_trips(self):
        config = NoteConfig(font_size=16, paragraph_join=ParagraphJoin.NEWLINE)
        assert NoteConfig.from_mapping(config.to_mapping()) == config


class TestSettingsFile:
    def test_path_under_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        path = notemark.io.settings.get_config_path()
        assert path == tmp_path / "notemark" / "settings.json"

    def test_missing_file_is_empty(self, tmp_settings):
        assert notemark.io.settings.load_settings() == {}

    def test_corrupt_file_is_empty(self, tmp_settings):
        tmp_settings.write_text("{not json")
        assert notemark.io.settings.load_settings() == {}

    def test_non_object_is_empty(self, tmp_settings):
        tmp_settings.write_text("[1, 2]")
        assert notemark.io.settings.load_settings() == {}

    def test_save_creates_parents(self, tmp_path, monkeypatch):
        target = tmp_path / "deep" / "dir" / "settings.json"
        monkeypatch.setattr("notemark.io.settings.get_config_path", lambda: target)
        notemark.io.settings.save_settings({"a": 1})
        assert json.loads(target.read_text()) == {"a": 1}
        assert list(target.parent.glob("*.tmp")) == []

    def test_save_setting_merges(self, tmp_settings):
        tmp_settings.write_text(json.dumps({"font_size": 12}))
        notemark.io.settings.save_setting("theme", "nord")
        assert json.loads(tmp_settings.read_text()) == {"font_size": 12, "theme": "nord"}
        assert notemark.io.settings.load_setting("theme") == "nord"
        assert notemark.io.settings.load_setting("missing", "dflt") == "dflt"

    def test_save_theme(self, tmp_settings):
        notemark.io.settings.save_theme("dracula")
        assert notemark.io.settings.load_setting("theme") == "dracula"

    def test_load_note_config(self, tmp_settings):
        tmp_settings.write_text(json.dumps({"font_size": 20, "paragraph_join": "newline"}))
        config = notemark.io.settings.load_note_config()
        assert config.font_size == 20
        assert config.paragraph_join is ParagraphJoin.NEWLINE
