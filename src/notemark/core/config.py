"""Rendering configuration.

NoteConfig is the validated view of the user's settings. Every field has a
default; bad values are logged and replaced, never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from notemark.core.blocks import ParagraphJoin
from notemark.core.theme import DEFAULT_THEME

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 6
MAX_FONT_SIZE = 72


@dataclass(frozen=True)
class NoteConfig:
    font_size: int = 14
    header_rules: bool = True  # thin rule under H1 / H2
    paragraph_join: ParagraphJoin = ParagraphJoin.SPACE
    theme: str = DEFAULT_THEME
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, data: Mapping) -> "NoteConfig":
        """Build from a settings dict, falling back per key on invalid input."""
        defaults = cls()

        font_size = data.get("font_size", defaults.font_size)
        if (
            isinstance(font_size, bool)
            or not isinstance(font_size, int)
            or not MIN_FONT_SIZE <= font_size <= MAX_FONT_SIZE
        ):
            logger.warning("invalid font_size %r, using %d", font_size, defaults.font_size)
            font_size = defaults.font_size

        header_rules = data.get("header_rules", defaults.header_rules)
        if not isinstance(header_rules, bool):
            logger.warning("invalid header_rules %r, using %s", header_rules, defaults.header_rules)
            header_rules = defaults.header_rules

        raw_join = data.get("paragraph_join", defaults.paragraph_join.value)
        try:
            paragraph_join = ParagraphJoin(raw_join)
        except ValueError:
            logger.warning("invalid paragraph_join %r, using %s", raw_join, defaults.paragraph_join.value)
            paragraph_join = defaults.paragraph_join

        theme = data.get("theme", defaults.theme)
        if not isinstance(theme, str) or not theme:
            logger.warning("invalid theme %r, using %s", theme, defaults.theme)
            theme = defaults.theme

        log_level = data.get("log_level", defaults.log_level)
        if not isinstance(log_level, str):
            logger.warning("invalid log_level %r, using %s", log_level, defaults.log_level)
            log_level = defaults.log_level

        return cls(
            font_size=font_size,
            header_rules=header_rules,
            paragraph_join=paragraph_join,
            theme=theme,
            log_level=log_level.upper(),
        )

    def to_mapping(self) -> dict:
        return {
            "font_size": self.font_size,
            "header_rules": self.header_rules,
            "paragraph_join": self.paragraph_join.value,
            "theme": self.theme,
            "log_level": self.log_level,
        }
