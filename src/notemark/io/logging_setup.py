"""Process-wide logging for notemark.

Each note gets one rotating log, named after the note, so viewing the same
file again appends to the history it already has. The level comes from the
note config's log_level unless NOTEMARK_LOG_LEVEL names one.

// [LAW:single-enforcer] Only configure() attaches handlers to the notemark logger.
// [LAW:one-source-of-truth] resolve_level() is the only place a level is decided.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

from notemark.core.config import NoteConfig

ROOT_LOGGER = "notemark"
LOG_DIR_ENV = "NOTEMARK_LOG_DIR"
LOG_LEVEL_ENV = "NOTEMARK_LOG_LEVEL"
DEFAULT_LOG_DIR = "~/.local/share/notemark/logs"

MAX_LOG_BYTES = 20 * 1024 * 1024
LOG_BACKUPS = 5

_CONSOLE_FORMAT = "[%(name)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@dataclass(frozen=True)
class LoggingRuntime:
    level: int
    file_path: Path

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


_RUNTIME: LoggingRuntime | None = None


def log_path_for(note: Path | None) -> Path:
    """<log dir>/<note stem>.log, or notemark.log when there is no note."""
    stem = note.stem if note is not None else ""
    slug = re.sub(r"[^\w-]+", "-", stem).strip("-_") or "notemark"
    log_dir = Path(os.environ.get(LOG_DIR_ENV) or DEFAULT_LOG_DIR).expanduser()
    return log_dir / f"{slug}.log"


def resolve_level(config: NoteConfig) -> int:
    """Environment first, then the settings file; unknown names mean INFO."""
    name = (os.environ.get(LOG_LEVEL_ENV) or config.log_level).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure(
    config: NoteConfig | None = None, note: Path | None = None, *, console: bool = True
) -> LoggingRuntime:
    """Attach the note's file handler (and stderr unless console=False).

    The viewer passes console=False because Textual owns the terminal.
    Repeated calls return the first runtime untouched.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level = resolve_level(config or NoteConfig())
    path = log_path_for(note)
    path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    handlers: list[logging.Handler] = [file_handler]
    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        handlers.append(stream)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    for handler in handlers:
        logger.addHandler(handler)

    _RUNTIME = LoggingRuntime(level=level, file_path=path)
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    return _RUNTIME


def reset() -> None:
    """Detach and close the handlers so configure() can run again."""
    global _RUNTIME
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _RUNTIME = None
