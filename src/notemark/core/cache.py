"""Single-entry memo of the most recent layout pass.

The owning view asks for a layout every frame; the parse + layout work only
reruns when the document version, the wrap width or the theme version moves.

// [LAW:single-enforcer] LayoutCache.get() is the only path from text to a LayoutResult in views.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from notemark.core.drawlist import LayoutResult

logger = logging.getLogger(__name__)

CacheKey = tuple[int, float, int]


@dataclass(frozen=True)
class _Entry:
    key: CacheKey
    result: LayoutResult


class LayoutCache:
    """Keyed on (version, width, theme_version); holds exactly one result."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entry: _Entry | None = None
        self.misses = 0

    def get(
        self,
        text: str,
        version: int,
        width: float,
        theme_version: int,
        compute: Callable[[str, float], LayoutResult],
    ) -> LayoutResult:
        key = (version, width, theme_version)
        with self._lock:
            entry = self._entry
            if entry is not None and entry.key == key:
                return entry.result
            logger.debug(
                "layout cache miss: version=%d width=%s theme_version=%d",
                version,
                width,
                theme_version,
            )
            result = compute(text, width)
            self._entry = _Entry(key, result)
            self.misses += 1
            return result

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None

    @property
    def current(self) -> LayoutResult | None:
        entry = self._entry
        return entry.result if entry is not None else None
