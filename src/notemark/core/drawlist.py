"""Draw commands produced by one layout pass.

Coordinates are content-space pixels, not yet offset by scroll position.
A LayoutResult is immutable once returned; the owning view keeps it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from notemark.core.metrics import FontRef


class DrawKind(Enum):
    TEXT = "text"
    RECT = "rect"


@dataclass(frozen=True)
class TextCommand:
    x: float
    y: float
    text: str
    font: FontRef
    color: str

    kind = DrawKind.TEXT

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "x": self.x,
            "y": self.y,
            "text": self.text,
            "font": {"role": self.font.role.value, "size": self.font.size},
            "color": self.color,
        }


@dataclass(frozen=True)
class RectCommand:
    x: float
    y: float
    w: float
    h: float
    color: str

    kind = DrawKind.RECT

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
            "color": self.color,
        }


DrawCommand = TextCommand | RectCommand


@dataclass(frozen=True)
class LayoutResult:
    commands: tuple[DrawCommand, ...] = ()
    content_width: float = 0.0
    content_height: float = 0.0

    def to_dict(self) -> dict:
        return {
            "content_width": self.content_width,
            "content_height": self.content_height,
            "commands": [cmd.to_dict() for cmd in self.commands],
        }
