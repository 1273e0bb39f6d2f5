"""Textual in-process test harness for notemark.

Re-exports all public API for convenient imports:
    from tests.harness import run_app, press_and_settle, view_text, ...
"""

from tests.harness.app_runner import run_app
from tests.harness.interactions import (
    press_and_settle,
    press_sequence,
    resize_and_settle,
)
from tests.harness.content import (
    strips_to_text,
    view_lines,
    view_text,
)

__all__ = [
    "run_app",
    "press_and_settle",
    "press_sequence",
    "resize_and_settle",
    "strips_to_text",
    "view_lines",
    "view_text",
]
