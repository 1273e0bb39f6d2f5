"""CLI entry point for notemark."""

import argparse
import dataclasses
import json
import logging
import sys
from enum import Enum
from pathlib import Path

import notemark.core.blocks
import notemark.core.layout
import notemark.io.logging_setup
import notemark.io.settings
from notemark.core.blocks import ParagraphJoin
from notemark.core.highlight import PygmentsHighlighter
from notemark.core.theme import build_note_colors, resolve_theme

logger = logging.getLogger(__name__)

DEFAULT_DUMP_WIDTH = 800


def block_to_dict(block) -> dict:
    """JSON-ready view of a block: enums by value, tuples as lists."""
    out = {}
    for f in dataclasses.fields(block):
        value = getattr(block, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, tuple):
            value = list(value)
        out[f.name] = value
    return out


def _dump(text: str, config, what: str, width: float, out) -> None:
    blocks = notemark.core.blocks.parse_blocks(text, paragraph_join=config.paragraph_join)
    if what == "blocks":
        for block in blocks:
            out.write(json.dumps(block_to_dict(block)) + "\n")
        return
    colors = build_note_colors(resolve_theme(config.theme))
    assets = notemark.core.layout.load_assets(config, colors, highlighter=PygmentsHighlighter())
    result = notemark.core.layout.compute_layout(blocks, width, assets)
    out.write(json.dumps(result.to_dict(), indent=2) + "\n")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Terminal Markdown note viewer")
    parser.add_argument("file", type=str, help="Markdown file to render")
    parser.add_argument(
        "--width",
        type=float,
        default=None,
        help=f"Layout width in pixels for --dump (default: {DEFAULT_DUMP_WIDTH})",
    )
    parser.add_argument(
        "--dump",
        choices=["blocks", "commands"],
        default=None,
        help="Print parsed blocks or draw commands as JSON instead of starting the viewer",
    )
    parser.add_argument(
        "--theme", type=str, default=None, help="Textual theme name (default: from settings)"
    )
    parser.add_argument(
        "--paragraph-join",
        choices=[j.value for j in ParagraphJoin],
        default=None,
        help="Join paragraph lines with a space (reflow) or keep line breaks",
    )
    args = parser.parse_args(argv)

    path = Path(args.file)
    if not path.is_file():
        print(f"notemark: no such file: {path}", file=sys.stderr)
        return 1

    config = notemark.io.settings.load_note_config()
    overrides = {}
    if args.theme:
        overrides["theme"] = args.theme
    if args.paragraph_join:
        overrides["paragraph_join"] = ParagraphJoin(args.paragraph_join)
    if overrides:
        config = dataclasses.replace(config, **overrides)

    text = path.read_text(encoding="utf-8", errors="replace")

    if args.dump:
        _dump(text, config, args.dump, args.width or DEFAULT_DUMP_WIDTH, sys.stdout)
        return 0

    runtime = notemark.io.logging_setup.configure(config, path, console=False)
    logger.info("logging to %s", runtime.file_path)

    # Deferred: the Textual import is only paid when the viewer starts.
    from notemark.tui.app import NoteApp

    NoteApp(path, config=config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
