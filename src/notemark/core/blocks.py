"""Parse raw Markdown text into typed block nodes.

Block kinds:
- HEADER: ATX heading (`# Title`), level from the `#` count
- PARAGRAPH: plain text lines, merged until a blank line
- LIST: ordered (`1. item`) or unordered (`- item`) item, optionally a task
- CODE: fenced block, raw lines plus an optional language tag
- RULE: horizontal rule (`---`)

Single stateful pass over lines. The first matching rule wins; lines that
match nothing fall through to the paragraph handler. Inside a fence no rule
runs at all, every line is data until the closing marker.

// [LAW:dataflow-not-control-flow] parse_blocks() is a pure function: text in, blocks out.
// [LAW:one-source-of-truth] All block-level syntax lives in DEFAULT_BLOCK_RULES.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


# ─── Data model ──────────────────────────────────────────────────────────────


class BlockKind(Enum):
    HEADER = "header"
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"
    RULE = "rule"


class ParagraphJoin(Enum):
    """How continuation lines of a paragraph are glued together."""

    SPACE = "space"  # reflow: "a\nb" -> "a b"
    NEWLINE = "newline"  # keep manual breaks: "a\nb" -> "a\nb"

    @property
    def separator(self) -> str:
        return " " if self is ParagraphJoin.SPACE else "\n"


MAX_HEADER_LEVEL = 6
TAB_WIDTH = 4
INDENT_PER_LEVEL = 2


@dataclass(frozen=True)
class HeaderBlock:
    text: str
    level: int
    source_line: int = 0
    kind: BlockKind = field(default=BlockKind.HEADER, init=False)


@dataclass(frozen=True)
class ParagraphBlock:
    text: str
    source_line: int = 0
    kind: BlockKind = field(default=BlockKind.PARAGRAPH, init=False)


@dataclass(frozen=True)
class ListBlock:
    text: str
    ordered: bool = False
    number: int | None = None  # set iff ordered
    nest_level: int = 0
    checked: bool | None = None  # None = not a task item
    source_line: int = 0
    kind: BlockKind = field(default=BlockKind.LIST, init=False)


@dataclass(frozen=True)
class CodeBlock:
    lines: tuple[str, ...] = ()
    language: str | None = None
    source_line: int = 0
    kind: BlockKind = field(default=BlockKind.CODE, init=False)


@dataclass(frozen=True)
class RuleBlock:
    source_line: int = 0
    kind: BlockKind = field(default=BlockKind.RULE, init=False)


Block = HeaderBlock | ParagraphBlock | ListBlock | CodeBlock | RuleBlock


# ─── Parse state ─────────────────────────────────────────────────────────────


@dataclass
class ParseState:
    """Mutable scan state shared by the rule handlers."""

    paragraph_join: ParagraphJoin = ParagraphJoin.SPACE
    blocks: list[Block] = field(default_factory=list)
    in_fence: bool = False
    fence_marker: str = ""
    fence_index: int = -1  # position of the open CodeBlock in blocks
    fence_lines: list[str] = field(default_factory=list)
    last_was_blank: bool = False

    def open_fence(self, marker: str, language: str | None, line_no: int) -> None:
        self.in_fence = True
        self.fence_marker = marker
        self.fence_index = len(self.blocks)
        self.fence_lines = []
        self.blocks.append(CodeBlock(language=language, source_line=line_no))

    def close_fence(self) -> None:
        """Materialize the accumulated lines into the open CodeBlock."""
        opened = self.blocks[self.fence_index]
        self.blocks[self.fence_index] = dataclasses.replace(
            opened, lines=tuple(self.fence_lines)
        )
        self.in_fence = False
        self.fence_marker = ""
        self.fence_index = -1
        self.fence_lines = []


Handler = Callable[[ParseState, re.Match, int], None]


@dataclass(frozen=True)
class BlockRule:
    pattern: re.Pattern
    handler: Handler


# ─── Rule handlers ───────────────────────────────────────────────────────────


def _nest_level(spaces: str) -> int:
    return len(spaces) // INDENT_PER_LEVEL


def handle_code_open(state: ParseState, m: re.Match, line_no: int) -> None:
    # "Lua" -> "lua", "" -> None
    language = m.group(2).lower() or None
    state.open_fence(m.group(1), language, line_no)
    state.last_was_blank = False


def handle_header(state: ParseState, m: re.Match, line_no: int) -> None:
    level = min(len(m.group(1)), MAX_HEADER_LEVEL)
    state.blocks.append(HeaderBlock(text=m.group(2), level=level, source_line=line_no))
    state.last_was_blank = False


def handle_list_ordered(state: ParseState, m: re.Match, line_no: int) -> None:
    state.blocks.append(
        ListBlock(
            text=m.group(3),
            ordered=True,
            number=int(m.group(2)),
            nest_level=_nest_level(m.group(1)),
            source_line=line_no,
        )
    )
    state.last_was_blank = False


_TASK_PREFIXES: dict[str, bool] = {
    "[ ] ": False,
    "[x] ": True,
    "[X] ": True,
}


def handle_list_unordered(state: ParseState, m: re.Match, line_no: int) -> None:
    content = m.group(3)
    checked = _TASK_PREFIXES.get(content[:4])
    if checked is not None:
        content = content[4:]
    state.blocks.append(
        ListBlock(
            text=content,
            ordered=False,
            nest_level=_nest_level(m.group(1)),
            checked=checked,
            source_line=line_no,
        )
    )
    state.last_was_blank = False


def handle_rule(state: ParseState, m: re.Match, line_no: int) -> None:
    state.blocks.append(RuleBlock(source_line=line_no))
    state.last_was_blank = False


def handle_blank(state: ParseState, m: re.Match, line_no: int) -> None:
    # Ends any paragraph run; the next text line starts a new paragraph.
    state.last_was_blank = True


def handle_paragraph(state: ParseState, line: str, line_no: int) -> None:
    last = state.blocks[-1] if state.blocks else None
    if isinstance(last, ParagraphBlock) and not state.last_was_blank:
        joined = last.text + state.paragraph_join.separator + line
        state.blocks[-1] = dataclasses.replace(last, text=joined)
    else:
        state.blocks.append(ParagraphBlock(text=line, source_line=line_no))
    state.last_was_blank = False


# ─── Rule table (priority order) ─────────────────────────────────────────────

DEFAULT_BLOCK_RULES: tuple[BlockRule, ...] = (
    BlockRule(re.compile(r"^(`{3,}|~{3,})\s*([^\s`~]*)"), handle_code_open),
    BlockRule(re.compile(r"^(#+)\s+(.*)"), handle_header),
    BlockRule(re.compile(r"^(\s*)(\d+)\.\s+(.*)"), handle_list_ordered),
    BlockRule(re.compile(r"^(\s*)([-*+])\s+(.*)"), handle_list_unordered),
    BlockRule(re.compile(r"^---+$"), handle_rule),
    BlockRule(re.compile(r"^\s*$"), handle_blank),
)


# ─── Parser ──────────────────────────────────────────────────────────────────


def split_lines(raw_text: str) -> list[str]:
    """Normalize tabs and split into lines, dropping a trailing CR per line."""
    text = raw_text.replace("\t", " " * TAB_WIDTH)
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def _is_fence_close(line: str, marker: str) -> bool:
    return line.rstrip() == marker


def parse_blocks(
    raw_text: str,
    block_rules: Sequence[BlockRule] | None = None,
    paragraph_join: ParagraphJoin = ParagraphJoin.SPACE,
) -> list[Block]:
    """Parse Markdown source into a flat, source-ordered list of blocks.

    Never raises on malformed input: an unterminated fence is closed at end
    of input with every line seen after the opener.
    """
    if not raw_text:
        return []

    rules = DEFAULT_BLOCK_RULES if block_rules is None else block_rules
    state = ParseState(paragraph_join=paragraph_join)

    for line_no, line in enumerate(split_lines(raw_text), start=1):
        if state.in_fence:
            if _is_fence_close(line, state.fence_marker):
                state.close_fence()
            else:
                state.fence_lines.append(line)
            continue

        for rule in rules:
            m = rule.pattern.match(line)
            if m:
                rule.handler(state, m, line_no)
                break
        else:
            handle_paragraph(state, line, line_no)

    if state.in_fence:
        opened = state.blocks[state.fence_index]
        logger.debug(
            "unterminated %s fence opened at line %d closed at end of input",
            state.fence_marker,
            opened.source_line,
        )
        state.close_fence()

    return state.blocks
