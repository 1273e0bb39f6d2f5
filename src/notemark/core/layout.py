"""Compile parsed blocks into a flat list of positioned draw commands.

Single pass over the block list. A mutable LayoutContext (the cursor) is
threaded through one handler per block kind; handlers append TextCommand /
RectCommand entries and advance the cursor. Commands for a block are always
emitted before commands for the next block, so consumers can cull with an
early exit on y.

Pixel constants are em multiples of the base font size (SCALES), floored
once in load_assets(). Fonts, colors and the highlighter travel in the same
LayoutAssets bundle; nothing here is module-level mutable state.

// [LAW:dataflow-not-control-flow] compute_layout() is pure: blocks + assets in, LayoutResult out.
// [LAW:single-enforcer] _emit() is the only place commands enter the output.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from notemark.core.blocks import (
    Block,
    BlockKind,
    CodeBlock,
    HeaderBlock,
    ListBlock,
    ParagraphBlock,
    RuleBlock,
)
from notemark.core.config import NoteConfig
from notemark.core.drawlist import DrawCommand, LayoutResult, RectCommand, TextCommand
from notemark.core.highlight import Highlighter, highlight_lines
from notemark.core.metrics import (
    CellFontProvider,
    Font,
    FontProvider,
    FontRole,
    FontSet,
    load_fonts,
)
from notemark.core.spans import SpanRule, SpanStyle, SpanToken, parse_spans
from notemark.core.theme import NoteColors

logger = logging.getLogger(__name__)


# ─── Layout constants ────────────────────────────────────────────────────────

# Em multiples of the base font size, floored to pixels by load_assets().
SCALES: dict[str, float] = {
    "view_padding_top": 0.5,  # above the first block
    "view_margin_left": 2.0,  # body text left margin
    "view_margin_right": 1.0,  # between content and the viewport edge
    "header_gap_top": 0.5,
    "header_gap_bottom": 1.0,
    "header_margin_left": 1.0,  # headers and rules
    "rule_gap_top": 0.5,
    "rule_gap_bottom": 0.5,
    "para_gap_top": 0.5,
    "para_gap_bottom": 0.5,
    "list_gap_top": 0.375,  # before the first item of a run
    "list_gap_bottom": 0.375,  # after the last item of a run
    "list_indent": 2.0,  # per nesting level, and bullet -> text
    "list_spacing": 0.25,  # between items of one run
    "code_padding_x": 0.375,
    "code_padding_y": 0.25,
    "code_margin": 1.0,  # code background left/right margin
    "code_gap_top": 0.5,
    "code_gap_bottom": 0.5,
    "inline_code_pad": 0.125,
    "strike_overshoot": 0.2,
}

CONTENT_BOTTOM_SLACK = 100
RULE_THICKNESS = 2
HEADER_RULE_THICKNESS = 1
HEADER_RULE_GAP_RATIO = 0.1
HEADER_RULE_MAX_LEVEL = 2
STRIKE_THICKNESS = 2
CHECKBOX_BORDER = 2
BULLET_GLYPH = "•"
TICK_GLYPH = "✓"


@dataclass(frozen=True)
class LayoutConstants:
    view_padding_top: int
    view_margin_left: int
    view_margin_right: int
    header_gap_top: int
    header_gap_bottom: int
    header_margin_left: int
    rule_gap_top: int
    rule_gap_bottom: int
    para_gap_top: int
    para_gap_bottom: int
    list_gap_top: int
    list_gap_bottom: int
    list_indent: int
    list_spacing: int
    code_padding_x: int
    code_padding_y: int
    code_margin: int
    code_gap_top: int
    code_gap_bottom: int
    inline_code_pad: int
    strike_overshoot: int

    @classmethod
    def for_size(cls, base_size: int) -> "LayoutConstants":
        return cls(**{name: math.floor(base_size * scale) for name, scale in SCALES.items()})


@dataclass(frozen=True)
class LayoutAssets:
    """Everything a layout pass reads besides the blocks themselves."""

    base_size: int
    constants: LayoutConstants
    fonts: FontSet
    colors: NoteColors
    highlighter: Highlighter | None = None
    header_rules: bool = True


def load_assets(
    config: NoteConfig,
    colors: NoteColors,
    provider: FontProvider | None = None,
    highlighter: Highlighter | None = None,
) -> LayoutAssets:
    """Bake constants and resolve fonts once per theme/config change."""
    provider = provider or CellFontProvider()
    logger.debug("loading layout assets: font_size=%d", config.font_size)
    return LayoutAssets(
        base_size=config.font_size,
        constants=LayoutConstants.for_size(config.font_size),
        fonts=load_fonts(provider, config.font_size),
        colors=colors,
        highlighter=highlighter,
        header_rules=config.header_rules,
    )


@dataclass(frozen=True)
class LayoutOptions:
    span_rules: Sequence[SpanRule] | None = None


# ─── Cursor ──────────────────────────────────────────────────────────────────


@dataclass
class LayoutContext:
    assets: LayoutAssets
    max_w: float  # wrap limit
    total_w: float
    x: float = 0.0
    y: float = 0.0
    indent: float = 0.0
    max_seen_w: float = 0.0
    level: int = 0  # current header level, 0 outside headers
    span_rules: Sequence[SpanRule] | None = None
    output: list[DrawCommand] = field(default_factory=list)

    @property
    def constants(self) -> LayoutConstants:
        return self.assets.constants

    def move_to(self, x: float) -> None:
        """Start a new line region: pen and wrap indent both at x."""
        self.x = x
        self.indent = x


def _emit(ctx: LayoutContext, cmd: DrawCommand, width: float) -> None:
    ctx.output.append(cmd)
    right = cmd.x + width
    if right > ctx.max_seen_w:
        ctx.max_seen_w = right


def _emit_text(ctx: LayoutContext, x: float, y: float, text: str, font: Font, color: str) -> float:
    width = font.width_of(text)
    _emit(ctx, TextCommand(x, y, text, font.ref, color), width)
    return width


def _emit_rect(ctx: LayoutContext, x: float, y: float, w: float, h: float, color: str) -> None:
    _emit(ctx, RectCommand(x, y, w, h, color), w)


# ─── Inline text layout ──────────────────────────────────────────────────────

_WORD_RE = re.compile(r"(\S+)(\s*)")
_LEADING_SPACE_RE = re.compile(r"^\s+")

_BODY_ROLE_BY_STYLE: dict[SpanStyle, FontRole] = {
    SpanStyle.NONE: FontRole.REGULAR,
    SpanStyle.BOLD: FontRole.BOLD,
    SpanStyle.ITALIC: FontRole.ITALIC,
    SpanStyle.CODE: FontRole.CODE,
    SpanStyle.STRIKE: FontRole.REGULAR,
}


def _font_for(ctx: LayoutContext, style: SpanStyle, header: bool) -> Font:
    role = _BODY_ROLE_BY_STYLE[style]
    fonts = ctx.assets.fonts
    return fonts.header(ctx.level, role) if header else fonts.body(role)


def _layout_word(
    ctx: LayoutContext, token: SpanToken, word: str, space: str, font: Font, color: str
) -> None:
    """Place one word and its trailing whitespace; decorations cover the word only."""
    ink_w = font.width_of(word)
    advance = ink_w + font.width_of(space)
    line_h = font.line_height()
    pad = ctx.constants.inline_code_pad if token.style is SpanStyle.CODE else 0

    # Soft wrap; an over-wide word at the line start stays put and overflows.
    if ctx.x + advance + 2 * pad > ctx.max_w and ctx.x > ctx.indent:
        ctx.x = ctx.indent
        ctx.y += line_h

    if token.style is SpanStyle.STRIKE:
        over = ctx.constants.strike_overshoot
        _emit_rect(
            ctx,
            ctx.x - over,
            ctx.y + math.floor(line_h / 2),
            ink_w + 2 * over,
            STRIKE_THICKNESS,
            color,
        )
    elif token.style is SpanStyle.CODE:
        _emit_rect(ctx, ctx.x, ctx.y, ink_w + 2 * pad, line_h, ctx.assets.colors.code_bg)

    _emit_text(ctx, ctx.x + pad, ctx.y, word + space, font, color)
    ctx.x += advance + 2 * pad


def _layout_token(ctx: LayoutContext, token: SpanToken, font: Font, color: str) -> None:
    segments = token.text.split("\n")
    for i, segment in enumerate(segments):
        if i > 0:
            # Hard break: back to the indent, one line of this font down.
            ctx.x = ctx.indent
            ctx.y += font.line_height()

        lead = _LEADING_SPACE_RE.match(segment)
        if lead:
            ctx.x += font.width_of(lead.group(0))

        for m in _WORD_RE.finditer(segment):
            _layout_word(ctx, token, m.group(1), m.group(2), font, color)


def line_layout(
    ctx: LayoutContext, text: str, header: bool = False, color: str | None = None
) -> float:
    """Lay out inline Markdown at the cursor with word wrapping.

    Returns the line height of the block's base font, which callers add to
    the cursor after the last line.
    """
    colors = ctx.assets.colors
    base_color = color or colors.text
    for token in parse_spans(text, ctx.span_rules):
        font = _font_for(ctx, token.style, header)
        token_color = colors.code if token.style is SpanStyle.CODE else base_color
        _layout_token(ctx, token, font, token_color)

    if header:
        return ctx.assets.fonts.header(ctx.level).line_height()
    return ctx.assets.fonts.regular.line_height()


def code_line_layout(ctx: LayoutContext, line: str, color: str) -> float:
    """Monochrome raw code line: one command, no span parsing, no wrapping."""
    font = ctx.assets.fonts.code
    if line:
        _emit_text(ctx, ctx.x, ctx.y, line, font, color)
    return font.line_height()


# ─── Block handlers ──────────────────────────────────────────────────────────


def draw_header(ctx: LayoutContext, block: HeaderBlock, prev: Block | None, nxt: Block | None) -> None:
    L = ctx.constants
    ctx.y += L.header_gap_top
    ctx.move_to(L.header_margin_left)

    ctx.level = max(1, min(block.level, 5))
    line_h = line_layout(ctx, block.text, header=True, color=ctx.assets.colors.header)
    text_bottom = ctx.y + line_h

    if ctx.assets.header_rules and ctx.level <= HEADER_RULE_MAX_LEVEL:
        rule_gap = max(1, math.floor(line_h * HEADER_RULE_GAP_RATIO))
        _emit_rect(
            ctx,
            L.header_margin_left,
            text_bottom + rule_gap,
            ctx.total_w - L.view_margin_right - L.header_margin_left,
            HEADER_RULE_THICKNESS,
            ctx.assets.colors.header_rule,
        )
        ctx.y = text_bottom + rule_gap + L.header_gap_bottom
    else:
        ctx.y = text_bottom + L.header_gap_bottom
    ctx.level = 0


def draw_paragraph(ctx: LayoutContext, block: ParagraphBlock, prev: Block | None, nxt: Block | None) -> None:
    L = ctx.constants
    ctx.y += L.para_gap_top
    ctx.move_to(L.view_margin_left)
    line_h = line_layout(ctx, block.text)
    ctx.y += line_h + L.para_gap_bottom


def _draw_checkbox(ctx: LayoutContext, checked: bool, bullet_x: float, bullet_y: float) -> None:
    fonts = ctx.assets.fonts
    colors = ctx.assets.colors
    tick_font = fonts.bold
    tick_w = math.floor(tick_font.width_of(TICK_GLYPH))
    tick_h = tick_font.line_height()

    # Box and tick widths share parity so the tick centers on whole pixels.
    box = ctx.assets.base_size
    if box % 2 != tick_w % 2:
        box -= 1

    line_h = fonts.regular.line_height()
    box_y = math.floor(bullet_y + (line_h - box) / 2)
    box_x = math.floor(bullet_x - box / 4)

    if checked:
        _emit_rect(ctx, box_x, box_y, box, box, colors.accent)
        _emit_text(
            ctx,
            box_x + (box - tick_w) / 2,
            box_y + (box - tick_h) / 2,
            TICK_GLYPH,
            tick_font,
            colors.background,
        )
    else:
        inner = box - 2 * CHECKBOX_BORDER
        _emit_rect(ctx, box_x, box_y, box, box, colors.dim)
        _emit_rect(
            ctx, box_x + CHECKBOX_BORDER, box_y + CHECKBOX_BORDER, inner, inner, colors.background
        )


def draw_list(ctx: LayoutContext, block: ListBlock, prev: Block | None, nxt: Block | None) -> None:
    L = ctx.constants
    bullet_x = L.view_margin_left + block.nest_level * L.list_indent
    text_x = bullet_x + L.list_indent

    if prev is None or prev.kind is not BlockKind.LIST:
        ctx.y += L.list_gap_top
    else:
        ctx.y += L.list_spacing

    ctx.move_to(text_x)
    bullet_y = ctx.y

    if block.checked is not None:
        _draw_checkbox(ctx, block.checked, bullet_x, bullet_y)
    else:
        regular = ctx.assets.fonts.regular
        label = BULLET_GLYPH
        if block.ordered and block.number is not None:
            label = f"{block.number}."
            # Nudge left so the period lines up visually.
            bullet_x -= regular.width_of(".") / 2
        _emit_text(ctx, bullet_x, bullet_y, label, regular, ctx.assets.colors.bullet)

    line_h = line_layout(ctx, block.text)
    if nxt is None or nxt.kind is not BlockKind.LIST:
        ctx.y += line_h + L.list_gap_bottom
    else:
        ctx.y += line_h


def draw_code(ctx: LayoutContext, block: CodeBlock, prev: Block | None, nxt: Block | None) -> None:
    L = ctx.constants
    colors = ctx.assets.colors
    ctx.move_to(L.view_margin_left)
    ctx.y += L.code_gap_top

    if block.lines:
        line_h = ctx.assets.fonts.code.line_height()
        rect_x = L.code_margin
        rect_y = ctx.y
        rect_w = ctx.total_w - 2 * L.code_margin
        rect_h = len(block.lines) * line_h + 2 * L.code_padding_y
        _emit_rect(ctx, rect_x, rect_y, rect_w, rect_h, colors.code_bg)

        rows = None
        highlighter = ctx.assets.highlighter
        if block.language and highlighter is not None:
            rows = highlight_lines(highlighter, block.language, block.lines)

        base_x = rect_x + L.code_padding_x
        ctx.y = rect_y + L.code_padding_y
        for i, line in enumerate(block.lines):
            ctx.x = base_x
            if rows is not None:
                for category, text in rows[i]:
                    ctx.x += _emit_text(
                        ctx, ctx.x, ctx.y, text, ctx.assets.fonts.code, colors.for_category(category)
                    )
            else:
                code_line_layout(ctx, line, colors.code)
            ctx.y += line_h

        ctx.move_to(L.view_margin_left)
        ctx.y = rect_y + rect_h

    ctx.y += L.code_gap_bottom


def draw_rule(ctx: LayoutContext, block: RuleBlock, prev: Block | None, nxt: Block | None) -> None:
    L = ctx.constants
    ctx.y += L.rule_gap_top
    _emit_rect(
        ctx,
        L.header_margin_left,
        ctx.y,
        ctx.total_w - L.view_margin_right - L.header_margin_left,
        RULE_THICKNESS,
        ctx.assets.colors.rule,
    )
    ctx.y += L.rule_gap_bottom


BlockRenderer = Callable[[LayoutContext, Block, Block | None, Block | None], None]

# [LAW:one-source-of-truth] Block kind -> handler. All kinds are known and fixed.
BLOCK_RENDERERS: dict[BlockKind, BlockRenderer] = {
    BlockKind.HEADER: draw_header,
    BlockKind.PARAGRAPH: draw_paragraph,
    BlockKind.LIST: draw_list,
    BlockKind.CODE: draw_code,
    BlockKind.RULE: draw_rule,
}


# ─── Entry point ─────────────────────────────────────────────────────────────


def compute_layout(
    blocks: Sequence[Block],
    max_width: float,
    assets: LayoutAssets,
    options: LayoutOptions | None = None,
) -> LayoutResult:
    """Walk blocks in source order and return the positioned draw list."""
    options = options or LayoutOptions()
    L = assets.constants
    ctx = LayoutContext(
        assets=assets,
        max_w=max_width - L.view_margin_right,
        total_w=max_width,
        y=L.view_padding_top,
        span_rules=options.span_rules,
    )

    for i, block in enumerate(blocks):
        prev = blocks[i - 1] if i > 0 else None
        nxt = blocks[i + 1] if i + 1 < len(blocks) else None
        BLOCK_RENDERERS[block.kind](ctx, block, prev, nxt)

    logger.debug(
        "layout: %d blocks -> %d commands at width %s", len(blocks), len(ctx.output), max_width
    )
    return LayoutResult(
        commands=tuple(ctx.output),
        content_width=ctx.max_seen_w,
        content_height=ctx.y + CONTENT_BOTTOM_SLACK,
    )
