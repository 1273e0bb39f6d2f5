"""Tokenize one block's inline Markdown into styled runs.

Leftmost-match scan over a prioritized rule table: at each cursor position
the candidate that starts earliest wins, ties go to the rule declared first
(inline code, so emphasis markers inside backticks are never interpreted).
Each rule caches its own next match and is only rescanned once the cursor
has moved past it.

Dangling delimiters never match and stay in the surrounding plain text.
Embedded newlines are ordinary content; line breaking belongs to layout.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


# ─── Data model ──────────────────────────────────────────────────────────────


class SpanStyle(Enum):
    NONE = "none"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"
    STRIKE = "strike"


@dataclass(frozen=True)
class SpanToken:
    text: str
    style: SpanStyle = SpanStyle.NONE
    opener: str = ""  # consumed delimiter before text
    closer: str = ""  # consumed delimiter after text

    @property
    def source(self) -> str:
        """The exact slice of input this token was cut from."""
        return self.opener + self.text + self.closer


@dataclass(frozen=True)
class SpanRule:
    style: SpanStyle
    pattern: re.Pattern
    content_group: int = 1


DEFAULT_SPAN_RULES: tuple[SpanRule, ...] = (
    SpanRule(SpanStyle.CODE, re.compile(r"(`+)(.*?)\1", re.DOTALL), content_group=2),
    # Bold+italic must precede bold and italic.
    SpanRule(SpanStyle.BOLD, re.compile(r"\*\*\*(.*?)\*\*\*", re.DOTALL)),
    SpanRule(SpanStyle.BOLD, re.compile(r"\*\*(.*?)\*\*", re.DOTALL)),
    # Non-space after the opener keeps "* not italic" literal.
    SpanRule(SpanStyle.ITALIC, re.compile(r"\*(\S.*?)\*", re.DOTALL)),
    SpanRule(SpanStyle.ITALIC, re.compile(r"_(\S.*?)_", re.DOTALL)),
    SpanRule(SpanStyle.STRIKE, re.compile(r"~~(.*?)~~", re.DOTALL)),
)


# ─── Scanner ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Candidate:
    priority: int  # index in the rule table
    rule: SpanRule
    match: re.Match

    @property
    def start(self) -> int:
        return self.match.start()


def _scan(text: str, priority: int, rule: SpanRule, pos: int) -> _Candidate | None:
    m = rule.pattern.search(text, pos)
    return _Candidate(priority, rule, m) if m else None


def _token_for(candidate: _Candidate) -> SpanToken:
    m = candidate.match
    group = candidate.rule.content_group
    body_start, body_end = m.span(group)
    return SpanToken(
        text=m.group(group),
        style=candidate.rule.style,
        opener=m.string[m.start():body_start],
        closer=m.string[body_end:m.end()],
    )


def parse_spans(
    text: str, span_rules: Sequence[SpanRule] | None = None
) -> list[SpanToken]:
    """Split text into ordered, gap-free inline tokens.

    "".join(t.source for t in parse_spans(s)) == s for every s.
    """
    rules = DEFAULT_SPAN_RULES if span_rules is None else span_rules
    tokens: list[SpanToken] = []
    pos = 0

    pending: list[_Candidate] = []
    for i, rule in enumerate(rules):
        cand = _scan(text, i, rule, 0)
        if cand is not None:
            pending.append(cand)

    while pos < len(text):
        # Refresh candidates the cursor has moved past.
        refreshed: list[_Candidate] = []
        for cand in pending:
            if cand.start < pos:
                cand = _scan(text, cand.priority, cand.rule, pos)
            if cand is not None:
                refreshed.append(cand)
        pending = refreshed

        if not pending:
            tokens.append(SpanToken(text[pos:]))
            break

        best = min(pending, key=lambda c: (c.start, c.priority))
        if best.start > pos:
            tokens.append(SpanToken(text[pos:best.start]))
        tokens.append(_token_for(best))
        pos = best.match.end()

    return tokens
