"""Paragraph reconstruction: a line-classifying state machine over converted block text

States:
    OUTSIDE       between blocks; blank-line runs are counted here
    PARAGRAPH     plain-text lines are buffered into the open paragraph
    PREFORMATTED  inside <pre>...</pre>; lines pass through verbatim

A run of two or more blank lines emits exactly one spacer, whatever its
length. Leading spacers are dropped so real content opens the document.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from functools import reduce
from typing import Optional

from mdpress.core.models import TOKEN_OPEN, Block, BlockKind, Paragraphed, RegionKind, Structured


LINE_BREAK = "<br>"
SPACER_HTML = "<p>&nbsp;</p>"

BLOCK_PREFIXES: tuple[tuple[re.Pattern, BlockKind], ...] = (
    (re.compile(r"</?h[1-6][\s>]"),                          BlockKind.heading),
    (re.compile(r"<hr[\s/>]"),                               BlockKind.rule),
    (re.compile(r"</?(?:ul|ol|li)[\s>]"),                    BlockKind.list),
    (re.compile(r"</?(?:table|thead|tbody|tr|th|td)[\s>]"),  BlockKind.table),
    (re.compile(r"</?blockquote[\s>]"),                      BlockKind.blockquote),
    (re.compile(r"</?pre[\s>]"),                             BlockKind.preformatted),
    (re.compile(r"<img[\s>]"),                               BlockKind.image),
    (re.compile(r"!\[[^\]]*\]\([^)]+\)$"),                   BlockKind.image),
)
BLOCK_MARKER_RE = re.compile(
    TOKEN_OPEN + "(?:" + "|".join(k.value for k in RegionKind if k.is_block) + "):"
)


class State(str, Enum):
    OUTSIDE      = "outside"
    PARAGRAPH    = "paragraph"
    PREFORMATTED = "preformatted"


@dataclass(frozen=True)
class Machine:
    state:   State = State.OUTSIDE
    buffer:  tuple[str, ...] = ()        # lines of the open paragraph
    blanks:  int = 0                     # length of the current blank-line run
    emitted: tuple[Block, ...] = ()


def classify(line: str) -> Optional[BlockKind]:
    """Return the block kind a line starts, None for a blank line, PARAGRAPH for plain text."""
    stripped = line.strip()
    if not stripped:
        return None
    if BLOCK_MARKER_RE.match(stripped):
        return BlockKind.region
    for pattern, kind in BLOCK_PREFIXES:
        if pattern.match(stripped):
            return kind
    return BlockKind.paragraph


def _flush(m: Machine) -> Machine:
    """Close the open paragraph, if any, into a paragraph block."""
    if not m.buffer:
        return replace(m, state=State.OUTSIDE)
    block = Block(BlockKind.paragraph, m.buffer)
    return replace(m, state=State.OUTSIDE, buffer=(), emitted=m.emitted + (block,))


def _opens_pre(stripped: str) -> bool:
    return stripped.startswith("<pre") or "<pre>" in stripped


def step(m: Machine, line: str) -> Machine:
    """Transition function: fold one line into the machine."""
    stripped = line.strip()

    if m.state == State.PREFORMATTED:
        m = replace(m, emitted=m.emitted + (Block(BlockKind.preformatted, (line,)),))
        if "</pre>" in stripped:
            m = replace(m, state=State.OUTSIDE, blanks=0)
        return m

    kind = classify(line)

    if kind is None:
        m = replace(_flush(m), blanks=m.blanks + 1)
        if m.blanks == 2:
            m = replace(m, emitted=m.emitted + (Block(BlockKind.spacer),))
        return m

    if _opens_pre(stripped):
        m = replace(_flush(m), blanks=0)
        if "</pre>" not in stripped:
            m = replace(m, state=State.PREFORMATTED)
        return replace(m, emitted=m.emitted + (Block(BlockKind.preformatted, (line,)),))

    if kind == BlockKind.paragraph:
        return replace(m, state=State.PARAGRAPH, buffer=m.buffer + (stripped,), blanks=0)

    m = replace(_flush(m), blanks=0)
    return replace(m, emitted=m.emitted + (Block(kind, (line,)),))


def strip_leading_spacers(blocks: tuple[Block, ...]) -> tuple[Block, ...]:
    start = 0
    while start < len(blocks) and blocks[start].kind == BlockKind.spacer:
        start += 1
    return blocks[start:]


def reconstruct(doc: Structured) -> Paragraphed:
    """Group plain-text lines into paragraphs; block lines pass through as their own blocks."""
    machine = _flush(reduce(step, doc.text.split("\n"), Machine()))
    return Paragraphed(blocks=strip_leading_spacers(machine.emitted), regions=doc.regions)


def render_block(block: Block) -> str:
    if block.kind == BlockKind.paragraph:
        return f"<p>{LINE_BREAK.join(block.lines)}</p>"
    if block.kind == BlockKind.spacer:
        return SPACER_HTML
    return "\n".join(block.lines)


def render_blocks(blocks: tuple[Block, ...]) -> str:
    return "\n".join(render_block(b) for b in blocks)
