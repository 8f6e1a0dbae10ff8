"""Inline conversion: emphasis, images, and links applied after block structure is fixed"""

import re

from mdpress.core.models import Block, BlockKind, Inlined, Paragraphed


# Longest marker run first, or ***x*** splits into two unrelated spans.
BOLD_ITALIC_RE = re.compile(r"\*\*\*(?!\s)(.+?)(?<!\s)\*\*\*")
BOLD_RE = re.compile(r"\*\*(?!\s)(.+?)(?<!\s)\*\*")
ITALIC_RE = re.compile(r"\*(?!\s)(.+?)(?<!\s)\*")

# Images before links: an image is a link preceded by '!'.
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)(?:\s+\"([^\"]*)\")?\)")
LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)(?:\s+\"([^\"]*)\")?\)")
AUTOLINK_RE = re.compile(r"<(https?://[^>\s]+)>")

SKIPPED_KINDS = {BlockKind.preformatted, BlockKind.region, BlockKind.spacer}


def _image(m: re.Match) -> str:
    alt, src, title = m.group(1), m.group(2), m.group(3)
    if title:
        return f'<img src="{src}" alt="{alt}" title="{title}">'
    return f'<img src="{src}" alt="{alt}">'


def _link(m: re.Match) -> str:
    text, href, title = m.group(1), m.group(2), m.group(3)
    if title:
        return f'<a href="{href}" title="{title}">{text}</a>'
    return f'<a href="{href}">{text}</a>'


INLINE_PASSES: tuple[tuple[re.Pattern, object], ...] = (
    (BOLD_ITALIC_RE, r"<strong><em>\1</em></strong>"),
    (BOLD_RE,        r"<strong>\1</strong>"),
    (ITALIC_RE,      r"<em>\1</em>"),
    (IMAGE_RE,       _image),
    (LINK_RE,        _link),
    (AUTOLINK_RE,    r'<a href="\1">\1</a>'),
)


def convert_line(line: str) -> str:
    """Apply every inline pass, in order, to one line."""
    for pattern, repl in INLINE_PASSES:
        line = pattern.sub(repl, line)
    return line


def convert_inline(doc: Paragraphed) -> Inlined:
    """Convert inline syntax in every block except preformatted, region, and spacer blocks."""
    blocks = tuple(
        b if b.kind in SKIPPED_KINDS else Block(b.kind, tuple(convert_line(line) for line in b.lines))
        for b in doc.blocks
    )
    return Inlined(blocks=blocks, regions=doc.regions)
