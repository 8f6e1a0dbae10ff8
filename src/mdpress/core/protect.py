"""Protected-region extraction: code, math, and diagrams swapped for placeholder tokens

Extraction order is load-bearing: diagrams before generic code fences,
quote-wrapped fences before plain ones, fenced code before inline code, and
all code before math so `$` inside code is never read as a math delimiter.
"""

import html
import itertools
import logging
import re
from dataclasses import replace
from typing import Callable, NamedTuple

from mdpress.core.models import (
    TOKEN_CLOSE,
    TOKEN_OPEN,
    PlaceholderError,
    Protected,
    ProtectedRegion,
    RegionKind,
    Regions,
)
from mdpress.core.wikilinks import WIKILINK_RE


logger = logging.getLogger(__name__)

MARKER_RE = re.compile(f"{TOKEN_OPEN}([a-z-]+):(\\d+){TOKEN_CLOSE}")

DIAGRAM_RE = re.compile(r"```mermaid[ \t]*\n(.*?)```", re.DOTALL)
QUOTED_FENCE_RE = re.compile(
    r"^>[ \t]*```([^\s`]*)[^\n`]*\n((?:>.*\n)*?)>[ \t]*```[ \t]*$", re.MULTILINE
)
FENCE_RE = re.compile(r"```([^\s`]*)[^\n`]*\n(.*?)```", re.DOTALL)
INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
DISPLAY_MATH_RE = re.compile(r"\$\$(.*?)\$\$", re.DOTALL)
INLINE_MATH_RE = re.compile(r"(?<!\$)\$(?!\$)([^\n$]+?)\$(?!\$)")

SUBGRAPH_RE = re.compile(r"^(\s*)subgraph\s+(?!\S+\s*\[)(.+)$", re.MULTILINE)
DEQUOTE_RE = re.compile(r"^>[ \t]?", re.MULTILINE)


def escape_code(code: str) -> str:
    """Escape &, < and > so embedded markup renders literally."""
    return html.escape(code, quote=False)


def _code_html(lang: str, code: str) -> str:
    body = escape_code(code.strip("\n"))
    if lang:
        return f'<pre><code class="language-{lang}">{body}</code></pre>'
    return f"<pre><code>{body}</code></pre>"


def _fix_subgraphs(code: str) -> str:
    """Give untitled-id subgraphs a synthetic id so multi-word labels parse: `subgraph _sg0["A B"]`."""
    counter = itertools.count()
    return SUBGRAPH_RE.sub(
        lambda m: f'{m.group(1)}subgraph _sg{next(counter)}["{m.group(2).strip()}"]', code
    )


def _render_diagram(m: re.Match) -> str:
    return f'<pre class="mermaid">\n{_fix_subgraphs(m.group(1).strip())}\n</pre>'


def _render_quoted_fence(m: re.Match) -> str:
    return _code_html(m.group(1), DEQUOTE_RE.sub("", m.group(2)))


def _render_fence(m: re.Match) -> str:
    return _code_html(m.group(1), m.group(2))


def _render_inline_code(m: re.Match) -> str:
    return f"<code>{escape_code(m.group(1))}</code>"


def _render_display_math(m: re.Match) -> str:
    return f'<div class="katex-display">$${m.group(1)}$$</div>'


def _render_inline_math(m: re.Match) -> str:
    return f'<span class="katex-inline">${m.group(1)}$</span>'


def _own_line(marker: str, m: re.Match) -> str:
    """Pad with newlines only where the match does not already start or end a line."""
    before = "" if m.start() == 0 or m.string[m.start() - 1] == "\n" else "\n"
    after = "" if m.end() == len(m.string) or m.string[m.end()] == "\n" else "\n"
    return f"{before}{marker}{after}"


def _quoted(marker: str, m: re.Match) -> str:
    return f"> {marker}"


def _inline(marker: str, m: re.Match) -> str:
    return marker


class Extraction(NamedTuple):
    """One protection pass: every match of pattern becomes a region of kind."""
    name:    str
    kind:    RegionKind
    pattern: re.Pattern
    render:  Callable[[re.Match], str]
    wrap:    Callable[[str, re.Match], str]

    def apply(self, text: str, regions: Regions) -> tuple[str, Regions]:
        found: list[ProtectedRegion] = []

        def _swap(m: re.Match) -> str:
            region = ProtectedRegion(
                kind=self.kind, index=len(regions) + len(found),
                original=m.group(0), rendered=self.render(m), token="",
            )
            region = replace(region, token=self.wrap(region.marker, m))
            found.append(region)
            return region.token

        text = self.pattern.sub(_swap, text)
        if found:
            logger.debug("Protected %d %s region(s)", len(found), self.name)
        return text, regions + tuple(found)


EXTRACTIONS: tuple[Extraction, ...] = (
    Extraction("diagram",      RegionKind.diagram,      DIAGRAM_RE,      _render_diagram,      _own_line),
    Extraction("quoted fence", RegionKind.code_block,   QUOTED_FENCE_RE, _render_quoted_fence, _quoted),
    Extraction("code fence",   RegionKind.code_block,   FENCE_RE,        _render_fence,        _own_line),
    Extraction("inline code",  RegionKind.inline_code,  INLINE_CODE_RE,  _render_inline_code,  _inline),
    Extraction("display math", RegionKind.math_display, DISPLAY_MATH_RE, _render_display_math, _own_line),
    Extraction("inline math",  RegionKind.math_inline,  INLINE_MATH_RE,  _render_inline_math,  _inline),
)


def protect(text: str) -> Protected:
    """Swap every opaque span for a placeholder token, in extraction order."""
    regions: Regions = ()
    for extraction in EXTRACTIONS:
        text, regions = extraction.apply(text, regions)
    return Protected(text=text, regions=regions)


def protect_wikilinks(protected: Protected, render: Callable[[re.Match], str]) -> Protected:
    """Swap each wikilink for an inline region holding render(match).

    Runs on protect() output, so links inside code stay literal, and before
    block conversion, so an alias pipe never splits a table cell.
    """
    extraction = Extraction("wikilink", RegionKind.wikilink, WIKILINK_RE, render, _inline)
    text, regions = extraction.apply(protected.text, protected.regions)
    return Protected(text=text, regions=regions)


def restore(protected: Protected) -> str:
    """Put every original span back; the exact inverse of protect()."""
    text = protected.text
    # Later regions may hold earlier tokens in their original text.
    for region in reversed(protected.regions):
        text = text.replace(region.token, region.original, 1)
    return text


def render_regions(text: str, regions: Regions) -> str:
    """Replace bare markers with rendered markup. Raises PlaceholderError on any leftover marker."""
    for region in reversed(regions):
        if region.marker not in text:
            logger.warning("Region %s:%d was dropped before rendering", region.kind.value, region.index)
            continue
        text = text.replace(region.marker, region.rendered)

    leaked = MARKER_RE.search(text)
    if leaked:
        raise PlaceholderError(f"Unrendered placeholder {leaked.group(1)}:{leaked.group(2)}")
    return text


def has_kind(regions: Regions, kind: RegionKind) -> bool:
    return any(r.kind == kind for r in regions)
