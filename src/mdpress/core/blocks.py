"""Line-anchored block conversion: tables, blockquotes, headers, lists, and rules"""

import logging
import re
from typing import Optional

from mdpress.core.models import Protected, Structured, Table


logger = logging.getLogger(__name__)

_ROW = r"\|.+\|[ \t]*"
_SEPARATOR = r"\|[-: \t|]*-[-: \t|]*\|[ \t]*"

TABLE_RE = re.compile(rf"^{_ROW}\n^{_SEPARATOR}\n(?:^{_ROW}(?:\n|$))+", re.MULTILINE)
QUOTED_TABLE_RE = re.compile(
    rf"^>[ \t]*{_ROW}\n^>[ \t]*{_SEPARATOR}\n(?:^>[ \t]*{_ROW}(?:\n|$))+", re.MULTILINE
)
DEQUOTE_RE = re.compile(r"^>[ \t]?", re.MULTILINE)

EMPTY_QUOTE_RE = re.compile(r"^>[ \t]*$", re.MULTILINE)
QUOTE_RE = re.compile(r"^>[ \t]?(.*\S.*)$", re.MULTILINE)
QUOTE_BOUNDARY = "</blockquote>\n<blockquote>\n"
EMPTY_QUOTE = "<blockquote>\n\n</blockquote>"

HEADER_RE = re.compile(r"^(#{1,6})[ \t]+(.+)$", re.MULTILINE)

BULLET_ITEM_RE = re.compile(r"^[ \t]*[*+-][ \t]+(.+)$", re.MULTILINE)
BULLET_RUN_RE = re.compile(r"(?:^<li>.*</li>(?:\n|$))+", re.MULTILINE)
ORDERED_ITEM_RE = re.compile(r"^[ \t]*\d+\.[ \t]+(.+)$", re.MULTILINE)
ORDERED_RUN_RE = re.compile(r"(?:^<oli>.*</oli>(?:\n|$))+", re.MULTILINE)

RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})[ \t]*$", re.MULTILINE)


# --- tables ---

def split_cells(row: str) -> list[str]:
    """Split a table row on '|', dropping only the empty segments left by outer pipes."""
    parts = row.strip().split("|")
    if parts and not parts[0].strip():
        parts = parts[1:]
    if parts and not parts[-1].strip():
        parts = parts[:-1]
    return [p.strip() for p in parts]


def parse_table(text: str) -> Optional[Table]:
    """Parse header, separator, and data rows; rows are padded or cut to the header width."""
    lines = text.strip().split("\n")
    if len(lines) < 3:
        return None
    headers = split_cells(lines[0])
    if not headers:
        return None

    width = len(headers)
    rows = []
    for line in lines[2:]:
        cells = split_cells(line)
        if cells:
            rows.append((cells + [""] * width)[:width])
    return Table(headers=headers, rows=rows)


def render_table(table: Table) -> str:
    """Render a Table with one tag per line so each line classifies as a table block."""
    out = ["<table>", "<thead>", "<tr>"]
    out += [f"<th>{h}</th>" for h in table.headers]
    out += ["</tr>", "</thead>", "<tbody>"]
    for row in table.rows:
        out.append("<tr>")
        out += [f"<td>{c}</td>" for c in row]
        out.append("</tr>")
    out += ["</tbody>", "</table>"]
    return "\n".join(out)


def _table_html(match: str) -> Optional[str]:
    table = parse_table(match)
    return render_table(table) if table else None


def _trailing_newline(match: str) -> str:
    return "\n" if match.endswith("\n") else ""


def _convert_quoted_table(m: re.Match) -> str:
    table_html = _table_html(DEQUOTE_RE.sub("", m.group(0)))
    if table_html is None:
        return m.group(0)
    quoted = "\n".join(f"> {line}" for line in table_html.split("\n"))
    return quoted + _trailing_newline(m.group(0))


def _convert_table(m: re.Match) -> str:
    table_html = _table_html(m.group(0))
    if table_html is None:
        return m.group(0)
    return table_html + _trailing_newline(m.group(0))


def convert_tables(text: str) -> str:
    """Convert quote-wrapped tables first, then plain ones."""
    text = QUOTED_TABLE_RE.sub(_convert_quoted_table, text)
    return TABLE_RE.sub(_convert_table, text)


# --- blockquotes, headers, lists, rules ---

def convert_blockquotes(text: str) -> str:
    """Wrap each quote line, then merge adjacent quotes into one container.

    The quote interior ends up on plain lines of its own, so headers, lists,
    and paragraphs inside a quote are converted like top-level ones. Each
    pass peels one '>' level, so nested quotes nest their containers.
    """
    while EMPTY_QUOTE_RE.search(text) or QUOTE_RE.search(text):
        text = EMPTY_QUOTE_RE.sub(EMPTY_QUOTE, text)
        text = QUOTE_RE.sub(r"<blockquote>\n\1\n</blockquote>", text)
        text = text.replace(QUOTE_BOUNDARY, "")
    return text


def convert_headers(text: str) -> str:
    return HEADER_RE.sub(lambda m: f"<h{len(m.group(1))}>{m.group(2)}</h{len(m.group(1))}>", text)


def _wrap_run(tag: str, run: str) -> str:
    body = run.rstrip("\n")
    return f"<{tag}>\n{body}\n</{tag}>" + _trailing_newline(run)


def convert_lists(text: str) -> str:
    """Unordered items merge into <ul>; ordered items go through <oli> so the <ul> pass never captures them."""
    text = BULLET_ITEM_RE.sub(r"<li>\1</li>", text)
    text = BULLET_RUN_RE.sub(lambda m: _wrap_run("ul", m.group(0)), text)

    text = ORDERED_ITEM_RE.sub(r"<oli>\1</oli>", text)
    return ORDERED_RUN_RE.sub(
        lambda m: _wrap_run("ol", m.group(0).replace("<oli>", "<li>").replace("</oli>", "</li>")),
        text,
    )


def convert_rules(text: str) -> str:
    return RULE_RE.sub("<hr>", text)


BLOCK_PASSES = (
    convert_tables,
    convert_blockquotes,
    convert_headers,
    convert_lists,
    convert_rules,
)


def convert_blocks(doc: Protected) -> Structured:
    """Run every block pass over protected text; regions pass through untouched."""
    text = doc.text
    for block_pass in BLOCK_PASSES:
        text = block_pass(text)
    logger.debug("Converted block structure (%d lines)", text.count("\n") + 1)
    return Structured(text=text, regions=doc.regions)
