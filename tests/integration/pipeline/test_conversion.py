"""Integration tests for the protect -> wikilinks -> blocks -> paragraphs -> inline pipeline.

Each test runs the stages up to one point against the canonical document
below and asserts stable expected values. Read this file top-to-bottom as a
reference for what each stage produces.

Canonical document
------------------
    # Guide

    Intro with **bold** and `code`.
    Second line.

    > Quoted *text*

    | Name | Value |
    |------|-------|
    | a    | 1     |

    - one
    - two

    ```python
    print("<ok>")
    ```

    See [[Target]].

Regions after protect and wikilinks (code before inline code, one shared counter):
    0  code-block   the python fence
    1  inline-code  `code`
    2  wikilink     [[Target]], rendered as its anchor

Block kinds after paragraph reconstruction (runs collapsed):
    heading, paragraph, blockquote, paragraph, blockquote, table, list,
    region, paragraph
"""

from functools import reduce
from itertools import groupby

import pytest

from mdpress.core.models import BlockKind, IndexEntry, RegionKind
from mdpress.core.pipeline import build_stages, convert_markdown, render
from mdpress.core.wikilinks import PublishIndex, WikiLinkResolver


CANONICAL_MD = """\
# Guide

Intro with **bold** and `code`.
Second line.

> Quoted *text*

| Name | Value |
|------|-------|
| a    | 1     |

- one
- two

```python
print("<ok>")
```

See [[Target]].
"""

EXPECTED_HTML = """\
<h1>Guide</h1>
<p>Intro with <strong>bold</strong> and <code>code</code>.<br>Second line.</p>
<blockquote>
<p>Quoted <em>text</em></p>
</blockquote>
<table>
<thead>
<tr>
<th>Name</th>
<th>Value</th>
</tr>
</thead>
<tbody>
<tr>
<td>a</td>
<td>1</td>
</tr>
</tbody>
</table>
<ul>
<li>one</li>
<li>two</li>
</ul>
<pre><code class="language-python">print("&lt;ok&gt;")</code></pre>
<p>See <a href="https://blog.example/target">Target</a>.</p>"""


@pytest.fixture(name="resolver")
def resolver_fixture():
    index = PublishIndex([
        IndexEntry(display_name="Target", path="Target.md", primary_url="https://blog.example/target"),
    ])
    return WikiLinkResolver(index)


def _run_until(stage_name: str, resolver):
    stages = build_stages(resolver)
    names = [name for name, _ in stages]
    selected = stages[:names.index(stage_name) + 1]
    return reduce(lambda value, stage: stage[1](value), selected, CANONICAL_MD)


def test_protect_stage(resolver):
    protected = _run_until("protect", resolver)
    assert [r.kind for r in protected.regions] == [RegionKind.code_block, RegionKind.inline_code]
    assert "print" not in protected.text
    assert "`" not in protected.text


def test_wikilinks_stage(resolver):
    doc = _run_until("wikilinks", resolver)
    link = doc.regions[-1]
    assert link.kind == RegionKind.wikilink
    assert link.original == "[[Target]]"
    assert link.rendered == '<a href="https://blog.example/target">Target</a>'
    assert f"See {link.token}." in doc.text


def test_blocks_stage(resolver):
    text = _run_until("blocks", resolver).text
    assert "<h1>Guide</h1>" in text
    assert "<blockquote>\nQuoted *text*\n</blockquote>" in text
    assert "<th>Name</th>\n<th>Value</th>" in text
    assert "<ul>\n<li>one</li>\n<li>two</li>\n</ul>" in text
    assert "**bold**" in text


def test_paragraphs_stage(resolver):
    doc = _run_until("paragraphs", resolver)
    kinds = [kind for kind, _ in groupby(b.kind for b in doc.blocks)]
    assert kinds == [
        BlockKind.heading,
        BlockKind.paragraph,
        BlockKind.blockquote,
        BlockKind.paragraph,
        BlockKind.blockquote,
        BlockKind.table,
        BlockKind.list,
        BlockKind.region,
        BlockKind.paragraph,
    ]
    assert doc.blocks[1].lines[1] == "Second line."


def test_full_render(resolver):
    assert render(_run_until("inline", resolver)) == EXPECTED_HTML


def test_convert_markdown_matches_stages(resolver):
    assert convert_markdown(CANONICAL_MD, resolver) == EXPECTED_HTML
