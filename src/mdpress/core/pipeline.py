"""Pipeline orchestration: source cleanup, the ordered conversion stages, and asset appending"""

import logging
import re
from functools import partial, reduce
from typing import Any, Callable, Optional
from urllib.parse import unquote

from mdpress.core import bilingual
from mdpress.core.blocks import convert_blocks
from mdpress.core.inline import convert_inline
from mdpress.core.models import Conversion, Inlined, LinkReport, Protected, RegionKind, Regions
from mdpress.core.paragraphs import reconstruct, render_blocks
from mdpress.core.protect import has_kind, protect, protect_wikilinks, render_regions, restore
from mdpress.core.wikilinks import PublishIndex, WikiLinkResolver


logger = logging.getLogger(__name__)

DATAVIEW_RE = re.compile(r"```dataview(?:js)?[\s\S]*?```")
SPEC_CALLOUT_RE = re.compile(r"^> \[!abstract\]- SPEC\n(?:^>.*\n?)*", re.MULTILINE)

MD_IMAGE_RE = re.compile(r"!\[[^\]]*\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")
EMBED_IMAGE_RE = re.compile(r"!\[\[([^\]|]+)(?:\|[^\]]*)?\]\]")

MERMAID_CDN = "https://cdn.jsdelivr.net/npm/mermaid@11/dist/mermaid.esm.min.mjs"
MERMAID_STYLE = (
    "<style>.mermaid .cluster-label foreignObject{width:auto !important;overflow:visible !important}"
    ".mermaid .cluster-label foreignObject div{max-width:none !important;white-space:nowrap !important;"
    "width:auto !important}</style>"
)
MERMAID_SCRIPT = (
    f'<script type="module">import mermaid from "{MERMAID_CDN}";'
    'mermaid.initialize({startOnLoad:true,theme:"default"});</script>'
)

KATEX_VERSION = "0.16.21"
KATEX_CDN = f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist"
KATEX_ASSETS = (
    f'<link rel="stylesheet" href="{KATEX_CDN}/katex.min.css">',
    f'<script defer src="{KATEX_CDN}/katex.min.js"></script>',
    f'<script defer src="{KATEX_CDN}/contrib/auto-render.min.js" onload="renderMathInElement(document.body,'
    "{delimiters:[{left:'$$',right:'$$',display:true},{left:'$',right:'$',display:false}],"
    'throwOnError:false})"></script>',
)


# --- source cleanup ---

def normalize(text: str) -> str:
    """Fold CRLF line endings to LF; every line-anchored pattern assumes LF."""
    return text.replace("\r\n", "\n")


def strip_editorial(text: str) -> str:
    """Remove dataview query blocks and SPEC callouts, which are never published."""
    text = DATAVIEW_RE.sub("", text)
    return SPEC_CALLOUT_RE.sub("", text)


def _norm_path(path: str) -> str:
    return unquote(path).replace("\\", "/").strip().lower()


def same_image(ref: str, image_path: str) -> bool:
    """True when ref and image_path point at the same file; either may be a path suffix of the other."""
    a, b = _norm_path(ref), _norm_path(image_path)
    if not a or not b:
        return False
    return a == b or a.endswith(f"/{b}") or b.endswith(f"/{a}")


def drop_image(text: str, image_path: Optional[str]) -> str:
    """Remove body references to the image the host renders separately."""
    if not image_path:
        return text

    dropped = 0

    def _drop(m: re.Match) -> str:
        nonlocal dropped
        if not same_image(m.group(1), image_path):
            return m.group(0)
        dropped += 1
        return ""

    text = MD_IMAGE_RE.sub(_drop, text)
    text = EMBED_IMAGE_RE.sub(_drop, text)
    if dropped:
        logger.debug("Dropped %d body reference(s) to %s", dropped, image_path)
    return text


# --- stages ---

def resolve_links(doc: Protected, resolver: WikiLinkResolver) -> Protected:
    """Swap wikilinks for regions holding their anchor or display text; inline passes never see the URL."""
    return protect_wikilinks(doc, lambda m: resolver.process(m.group(0), "html").processed)


def render(doc: Inlined) -> str:
    """Join blocks into markup and substitute every placeholder with its rendered region."""
    return render_regions(render_blocks(doc.blocks), doc.regions)


Stage = tuple[str, Callable[[Any], Any]]


def build_stages(resolver: WikiLinkResolver) -> list[Stage]:
    """Return the named conversion stages in execution order."""
    return [
        ("protect",    protect),
        ("wikilinks",  partial(resolve_links, resolver=resolver)),
        ("blocks",     convert_blocks),
        ("paragraphs", reconstruct),
        ("inline",     convert_inline),
    ]


def run_stages(text: str, stages: list[Stage]) -> Inlined:
    def _run(value: Any, stage: Stage) -> Any:
        name, fn = stage
        logger.debug("Running stage %s", name)
        return fn(value)

    return reduce(_run, stages, text)


def append_assets(html: str, regions: Regions) -> str:
    """Append the mermaid and KaTeX loaders the regions need, if any."""
    if has_kind(regions, RegionKind.diagram):
        html += "\n" + MERMAID_STYLE + "\n" + MERMAID_SCRIPT
    if has_kind(regions, RegionKind.math_display) or has_kind(regions, RegionKind.math_inline):
        html += "\n" + "\n".join(KATEX_ASSETS)
    return html


# --- entry points ---

def convert_markdown(
    markdown: str,
    resolver: WikiLinkResolver = None,
    *,
    include_assets: bool = True,
    strip_editorial_blocks: bool = True,
    image_path: Optional[str] = None,
    ) -> str:
    """Convert one markdown body to HTML.

    Without a resolver every wikilink degrades to its display text.
    Raises PlaceholderError if a placeholder survives rendering.
    """
    resolver = resolver or WikiLinkResolver(PublishIndex())
    text = normalize(markdown)
    if strip_editorial_blocks:
        text = strip_editorial(text)
    text = drop_image(text, image_path)

    doc = run_stages(text, build_stages(resolver))
    html = render(doc)
    if include_assets:
        html = append_assets(html, doc.regions)
    logger.debug("Converted %d blocks, %d protected regions", len(doc.blocks), len(doc.regions))
    return html


def convert_links_only(markdown: str, resolver: WikiLinkResolver, link_format: str = "markdown") -> LinkReport:
    """Resolve wikilinks in markdown that stays markdown; code and math are left untouched."""
    protected = protect(normalize(markdown))
    report = resolver.process(protected.text, link_format)
    processed = restore(Protected(text=report.processed, regions=protected.regions))
    return report.model_copy(update={"processed": processed})


def convert_source(
    text: str,
    resolver: WikiLinkResolver = None,
    *,
    include_assets: bool = True,
    strip_editorial_blocks: bool = True,
    image_path: Optional[str] = None,
    ) -> list[Conversion]:
    """Convert a source body: one Conversion per language if bilingual, else a single one."""
    text = normalize(text)
    convert = partial(
        convert_markdown, resolver=resolver,
        include_assets=include_assets, strip_editorial_blocks=strip_editorial_blocks,
    )

    doc = bilingual.parse(text) if bilingual.detect(text) else None
    if doc is None:
        return [Conversion(html=convert(text, image_path=image_path))]

    conversions = []
    for lang in bilingual.LANGUAGES:
        lang_doc = bilingual.language_document(doc, lang)
        html = convert(lang_doc.body, image_path=lang_doc.image_path or image_path)
        conversions.append(Conversion(lang=lang, document=lang_doc, html=html))
    logger.info("Converted bilingual source: %s", ", ".join(bilingual.LANGUAGES))
    return conversions
