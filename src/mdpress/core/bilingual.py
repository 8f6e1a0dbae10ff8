"""Bilingual content parsing from French and English callout sections

Expected layout, callouts in either order:

    > [!info]- 🇫🇷 Version française
    > **title:** Mon titre
    > **tags:** tag1, tag2
    >
    > ---
    > # Contenu de l'article...

    > [!info]- 🇬🇧 English version
    > **title:** My title
    > ---
    > # Article content...

A result is never partial: if either language fails, parse() returns None.
"""

import logging
import re
from typing import Any, Optional

from markdown_it import MarkdownIt

from mdpress.core.models import BilingualDocument, LanguageDocument


logger = logging.getLogger(__name__)

FLAGS = {"fr": "🇫🇷", "en": "🇬🇧"}
LANGUAGES = tuple(FLAGS)

META_RE = re.compile(r"^\*\*([\w -]+):\*\*\s*(.+)$")
SEPARATORS = {"---", "***"}

META_KEYS = {
    "title":         "title",
    "subtitle":      "subtitle",
    "excerpt":       "excerpt",
    "description":   "excerpt",
    "slug":          "slug",
    "focus_keyword": "focus_keyword",
    "tags":          "tags",
    "image":         "image_path",
    "image_path":    "image_path",
    "enluminure":    "image_path",
}

COMMON_FRONTMATTER_KEYS = ("type", "date", "category", "categorie", "source", "conversation_url")


def _callout_re(flag: str, whole_line: bool = True) -> re.Pattern:
    pattern = rf">[ \t]*\[!info\][+-]?[ \t]*{re.escape(flag)}"
    if whole_line:
        pattern += r"[^\n]*(?:\n|$)"
    return re.compile(pattern, re.IGNORECASE)


def _other(lang: str) -> str:
    return next(code for code in LANGUAGES if code != lang)


def detect(text: str) -> bool:
    """True when a flagged callout header exists for both languages."""
    return all(_callout_re(flag, whole_line=False).search(text) for flag in FLAGS.values())


def _dequote(line: str) -> str:
    if line.startswith("> "):
        return line[2:]
    if line.startswith(">"):
        return line[1:]
    return line


def _callout_span(text: str, lang: str) -> Optional[str]:
    """Return the de-quoted text between lang's header and the other header (or end of text)."""
    header = _callout_re(FLAGS[lang]).search(text)
    if header is None:
        return None
    start = header.end()
    # First occurrence only; a repeated flag later in the text is body content.
    other = _callout_re(FLAGS[_other(lang)], whole_line=False).search(text, start)
    end = other.start() if other is not None else len(text)
    return "\n".join(_dequote(line) for line in text[start:end].split("\n")).strip()


def _meta_key(raw: str) -> Optional[str]:
    return META_KEYS.get(re.sub(r"[\s-]+", "_", raw.strip().lower()))


def first_h1(markdown: str) -> Optional[str]:
    """Return the first level-1 heading text, ignoring anything inside code blocks."""
    tokens = MarkdownIt("commonmark").parse(markdown)
    for i, tok in enumerate(tokens):
        if tok.type == "heading_open" and tok.tag == "h1" and i + 1 < len(tokens):
            return tokens[i + 1].content.strip() or None
    return None


def parse_language(callout: str) -> Optional[LanguageDocument]:
    """Read **key:** metadata up to the separator; the rest is the markdown body."""
    lines = callout.split("\n")
    meta: dict[str, Any] = {}
    body_start = 0

    for i, raw in enumerate(lines):
        line = raw.strip()
        if line in SEPARATORS:
            body_start = i + 1
            break
        m = META_RE.match(line)
        if not m:
            continue
        key = _meta_key(m.group(1))
        body_start = i + 1
        if key is None:
            continue
        value = m.group(2).strip()
        if key == "tags":
            meta[key] = [t.strip() for t in value.split(",") if t.strip()]
        else:
            meta[key] = value

    body = "\n".join(lines[body_start:]).strip()
    title = meta.pop("title", None) or first_h1(body)
    if not title:
        return None
    return LanguageDocument(title=title, body=body, **meta)


def parse(text: str) -> Optional[BilingualDocument]:
    """Split text into a fr/en pair, or None when either language is missing or untitled."""
    if not detect(text):
        return None

    docs = {}
    for lang in LANGUAGES:
        span = _callout_span(text, lang)
        doc = parse_language(span) if span is not None else None
        if doc is None:
            logger.info("Bilingual parse failed: no title for %s", lang)
            return None
        docs[lang] = doc
    return BilingualDocument(**docs)


def language_document(bilingual: BilingualDocument, lang: str) -> LanguageDocument:
    """Return the document for lang, falling back to French."""
    return bilingual.en if lang == "en" else bilingual.fr


def common_frontmatter(frontmatter: dict[str, Any]) -> dict[str, Any]:
    """Frontmatter fields shared by both language versions."""
    return {k: frontmatter[k] for k in COMMON_FRONTMATTER_KEYS if k in frontmatter}
