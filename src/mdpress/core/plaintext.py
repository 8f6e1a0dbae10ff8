"""Plain-text rendering for social posts that accept no markup"""

import re
from typing import Iterable, Optional

from mdpress.core.parse import FRONTMATTER_RE


POST_LIMIT = 3000
HASHTAG_RE = re.compile(r"#([A-Za-z0-9_À-ÿ]+)")
TAG_STRIP_RE = re.compile(r"[^A-Za-z0-9À-ÿ]")

# (pattern, replacement) applied in order; list bullets go before emphasis, code blocks before inline code.
PLAIN_PASSES: tuple[tuple[re.Pattern, object], ...] = (
    (re.compile(r"!\[[^\]]*\]\([^)]+\)"),              ""),
    (re.compile(r"!\[\[[^\]]+\]\]"),                   ""),
    (re.compile(r"^#{1,6}[ \t]+(.+)$", re.MULTILINE),  r"\n\1\n"),
    (re.compile(r"^[-*+][ \t]+(.+)$", re.MULTILINE),   "• \\1"),
    (re.compile(r"\*\*([^*\n]+)\*\*"),                 r"\1"),
    (re.compile(r"__([^_\n]+)__"),                     r"\1"),
    (re.compile(r"\*([^*\n]+)\*"),                     r"\1"),
    (re.compile(r"(?<!\w)_([^_\n]+)_(?!\w)"),          r"\1"),
    (re.compile(r"```[^\n]*\n?([\s\S]*?)\n?```"),      r"\n\1\n"),
    (re.compile(r"`([^`]+)`"),                         r'"\1"'),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"),           r"\1 (\2)"),
    (re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]"),  lambda m: m.group(2) or m.group(1)),
    (re.compile(r"^>[ \t]*(.+)$", re.MULTILINE),       "« \\1 »"),
    (re.compile(r"^[-*_]{3,}$", re.MULTILINE),         "\n---\n"),
    (re.compile(r"\n{3,}"),                            "\n\n"),
)


def to_plain_text(markdown: str) -> str:
    """Strip markdown syntax, keeping readable text and link URLs."""
    text = markdown.replace("\r\n", "\n")
    text = FRONTMATTER_RE.sub("", text, count=1)
    for pattern, repl in PLAIN_PASSES:
        text = pattern.sub(repl, text)
    return text.strip()


def extract_hashtags(markdown: str, tags: Optional[Iterable[str]] = None) -> list[str]:
    """Hashtags from tags first, then those already in the text; de-duplicated, in order."""
    hashtags = []
    for tag in tags or ():
        cleaned = TAG_STRIP_RE.sub("", tag)
        if cleaned:
            hashtags.append(f"#{cleaned}")
    hashtags += [f"#{m.group(1)}" for m in HASHTAG_RE.finditer(markdown)]
    return list(dict.fromkeys(hashtags))


def append_hashtags(content: str, hashtags: list[str]) -> str:
    """Append hashtags not already present (case-insensitive) as a final line."""
    lowered = content.lower()
    missing = [h for h in hashtags if h.lower() not in lowered]
    if not missing:
        return content
    return f"{content}\n\n{' '.join(missing)}"


def truncate(content: str, limit: int = POST_LIMIT) -> str:
    """Cut content to limit characters, preferring a sentence end, then a word boundary, plus '...'."""
    if len(content) <= limit:
        return content

    cut = content[:limit - 3]
    sentence = cut.rfind(". ")
    if sentence > limit * 0.7:
        cut = cut[:sentence + 1]
    else:
        space = cut.rfind(" ")
        if space > limit * 0.8:
            cut = cut[:space]
    return f"{cut}..."


def with_article_link(content: str, url: Optional[str], title: Optional[str] = None, limit: int = POST_LIMIT) -> str:
    """Append a read-more footer, truncating content first so the post stays within limit."""
    if not url:
        return content
    footer = f"\n\n\U0001f4d6 Read the full article: {title}\n{url}" if title else f"\n\n\U0001f4d6 {url}"
    room = limit - len(footer) - 10
    if len(content) > room:
        content = truncate(content, room)
    return content + footer


def compose_post(
    markdown: str,
    tags: Optional[Iterable[str]] = None,
    url: Optional[str] = None,
    title: Optional[str] = None,
    limit: int = POST_LIMIT,
    ) -> str:
    """Render markdown as a complete plain-text post: text, hashtags, then the optional article link."""
    content = append_hashtags(to_plain_text(markdown), extract_hashtags(markdown, tags))
    if url:
        return with_article_link(content, url, title, limit)
    return truncate(content, limit)
