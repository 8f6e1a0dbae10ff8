"""Wikilink resolution against a publish index of already-published documents

Lookup order for a target: exact path, case-insensitive display name, then
path suffix (for `folder/name` references). The first entry in index order
wins; entries sharing a display name are not disambiguated further.
"""

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from pydantic import ValidationError

from mdpress.core.models import Backlink, IndexContractError, IndexEntry, LinkReport, WikiLink


logger = logging.getLogger(__name__)

# [[target]] or [[target|alias]], never ![[embed]]
WIKILINK_RE = re.compile(r"(?<!!)\[\[([^\]|]+)(?:\|([^\]]*))?\]\]")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp")
LINK_FORMATS = ("html", "markdown")


def is_image_target(target: str) -> bool:
    return target.lower().endswith(IMAGE_EXTENSIONS)


def _to_link(m: re.Match) -> Optional[WikiLink]:
    target = m.group(1).strip()
    if is_image_target(target):
        return None
    display = (m.group(2) or "").strip() or None
    return WikiLink(full_match=m.group(0), target=target, display=display)


def parse_wikilinks(text: str) -> list[WikiLink]:
    """Return every non-image wikilink in text, in order of appearance."""
    return [link for m in WIKILINK_RE.finditer(text) if (link := _to_link(m))]


def _norm(path: str) -> str:
    return path.replace("\\", "/").lower()


def _strip_md(path: str) -> str:
    return path[:-3] if path.lower().endswith(".md") else path


class PublishIndex:
    """Ordered, read-only view over the host's publish index entries."""

    def __init__(self, entries: Iterable[IndexEntry] = ()):
        self.entries: list[IndexEntry] = list(entries)

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "PublishIndex":
        """Validate raw records against the IndexEntry contract. Raises IndexContractError."""
        entries = []
        for i, record in enumerate(records):
            try:
                entries.append(IndexEntry.model_validate(record))
            except ValidationError as e:
                raise IndexContractError(f"Publish index entry {i} is invalid: {e}") from e
        return cls(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def find(self, target: str) -> Optional[IndexEntry]:
        """Return the first entry matching target by path, display name, then path suffix."""
        exact = target if target.lower().endswith(".md") else f"{target}.md"
        for entry in self.entries:
            if entry.path in (target, exact):
                return entry

        wanted = target.lower()
        for entry in self.entries:
            if entry.display_name.lower() == wanted:
                return entry

        suffix = _norm(target)
        for entry in self.entries:
            if _strip_md(_norm(entry.path)).endswith(suffix):
                return entry
        return None


def load_index(path: Path) -> PublishIndex:
    """Load a publish index from a YAML list of entry records; a missing file is an empty index."""
    if not path.exists():
        logger.info("No publish index at %s; wikilinks will degrade to text", path)
        return PublishIndex()
    try:
        records = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    except yaml.YAMLError as e:
        raise IndexContractError(f"Invalid publish index {path}: {e}") from e
    if not isinstance(records, list):
        raise IndexContractError(f"Invalid publish index {path}: expected a list, got {type(records).__name__}")
    return PublishIndex.from_records(records)


def dump_index(index: PublishIndex, path: Path) -> None:
    records = [e.model_dump(exclude_defaults=True) for e in index]
    path.write_text(yaml.safe_dump(records, sort_keys=False, allow_unicode=True), encoding="utf-8")


class WikiLinkResolver:
    """Resolve wikilink targets to published URLs, memoized per instance.

    URL priority: primary URL, then the localized URL of `language`, then the
    secondary URL. Misses are memoized too; call clear_cache() after the
    index changes.
    """

    def __init__(self, index: PublishIndex, language: str = "fr"):
        self.index = index
        self.language = language
        self._cache: dict[str, Optional[str]] = {}

    def _published_url(self, entry: IndexEntry) -> Optional[str]:
        return entry.primary_url or entry.localized_urls.get(self.language)

    def resolve(self, target: str) -> Optional[str]:
        if target in self._cache:
            return self._cache[target]

        entry = self.index.find(target)
        if entry is None:
            logger.debug("Wikilink target not found: %s", target)
            url = None
        else:
            url = self._published_url(entry) or entry.secondary_url
            logger.debug("Wikilink %s -> %s (%s)", target, url, entry.path)

        self._cache[target] = url
        return url

    def clear_cache(self) -> None:
        self._cache.clear()

    def render(self, link: WikiLink, link_format: str = "html") -> str:
        """Render a link as an anchor or markdown link; unresolved links become plain text."""
        if link_format not in LINK_FORMATS:
            raise ValueError(f"Unknown link format: {link_format}")
        url = link.resolved_url or self.resolve(link.target)
        if not url:
            return link.text
        if link_format == "markdown":
            return f"[{link.text}]({url})"
        return f'<a href="{url}">{link.text}</a>'

    def process(self, text: str, link_format: str = "html") -> LinkReport:
        """Rewrite every wikilink in text and report resolved and unresolved targets."""
        resolved: list[tuple[str, str]] = []
        unresolved: list[str] = []

        def _rewrite(m: re.Match) -> str:
            link = _to_link(m)
            if link is None:
                return m.group(0)
            url = self.resolve(link.target)
            if url:
                resolved.append((link.target, url))
                link = link.model_copy(update={"resolved_url": url})
            else:
                unresolved.append(link.target)
            return self.render(link, link_format)

        processed = WIKILINK_RE.sub(_rewrite, text)
        if unresolved:
            logger.warning("Unresolved wikilinks (no published URL): %s", ", ".join(unresolved))
        return LinkReport(processed=processed, resolved=resolved, unresolved=unresolved)

    def published_backlinks(self, target: IndexEntry) -> list[Backlink]:
        """Return published entries that link to target; republishing them is the caller's job."""
        name = target.display_name.lower()
        backlinks = []
        for entry in self.index:
            if entry.path == target.path:
                continue
            links_here = any(
                (link := _norm(raw)) == name or link.endswith(f"/{name}") for raw in entry.links
            )
            if not links_here:
                continue
            url = self._published_url(entry)
            if not url:
                continue
            backlinks.append(Backlink(entry=entry, url=url, published_id=entry.published_id))

        logger.debug("Found %d published backlinks for %s", len(backlinks), target.display_name)
        return backlinks
