"""Publish index builder: one IndexEntry per note, from frontmatter URLs and outgoing wikilinks"""

import logging
from pathlib import Path
from typing import Any

from mdpress.core.bilingual import LANGUAGES
from mdpress.core.parse import discover_files, read_source
from mdpress.core.wikilinks import PublishIndex, parse_wikilinks


logger = logging.getLogger(__name__)


def index_record(
    source_path: Path,
    root: Path,
    frontmatter: dict[str, Any],
    body: str,
    primary_url_key: str = "wordpress_url",
    secondary_url_key: str = "substack_url",
    id_key: str = "wordpress_id",
    ) -> dict[str, Any]:
    """Build a raw index record; localized URLs live under `<primary_url_key>_<lang>`."""
    localized = {
        lang: frontmatter[f"{primary_url_key}_{lang}"]
        for lang in LANGUAGES
        if frontmatter.get(f"{primary_url_key}_{lang}")
    }
    return {
        "display_name": source_path.stem,
        "path": source_path.relative_to(root).as_posix(),
        "primary_url": frontmatter.get(primary_url_key) or None,
        "localized_urls": localized,
        "secondary_url": frontmatter.get(secondary_url_key) or None,
        "links": list(dict.fromkeys(link.target for link in parse_wikilinks(body))),
        "published_id": frontmatter.get(id_key),
    }


def build_index(
    root: Path,
    primary_url_key: str = "wordpress_url",
    secondary_url_key: str = "substack_url",
    id_key: str = "wordpress_id",
    ) -> PublishIndex:
    """Scan every note under root. Raises IndexContractError if a record is invalid."""
    records = []
    for path in discover_files(root):
        source = read_source(path)
        records.append(index_record(
            path, root, source.frontmatter, source.body,
            primary_url_key, secondary_url_key, id_key,
        ))
    index = PublishIndex.from_records(records)
    published = sum(1 for e in index if e.primary_url or e.localized_urls or e.secondary_url)
    logger.info("Indexed %d notes (%d published) under %s", len(index), published, root)
    return index
