"""File discovery and frontmatter extraction for source notes"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*(?:\n|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.markdown'}


@dataclass
class SourceDoc:
    path:        Path
    frontmatter: dict[str, Any] = field(default_factory=dict)
    body:        str = ""


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with the YAML header removed."""
    text = text.replace("\r\n", "\n")
    m = FRONTMATTER_RE.match(text)
    if not m:
        return {}, text
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(fm, dict):
        raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
    return fm, text[m.end():]


def discover_files(path: Path) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def read_source(path: Path) -> SourceDoc:
    """Read one note and split off its frontmatter. Raises ValueError on bad YAML."""
    frontmatter, body = split_frontmatter(path.read_text(encoding='utf-8'))
    return SourceDoc(path=path, frontmatter=frontmatter, body=body)
