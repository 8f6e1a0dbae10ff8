"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdpress.config import Settings, load_config
from mdpress.core import bilingual
from mdpress.core.index import build_index
from mdpress.core.models import Conversion, IndexContractError, PlaceholderError
from mdpress.core.parse import SourceDoc, discover_files, read_source
from mdpress.core.pipeline import convert_links_only, convert_source
from mdpress.core.plaintext import compose_post
from mdpress.core.wikilinks import PublishIndex, WikiLinkResolver, dump_index, load_index


IMAGE_KEYS = ("image_path", "image", "enluminure")


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _index(settings: Settings) -> PublishIndex:
    try:
        return load_index(Path(settings.index_file))
    except IndexContractError as e:
        _fail("Invalid publish index", e)


def _read(path: Path) -> SourceDoc:
    try:
        return read_source(path)
    except (OSError, ValueError) as e:
        _fail(f"Cannot read {path}", e)


def _image_path(frontmatter: dict) -> Optional[str]:
    return next((str(frontmatter[k]) for k in IMAGE_KEYS if frontmatter.get(k)), None)


def _write_conversions(source: SourceDoc, conversions: list[Conversion], dest_dir: Path) -> list[Path]:
    """Write <stem>.html, or <stem>.<lang>.html per language plus a <stem>.json metadata sidecar."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    stem = source.path.stem
    written = []
    for c in conversions:
        html_path = dest_dir / (f"{stem}.{c.lang}.html" if c.lang else f"{stem}.html")
        html_path.write_text(c.html, encoding="utf-8")
        written.append(html_path)

    if any(c.lang for c in conversions):
        meta = {
            "common": bilingual.common_frontmatter(source.frontmatter),
            **{c.lang: c.document.model_dump(exclude={"body"}) for c in conversions},
        }
        json_path = dest_dir / f"{stem}.json"
        json_path.write_text(json.dumps(meta, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
        written.append(json_path)
    return written


def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
    ):
    """Configure logging before any command runs."""
    level = "DEBUG" if verbose else _settings().log_level
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)


def convert_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to convert")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    index: Annotated[Optional[str], typer.Option("--index", help="Publish index YAML")] = None,
    no_assets: Annotated[bool, typer.Option("--no-assets", help="Do not append mermaid/KaTeX scripts")] = False,
    ):
    """Convert markdown notes to HTML; bilingual notes produce one file per language."""
    settings = _settings(overrides={
        "output_dir": out, "index_file": index, "include_assets": False if no_assets else None,
    })
    src = Path(path)
    files = discover_files(src)
    if not files:
        _fail(f"No markdown files found at {path}")

    resolver = WikiLinkResolver(_index(settings), language=settings.primary_language)
    output_dir = Path(settings.output_dir)
    for p in files:
        source = _read(p)
        try:
            conversions = convert_source(
                source.body, resolver,
                include_assets=settings.include_assets,
                strip_editorial_blocks=settings.strip_editorial,
                image_path=_image_path(source.frontmatter),
            )
        except PlaceholderError as e:
            _fail(f"Conversion failed for {p}", e)
        dest_dir = output_dir / p.parent.relative_to(src) if src.is_dir() else output_dir
        for out_file in _write_conversions(source, conversions, dest_dir):
            typer.echo(f"  {p} -> {out_file}")
    typer.echo(f"Converted {len(files)} document(s) to {output_dir}/")


def bilingual_cmd(
    path: Annotated[str, typer.Argument(help="Bilingual markdown file")],
    ):
    """Print the French and English metadata of a bilingual note as JSON."""
    source = _read(Path(path))
    doc = bilingual.parse(source.body) if bilingual.detect(source.body) else None
    if doc is None:
        _fail(f"{path} is not a complete bilingual document")
    data = {
        "common": bilingual.common_frontmatter(source.frontmatter),
        "fr": doc.fr.model_dump(exclude={"body"}),
        "en": doc.en.model_dump(exclude={"body"}),
    }
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def links_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    index: Annotated[Optional[str], typer.Option("--index", help="Publish index YAML")] = None,
    link_format: Annotated[Optional[str], typer.Option("--link-format", help="markdown or html")] = None,
    ):
    """Print the note with wikilinks resolved; code and math are left untouched."""
    settings = _settings(overrides={"index_file": index, "link_format": link_format})
    source = _read(Path(path))
    resolver = WikiLinkResolver(_index(settings), language=settings.primary_language)
    report = convert_links_only(source.body, resolver, settings.link_format)
    typer.echo(report.processed)
    for target in report.unresolved:
        typer.echo(f"  unresolved: {target}", err=True)


def index_cmd(
    root: Annotated[str, typer.Argument(help="Directory of notes to index")],
    out: Annotated[Optional[str], typer.Option("--out", help="Publish index YAML to write")] = None,
    ):
    """Build the publish index from note frontmatter and outgoing wikilinks."""
    settings = _settings(overrides={"index_file": out})
    root_dir = Path(root)
    if not root_dir.is_dir():
        _fail(f"Not a directory: {root}")
    try:
        index = build_index(root_dir, settings.primary_url_key, settings.secondary_url_key, settings.id_key)
    except ValueError as e:
        _fail("Index build failed", e)
    index_path = Path(settings.index_file)
    dump_index(index, index_path)
    typer.echo(f"Indexed {len(index)} document(s) to {index_path}")


def backlinks_cmd(
    name: Annotated[str, typer.Argument(help="Target note name or path")],
    index: Annotated[Optional[str], typer.Option("--index", help="Publish index YAML")] = None,
    ):
    """List published documents that link to NAME."""
    settings = _settings(overrides={"index_file": index})
    publish_index = _index(settings)
    entry = publish_index.find(name)
    if entry is None:
        _fail(f"No index entry for {name}")
    resolver = WikiLinkResolver(publish_index, language=settings.primary_language)
    backlinks = resolver.published_backlinks(entry)
    for b in backlinks:
        typer.echo(f"  {b.entry.display_name} -> {b.url}")
    typer.echo(f"{len(backlinks)} published backlink(s) to {entry.display_name}")


def text_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    limit: Annotated[Optional[int], typer.Option("--limit", help="Max post length in characters")] = None,
    link: Annotated[Optional[str], typer.Option("--link", help="Article URL appended as a footer")] = None,
    ):
    """Print the note as a plain-text social post."""
    settings = _settings(overrides={"text_limit": limit})
    source = _read(Path(path))
    fm = source.frontmatter
    tags = fm.get("tags") or []
    if isinstance(tags, str):
        tags = tags.split(",")
    typer.echo(compose_post(source.body, [str(t).strip() for t in tags], link, fm.get("title"), settings.text_limit))
