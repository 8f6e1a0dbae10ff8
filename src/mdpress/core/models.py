"""Data models for the conversion pipeline, bilingual parser, and publish index"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


TOKEN_OPEN = "\ue000"
TOKEN_CLOSE = "\ue001"


class PlaceholderError(RuntimeError):
    """A placeholder token survived rendering; always a pipeline defect."""


class IndexContractError(ValueError):
    """A publish index record does not satisfy the IndexEntry contract."""


# --- protected regions and stage values ---

class RegionKind(str, Enum):
    code_block   = "code-block"
    inline_code  = "inline-code"
    math_display = "math-display"
    math_inline  = "math-inline"
    diagram      = "diagram"
    wikilink     = "wikilink"

    @property
    def is_block(self) -> bool:
        return self in (RegionKind.code_block, RegionKind.math_display, RegionKind.diagram)


@dataclass(frozen=True)
class ProtectedRegion:
    """An opaque span swapped out of the text until final rendering."""
    kind:     RegionKind
    index:    int
    original: str           # matched source text, verbatim
    rendered: str           # final markup substituted at render time
    token:    str           # exact string inserted in place of original

    @property
    def marker(self) -> str:
        return f"{TOKEN_OPEN}{self.kind.value}:{self.index}{TOKEN_CLOSE}"


Regions = tuple[ProtectedRegion, ...]


class BlockKind(str, Enum):
    heading      = "heading"
    list         = "list"
    table        = "table"
    blockquote   = "blockquote"
    rule         = "rule"
    image        = "image"
    region       = "region"
    preformatted = "preformatted"
    paragraph    = "paragraph"
    spacer       = "spacer"


@dataclass(frozen=True)
class Block:
    """One output block; paragraphs hold text lines, spacers none, the rest one markup line."""
    kind:  BlockKind
    lines: tuple[str, ...] = ()


@dataclass
class Table:
    headers: list[str]
    rows:    list[list[str]] = field(default_factory=list)


@dataclass(frozen=True)
class Protected:
    """Text with opaque regions replaced by placeholder tokens."""
    text:    str
    regions: Regions = ()


@dataclass(frozen=True)
class Structured:
    """Protected text whose line-anchored block constructs are converted to markup."""
    text:    str
    regions: Regions = ()


@dataclass(frozen=True)
class Paragraphed:
    """Ordered blocks after paragraph reconstruction; inline syntax still raw."""
    blocks:  tuple[Block, ...]
    regions: Regions = ()


@dataclass(frozen=True)
class Inlined:
    """Blocks with inline syntax converted; only placeholders remain to render."""
    blocks:  tuple[Block, ...]
    regions: Regions = ()


# --- bilingual documents ---

class LanguageDocument(BaseModel):
    """Per-language metadata and markdown body extracted from a callout."""
    title:         str
    subtitle:      Optional[str] = None
    excerpt:       Optional[str] = None
    slug:          Optional[str] = None
    focus_keyword: Optional[str] = None
    tags:          Optional[list[str]] = None
    image_path:    Optional[str] = None
    body:          str = ""


class BilingualDocument(BaseModel):
    """A complete fr/en pair; never built with only one side."""
    fr: LanguageDocument
    en: LanguageDocument


# --- wikilinks and publish index ---

class WikiLink(BaseModel):
    full_match:   str
    target:       str
    display:      Optional[str] = None
    resolved_url: Optional[str] = None

    @property
    def text(self) -> str:
        return self.display or self.target


class LinkReport(BaseModel):
    """Result of rewriting every wikilink in a text."""
    processed:  str
    resolved:   list[tuple[str, str]] = Field(default_factory=list)
    unresolved: list[str] = Field(default_factory=list)


class IndexEntry(BaseModel):
    """Publish index contract: one indexed document and its published URLs."""
    display_name:   str
    path:           str
    primary_url:    Optional[str] = None
    localized_urls: dict[str, str] = Field(default_factory=dict, description="lang -> url")
    secondary_url:  Optional[str] = None
    links:          list[str] = Field(default_factory=list, description="Raw outgoing wikilink targets")
    published_id:   Optional[int] = None


class Backlink(BaseModel):
    entry:        IndexEntry
    url:          str
    published_id: Optional[int] = None


class Conversion(BaseModel):
    """One converted output: a single-language document or one side of a bilingual pair."""
    lang:     Optional[str] = None
    document: Optional[LanguageDocument] = None
    html:     str
