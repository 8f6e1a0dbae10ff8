"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:          str  = "mdpress"
    output_dir:        str  = Field(default="dist",               description="Directory for converted HTML + JSON files")
    index_file:        str  = Field(default="publish_index.yaml", description="Publish index YAML used to resolve wikilinks")
    link_format:       str  = Field(default="markdown", pattern="^(html|markdown)$", description="Wikilink rendering for the links command")
    primary_language:  str  = Field(default="fr",   description="Language whose localized URL follows the primary URL")
    include_assets:    bool = Field(default=True,   description="Append mermaid/KaTeX assets when needed")
    strip_editorial:   bool = Field(default=True,   description="Drop dataview blocks and SPEC callouts")
    primary_url_key:   str  = Field(default="wordpress_url", description="Frontmatter key holding the primary URL")
    secondary_url_key: str  = Field(default="substack_url",  description="Frontmatter key holding the secondary URL")
    id_key:            str  = Field(default="wordpress_id",  description="Frontmatter key holding the published id")
    text_limit:        int  = Field(default=3000, ge=1, description="Max characters for plain-text posts")
    log_level:         str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDPRESS_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MDPRESS_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
