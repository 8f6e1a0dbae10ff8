"""Unit tests for config.py"""

import pytest
from pydantic import ValidationError

from mdpress.config import load_config


def test_load_config_defaults(tmp_path, monkeypatch):
    """Settings defaults apply when no config.yaml, env var, or CLI override exists."""
    monkeypatch.chdir(tmp_path)
    settings = load_config()
    assert settings.output_dir == "dist"
    assert settings.index_file == "publish_index.yaml"
    assert settings.link_format == "markdown"
    assert settings.primary_language == "fr"
    assert settings.include_assets is True
    assert settings.text_limit == 3000


def test_load_config_reads_config_yaml(tmp_path, monkeypatch):
    """Values in config.yaml override the defaults."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("output_dir: site\nprimary_url_key: url\n")
    settings = load_config()
    assert settings.output_dir == "site"
    assert settings.primary_url_key == "url"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """MDPRESS_OUTPUT_DIR takes precedence over config.yaml output_dir."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("output_dir: site\n")
    monkeypatch.setenv("MDPRESS_OUTPUT_DIR", "public")
    settings = load_config()
    assert settings.output_dir == "public"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("MDPRESS_INDEX_FILE", "env.yaml")
    settings = load_config(overrides={"index_file": "cli.yaml", "output_dir": None})
    assert settings.index_file == "cli.yaml"
    assert settings.output_dir == "dist"


def test_load_config_invalid_yaml(tmp_path, monkeypatch):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


# --- env var coercion ---

def test_load_config_env_text_limit(monkeypatch):
    """MDPRESS_TEXT_LIMIT env var is coerced to int."""
    monkeypatch.setenv("MDPRESS_TEXT_LIMIT", "280")
    assert load_config().text_limit == 280


def test_load_config_env_include_assets(monkeypatch):
    """MDPRESS_INCLUDE_ASSETS env var is coerced to bool."""
    monkeypatch.setenv("MDPRESS_INCLUDE_ASSETS", "false")
    assert load_config().include_assets is False


def test_load_config_rejects_unknown_link_format():
    """link_format only accepts html or markdown."""
    with pytest.raises(ValidationError):
        load_config(overrides={"link_format": "rst"})


def test_load_config_rejects_bad_log_level(monkeypatch):
    """MDPRESS_LOG_LEVEL must name a logging level."""
    monkeypatch.setenv("MDPRESS_LOG_LEVEL", "LOUD")
    with pytest.raises(ValueError):
        load_config()
