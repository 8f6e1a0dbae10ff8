"""Unit tests for core/parse.py"""

import pytest

from mdpress.core.parse import SourceDoc, discover_files, read_source, split_frontmatter


def test_split_frontmatter_with_yaml():
    """split_frontmatter extracts the YAML header and returns the body."""
    fm, body = split_frontmatter("---\ntitle: Hello\n---\n# Body\n")
    assert fm == {"title": "Hello"}
    assert body == "# Body\n"


def test_split_frontmatter_no_frontmatter():
    text = "# No frontmatter\n"
    assert split_frontmatter(text) == ({}, text)


def test_split_frontmatter_crlf():
    fm, body = split_frontmatter("---\r\ntags: [a, b]\r\n---\r\nBody\r\n")
    assert fm == {"tags": ["a", "b"]}
    assert body == "Body\n"


def test_split_frontmatter_invalid_yaml():
    with pytest.raises(ValueError, match="Invalid YAML frontmatter"):
        split_frontmatter("---\ntitle: [unclosed\n---\nBody")


def test_split_frontmatter_not_a_mapping():
    with pytest.raises(ValueError, match="expected a mapping"):
        split_frontmatter("---\n- a\n- b\n---\nBody")


def test_discover_files_single(tmp_path):
    f = tmp_path / "doc.md"
    f.write_text("# Hello")
    assert discover_files(f) == [f]


def test_discover_files_dir(tmp_path):
    """discover_files finds markdown files recursively and ignores the rest."""
    (tmp_path / "a.md").write_text("a")
    (tmp_path / "notes.txt").write_text("text")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.md").write_text("b")
    assert discover_files(tmp_path) == [tmp_path / "a.md", sub / "b.md"]


def test_read_source(tmp_path):
    f = tmp_path / "note.md"
    f.write_text("---\nwordpress_id: 7\n---\nBody\n", encoding="utf-8")
    assert read_source(f) == SourceDoc(path=f, frontmatter={"wordpress_id": 7}, body="Body\n")
