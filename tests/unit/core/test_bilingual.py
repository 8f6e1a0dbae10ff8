"""Unit tests for core/bilingual.py"""

from mdpress.core.bilingual import common_frontmatter, detect, first_h1, language_document, parse, parse_language


FR_ONLY = "> [!info]- 🇫🇷 Version française\n> **title:** Bonjour\n> ---\n> Texte.\n"


def test_detect_both_languages(bilingual_md):
    assert detect(bilingual_md)


def test_detect_missing_language():
    assert not detect(FR_ONLY)
    assert parse(FR_ONLY) is None


def test_detect_fold_marker_optional():
    text = "> [!INFO] 🇫🇷 FR\n> **title:** A\n\n> [!info]+ 🇬🇧 EN\n> **title:** B\n"
    assert detect(text)
    doc = parse(text)
    assert (doc.fr.title, doc.en.title) == ("A", "B")


def test_parse_titles_and_bodies(bilingual_md):
    doc = parse(bilingual_md)
    assert doc.fr.title == "Bonjour"
    assert doc.en.title == "Hello"
    assert doc.fr.body == "# Contenu\nTexte français."
    assert doc.en.body == "English text."


def test_parse_metadata_fields(bilingual_md):
    doc = parse(bilingual_md)
    assert doc.fr.tags == ["un", "deux"]
    assert doc.fr.excerpt == "Un résumé"
    assert doc.en.tags is None


def test_parse_either_order():
    text = (
        "> [!info]- 🇬🇧 English\n> **title:** Hello\n> ---\n> EN body\n\n"
        "> [!info]- 🇫🇷 Français\n> **title:** Bonjour\n> ---\n> FR body\n"
    )
    doc = parse(text)
    assert doc.en.body == "EN body"
    assert doc.fr.body == "FR body"


def test_parse_title_falls_back_to_h1():
    text = (
        "> [!info]- 🇫🇷 FR\n> **title:** Bonjour\n> ---\n> corps\n\n"
        "> [!info]- 🇬🇧 EN\n> # Heading EN\n> text\n"
    )
    assert parse(text).en.title == "Heading EN"


def test_parse_fails_without_any_title():
    text = (
        "> [!info]- 🇫🇷 FR\n> **title:** Bonjour\n\n"
        "> [!info]- 🇬🇧 EN\n> ```\n> # not a title\n> ```\n> text\n"
    )
    assert parse(text) is None


def test_parse_language_aliases_and_unknown_keys():
    doc = parse_language(
        "**Title:** T\n**Focus-Keyword:** kw\n**enluminure:** img/a.png\n**mood:** calm\n---\nbody"
    )
    assert doc.title == "T"
    assert doc.focus_keyword == "kw"
    assert doc.image_path == "img/a.png"
    assert doc.body == "body"
    assert "mood" not in doc.model_dump()


def test_parse_language_body_after_last_meta_line():
    doc = parse_language("**title:** T\n**slug:** t\n\nBody text")
    assert doc.slug == "t"
    assert doc.body == "Body text"


def test_first_h1_ignores_code_fences():
    assert first_h1("```\n# no\n```\n\n## Two\n\n# Yes") == "Yes"
    assert first_h1("no heading") is None


def test_language_document(bilingual_md):
    doc = parse(bilingual_md)
    assert language_document(doc, "en").title == "Hello"
    assert language_document(doc, "de").title == "Bonjour"


def test_common_frontmatter():
    fm = {"type": "essay", "date": "2026-01-15", "title": "X", "source": "notes"}
    assert common_frontmatter(fm) == {"type": "essay", "date": "2026-01-15", "source": "notes"}
