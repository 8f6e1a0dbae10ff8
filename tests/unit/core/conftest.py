"""Shared fixtures for core unit tests"""

import pytest

from mdpress.core.wikilinks import PublishIndex, WikiLinkResolver


INDEX_RECORDS = [
    {
        "display_name": "Primary Note",
        "path": "notes/Primary Note.md",
        "primary_url": "https://blog.example/primary",
        "links": ["Target"],
    },
    {
        "display_name": "Localized",
        "path": "notes/Localized.md",
        "localized_urls": {"fr": "https://blog.example/fr/localized", "en": "https://blog.example/en/localized"},
        "links": ["notes/Target"],
    },
    {
        "display_name": "Secondary Only",
        "path": "drafts/Secondary Only.md",
        "secondary_url": "https://letter.example/p/secondary",
        "links": ["Target"],
    },
    {
        "display_name": "Unpublished",
        "path": "drafts/Unpublished.md",
        "links": ["Target"],
    },
    {
        "display_name": "Target",
        "path": "notes/Target.md",
        "primary_url": "https://blog.example/target",
        "published_id": 42,
    },
    {
        "display_name": "Deep",
        "path": "archive/2024/Deep.md",
        "primary_url": "https://blog.example/deep",
    },
]

BILINGUAL_MD = """\
> [!info]- 🇫🇷 Version française
> **title:** Bonjour
> **tags:** un, deux, 
> **description:** Un résumé
> ---
> # Contenu
> Texte français.

> [!info]- 🇬🇧 English version
> **title:** Hello
> ---
> English text.
"""


@pytest.fixture(name="index")
def index_fixture():
    return PublishIndex.from_records(INDEX_RECORDS)


@pytest.fixture(name="resolver")
def resolver_fixture(index):
    return WikiLinkResolver(index)


@pytest.fixture(name="bilingual_md")
def bilingual_md_fixture():
    return BILINGUAL_MD
