"""Root test configuration: isolate tests from the caller's MDPRESS_* environment"""

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Drop MDPRESS_* variables and restore the root log level the CLI callback may change."""
    for name in list(os.environ):
        if name.startswith("MDPRESS_"):
            monkeypatch.delenv(name)
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
