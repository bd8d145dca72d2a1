"""Shared test fixtures."""

import json
from pathlib import Path

import pytest

from memories_catalog.models.catalog import Catalog, category, link
from tests.unit.fakes import EARLIER, SAMPLE_IMPORT


@pytest.fixture
def sample_catalog() -> Catalog:
    """Two roots, each with a nested category and links.

    Personal
        Recipes
            Pasta
        Blog
    Work
        Projects
            Tracker
        Wiki
    """
    return Catalog(
        roots=[
            category(
                "Personal",
                category("Recipes", link("Pasta", "https://pasta.example")),
                link("Blog", "https://blog.example", description="my blog"),
                created=EARLIER,
                modified=EARLIER,
            ),
            category(
                "Work",
                category(
                    "Projects",
                    link("Tracker", "https://tracker.example", created=EARLIER, modified=EARLIER),
                ),
                link("Wiki", "https://wiki.example"),
                created=EARLIER,
                modified=EARLIER,
            ),
        ]
    )


@pytest.fixture
def import_file(tmp_path: Path) -> Path:
    """Write SAMPLE_IMPORT to disk and return its path."""
    path = tmp_path / "changes.json"
    path.write_text(json.dumps(SAMPLE_IMPORT))
    return path
