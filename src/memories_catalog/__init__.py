"""Bookmark catalog tools: category import operations over a category/link tree."""

from memories_catalog.core.importer.applier import apply_operation
from memories_catalog.core.importer.loader import import_batch
from memories_catalog.core.importer.report import build_result, run_import
from memories_catalog.core.importer.runner import run_batch
from memories_catalog.core.store.catalog_store import CatalogStore
from memories_catalog.core.tree.navigation import resolve
from memories_catalog.protocols import CatalogStoreProtocol

__all__ = [
    "CatalogStore",
    "CatalogStoreProtocol",
    "apply_operation",
    "build_result",
    "import_batch",
    "resolve",
    "run_batch",
    "run_import",
]
