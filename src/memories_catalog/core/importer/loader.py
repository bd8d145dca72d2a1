"""Orchestrate importing a batch into the persisted catalog."""

from collections.abc import Iterable

from loguru import logger

from memories_catalog.core.importer.report import run_import
from memories_catalog.models.catalog import Catalog
from memories_catalog.models.operations import ImportBatch, ImportResult
from memories_catalog.protocols import CatalogStoreProtocol


def persist_modified(
    store: CatalogStoreProtocol, catalog: Catalog, names: Iterable[str]
) -> tuple[int, int]:
    """Save every modified root that still exists, delete the files of the others.

    Returns:
        Tuple of (roots saved, roots deleted).
    """
    saved = deleted = 0
    for name in names:
        root = catalog.find_root(name)
        if root is not None:
            store.save_category(root)
            saved += 1
        else:
            store.delete_category(name)
            deleted += 1
    return saved, deleted


def import_batch(
    store: CatalogStoreProtocol,
    batch: ImportBatch,
    *,
    dry_run: bool = False,
) -> ImportResult:
    """Load the catalog, apply the batch and persist the touched roots.

    Args:
        store: Persistence layer for root categories.
        batch: The decoded batch.
        dry_run: If True, run the batch but do not write anything.

    Returns:
        The ImportResult of the run.
    """
    catalog = store.load_catalog()
    result = run_import(catalog, batch)

    if dry_run:
        logger.info("Dry run: {} categories not saved", len(result.categories_modified))
        return result

    saved, deleted = persist_modified(store, catalog, result.categories_modified)
    logger.info("Saved {} categories, removed {}", saved, deleted)
    return result
