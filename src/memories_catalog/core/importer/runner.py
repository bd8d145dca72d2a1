"""Run an import batch against a catalog, one operation at a time."""

import time
from dataclasses import dataclass
from datetime import timedelta

from loguru import logger

from memories_catalog.core.importer.applier import apply_operation
from memories_catalog.models.catalog import Catalog
from memories_catalog.models.operations import ImportBatch, OperationOutcome, OperationStatus


@dataclass(frozen=True)
class BatchRun:
    """Raw output of a batch run, before aggregation."""

    outcomes: tuple[OperationOutcome, ...]
    categories_modified: tuple[str, ...]
    elapsed: timedelta


def run_batch(catalog: Catalog, batch: ImportBatch) -> BatchRun:
    """Apply every operation of the batch in order.

    Best effort: a failed operation is recorded and the run continues.
    Operations are never reordered or parallelized, since an Add may be
    followed by operations addressed into the node it just created.

    Args:
        catalog: The catalog to mutate in place.
        batch: The decoded batch.

    Returns:
        BatchRun with one outcome per operation and the distinct root
        categories touched by non-failed operations, in first-touched order.

    Raises:
        TypeError: if catalog or batch is missing.
    """
    if catalog is None:
        msg = "run_batch() requires a catalog"
        raise TypeError(msg)
    if batch is None:
        msg = "run_batch() requires a batch"
        raise TypeError(msg)

    outcomes: list[OperationOutcome] = []
    modified: dict[str, None] = {}
    total = len(batch.operations)

    start = time.perf_counter()
    for index, operation in enumerate(batch.operations, start=1):
        outcome = apply_operation(catalog, operation)
        outcomes.append(outcome)
        if outcome.status is not OperationStatus.FAILED:
            for name in outcome.modified_roots:
                modified.setdefault(name, None)
        logger.debug(
            "[{}/{}] {} {}: {} - {}",
            index, total, operation.kind.value, operation.target.value,
            outcome.status.value, outcome.message,
        )
    elapsed = timedelta(seconds=time.perf_counter() - start)

    return BatchRun(
        outcomes=tuple(outcomes),
        categories_modified=tuple(modified),
        elapsed=elapsed,
    )
