"""Aggregate per-operation outcomes into an ImportResult."""

import io
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import timedelta
from typing import Any

from loguru import logger

from memories_catalog.core.importer.runner import run_batch
from memories_catalog.models.catalog import Catalog
from memories_catalog.models.operations import (
    ImportBatch,
    ImportResult,
    OperationOutcome,
    OperationStatus,
)


def build_result(
    outcomes: Sequence[OperationOutcome],
    categories_modified: Iterable[str],
    elapsed: timedelta,
) -> ImportResult:
    """Count outcomes by status and freeze everything into an ImportResult."""
    counts = Counter(o.status for o in outcomes)
    return ImportResult(
        total_operations=len(outcomes),
        successful=counts[OperationStatus.SUCCEEDED],
        failed=counts[OperationStatus.FAILED],
        skipped=counts[OperationStatus.SKIPPED],
        outcomes=tuple(outcomes),
        categories_modified=tuple(dict.fromkeys(categories_modified)),
        import_duration=elapsed,
    )


def run_import(catalog: Catalog, batch: ImportBatch) -> ImportResult:
    """Run a batch against the catalog and build its report."""
    run = run_batch(catalog, batch)
    result = build_result(run.outcomes, run.categories_modified, run.elapsed)
    logger.info(
        "Import complete: {} operations, {} successful, {} failed, {} skipped",
        result.total_operations, result.successful, result.failed, result.skipped,
    )
    return result


def result_to_dict(result: ImportResult) -> dict[str, Any]:
    """JSON-serializable form of an ImportResult."""
    return {
        "success": result.success,
        "total_operations": result.total_operations,
        "successful": result.successful,
        "failed": result.failed,
        "skipped": result.skipped,
        "categories_modified": list(result.categories_modified),
        "import_duration_seconds": result.import_duration.total_seconds(),
        "outcomes": [
            {
                "operation": o.kind.value,
                "target": o.target.value,
                "status": o.status.value,
                "message": o.message,
                "identifier": {
                    k: v for k, v in vars(o.identifier).items() if v is not None
                },
            }
            for o in result.outcomes
        ],
    }


def format_summary(result: ImportResult, *, max_listed: int = 10) -> str:
    """Human-readable summary: counts, modified categories and failures."""
    out = io.StringIO()
    status = "completed" if result.success else "completed with errors"
    out.write(f"Import {status} in {result.import_duration.total_seconds():.2f}s\n")
    out.write(f"  Total operations: {result.total_operations}\n")
    out.write(f"  Successful: {result.successful}\n")
    out.write(f"  Failed: {result.failed}\n")
    out.write(f"  Skipped: {result.skipped}\n")

    if result.categories_modified:
        out.write(f"\nCategories modified ({len(result.categories_modified)}):\n")
        for name in result.categories_modified[:max_listed]:
            out.write(f"  - {name}\n")
        hidden = len(result.categories_modified) - max_listed
        if hidden > 0:
            out.write(f"  ... and {hidden} more\n")

    failures = result.failures
    if failures:
        out.write("\nFailed operations:\n")
        for o in failures:
            out.write(f"  - {o.kind.value} {o.target.value}: {o.message}\n")

    return out.getvalue()
