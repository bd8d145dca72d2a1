"""CLI for memories-catalog (preview, import, show)."""

import json
from pathlib import Path
from typing import Annotated

import requests
import typer
from loguru import logger

from memories_catalog.config import resolve_data_directory
from memories_catalog.core.importer.json_reader import BatchFormatError, load_batch
from memories_catalog.core.importer.loader import import_batch
from memories_catalog.core.importer.report import format_summary, result_to_dict
from memories_catalog.core.store.catalog_store import CatalogStore
from memories_catalog.core.tree.markdown import render_catalog_as_markdown
from memories_catalog.logging_config import configure_logging
from memories_catalog.models.operations import ImportBatch

app = typer.Typer(help="Manage a bookmark catalog: preview and apply category import files.")

# Maximum number of operations listed by `preview`.
_PREVIEW_LIMIT = 10


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _load_batch_or_exit(source: str) -> ImportBatch:
    try:
        return load_batch(source)
    except (OSError, BatchFormatError, requests.RequestException) as e:
        logger.error("Cannot read import file {}: {}", source, e)
        raise typer.Exit(1) from e


def _open_store(data_dir: Path | None) -> CatalogStore:
    dst = data_dir or resolve_data_directory()
    if not dst.is_dir():
        logger.error("Data directory not found: {}", dst)
        raise typer.Exit(1)
    return CatalogStore(dst)


@app.command()
def preview(
    source: str = typer.Argument(..., help="Import file path or http(s) URL"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show what an import file contains without applying it."""
    batch = _load_batch_or_exit(source)
    counts = batch.count_by_kind()

    if output_json:
        data = {
            "version": batch.version,
            "description": batch.description,
            "import_date": batch.import_date.isoformat() if batch.import_date else None,
            "total": len(batch.operations),
            "counts": {kind.value: n for kind, n in counts.items()},
        }
        typer.echo(json.dumps(data, indent=2))
        return

    if batch.description:
        typer.echo(batch.description)
    typer.echo(f"Version: {batch.version}")
    if batch.import_date:
        typer.echo(f"Import date: {batch.import_date:%Y-%m-%d %H:%M}")
    typer.echo(f"Total Operations: {len(batch.operations)}")
    for kind, n in counts.items():
        typer.echo(f"  {kind.value}: {n}")

    typer.echo()
    for op in batch.operations[:_PREVIEW_LIMIT]:
        typer.echo(f"  {op.kind.value} {op.target.value}: {op.identifier.describe()}")
    if len(batch.operations) > _PREVIEW_LIMIT:
        typer.echo(f"  ... and {len(batch.operations) - _PREVIEW_LIMIT} more")


@app.command(name="import")
def import_cmd(
    source: str = typer.Argument(..., help="Import file path or http(s) URL"),
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="Directory with category files"),
    ] = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write anything"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Apply an import file to the catalog and save the modified categories."""
    batch = _load_batch_or_exit(source)
    store = _open_store(data_dir)
    result = import_batch(store, batch, dry_run=dry_run)

    if output_json:
        typer.echo(json.dumps(result_to_dict(result), indent=2))
    else:
        typer.echo(format_summary(result), nl=False)

    if not result.success:
        raise typer.Exit(1)


@app.command()
def show(
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="Directory with category files"),
    ] = None,
    category: Annotated[
        str | None,
        typer.Option("--category", "-c", help="Category path to show, e.g. Work/Projects"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
) -> None:
    """Show the catalog (or one category) as markdown."""
    catalog = _open_store(data_dir).load_catalog()
    md = render_catalog_as_markdown(catalog, category_path=category, max_depth=max_depth)
    if md:
        typer.echo(md, nl=False)
    elif category:
        typer.echo(f"Category '{category}' not found.")
        raise typer.Exit(1)
    else:
        typer.echo("Catalog is empty.")
