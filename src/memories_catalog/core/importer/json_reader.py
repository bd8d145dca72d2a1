"""Decode category import files (JSON, version 1.0) into an ImportBatch."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from memories_catalog.config import BATCH_FETCH_TIMEOUT, SUPPORTED_IMPORT_VERSION
from memories_catalog.models.fields import OPTION_FIELDS, coerce_fields, normalize_field_name
from memories_catalog.models.operations import (
    ImportBatch,
    ImportIdentifier,
    ImportOperation,
    ImportOptions,
    OperationKind,
    TargetKind,
)


class BatchFormatError(ValueError):
    """The import file cannot be decoded into a batch."""


class UnsupportedVersionError(BatchFormatError):
    """The import file declares a version this tool does not understand."""


def _normalized(data: dict[str, Any]) -> dict[str, Any]:
    """Keys mapped to snake_case, so ``CategoryPath`` and ``categoryPath`` are the same."""
    return {normalize_field_name(key): value for key, value in data.items()}


def _optional_str(data: dict[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    msg = f"{where}: '{key}' must be a string"
    raise BatchFormatError(msg)


def _parse_options(raw: Any, where: str) -> ImportOptions:
    if raw is None:
        return ImportOptions()
    if not isinstance(raw, dict):
        msg = f"{where}: 'options' must be an object"
        raise BatchFormatError(msg)
    try:
        values, unknown = coerce_fields(raw, OPTION_FIELDS)
    except (TypeError, ValueError) as e:
        msg = f"{where}: {e}"
        raise BatchFormatError(msg) from e
    if unknown:
        logger.debug("{}: ignoring options {}", where, unknown)
    return ImportOptions(**values)


def _parse_operation(raw: Any, index: int) -> ImportOperation:
    where = f"operation #{index}"
    if not isinstance(raw, dict):
        msg = f"{where}: expected an object, got {type(raw).__name__}"
        raise BatchFormatError(msg)
    data = _normalized(raw)

    kind_text = data.get("operation")
    target_text = data.get("target")
    if not isinstance(kind_text, str) or not isinstance(target_text, str):
        msg = f"{where}: 'operation' and 'target' are required strings"
        raise BatchFormatError(msg)
    try:
        kind = OperationKind.parse(kind_text)
    except ValueError as e:
        msg = f"{where}: {e}"
        raise BatchFormatError(msg) from e
    try:
        target = TargetKind.parse(target_text)
    except ValueError:
        logger.debug("{}: unknown target {!r}", where, target_text)
        target = TargetKind.UNKNOWN

    raw_identifier = data.get("identifier") or {}
    if not isinstance(raw_identifier, dict):
        msg = f"{where}: 'identifier' must be an object"
        raise BatchFormatError(msg)
    ident = _normalized(raw_identifier)
    identifier = ImportIdentifier(
        category_path=_optional_str(ident, "category_path", where),
        parent_category_path=_optional_str(ident, "parent_category_path", where),
        name=_optional_str(ident, "name", where),
        title=_optional_str(ident, "title", where),
    )

    payload = data.get("data") or {}
    if not isinstance(payload, dict):
        msg = f"{where}: 'data' must be an object"
        raise BatchFormatError(msg)

    return ImportOperation(
        kind=kind,
        target=target,
        identifier=identifier,
        payload=_normalized(payload),
        options=_parse_options(data.get("options"), where),
        target_name=target_text.strip(),
    )


def parse_batch_data(data: Any) -> ImportBatch:
    """Parse a decoded import document into an ImportBatch.

    Args:
        data: The JSON document (top-level keys matched case-insensitively).

    Returns:
        The batch with operations in file order.

    Raises:
        UnsupportedVersionError: if the version is not SUPPORTED_IMPORT_VERSION.
        BatchFormatError: if the document or any operation is malformed.
    """
    if not isinstance(data, dict):
        msg = "Invalid import file format: expected a JSON object"
        raise BatchFormatError(msg)
    top = _normalized(data)

    operations = top.get("operations")
    if not isinstance(operations, list):
        msg = "Invalid import file format: missing 'operations' list"
        raise BatchFormatError(msg)

    version = str(top.get("version", SUPPORTED_IMPORT_VERSION))
    if version != SUPPORTED_IMPORT_VERSION:
        msg = f"Unsupported import version: {version}"
        raise UnsupportedVersionError(msg)

    import_date: datetime | None = None
    raw_date = top.get("import_date")
    if raw_date is not None:
        try:
            import_date = datetime.fromisoformat(str(raw_date))
        except ValueError as e:
            msg = f"Invalid importDate: {raw_date!r}"
            raise BatchFormatError(msg) from e

    return ImportBatch(
        version=version,
        description=str(top.get("description") or ""),
        import_date=import_date,
        operations=tuple(_parse_operation(op, i) for i, op in enumerate(operations, start=1)),
    )


def read_batch_source(source: str | Path) -> str:
    """Read an import file from a local path or an http(s) URL."""
    text = str(source)
    if text.startswith(("http://", "https://")):
        logger.debug("Fetching import file from {}", text)
        r = requests.get(text, timeout=BATCH_FETCH_TIMEOUT)
        r.raise_for_status()
        return r.text
    return Path(text).expanduser().read_text(encoding="utf-8")


def load_batch(source: str | Path) -> ImportBatch:
    """Read, decode and parse an import file."""
    raw = read_batch_source(source)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"Invalid import file format: {e}"
        raise BatchFormatError(msg) from e
    batch = parse_batch_data(data)
    logger.debug("Loaded {} operations from {}", len(batch.operations), source)
    return batch
