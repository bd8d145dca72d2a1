"""Import batch, per-operation outcome and aggregate result models."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class OperationKind(Enum):
    ADD = "Add"
    UPDATE = "Update"
    DELETE = "Delete"

    @classmethod
    def parse(cls, text: str) -> "OperationKind":
        """Parse an operation name case-insensitively."""
        for member in cls:
            if member.value.lower() == text.strip().lower():
                return member
        msg = f"Unknown operation: {text!r}"
        raise ValueError(msg)


class TargetKind(Enum):
    CATEGORY = "Category"
    LINK = "Link"
    # Valid in import files but not handled by the engine.
    TAG = "Tag"
    RATING = "Rating"
    # Unrecognized target text, reported per operation.
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, text: str) -> "TargetKind":
        """Parse a target name case-insensitively; SubCategory means Category."""
        key = text.strip().lower()
        if key == "subcategory":
            return cls.CATEGORY
        for member in cls:
            if member is not cls.UNKNOWN and member.value.lower() == key:
                return member
        msg = f"Unknown target: {text!r}"
        raise ValueError(msg)


class OperationStatus(Enum):
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class ImportIdentifier:
    """Locates the target of Update/Delete, or the parent of Add.

    A populated category_path takes precedence over name/title.
    """

    category_path: str | None = None
    parent_category_path: str | None = None
    name: str | None = None
    title: str | None = None

    def describe(self) -> str:
        """Short human-readable form used in outcome messages."""
        parts: list[str] = []
        if self.category_path:
            parts.append(f"path '{self.category_path}'")
        if self.parent_category_path:
            parts.append(f"parent '{self.parent_category_path}'")
        if self.name:
            parts.append(f"name '{self.name}'")
        if self.title:
            parts.append(f"title '{self.title}'")
        return ", ".join(parts) or "empty identifier"


@dataclass(frozen=True)
class ImportOptions:
    """Per-operation switches; None keeps the default behavior.

    skip_if_exists and update_if_exists decide what Add does when the item
    already exists (default: skip). preserve_timestamps keeps ``modified``
    unchanged on Update.
    """

    skip_if_exists: bool | None = None
    update_if_exists: bool | None = None
    preserve_timestamps: bool | None = None


@dataclass(frozen=True)
class ImportOperation:
    """One Add/Update/Delete instruction against a category or a link."""

    kind: OperationKind
    target: TargetKind
    identifier: ImportIdentifier = field(default_factory=ImportIdentifier)
    payload: dict[str, Any] = field(default_factory=dict)
    options: ImportOptions = field(default_factory=ImportOptions)
    # Target as spelled in the import file, for messages about unknown targets.
    target_name: str = ""


@dataclass(frozen=True)
class ImportBatch:
    """A decoded import file. Consumed once by the batch runner."""

    version: str
    operations: tuple[ImportOperation, ...]
    description: str = ""
    import_date: datetime | None = None

    def count_by_kind(self) -> dict[OperationKind, int]:
        """Number of operations of each kind (all kinds present, possibly 0)."""
        counts = Counter(op.kind for op in self.operations)
        return {kind: counts.get(kind, 0) for kind in OperationKind}


@dataclass(frozen=True)
class OperationOutcome:
    """Result of applying one operation.

    modified_roots names the root categories whose persisted file has to be
    rewritten (or removed) because of this operation; it is empty unless the
    operation succeeded.
    """

    kind: OperationKind
    target: TargetKind
    status: OperationStatus
    message: str
    identifier: ImportIdentifier
    modified_roots: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportResult:
    """Aggregate report of one batch run."""

    total_operations: int
    successful: int
    failed: int
    skipped: int
    outcomes: tuple[OperationOutcome, ...]
    categories_modified: tuple[str, ...]
    import_duration: timedelta

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def failures(self) -> tuple[OperationOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status is OperationStatus.FAILED)
