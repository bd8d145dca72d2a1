"""Apply a single import operation to the catalog tree."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from memories_catalog.config import PATH_SEPARATOR
from memories_catalog.core.tree.navigation import resolve, resolve_category_path, split_path
from memories_catalog.models.catalog import (
    Catalog,
    CategoryItem,
    LinkItem,
    TreeNode,
    path_of,
    refresh_link_paths,
    root_of,
)
from memories_catalog.models.fields import (
    CATEGORY_FIELDS,
    LINK_FIELDS,
    Coercer,
    check_category_name,
    coerce_fields,
)
from memories_catalog.models.operations import (
    ImportOperation,
    OperationKind,
    OperationOutcome,
    OperationStatus,
    TargetKind,
)


def _outcome(
    operation: ImportOperation,
    status: OperationStatus,
    message: str,
    modified_roots: tuple[str, ...] = (),
) -> OperationOutcome:
    return OperationOutcome(
        kind=operation.kind,
        target=operation.target,
        status=status,
        message=message,
        identifier=operation.identifier,
        modified_roots=modified_roots,
    )


def _payload(operation: ImportOperation) -> dict[str, Any]:
    schema: dict[str, Coercer] = (
        CATEGORY_FIELDS if operation.target is TargetKind.CATEGORY else LINK_FIELDS
    )
    values, unknown = coerce_fields(operation.payload, schema)
    if unknown:
        logger.debug("Ignoring unknown {} fields: {}", operation.target.value, unknown)
    return values


def _siblings(catalog: Catalog, parent: TreeNode | None) -> list[TreeNode]:
    return parent.children if parent is not None else catalog.roots


def _find_sibling(
    siblings: list[TreeNode], label: str, *, is_category: bool, exclude: TreeNode | None = None
) -> TreeNode | None:
    """Case-insensitive lookup of a same-kind sibling."""
    wanted = label.casefold()
    for node in siblings:
        if node is exclude or node.is_category != is_category:
            continue
        if node.label.casefold() == wanted:
            return node
    return None


def _update_node(
    catalog: Catalog,
    operation: ImportOperation,
    node: TreeNode,
    values: dict[str, Any],
    now: datetime,
) -> OperationOutcome:
    label_field = "name" if node.is_category else "title"
    new_label: str | None = values.get(label_field)
    renamed = new_label is not None and new_label != node.label
    if renamed and new_label is not None:
        clash = _find_sibling(
            _siblings(catalog, node.parent), new_label, is_category=node.is_category, exclude=node
        )
        if clash is not None:
            return _outcome(
                operation,
                OperationStatus.FAILED,
                f"Cannot rename '{node.label}' to '{new_label}': a sibling with that name exists",
            )

    old_root = root_of(node).label
    for key, value in values.items():
        setattr(node.item, key, value)
    if not operation.options.preserve_timestamps:
        node.item.modified = now
    if renamed and node.is_category:
        refresh_link_paths(node)

    roots = tuple(dict.fromkeys((old_root, root_of(node).label)))
    changed = ", ".join(sorted(values)) or "modification time"
    return _outcome(
        operation,
        OperationStatus.SUCCEEDED,
        f"Updated {'category' if node.is_category else 'link'} '{node.label}' ({changed})",
        roots,
    )


def _add_existing(
    catalog: Catalog,
    operation: ImportOperation,
    existing: TreeNode,
    values: dict[str, Any],
    now: datetime,
    what: str,
) -> OperationOutcome:
    """Add found the item already present: skip it, fail, or update it in place."""
    if operation.options.update_if_exists:
        values.pop("created", None)
        return _update_node(catalog, operation, existing, values, now)
    if operation.options.skip_if_exists is False:
        return _outcome(operation, OperationStatus.FAILED, f"{what} already exists")
    return _outcome(
        operation, OperationStatus.SKIPPED, f"Duplicate {what} already exists; not re-added"
    )


def _add_category(
    catalog: Catalog, operation: ImportOperation, now: datetime
) -> OperationOutcome:
    identifier = operation.identifier
    values = _payload(operation)
    name: str | None = values.pop("name", None) or identifier.name
    path_parts = split_path(identifier.category_path)

    if path_parts:
        # The path names the new category itself.
        if name and name != path_parts[-1]:
            msg = f"name '{name}' does not match category path '{identifier.category_path}'"
            raise ValueError(msg)
        name, parent_parts = path_parts[-1], path_parts[:-1]
        if (
            identifier.parent_category_path
            and split_path(identifier.parent_category_path) != parent_parts
        ):
            msg = (
                f"category path '{identifier.category_path}' is not under "
                f"parent category path '{identifier.parent_category_path}'"
            )
            raise ValueError(msg)
    elif identifier.parent_category_path:
        parent_parts = split_path(identifier.parent_category_path)
    else:
        parent_parts = []

    if not name:
        msg = "category name is required"
        raise ValueError(msg)
    check_category_name(name)

    parent: TreeNode | None = None
    if parent_parts:
        parent = resolve_category_path(catalog, parent_parts)
        if parent is None:
            parent_path = PATH_SEPARATOR.join(parent_parts)
            return _outcome(
                operation, OperationStatus.FAILED, f"Parent category not found: '{parent_path}'"
            )

    existing = _find_sibling(_siblings(catalog, parent), name, is_category=True)
    if existing is not None:
        return _add_existing(catalog, operation, existing, values, now, f"category '{name}'")

    values.setdefault("created", now)
    values.setdefault("modified", now)
    node = TreeNode(CategoryItem(name=name, **values))
    if parent is None:
        catalog.add_root(node)
    else:
        parent.add_child(node)

    return _outcome(
        operation,
        OperationStatus.SUCCEEDED,
        f"Added category '{path_of(node)}'",
        (root_of(node).label,),
    )


def _add_link(catalog: Catalog, operation: ImportOperation, now: datetime) -> OperationOutcome:
    identifier = operation.identifier
    values = _payload(operation)
    values.pop("category_path", None)
    title: str | None = values.pop("title", None) or identifier.title
    if not title:
        msg = "link title is required"
        raise ValueError(msg)

    if (
        identifier.category_path
        and identifier.parent_category_path
        and split_path(identifier.category_path) != split_path(identifier.parent_category_path)
    ):
        msg = (
            f"category path '{identifier.category_path}' and parent category path "
            f"'{identifier.parent_category_path}' disagree"
        )
        raise ValueError(msg)

    parent_path = identifier.category_path or identifier.parent_category_path
    parent = resolve_category_path(catalog, parent_path)
    if parent is None:
        return _outcome(
            operation,
            OperationStatus.FAILED,
            f"Parent category not found: '{parent_path or ''}'",
        )

    existing = _find_sibling(parent.children, title, is_category=False)
    if existing is not None:
        what = f"link '{title}' in '{path_of(parent)}'"
        return _add_existing(catalog, operation, existing, values, now, what)

    values.setdefault("created", now)
    values.setdefault("modified", now)
    node = TreeNode(LinkItem(title=title, category_path=path_of(parent), **values))
    parent.add_child(node)

    return _outcome(
        operation,
        OperationStatus.SUCCEEDED,
        f"Added link '{title}' to '{path_of(parent)}'",
        (root_of(node).label,),
    )


def _target_not_found(operation: ImportOperation) -> str:
    return f"Target not found: {operation.target.value.lower()} {operation.identifier.describe()}"


def _update(catalog: Catalog, operation: ImportOperation, now: datetime) -> OperationOutcome:
    node = resolve(catalog, operation.target, operation.identifier)
    if node is None:
        return _outcome(operation, OperationStatus.FAILED, _target_not_found(operation))

    values = _payload(operation)
    values.pop("category_path", None)
    values.pop("created", None)
    return _update_node(catalog, operation, node, values, now)


def _delete(catalog: Catalog, operation: ImportOperation, now: datetime) -> OperationOutcome:
    node = resolve(catalog, operation.target, operation.identifier)
    if node is None:
        return _outcome(
            operation,
            OperationStatus.SKIPPED,
            f"Already absent: {operation.target.value.lower()} "
            f"{operation.identifier.describe()}",
        )

    root = root_of(node).label
    label = node.label
    if node.parent is None:
        catalog.remove_root(node)
    else:
        node.parent.remove_child(node)

    return _outcome(
        operation,
        OperationStatus.SUCCEEDED,
        f"Deleted {operation.target.value.lower()} '{label}'",
        (root,),
    )


_Handler = Callable[[Catalog, ImportOperation, datetime], OperationOutcome]

_HANDLERS: dict[tuple[OperationKind, TargetKind], _Handler] = {
    (OperationKind.ADD, TargetKind.CATEGORY): _add_category,
    (OperationKind.ADD, TargetKind.LINK): _add_link,
    (OperationKind.UPDATE, TargetKind.CATEGORY): _update,
    (OperationKind.UPDATE, TargetKind.LINK): _update,
    (OperationKind.DELETE, TargetKind.CATEGORY): _delete,
    (OperationKind.DELETE, TargetKind.LINK): _delete,
}


def apply_operation(
    catalog: Catalog,
    operation: ImportOperation,
    *,
    now: datetime | None = None,
) -> OperationOutcome:
    """Apply one operation to the catalog in place.

    Add skips duplicates (unless its options ask to fail or to update the
    existing item) and Delete skips absent targets, so re-running a batch is
    harmless; Update of a missing target fails. Tag, Rating and unknown
    targets fail. The catalog is left untouched unless the outcome is
    SUCCEEDED.

    Args:
        catalog: The catalog to mutate.
        operation: The operation to apply.
        now: Timestamp for created/modified fields (defaults to current UTC time).

    Returns:
        The outcome. Exceptions raised while applying are reported as a
        FAILED outcome, never propagated.
    """
    handler = _HANDLERS.get((operation.kind, operation.target))
    if handler is None:
        name = operation.target_name or operation.target.value
        reason = "Unknown" if operation.target is TargetKind.UNKNOWN else "Unsupported"
        return _outcome(operation, OperationStatus.FAILED, f"{reason} target: {name}")

    timestamp = now or datetime.now(UTC)
    try:
        return handler(catalog, operation, timestamp)
    except Exception as e:
        logger.opt(exception=True).debug(
            "{} {} failed", operation.kind.value, operation.identifier.describe()
        )
        return _outcome(operation, OperationStatus.FAILED, f"Error: {e}")
