"""JSON persistence for root categories: one ``<name>.json`` file per root."""

import json
import re
from dataclasses import fields
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from memories_catalog.models.catalog import (
    Catalog,
    CategoryItem,
    LinkItem,
    TreeNode,
    refresh_link_paths,
)
from memories_catalog.models.fields import (
    LINK_FIELDS,
    STORED_CATEGORY_FIELDS,
    coerce_fields,
    normalize_field_name,
)

ENCRYPTED_SUFFIX = ".zip.json"

# Files use the desktop application's PascalCase keys; the timestamps are
# persisted under different names than the attributes.
_PERSISTED_NAMES = {"created": "CreatedDate", "modified": "ModifiedDate"}
_SUB_CATEGORIES = "SubCategories"
_LINKS = "Links"
_CHILD_FIELDS = frozenset({"sub_categories", "links"})
# Written even when equal to the default.
_ALWAYS_WRITTEN = {"created", "modified", "name", "title", "url", "category_path"}
_DEFAULT_CATEGORY = CategoryItem(name="")
_DEFAULT_LINK = LinkItem(title="")


def sanitize_file_name(name: str) -> str:
    """Replace characters that are invalid in file names on common filesystems."""
    cleaned = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name).strip().rstrip(".")
    return cleaned or "_"


def _pascal(name: str) -> str:
    if name in _PERSISTED_NAMES:
        return _PERSISTED_NAMES[name]
    return "".join(part.capitalize() for part in name.split("_"))


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        # String enums by value ("Chrome"), numeric ones by PascalCase name ("OwnPassword")
        if isinstance(value.value, str):
            return value.value
        return _pascal(value.name.lower())
    return value


def _encode_item(
    item: CategoryItem | LinkItem, default: CategoryItem | LinkItem
) -> dict[str, Any]:
    """Serialize fields, omitting defaults; unmodelled keys are written back as read."""
    out: dict[str, Any] = dict(item.extra)
    for f in fields(item):
        if f.name == "extra":
            continue
        value = getattr(item, f.name)
        if f.name not in _ALWAYS_WRITTEN:
            if value is None or value == getattr(default, f.name):
                continue
        out[_pascal(f.name)] = _encode_value(value)
    return out


def category_to_data(node: TreeNode) -> dict[str, Any]:
    """Convert a category subtree to its persisted dict form."""
    if not isinstance(node.item, CategoryItem):
        msg = f"Node must hold a category, got link {node.label!r}"
        raise TypeError(msg)
    data = _encode_item(node.item, _DEFAULT_CATEGORY)
    data[_SUB_CATEGORIES] = [category_to_data(c) for c in node.categories()]
    data[_LINKS] = [_encode_item(c.item, _DEFAULT_LINK) for c in node.links()]
    return data


def _read_item(
    data: dict[str, Any],
    schema: dict[str, Any],
    *,
    child_fields: frozenset[str] = frozenset(),
) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """Split persisted keys into (modelled values, unmodelled extras, child lists).

    Keys are matched whatever their case style. A null modelled value counts
    as absent.
    """
    known: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    children: dict[str, Any] = {}
    for key, value in data.items():
        name = normalize_field_name(key)
        if name in child_fields:
            children[name] = value
        elif name in schema:
            if value is not None:
                known[key] = value
        else:
            extra[key] = value
    values, _ = coerce_fields(known, schema)
    return values, extra, children


def category_from_data(data: dict[str, Any], *, where: str = "category") -> TreeNode:
    """Rebuild a category subtree from its persisted dict form."""
    if not isinstance(data, dict):
        msg = f"{where}: expected an object, got {type(data).__name__}"
        raise ValueError(msg)
    values, extra, children = _read_item(
        data, STORED_CATEGORY_FIELDS, child_fields=_CHILD_FIELDS
    )
    if "name" not in values:
        msg = f"{where}: missing category name"
        raise ValueError(msg)
    node = TreeNode(CategoryItem(**values, extra=extra))

    for sub in children.get("sub_categories") or []:
        node.add_child(category_from_data(sub, where=f"{where}/{values['name']}"))
    for raw_link in children.get("links") or []:
        if not isinstance(raw_link, dict):
            msg = f"{where}: link entry must be an object"
            raise ValueError(msg)
        link_values, link_extra, _ = _read_item(raw_link, LINK_FIELDS)
        if "title" not in link_values:
            msg = f"{where}: link without title"
            raise ValueError(msg)
        node.add_child(TreeNode(LinkItem(**link_values, extra=link_extra)))
    return node


class CatalogStore:
    """Load and save root categories as JSON files in a data directory.

    Password-protected roots are stored encrypted as ``<name>.zip.json`` by
    the desktop application; those files are not readable here and are
    skipped.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir).expanduser()
        if not self.data_dir.is_dir():
            msg = f"Data directory {str(self.data_dir)!r} not found"
            raise ValueError(msg)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{sanitize_file_name(name)}.json"

    def load_catalog(self) -> Catalog:
        """Load every readable root category, ordered by name."""
        roots: list[TreeNode] = []
        for path in sorted(self.data_dir.glob("*.json")):
            if path.name.lower().endswith(ENCRYPTED_SUFFIX):
                logger.warning("Skipping encrypted category file {}", path.name)
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                root = category_from_data(data, where=path.name)
            except (OSError, ValueError, TypeError):
                logger.exception("Failed to load category file {}", path.name)
                continue
            refresh_link_paths(root)
            roots.append(root)

        roots.sort(key=lambda node: node.label.casefold())
        logger.debug("Loaded {} root categories from {}", len(roots), self.data_dir)
        return Catalog(roots=roots)

    def save_category(self, root: TreeNode) -> None:
        """Write a root category (and its subtree) to ``<name>.json``."""
        if root.parent is not None:
            msg = f"Only root categories can be saved, {root.label!r} has a parent"
            raise ValueError(msg)
        contents = json.dumps(category_to_data(root), sort_keys=True, indent=4) + "\n"
        path = self.path_for(root.label)
        path.write_text(contents, encoding="utf-8")
        logger.debug("Saved category {} to {}", root.label, path.name)

    def delete_category(self, name: str) -> None:
        """Remove the file of a root category that no longer exists."""
        path = self.path_for(name)
        if path.exists():
            path.unlink()
            logger.debug("Deleted category file {}", path.name)
