"""Tree navigation: resolve category paths, names and link titles to nodes."""

from loguru import logger

from memories_catalog.config import PATH_SEPARATOR
from memories_catalog.models.catalog import Catalog, TreeNode
from memories_catalog.models.operations import ImportIdentifier, TargetKind


def split_path(path: str | None) -> list[str]:
    """Split a category path into names, dropping empty segments."""
    if not path:
        return []
    return [part.strip() for part in path.split(PATH_SEPARATOR) if part.strip()]


def resolve_category_path(catalog: Catalog, path: str | list[str] | None) -> TreeNode | None:
    """Walk a category path from the roots, matching names case-sensitively.

    Returns None if the path is empty or any segment is missing.
    """
    parts = split_path(path) if not isinstance(path, list) else path
    if not parts:
        return None

    current = catalog.find_root(parts[0])
    for part in parts[1:]:
        if current is None:
            break
        current = next((c for c in current.categories() if c.label == part), None)

    if current is None:
        logger.debug("Category path not found: {}", PATH_SEPARATOR.join(parts))
    return current


def find_category_by_name(catalog: Catalog, name: str) -> TreeNode | None:
    """First category named exactly ``name`` in pre-order over all roots."""
    return next((n for n in catalog.walk() if n.is_category and n.label == name), None)


def find_link_by_title(catalog: Catalog, title: str) -> TreeNode | None:
    """First link titled exactly ``title`` in pre-order over all roots."""
    return next((n for n in catalog.walk() if n.is_link and n.label == title), None)


def _resolve_link(catalog: Catalog, identifier: ImportIdentifier) -> TreeNode | None:
    if identifier.category_path:
        parts = split_path(identifier.category_path)
        title = identifier.title
        if not title:
            # "Work/Site": last segment is the link title.
            if len(parts) < 2:
                return None
            parts, title = parts[:-1], parts[-1]
        parent = resolve_category_path(catalog, parts)
        if parent is None:
            return None
        return next((c for c in parent.links() if c.label == title), None)
    if identifier.title:
        return find_link_by_title(catalog, identifier.title)
    return None


def resolve(
    catalog: Catalog,
    target: TargetKind,
    identifier: ImportIdentifier,
) -> TreeNode | None:
    """Locate an existing category or link.

    A category path takes precedence; otherwise the first match by name
    (categories) or title (links) in a pre-order traversal wins. Never
    creates nodes.

    Args:
        catalog: The catalog to search.
        target: Whether a category or a link is wanted.
        identifier: Path/name/title of the wanted node.

    Returns:
        The matching node, or None if nothing matches.
    """
    if target is TargetKind.LINK:
        return _resolve_link(catalog, identifier)
    if identifier.category_path:
        return resolve_category_path(catalog, identifier.category_path)
    if identifier.name:
        return find_category_by_name(catalog, identifier.name)
    return None
