"""Render catalog subtrees as markdown."""

import io

from memories_catalog.core.tree.navigation import resolve_category_path
from memories_catalog.models.catalog import Catalog, CategoryItem, TreeNode


def _write_node(
    out: io.StringIO,
    node: TreeNode,
    *,
    depth: int,
    max_depth: int | None,
    include_descriptions: bool,
) -> None:
    indent = "    " * depth
    item = node.item
    if isinstance(item, CategoryItem):
        out.write(f"{indent}- {item.icon} **{item.name}**\n")
    elif item.url:
        out.write(f"{indent}- [{item.title}]({item.url})\n")
    else:
        out.write(f"{indent}- {item.title}\n")

    if include_descriptions and item.description:
        for line in item.description.split("\n"):
            out.write(f"{indent}  > {line}\n")

    if not node.children:
        return

    # Truncation indicator when children are cut off by max_depth
    if max_depth is not None and depth >= max_depth:
        count = len(node.children)
        noun = "child" if count == 1 else "children"
        out.write(f"{indent}    - ... ({count} more {noun})\n")
        return

    for child in node.children:
        _write_node(
            out, child, depth=depth + 1, max_depth=max_depth,
            include_descriptions=include_descriptions,
        )


def render_catalog_as_markdown(
    catalog: Catalog,
    *,
    category_path: str | None = None,
    max_depth: int | None = None,
    include_descriptions: bool = True,
) -> str:
    """Render the catalog (or one category subtree) as indented markdown.

    Args:
        catalog: The catalog to render.
        category_path: Render only this category and its descendants.
        max_depth: Max levels below each starting category (None = unlimited).
        include_descriptions: Whether to include descriptions as quoted lines.

    Returns:
        Markdown string with bullet-list hierarchy, or "" if category_path
        does not resolve.
    """
    if category_path:
        start = resolve_category_path(catalog, category_path)
        if start is None:
            return ""
        starts = [start]
    else:
        starts = list(catalog.roots)

    out = io.StringIO()
    for node in starts:
        _write_node(
            out, node, depth=0, max_depth=max_depth, include_descriptions=include_descriptions
        )
    return out.getvalue()
