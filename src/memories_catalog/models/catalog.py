"""Domain models for the category/link catalog tree."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from memories_catalog.config import PATH_SEPARATOR


class PasswordProtection(Enum):
    """How a root category is protected when persisted."""

    NONE = 0
    GLOBAL_PASSWORD = 1
    OWN_PASSWORD = 2


class BrowserType(Enum):
    """Browser a bookmark category was imported from."""

    CHROME = "Chrome"
    EDGE = "Edge"
    BRAVE = "Brave"
    VIVALDI = "Vivaldi"
    OPERA = "Opera"
    FIREFOX = "Firefox"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class CategoryItem:
    """A named category. Names are unique among sibling categories."""

    name: str
    description: str = ""
    icon: str = "\U0001f4c1"
    keywords: str = ""
    created: datetime = field(default_factory=_now)
    modified: datetime = field(default_factory=_now)
    password_protection: PasswordProtection = PasswordProtection.NONE
    # Bookmark import provenance
    is_bookmark_import: bool = False
    source_browser_type: BrowserType | None = None
    source_browser_name: str | None = None
    source_bookmarks_path: str | None = None
    last_bookmark_import_date: datetime | None = None
    imported_bookmark_count: int | None = None
    # Persisted keys this tool does not model (tags, sort order, password hash...),
    # written back unchanged.
    extra: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class LinkItem:
    """A link to a URL or filesystem path, owned by one category."""

    title: str
    url: str = ""
    description: str = ""
    keywords: str = ""
    is_directory: bool = False
    category_path: str = ""
    created: datetime = field(default_factory=_now)
    modified: datetime = field(default_factory=_now)
    extra: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(eq=False)
class TreeNode:
    """A node in the catalog tree holding either a category or a link.

    Category nodes may have category and link children; link nodes are leaves.
    """

    item: CategoryItem | LinkItem
    children: list["TreeNode"] = field(default_factory=list)
    parent: "TreeNode | None" = field(default=None, repr=False)

    @property
    def is_category(self) -> bool:
        return isinstance(self.item, CategoryItem)

    @property
    def is_link(self) -> bool:
        return isinstance(self.item, LinkItem)

    @property
    def label(self) -> str:
        """Category name or link title."""
        if isinstance(self.item, CategoryItem):
            return self.item.name
        return self.item.title

    def add_child(self, node: "TreeNode") -> None:
        if not self.is_category:
            msg = f"Cannot add children to link {self.label!r}"
            raise ValueError(msg)
        node.parent = self
        self.children.append(node)

    def remove_child(self, node: "TreeNode") -> None:
        self.children.remove(node)
        node.parent = None

    def walk(self) -> Iterator["TreeNode"]:
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def categories(self) -> Iterator["TreeNode"]:
        return (child for child in self.children if child.is_category)

    def links(self) -> Iterator["TreeNode"]:
        return (child for child in self.children if child.is_link)


@dataclass(eq=False)
class Catalog:
    """The root-level forest of categories.

    Owned by the caller; the import engine mutates it in place during a run
    and keeps no reference to it afterwards.
    """

    roots: list[TreeNode] = field(default_factory=list)

    def add_root(self, node: TreeNode) -> None:
        if not node.is_category:
            msg = f"Only categories can be roots, got link {node.label!r}"
            raise ValueError(msg)
        node.parent = None
        self.roots.append(node)

    def remove_root(self, node: TreeNode) -> None:
        self.roots.remove(node)

    def find_root(self, name: str) -> TreeNode | None:
        """Return the root category with exactly this name."""
        return next((root for root in self.roots if root.label == name), None)

    def walk(self) -> Iterator[TreeNode]:
        """Yield every node, roots in order, each subtree in pre-order."""
        for root in self.roots:
            yield from root.walk()

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())


def category(name: str, *children: TreeNode, **fields: object) -> TreeNode:
    """Build a category node with children (link paths are filled in)."""
    node = TreeNode(CategoryItem(name=name, **fields))  # type: ignore[arg-type]
    for child in children:
        node.add_child(child)
    refresh_link_paths(node)
    return node


def link(title: str, url: str = "", **fields: object) -> TreeNode:
    """Build a link node."""
    return TreeNode(LinkItem(title=title, url=url, **fields))  # type: ignore[arg-type]


def path_of(node: TreeNode) -> str:
    """Full category path of a category node, or of a link's owning category."""
    current: TreeNode | None = node if node.is_category else node.parent
    names: list[str] = []
    while current is not None:
        names.append(current.label)
        current = current.parent
    return PATH_SEPARATOR.join(reversed(names))


def root_of(node: TreeNode) -> TreeNode:
    """Return the root category owning this node."""
    current = node
    while current.parent is not None:
        current = current.parent
    return current


def refresh_link_paths(node: TreeNode) -> None:
    """Recompute the denormalized category path of every link below node."""
    for descendant in node.walk():
        if isinstance(descendant.item, LinkItem) and descendant.parent is not None:
            descendant.item.category_path = path_of(descendant.parent)
