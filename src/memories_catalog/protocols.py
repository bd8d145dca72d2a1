"""Protocols for dependency injection in the import tool."""

from typing import Protocol, runtime_checkable

from memories_catalog.models.catalog import Catalog, TreeNode


@runtime_checkable
class CatalogStoreProtocol(Protocol):
    """Protocol for the persistence layer holding one file per root category."""

    def load_catalog(self) -> Catalog:
        """Load every root category into a fresh catalog."""
        ...

    def save_category(self, root: TreeNode) -> None:
        """Persist a root category and its whole subtree."""
        ...

    def delete_category(self, name: str) -> None:
        """Remove the persisted root category with this name, if any."""
        ...
