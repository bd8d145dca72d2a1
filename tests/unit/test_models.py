"""Tests for domain models."""

import pytest

from memories_catalog.models.catalog import (
    Catalog,
    LinkItem,
    category,
    link,
    path_of,
    root_of,
)
from memories_catalog.models.operations import (
    ImportIdentifier,
    OperationKind,
    TargetKind,
)
from tests.unit.fakes import make_batch, make_op


def test_identifier_is_frozen() -> None:
    identifier = ImportIdentifier(name="Work")
    with pytest.raises(AttributeError):
        identifier.name = "changed"  # type: ignore[misc]


def test_operation_kind_parse_is_case_insensitive() -> None:
    assert OperationKind.parse("add") is OperationKind.ADD
    assert OperationKind.parse("DELETE") is OperationKind.DELETE
    with pytest.raises(ValueError, match="Unknown operation"):
        OperationKind.parse("Move")


def test_target_kind_parse() -> None:
    assert TargetKind.parse("SubCategory") is TargetKind.CATEGORY
    assert TargetKind.parse("rating") is TargetKind.RATING
    with pytest.raises(ValueError, match="Unknown target"):
        TargetKind.parse("Widget")
    with pytest.raises(ValueError, match="Unknown target"):
        TargetKind.parse("Unknown")


def test_count_by_kind_includes_zero_counts() -> None:
    batch = make_batch(
        make_op("add", "Category", category_path="A"),
        make_op("Add", "Link", {"title": "x"}, category_path="A"),
        make_op("delete", "Category", category_path="B"),
    )
    assert batch.count_by_kind() == {
        OperationKind.ADD: 2,
        OperationKind.UPDATE: 0,
        OperationKind.DELETE: 1,
    }


def test_category_builder_fills_link_paths() -> None:
    root = category("Work", category("Projects", link("Tracker")))
    tracker = root.children[0].children[0]

    assert isinstance(tracker.item, LinkItem)
    assert tracker.item.category_path == "Work/Projects"
    assert path_of(tracker) == "Work/Projects"
    assert root_of(tracker) is root


def test_links_cannot_have_children() -> None:
    with pytest.raises(ValueError, match="Cannot add children"):
        link("Leaf").add_child(link("Other"))


def test_only_categories_can_be_roots() -> None:
    with pytest.raises(ValueError, match="Only categories"):
        Catalog().add_root(link("Loose"))


def test_walk_is_pre_order(sample_catalog: Catalog) -> None:
    assert [n.label for n in sample_catalog.walk()] == [
        "Personal", "Recipes", "Pasta", "Blog",
        "Work", "Projects", "Tracker", "Wiki",
    ]
