"""Tests for decoding import files into an ImportBatch."""

import copy
import json
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from memories_catalog.core.importer.json_reader import (
    BatchFormatError,
    UnsupportedVersionError,
    load_batch,
    parse_batch_data,
)
from memories_catalog.models.operations import (
    ImportIdentifier,
    ImportOptions,
    OperationKind,
    TargetKind,
)
from tests.unit.fakes import SAMPLE_IMPORT


def _sample() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_IMPORT)


def test_parse_keeps_operations_in_file_order() -> None:
    batch = parse_batch_data(_sample())

    assert batch.version == "1.0"
    assert batch.description == "Reorganize work links"
    assert batch.import_date == datetime(2026, 1, 10, 8, 0)
    assert [(op.kind, op.target) for op in batch.operations] == [
        (OperationKind.ADD, TargetKind.CATEGORY),
        (OperationKind.ADD, TargetKind.LINK),
        (OperationKind.UPDATE, TargetKind.LINK),
        (OperationKind.DELETE, TargetKind.CATEGORY),
    ]


def test_identifier_and_payload_keys_are_normalized() -> None:
    batch = parse_batch_data(_sample())
    add_link = batch.operations[1]

    assert add_link.identifier == ImportIdentifier(category_path="Work/Clients")
    assert add_link.payload == {"title": "Acme", "url": "https://acme.example"}


def test_camel_case_document_is_accepted() -> None:
    data = {
        "version": "1.0",
        "operations": [
            {
                "operation": "delete",
                "target": "link",
                "identifier": {"categoryPath": "Work", "title": "Wiki"},
            }
        ],
    }

    batch = parse_batch_data(data)

    op = batch.operations[0]
    assert op.kind is OperationKind.DELETE
    assert op.identifier == ImportIdentifier(category_path="Work", title="Wiki")
    assert op.payload == {}
    assert batch.description == ""
    assert batch.import_date is None


def test_subcategory_target_is_read_as_category() -> None:
    data = _sample()
    data["Operations"][0]["Target"] = "SubCategory"

    batch = parse_batch_data(data)

    assert batch.operations[0].target is TargetKind.CATEGORY


def test_unsupported_version_is_rejected() -> None:
    data = _sample()
    data["Version"] = "2.0"

    with pytest.raises(UnsupportedVersionError, match="2.0"):
        parse_batch_data(data)


def test_unknown_operation_names_the_operation_index() -> None:
    data = _sample()
    data["Operations"][2]["Operation"] = "Move"

    with pytest.raises(BatchFormatError, match="operation #3"):
        parse_batch_data(data)


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"Version": "1.0"},
        {"Version": "1.0", "Operations": [42]},
        {"Version": "1.0", "Operations": [{"Operation": "Add"}]},
        {"Version": "1.0", "Operations": [{"Operation": "Add", "Target": "Link", "Data": "x"}]},
        {
            "Version": "1.0",
            "Operations": [
                {"Operation": "Add", "Target": "Link", "Identifier": {"Title": 5}}
            ],
        },
        {"Version": "1.0", "ImportDate": "someday", "Operations": []},
    ],
)
def test_malformed_documents_are_rejected(data: Any) -> None:
    with pytest.raises(BatchFormatError):
        parse_batch_data(data)


def test_load_batch_reads_file(import_file: Path) -> None:
    batch = load_batch(import_file)
    assert len(batch.operations) == 4


def test_load_batch_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(BatchFormatError, match="Invalid import file format"):
        load_batch(path)


def test_load_batch_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        load_batch(tmp_path / "missing.json")


def test_load_batch_fetches_http_source() -> None:
    response = MagicMock()
    response.text = json.dumps(SAMPLE_IMPORT)

    with patch(
        "memories_catalog.core.importer.json_reader.requests.get", return_value=response
    ) as get:
        batch = load_batch("https://example.com/changes.json")

    get.assert_called_once_with("https://example.com/changes.json", timeout=30.0)
    response.raise_for_status.assert_called_once()
    assert len(batch.operations) == 4


def test_load_batch_propagates_http_errors() -> None:
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")

    with (
        patch("memories_catalog.core.importer.json_reader.requests.get", return_value=response),
        pytest.raises(requests.HTTPError),
    ):
        load_batch("http://example.com/missing.json")


def test_options_are_decoded() -> None:
    data = _sample()
    data["Operations"][1]["Options"] = {"UpdateIfExists": True, "MergeRatings": True}
    data["Operations"][2]["Options"] = {"preserveTimestamps": True}

    batch = parse_batch_data(data)

    assert batch.operations[0].options == ImportOptions()
    assert batch.operations[1].options == ImportOptions(update_if_exists=True)
    assert batch.operations[2].options == ImportOptions(preserve_timestamps=True)


def test_invalid_option_value_is_rejected() -> None:
    data = _sample()
    data["Operations"][0]["Options"] = {"SkipIfExists": "yes"}

    with pytest.raises(BatchFormatError, match="operation #1"):
        parse_batch_data(data)


def test_unknown_and_unsupported_targets_are_kept() -> None:
    data = _sample()
    data["Operations"][0]["Target"] = "Widget"
    data["Operations"][2]["Target"] = "Rating"

    batch = parse_batch_data(data)

    assert batch.operations[0].target is TargetKind.UNKNOWN
    assert batch.operations[0].target_name == "Widget"
    assert batch.operations[2].target is TargetKind.RATING
    assert len(batch.operations) == 4
