"""Field-name normalization and value coercion for category/link records.

Import payloads and persisted category files spell field names in several
ways (``categoryPath``, ``CategoryPath``, ``category_path``). Everything is
normalized to the snake_case attribute names of CategoryItem / LinkItem and
validated before it is assigned to a node.
"""

import re
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from memories_catalog.config import PATH_SEPARATOR
from memories_catalog.models.catalog import BrowserType, PasswordProtection

Coercer = Callable[[str, Any], Any]

# Legacy names used by persisted files and older import files.
_FIELD_ALIASES: dict[str, str] = {
    "created_date": "created",
    "modified_date": "modified",
}


def normalize_field_name(key: str) -> str:
    """Convert a camelCase/PascalCase/snake_case key to a snake_case field name."""
    snake = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key.strip()).lower()
    return _FIELD_ALIASES.get(snake, snake)


def _as_str(field: str, value: Any) -> str:
    if not isinstance(value, str):
        msg = f"{field} must be a string, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _as_name(field: str, value: Any) -> str:
    text = _as_str(field, value).strip()
    if not text:
        msg = f"{field} must not be empty"
        raise ValueError(msg)
    return text


def check_category_name(name: str) -> str:
    """Reject names that a category path could never reach."""
    if PATH_SEPARATOR in name:
        msg = f"category name {name!r} must not contain '{PATH_SEPARATOR}'"
        raise ValueError(msg)
    return name


def _as_category_name(field: str, value: Any) -> str:
    return check_category_name(_as_name(field, value))


def _as_bool(field: str, value: Any) -> bool:
    if not isinstance(value, bool):
        msg = f"{field} must be a boolean, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _as_int(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{field} must be an integer, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _as_datetime(field: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            msg = f"{field} is not an ISO-8601 timestamp: {value!r}"
            raise ValueError(msg) from None
    msg = f"{field} must be a timestamp string, got {type(value).__name__}"
    raise TypeError(msg)


def _enum_key(text: str) -> str:
    return text.replace("_", "").replace(" ", "").lower()


def _as_enum(enum_cls: type[Enum]) -> Coercer:
    """Accept a member, its name (any case, with or without underscores) or its value."""

    def coerce(field: str, value: Any) -> Enum:
        if isinstance(value, enum_cls):
            return value
        for member in enum_cls:
            if isinstance(value, str) and _enum_key(value) in (
                _enum_key(member.name),
                _enum_key(str(member.value)),
            ):
                return member
            if not isinstance(value, (str, bool)) and value == member.value:
                return member
        choices = ", ".join(m.name for m in enum_cls)
        msg = f"{field} must be one of {choices}, got {value!r}"
        raise ValueError(msg)

    return coerce


def _optional(coercer: Coercer) -> Coercer:
    def coerce(field: str, value: Any) -> Any:
        return None if value is None else coercer(field, value)

    return coerce


CATEGORY_FIELDS: dict[str, Coercer] = {
    "name": _as_category_name,
    "description": _as_str,
    "icon": _as_str,
    "keywords": _as_str,
    "created": _as_datetime,
    "modified": _as_datetime,
    "password_protection": _as_enum(PasswordProtection),
    "is_bookmark_import": _as_bool,
    "source_browser_type": _optional(_as_enum(BrowserType)),
    "source_browser_name": _optional(_as_str),
    "source_bookmarks_path": _optional(_as_str),
    "last_bookmark_import_date": _optional(_as_datetime),
    "imported_bookmark_count": _optional(_as_int),
}

# Category files may hold names an import would reject; they load as written.
STORED_CATEGORY_FIELDS: dict[str, Coercer] = {**CATEGORY_FIELDS, "name": _as_name}

LINK_FIELDS: dict[str, Coercer] = {
    "title": _as_name,
    "url": _as_str,
    "description": _as_str,
    "keywords": _as_str,
    "is_directory": _as_bool,
    "category_path": _as_str,
    "created": _as_datetime,
    "modified": _as_datetime,
}

# Per-operation import options; None means "not given".
OPTION_FIELDS: dict[str, Coercer] = {
    "skip_if_exists": _optional(_as_bool),
    "update_if_exists": _optional(_as_bool),
    "preserve_timestamps": _optional(_as_bool),
}


def coerce_fields(
    values: Mapping[str, Any], schema: Mapping[str, Coercer]
) -> tuple[dict[str, Any], list[str]]:
    """Validate values against a field schema.

    Args:
        values: Raw field values; keys are normalized first.
        schema: One of the *_FIELDS schemas above.

    Returns:
        Tuple of (coerced values keyed by attribute name, unknown keys).

    Raises:
        TypeError / ValueError: if a known field has an invalid value.
    """
    coerced: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in values.items():
        name = normalize_field_name(key)
        coercer = schema.get(name)
        if coercer is None:
            unknown.append(key)
            continue
        coerced[name] = coercer(name, value)
    return coerced, unknown
