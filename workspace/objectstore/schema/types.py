"""
Typed projections of object, field and status rows.

The query bridge returns plain dicts. Rows are projected into these
dataclasses right after retrieval so the relation and mutation code works
with known attributes. Each projection keeps the row it came from, and
to_dict() echoes every stored column, including ones not modelled here.

Invariants:
    - enum_values and enum_colors are aligned by index
    - related_object_id is only meaningful when kind is RELATION
    - Unparsable JSON columns are passed through unchanged in to_dict()

Example:
    >>> f = FieldDef.from_row({"id": "f1", "object_id": "o1", "name": "status",
    ...                        "type": "enum", "enum_values": '["todo","done"]'})
    >>> f.enum_values
    ['todo', 'done']
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any

OBJECT_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")


class FieldKind(Enum):
    """Field types stored in fields.type."""

    TEXT = "text"
    ENUM = "enum"
    RELATION = "relation"
    USER = "user"
    RICHTEXT = "richtext"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    EMAIL = "email"
    URL = "url"
    OTHER = "other"

    @classmethod
    def from_str(cls, value: str | None) -> FieldKind:
        """Map a stored type name to a FieldKind, OTHER if unknown."""
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.OTHER


def is_valid_object_name(name: str) -> bool:
    """Whether a name is safe to interpolate into generated SQL."""
    return bool(OBJECT_NAME_PATTERN.fullmatch(name or ""))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_json_list(value: Any) -> list[str] | None:
    """Decode a JSON-encoded string array. None if absent or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return [str(v) for v in value]
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return None
    if not isinstance(parsed, list):
        return None
    return [str(v) for v in parsed]


def _try_parse_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


@dataclass
class ObjectDef:
    """A user-defined record type.

    Attributes:
        id: Object identifier
        name: Unique name within its database file
        display_field: Configured label field, if any
        row: Original row as returned by the engine
    """

    id: str
    name: str
    description: str | None = None
    icon: str | None = None
    default_view: str | None = None
    display_field: str | None = None
    immutable: bool = False
    row: dict[str, Any] = dataclass_field(default_factory=dict, repr=False)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ObjectDef:
        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            description=row.get("description"),
            icon=row.get("icon"),
            default_view=row.get("default_view"),
            display_field=row.get("display_field") or None,
            immutable=_as_bool(row.get("immutable")),
            row=dict(row),
        )

    def to_dict(self) -> dict[str, Any]:
        return dict(self.row) if self.row else {"id": self.id, "name": self.name}


@dataclass
class FieldDef:
    """A field of an object.

    Attributes:
        id: Field identifier
        object_id: Owning object
        name: Field name, used as the key in pivoted entries
        type: Stored type name
        enum_values: Decoded enum values (None if absent or malformed)
        enum_colors: Decoded colors aligned with enum_values
        related_object_id: Target object for relation fields
        sort_order: Display and query order
    """

    id: str
    object_id: str
    name: str
    type: str
    description: str | None = None
    required: bool = False
    enum_values: list[str] | None = None
    enum_colors: list[str] | None = None
    enum_multiple: bool = False
    related_object_id: str | None = None
    relationship_type: str | None = None
    sort_order: int = 0
    row: dict[str, Any] = dataclass_field(default_factory=dict, repr=False)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> FieldDef:
        related = row.get("related_object_id")
        return cls(
            id=str(row["id"]),
            object_id=str(row.get("object_id") or ""),
            name=str(row["name"]),
            type=str(row.get("type") or ""),
            description=row.get("description"),
            required=_as_bool(row.get("required")),
            enum_values=parse_json_list(row.get("enum_values")),
            enum_colors=parse_json_list(row.get("enum_colors")),
            enum_multiple=_as_bool(row.get("enum_multiple")),
            related_object_id=str(related) if related else None,
            relationship_type=row.get("relationship_type"),
            sort_order=_as_int(row.get("sort_order")),
            row=dict(row),
        )

    @property
    def kind(self) -> FieldKind:
        return FieldKind.from_str(self.type)

    @property
    def is_relation(self) -> bool:
        return self.kind is FieldKind.RELATION and bool(self.related_object_id)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.row) if self.row else {"id": self.id, "name": self.name, "type": self.type}
        for key in ("enum_values", "enum_colors"):
            raw = data.get(key)
            data[key] = _try_parse_json(raw) if raw else None
        return data


@dataclass
class StatusDef:
    """An explicit workflow stage of an object."""

    id: str
    object_id: str
    name: str
    color: str | None = None
    sort_order: int = 0
    is_default: bool = False
    row: dict[str, Any] = dataclass_field(default_factory=dict, repr=False)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> StatusDef:
        return cls(
            id=str(row["id"]),
            object_id=str(row.get("object_id") or ""),
            name=str(row["name"]),
            color=row.get("color"),
            sort_order=_as_int(row.get("sort_order")),
            is_default=_as_bool(row.get("is_default")),
            row=dict(row),
        )

    def to_dict(self) -> dict[str, Any]:
        return dict(self.row) if self.row else {"id": self.id, "name": self.name}


@dataclass
class ObjectSchema:
    """An object with its ordered fields and statuses, read from one file."""

    object: ObjectDef
    fields: list[FieldDef]
    statuses: list[StatusDef]

    def field_by_name(self, name: str) -> FieldDef | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None
