"""
Board (kanban) grouping derived from schema metadata.

Columns come from explicit statuses when the object has any, otherwise
from the grouping field's enum values (colors aligned by index), otherwise
from the distinct values present in the entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..schema.types import FieldDef, FieldKind, StatusDef

DEFAULT_COLOR = "#94a3b8"
UNGROUPED = "_ungrouped"


@dataclass
class BoardColumn:
    name: str
    color: str = DEFAULT_COLOR
    entry_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "color": self.color, "entryIds": self.entry_ids}


@dataclass
class Board:
    group_field: str | None
    columns: list[BoardColumn]
    ungrouped: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "groupField": self.group_field,
            "columns": [c.to_dict() for c in self.columns],
            UNGROUPED: self.ungrouped,
        }


def group_field_for(fields: list[FieldDef]) -> FieldDef | None:
    """The enum field entries are grouped by: one named like status, else the first enum."""
    enums = [f for f in fields if f.kind is FieldKind.ENUM]
    for f in enums:
        if "status" in f.name.lower():
            return f
    return enums[0] if enums else None


def board_columns(
    statuses: list[StatusDef],
    group_field: FieldDef | None,
    entries: list[dict[str, Any]],
) -> list[BoardColumn]:
    if statuses:
        return [BoardColumn(s.name, s.color or DEFAULT_COLOR) for s in statuses]

    if group_field is not None and group_field.enum_values:
        colors = group_field.enum_colors or []
        return [
            BoardColumn(v, colors[i] if i < len(colors) and colors[i] else DEFAULT_COLOR)
            for i, v in enumerate(group_field.enum_values)
        ]

    seen: dict[str, None] = {}
    if group_field is not None:
        for entry in entries:
            value = entry.get(group_field.name)
            if value:
                seen.setdefault(str(value), None)
    return [BoardColumn(v) for v in seen]


def build_board(
    fields: list[FieldDef],
    statuses: list[StatusDef],
    entries: list[dict[str, Any]],
) -> Board:
    """Group entry ids into board columns."""
    group_field = group_field_for(fields)
    columns = board_columns(statuses, group_field, entries)
    by_name = {c.name: c for c in columns}
    ungrouped: list[str] = []

    for entry in entries:
        entry_id = str(entry.get("entry_id"))
        value = "" if group_field is None else str(entry.get(group_field.name) or "")
        column = by_name.get(value)
        if column is not None:
            column.entry_ids.append(entry_id)
        else:
            ungrouped.append(entry_id)

    return Board(
        group_field=group_field.name if group_field else None,
        columns=columns,
        ungrouped=ungrouped,
    )
