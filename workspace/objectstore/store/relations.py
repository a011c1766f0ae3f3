"""
Relation resolution: labels for forward references and reverse backlinks.

Relation values are stored as raw entry ids, either a bare id
(many-to-one) or a JSON array of ids (many-to-many). Labels are always
computed at read time, so renamed or deleted targets show up without any
update pass.

Invariants:
    - A referenced id with no label falls back to the id itself
    - Forward targets are looked up in the owning file first, then in the
      other discovered files
    - Reverse relations scan every discovered file

How to change safely:
    - find_reverse issues several queries per file per field; keep it off
      list views
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..engine.base import sql_list, sql_literal
from ..engine.bridge import QueryBridge
from ..engine.locator import DatabaseLocator
from ..schema.introspector import SchemaIntrospector, resolve_display_field
from ..schema.types import FieldDef

logger = logging.getLogger(__name__)


def parse_relation_value(value: Any) -> list[str]:
    """Split a stored relation value into entry ids."""
    if value is None:
        return []
    trimmed = str(value).strip()
    if not trimmed:
        return []

    if trimmed.startswith("["):
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(v) for v in parsed if v is not None and str(v)]

    return [trimmed]


@dataclass
class ForwardRelations:
    """Labels for relation fields of one object.

    Attributes:
        labels: field name -> entry id -> label
        related_object_names: field name -> target object name
    """

    labels: dict[str, dict[str, str]] = field(default_factory=dict)
    related_object_names: dict[str, str] = field(default_factory=dict)


@dataclass
class Backlink:
    id: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label}


@dataclass
class ReverseRelation:
    """Entries of another object that point at this one through a field."""

    field_name: str
    source_object_name: str
    source_object_id: str
    display_field: str
    entries: dict[str, list[Backlink]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fieldName": self.field_name,
            "sourceObjectName": self.source_object_name,
            "sourceObjectId": self.source_object_id,
            "displayField": self.display_field,
            "entries": {
                target: [b.to_dict() for b in links] for target, links in self.entries.items()
            },
        }


class RelationResolver:
    """Resolves relation ids to display labels, in both directions."""

    def __init__(
        self,
        bridge: QueryBridge,
        locator: DatabaseLocator,
        introspector: SchemaIntrospector,
    ) -> None:
        self.bridge = bridge
        self.locator = locator
        self.introspector = introspector

    async def _display_values(
        self,
        db_file: Path,
        object_id: str,
        display_field: str,
        entry_ids: list[str],
    ) -> dict[str, str]:
        rows = await self.bridge.query_async(
            db_file,
            f"""SELECT ef.entry_id, ef.value
                FROM entry_fields ef
                JOIN fields f ON f.id = ef.field_id
                WHERE ef.entry_id IN ({sql_list(entry_ids)})
                AND f.object_id = {sql_literal(object_id)}
                AND f.name = {sql_literal(display_field)}""",
        )
        return {str(r["entry_id"]): r["value"] for r in rows if r.get("value")}

    async def resolve_forward(
        self,
        db_file: Path,
        fields: list[FieldDef],
        entries: list[dict[str, Any]],
    ) -> ForwardRelations:
        """Build id -> label maps for every relation field of an object."""
        result = ForwardRelations()

        for rf in fields:
            if not rf.is_relation:
                continue

            target_db = await self.locator.locate_object_by_id(rf.related_object_id, prefer=db_file)
            if target_db is None:
                logger.debug(f"Related object {rf.related_object_id} of '{rf.name}' not found")
                continue
            related = await self.introspector.get_object_by_id(target_db, rf.related_object_id)
            if related is None:
                continue
            result.related_object_names[rf.name] = related.name

            related_fields = await self.introspector.get_fields(target_db, related.id)
            display_field = resolve_display_field(related, related_fields)

            ids: list[str] = []
            seen: set[str] = set()
            for entry in entries:
                for ref in parse_relation_value(entry.get(rf.name)):
                    if ref not in seen:
                        seen.add(ref)
                        ids.append(ref)

            if not ids:
                result.labels[rf.name] = {}
                continue

            found = await self._display_values(target_db, related.id, display_field, ids)
            result.labels[rf.name] = {ref: found.get(ref) or ref for ref in ids}

        return result

    async def find_reverse(self, object_id: str) -> list[ReverseRelation]:
        """Relation fields in any discovered file that point at object_id."""
        result: list[ReverseRelation] = []

        for db in self.bridge.database_files():
            reverse_fields = await self.bridge.query_async(
                db,
                f"""SELECT f.*, f.object_id AS source_object_id, o.name AS source_object_name
                    FROM fields f
                    JOIN objects o ON o.id = f.object_id
                    WHERE f.type = 'relation'
                    AND f.related_object_id = {sql_literal(object_id)}""",
            )

            for row in reverse_fields:
                rrf = FieldDef.from_row(row)
                source_id = str(row["source_object_id"])
                source = await self.introspector.get_object_by_id(db, source_id)
                if source is None:
                    continue
                source_fields = await self.introspector.get_fields(db, source_id)
                display_field = resolve_display_field(source, source_fields)

                refs = await self.bridge.query_async(
                    db,
                    f"""SELECT ef.entry_id AS source_entry_id, ef.value AS target_value
                        FROM entry_fields ef
                        WHERE ef.field_id = {sql_literal(rrf.id)}
                        AND ef.value IS NOT NULL
                        AND ef.value != ''
                        ORDER BY ef.entry_id""",
                )
                if not refs:
                    continue

                source_ids = list(dict.fromkeys(str(r["source_entry_id"]) for r in refs))
                labels = await self._display_values(db, source_id, display_field, source_ids)

                grouped: dict[str, list[Backlink]] = {}
                for r in refs:
                    source_entry = str(r["source_entry_id"])
                    for target in parse_relation_value(r["target_value"]):
                        grouped.setdefault(target, []).append(
                            Backlink(id=source_entry, label=labels.get(source_entry) or source_entry)
                        )

                result.append(
                    ReverseRelation(
                        field_name=rrf.name,
                        source_object_name=str(row["source_object_name"]),
                        source_object_id=source_id,
                        display_field=display_field,
                        entries=grouped,
                    )
                )

        return result
