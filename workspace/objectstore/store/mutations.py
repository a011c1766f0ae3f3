"""
Mutations: entry creation, entry updates, bulk deletion, enum renames.

Each statement is its own duckdb process; there is no transaction around
a multi-statement mutation and no rollback. An enum rename that updates
the field definition and then fails on the stored values leaves the two
out of step until it is retried.

Invariants:
    - Entry deletes are always scoped to the object's id
    - Enum renames keep the value's index so enum_colors stay aligned
    - Renaming a value to itself (after trimming) writes nothing
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..engine.base import sql_list, sql_literal
from ..engine.bridge import QueryBridge
from ..errors import (
    DuplicateEnumValueError,
    EnumValueNotFoundError,
    FieldNotFoundError,
    StoreError,
    ValidationError,
)
from ..schema.introspector import SchemaIntrospector
from ..schema.types import ObjectDef, parse_json_list

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")


def _encode_value(value: Any) -> str:
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


@dataclass
class EnumRenameResult:
    """Outcome of an enum rename.

    Attributes:
        changed: False when old and new values were identical
        updated: Stored entry values rewritten
    """

    changed: bool
    updated: int = 0

    def to_dict(self) -> dict[str, Any]:
        if not self.changed:
            return {"ok": True, "changed": 0}
        return {"ok": True, "updated": self.updated}


class MutationEngine:
    """Writes entries and field definitions in an object's owning file.

    Callers resolve the owning file and object first; every method here
    works on one file.
    """

    def __init__(self, bridge: QueryBridge, introspector: SchemaIntrospector) -> None:
        self.bridge = bridge
        self.introspector = introspector

    async def _count(self, db_file: Path, sql: str) -> int:
        rows = await self.bridge.query_async(db_file, sql)
        if not rows:
            return 0
        return int(rows[0].get("n") or 0)

    async def _field_ids(self, db_file: Path, object_id: str) -> dict[str, str]:
        fields = await self.introspector.get_fields(db_file, object_id)
        return {f.name: f.id for f in fields}

    async def _new_id(self, db_file: Path) -> str:
        rows = await self.bridge.query_async(db_file, "SELECT uuid()::VARCHAR AS id")
        entry_id = rows[0].get("id") if rows else None
        if not entry_id:
            raise StoreError("Failed to generate UUID")
        return str(entry_id)

    async def create_entry(
        self,
        db_file: Path,
        obj: ObjectDef,
        field_values: dict[str, Any] | None = None,
    ) -> str:
        """Create an entry and its field values.

        Unknown field names and None values are skipped.

        Returns:
            The new entry id
        """
        entry_id = await self._new_id(db_file)
        now = _now()

        ok = await self.bridge.exec_async(
            db_file,
            f"INSERT INTO entries (id, object_id, created_at, updated_at) "
            f"VALUES ({sql_literal(entry_id)}, {sql_literal(obj.id)}, "
            f"{sql_literal(now)}, {sql_literal(now)})",
        )
        if not ok:
            raise StoreError("Failed to create entry")

        if field_values:
            field_ids = await self._field_ids(db_file, obj.id)
            for name, value in field_values.items():
                field_id = field_ids.get(name)
                if field_id is None or value is None:
                    continue
                inserted = await self.bridge.exec_async(
                    db_file,
                    f"INSERT INTO entry_fields (entry_id, field_id, value) "
                    f"VALUES ({sql_literal(entry_id)}, {sql_literal(field_id)}, "
                    f"{sql_literal(_encode_value(value))})",
                )
                if not inserted:
                    logger.warning(
                        f"Failed to store field '{name}' for new entry {entry_id}",
                        extra={"object": obj.name},
                    )

        logger.info(f"Created entry {entry_id}", extra={"object": obj.name, "db": str(db_file)})
        return entry_id

    async def update_entry(
        self,
        db_file: Path,
        obj: ObjectDef,
        entry_id: str,
        field_values: dict[str, Any],
    ) -> int:
        """Replace field values of one entry of the object.

        A None value clears the field. Unknown field names are skipped.

        Returns:
            Number of fields written or cleared
        """
        exists = await self._count(
            db_file,
            f"SELECT count(*) AS n FROM entries "
            f"WHERE id = {sql_literal(entry_id)} AND object_id = {sql_literal(obj.id)}",
        )
        if not exists:
            raise ValidationError(f"Entry '{entry_id}' does not belong to '{obj.name}'", "entryId")

        field_ids = await self._field_ids(db_file, obj.id)
        touched = 0
        for name, value in field_values.items():
            field_id = field_ids.get(name)
            if field_id is None:
                continue
            await self.bridge.exec_async(
                db_file,
                f"DELETE FROM entry_fields WHERE entry_id = {sql_literal(entry_id)} "
                f"AND field_id = {sql_literal(field_id)}",
            )
            if value is not None:
                ok = await self.bridge.exec_async(
                    db_file,
                    f"INSERT INTO entry_fields (entry_id, field_id, value) "
                    f"VALUES ({sql_literal(entry_id)}, {sql_literal(field_id)}, "
                    f"{sql_literal(_encode_value(value))})",
                )
                if not ok:
                    raise StoreError(f"Failed to update field '{name}'")
            touched += 1

        await self.bridge.exec_async(
            db_file,
            f"UPDATE entries SET updated_at = {sql_literal(_now())} WHERE id = {sql_literal(entry_id)}",
        )
        return touched

    async def bulk_delete(self, db_file: Path, obj: ObjectDef, entry_ids: list[str]) -> int:
        """Delete entries of the object and their field values.

        Ids that belong to another object are left alone, field values
        included.

        Returns:
            Number of entries of this object that were targeted
        """
        ids = sql_list(entry_ids)
        owned = (
            f"SELECT id FROM entries WHERE id IN ({ids}) AND object_id = {sql_literal(obj.id)}"
        )

        count = await self._count(db_file, f"SELECT count(*) AS n FROM ({owned})")

        await self.bridge.exec_async(
            db_file,
            f"DELETE FROM entry_fields WHERE entry_id IN ({owned})",
        )
        ok = await self.bridge.exec_async(
            db_file,
            f"DELETE FROM entries WHERE id IN ({ids}) AND object_id = {sql_literal(obj.id)}",
        )
        if not ok:
            raise StoreError("Failed to delete entries")

        logger.info(f"Deleted {count} entries", extra={"object": obj.name, "db": str(db_file)})
        return count

    async def rename_enum_value(
        self,
        db_file: Path,
        obj: ObjectDef,
        field_id: str,
        old_value: str,
        new_value: str,
    ) -> EnumRenameResult:
        """Rename an enum value in the field definition and in stored entries.

        Raises:
            FieldNotFoundError: Field is not on the object
            EnumValueNotFoundError: old_value is not defined (or the field has no values)
            DuplicateEnumValueError: new_value is already defined
            StoreError: The definition or the stored values could not be written
        """
        rows = await self.bridge.query_async(
            db_file,
            f"SELECT id, enum_values, enum_colors FROM fields "
            f"WHERE id = {sql_literal(field_id)} AND object_id = {sql_literal(obj.id)}",
        )
        if not rows:
            raise FieldNotFoundError(field_id)

        raw = rows[0].get("enum_values")
        values = parse_json_list(raw) if raw else []
        if values is None:
            raise StoreError("Invalid enum_values in field")

        old = old_value.strip()
        new = new_value.strip()
        if old == new:
            return EnumRenameResult(changed=False)

        if old not in values:
            raise EnumValueNotFoundError(old_value)
        if new in values:
            raise DuplicateEnumValueError(new_value)

        values[values.index(old)] = new

        ok = await self.bridge.exec_async(
            db_file,
            f"UPDATE fields SET enum_values = {sql_literal(json.dumps(values))} "
            f"WHERE id = {sql_literal(field_id)}",
        )
        if not ok:
            raise StoreError("Failed to update enum values")

        matching = (
            f"FROM entry_fields WHERE field_id = {sql_literal(field_id)} "
            f"AND value = {sql_literal(old)}"
        )
        updated = await self._count(db_file, f"SELECT count(*) AS n {matching}")
        ok = await self.bridge.exec_async(
            db_file,
            f"UPDATE entry_fields SET value = {sql_literal(new)} "
            f"WHERE field_id = {sql_literal(field_id)} AND value = {sql_literal(old)}",
        )
        if not ok:
            logger.warning(
                f"Enum definition renamed but entry values were not: {old!r} -> {new!r}",
                extra={"object": obj.name, "field_id": field_id},
            )
            raise StoreError("Enum definition updated but entry values could not be updated")

        logger.info(
            f"Renamed enum value {old!r} -> {new!r} ({updated} entries)",
            extra={"object": obj.name, "field_id": field_id},
        )
        return EnumRenameResult(changed=True, updated=updated)
