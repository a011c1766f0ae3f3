"""
Schema introspection for objects stored in a workspace database file.

Invariants:
    - All reads for one object target the single file that owns it
    - The display_field migration is attempted at most once per file per
      MigrationCache, and its failure is never reported
    - resolve_display_field always returns a non-empty name

How to change safely:
    - New lazy migrations go through ensure_schema_column's cache so they
      stay one ALTER per file per process
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..engine.base import sql_literal
from ..engine.bridge import QueryBridge
from .types import FieldDef, FieldKind, ObjectDef, ObjectSchema, StatusDef

logger = logging.getLogger(__name__)

_LABEL_NAME = re.compile(r"\b(name|title)\b", re.IGNORECASE)


class MigrationCache:
    """Database files that already received the lazy schema migration.

    Scoped to the serving process. Not shared between processes.
    """

    def __init__(self) -> None:
        self._done: set[str] = set()

    def __contains__(self, db_file: object) -> bool:
        return str(db_file) in self._done

    def __len__(self) -> int:
        return len(self._done)

    def mark(self, db_file: str | Path) -> None:
        self._done.add(str(db_file))

    def clear(self) -> None:
        self._done.clear()


def resolve_display_field(obj: ObjectDef, fields: list[FieldDef]) -> str:
    """Pick the field used as a human-readable label for entries.

    Priority: configured display_field, a field named like "name" or
    "title", the first text field, the first field by sort order, "id".
    """
    if obj.display_field:
        return obj.display_field

    for f in fields:
        if _LABEL_NAME.search(f.name):
            return f.name

    for f in fields:
        if f.kind is FieldKind.TEXT:
            return f.name

    if fields:
        return min(fields, key=lambda f: f.sort_order).name
    return "id"


class SchemaIntrospector:
    """Reads object, field and status metadata from database files.

    Example:
        >>> introspector = SchemaIntrospector(bridge)
        >>> await introspector.ensure_schema_column(db)
        >>> schema = await introspector.get_object_schema(db, "Task")
    """

    def __init__(self, bridge: QueryBridge, migrations: MigrationCache | None = None) -> None:
        self.bridge = bridge
        self.migrations = migrations if migrations is not None else MigrationCache()

    async def ensure_schema_column(self, db_file: Path) -> None:
        """Add objects.display_field if missing, once per file."""
        if db_file in self.migrations:
            return
        ok = await self.bridge.exec_async(
            db_file,
            "ALTER TABLE objects ADD COLUMN IF NOT EXISTS display_field VARCHAR",
            timeout=self.bridge.config.engine.lookup_timeout,
        )
        if not ok:
            # files without an objects table are expected to fail here
            logger.debug(f"display_field migration skipped for {db_file}")
        self.migrations.mark(db_file)

    async def get_object(self, db_file: Path, name: str) -> ObjectDef | None:
        rows = await self.bridge.query_async(
            db_file, f"SELECT * FROM objects WHERE name = {sql_literal(name)} LIMIT 1"
        )
        return ObjectDef.from_row(rows[0]) if rows else None

    async def get_object_by_id(self, db_file: Path, object_id: str) -> ObjectDef | None:
        rows = await self.bridge.query_async(
            db_file, f"SELECT * FROM objects WHERE id = {sql_literal(object_id)} LIMIT 1"
        )
        return ObjectDef.from_row(rows[0]) if rows else None

    async def get_fields(self, db_file: Path, object_id: str) -> list[FieldDef]:
        rows = await self.bridge.query_async(
            db_file,
            f"SELECT * FROM fields WHERE object_id = {sql_literal(object_id)} ORDER BY sort_order",
        )
        return [FieldDef.from_row(r) for r in rows]

    async def get_statuses(self, db_file: Path, object_id: str) -> list[StatusDef]:
        rows = await self.bridge.query_async(
            db_file,
            f"SELECT * FROM statuses WHERE object_id = {sql_literal(object_id)} ORDER BY sort_order",
        )
        return [StatusDef.from_row(r) for r in rows]

    async def get_object_schema(self, db_file: Path, name: str) -> ObjectSchema | None:
        """Read an object with its ordered fields and statuses.

        Returns:
            ObjectSchema, or None if the file has no object with that name
        """
        obj = await self.get_object(db_file, name)
        if obj is None:
            return None
        fields = await self.get_fields(db_file, obj.id)
        statuses = await self.get_statuses(db_file, obj.id)
        return ObjectSchema(object=obj, fields=fields, statuses=statuses)
