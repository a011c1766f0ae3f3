"""
EAV pivoting: one record per entry instead of one row per attribute.

Entries are read from the precomputed v_<object> view when it exists and
has rows. Otherwise raw (entry, field, value) rows are fetched and pivoted
here.

Known limitation: the raw fallback joins through entry_fields, so an entry
with no field values at all does not appear in its output.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..engine.base import quote_identifier, sql_literal
from ..engine.bridge import QueryBridge
from ..schema.types import ObjectDef

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def pivot_eav_rows(rows: list[dict[str, Any]]) -> list[Record]:
    """Group attribute rows into one record per entry.

    Each record is seeded with entry_id, created_at and updated_at; every
    populated field adds one key. Fields without a row add no key at all.
    Records keep the order in which their entries first appear.
    """
    grouped: dict[str, Record] = {}

    for row in rows:
        entry_id = row["entry_id"]
        entry = grouped.get(entry_id)
        if entry is None:
            entry = {
                "entry_id": entry_id,
                "created_at": row.get("created_at"),
                "updated_at": row.get("updated_at"),
            }
            grouped[entry_id] = entry
        field_name = row.get("field_name")
        if field_name:
            entry[field_name] = row.get("value")

    return list(grouped.values())


class PivotEngine:
    """Materializes an object's entries as row-shaped records."""

    def __init__(self, bridge: QueryBridge) -> None:
        self.bridge = bridge
        self.view_limit = bridge.config.limits.view_limit
        self.raw_limit = bridge.config.limits.raw_limit

    @staticmethod
    def view_name(object_name: str) -> str:
        return f"v_{object_name}"

    async def read_view(self, db_file: Path, obj: ObjectDef) -> list[Record]:
        view = quote_identifier(self.view_name(obj.name))
        return await self.bridge.query_async(
            db_file,
            f"SELECT * FROM {view} ORDER BY created_at DESC LIMIT {self.view_limit}",
        )

    async def read_raw(self, db_file: Path, obj: ObjectDef) -> list[Record]:
        rows = await self.bridge.query_async(
            db_file,
            f"""SELECT e.id AS entry_id, e.created_at, e.updated_at,
                       f.name AS field_name, ef.value
                FROM entries e
                JOIN entry_fields ef ON ef.entry_id = e.id
                JOIN fields f ON f.id = ef.field_id
                WHERE e.object_id = {sql_literal(obj.id)}
                ORDER BY e.created_at DESC
                LIMIT {self.raw_limit}""",
        )
        return pivot_eav_rows(rows)

    async def materialize_entries(self, db_file: Path, obj: ObjectDef) -> list[Record]:
        """Entries of an object, most recent first.

        Prefers the wide view; falls back to pivoting raw rows when the
        view is missing or empty.
        """
        entries = await self.read_view(db_file, obj)
        if entries:
            return entries

        logger.debug(f"No rows from view for '{obj.name}', pivoting raw EAV rows")
        return await self.read_raw(db_file, obj)
