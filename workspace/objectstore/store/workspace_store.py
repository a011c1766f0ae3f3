"""
WorkspaceStore - the entry point used by the HTTP layer and the CLI.

Resolves which file owns an object, then delegates to the introspector,
pivot engine, relation resolver and mutation engine, and assembles the
payload shapes the UI consumes.

Invariants:
    - Object names are validated before any lookup
    - A missing duckdb binary raises EngineNotInstalledError up front
    - Reverse relations are only computed for the detail payload
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import StoreConfig
from ..engine.bridge import QueryBridge
from ..engine.discovery import is_database_file, primary_database_file, walk_database_files
from ..engine.locator import DatabaseLocator
from ..errors import (
    EngineNotInstalledError,
    InvalidNameError,
    ObjectNotFoundError,
    ValidationError,
    WorkspaceFileNotFoundError,
)
from ..paths import relative_scope, resolve_workspace_root, safe_resolve
from ..schema.introspector import MigrationCache, SchemaIntrospector, resolve_display_field
from ..schema.types import FieldKind, ObjectSchema, is_valid_object_name
from .board import Board, build_board
from .mutations import EnumRenameResult, MutationEngine
from .pivot import PivotEngine
from .relations import RelationResolver

logger = logging.getLogger(__name__)


@dataclass
class OwnedSchema:
    """An object schema together with the file that owns it."""

    db_file: Path
    schema: ObjectSchema


class WorkspaceStore:
    """EAV object store over the layered workspace database files.

    Example:
        >>> store = WorkspaceStore(StoreConfig.from_env())
        >>> detail = await store.get_object_detail("Task")
        >>> entry_id = await store.create_entry("Task", {"title": "Write docs"})
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        bridge: QueryBridge | None = None,
        migrations: MigrationCache | None = None,
    ) -> None:
        self.config = config or StoreConfig.from_env()
        self.bridge = bridge or QueryBridge(self.config)
        self.locator = DatabaseLocator(self.bridge)
        self.introspector = SchemaIntrospector(self.bridge, migrations)
        self.pivot = PivotEngine(self.bridge)
        self.relations = RelationResolver(self.bridge, self.locator, self.introspector)
        self.mutations = MutationEngine(self.bridge, self.introspector)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _check_engine(self) -> None:
        if not self.bridge.engine_available():
            raise EngineNotInstalledError()

    @staticmethod
    def _check_name(name: str) -> None:
        if not is_valid_object_name(name):
            raise InvalidNameError(name)

    async def _owner(self, name: str) -> Path:
        self._check_engine()
        self._check_name(name)
        db_file = await self.locator.locate_owner_async(name)
        if db_file is None:
            if primary_database_file(config=self.config.workspace) is None:
                raise ObjectNotFoundError(name, "DuckDB database not found")
            raise ObjectNotFoundError(name)
        return db_file

    async def load_schema(self, name: str) -> OwnedSchema:
        """Locate the owning file and read the object's schema from it.

        Raises:
            EngineNotInstalledError: duckdb CLI missing
            InvalidNameError: name is not a safe identifier
            ObjectNotFoundError: no file owns the object
        """
        db_file = await self._owner(name)
        await self.introspector.ensure_schema_column(db_file)
        schema = await self.introspector.get_object_schema(db_file, name)
        if schema is None:
            raise ObjectNotFoundError(name)
        return OwnedSchema(db_file=db_file, schema=schema)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_object_detail(self, name: str) -> dict[str, Any]:
        """Full object payload: schema, entries, relation labels and backlinks."""
        owned = await self.load_schema(name)
        db_file, schema = owned.db_file, owned.schema

        entries = await self.pivot.materialize_entries(db_file, schema.object)
        forward = await self.relations.resolve_forward(db_file, schema.fields, entries)
        reverse = await self.relations.find_reverse(schema.object.id)

        fields = []
        for f in schema.fields:
            data = f.to_dict()
            if f.kind is FieldKind.RELATION:
                data["related_object_name"] = forward.related_object_names.get(f.name)
            fields.append(data)

        return {
            "object": schema.object.to_dict(),
            "fields": fields,
            "statuses": [s.to_dict() for s in schema.statuses],
            "entries": entries,
            "relationLabels": forward.labels,
            "reverseRelations": [r.to_dict() for r in reverse],
            "effectiveDisplayField": resolve_display_field(schema.object, schema.fields),
        }

    async def get_board(self, name: str) -> Board:
        """Entries grouped into board columns (no reverse relations)."""
        owned = await self.load_schema(name)
        entries = await self.pivot.materialize_entries(owned.db_file, owned.schema.object)
        return build_board(owned.schema.fields, owned.schema.statuses, entries)

    def list_databases(self) -> list[dict[str, Any]]:
        """Discovered database files with depth and workspace scope."""
        root = resolve_workspace_root(self.config)
        return [
            {
                "path": str(found.path),
                "depth": found.depth,
                "scope": relative_scope(found.path, root),
            }
            for found in walk_database_files(root, self.config.workspace)
        ]

    async def query_database(self, relative_path: str, sql: str) -> list[dict[str, Any]]:
        """Run a query against any database file inside the workspace.

        Raises:
            EngineNotInstalledError: duckdb CLI missing
            ValidationError: path does not name a database file
            WorkspaceFileNotFoundError: path is outside the workspace or missing
        """
        self._check_engine()
        if not is_database_file(relative_path):
            raise ValidationError("Not a database file", "path")
        root = resolve_workspace_root(self.config)
        db_file = safe_resolve(relative_path, root) if root else None
        if db_file is None:
            raise WorkspaceFileNotFoundError(relative_path)
        return await self.bridge.query_file_async(db_file, sql)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_entry(self, name: str, field_values: dict[str, Any] | None = None) -> str:
        owned = await self.load_schema(name)
        return await self.mutations.create_entry(owned.db_file, owned.schema.object, field_values)

    async def update_entry(self, name: str, entry_id: str, field_values: dict[str, Any]) -> int:
        if not isinstance(field_values, dict) or not field_values:
            raise ValidationError("fields must be a non-empty object", "fields")
        owned = await self.load_schema(name)
        return await self.mutations.update_entry(
            owned.db_file, owned.schema.object, entry_id, field_values
        )

    async def bulk_delete(self, name: str, entry_ids: list[str]) -> int:
        if (
            not isinstance(entry_ids, list)
            or not entry_ids
            or not all(isinstance(i, str) and i for i in entry_ids)
        ):
            raise ValidationError("entryIds must be a non-empty array", "entryIds")
        owned = await self.load_schema(name)
        return await self.mutations.bulk_delete(owned.db_file, owned.schema.object, entry_ids)

    async def rename_enum_value(
        self,
        name: str,
        field_id: str,
        old_value: str,
        new_value: str,
    ) -> EnumRenameResult:
        values_given = isinstance(old_value, str) and isinstance(new_value, str)
        if not values_given or not old_value or not new_value:
            raise ValidationError("oldValue and newValue are required")
        owned = await self.load_schema(name)
        return await self.mutations.rename_enum_value(
            owned.db_file, owned.schema.object, field_id, old_value, new_value
        )
