"""
Owner lookup across layered database files.

Invariants:
    - Files are checked shallowest first
    - The first file with a matching objects row is the owner, deeper
      files are not consulted once it is found
"""

from __future__ import annotations

import logging
from pathlib import Path

from .base import sql_literal
from .bridge import QueryBridge

logger = logging.getLogger(__name__)


class DatabaseLocator:
    """Finds which database file owns a named object."""

    def __init__(self, bridge: QueryBridge) -> None:
        self.bridge = bridge

    @property
    def _timeout(self) -> float:
        return self.bridge.config.engine.lookup_timeout

    @staticmethod
    def _name_lookup(object_name: str) -> str:
        return f"SELECT id FROM objects WHERE name = {sql_literal(object_name)} LIMIT 1"

    @staticmethod
    def _id_lookup(object_id: str) -> str:
        return f"SELECT id FROM objects WHERE id = {sql_literal(object_id)} LIMIT 1"

    def locate_owner(self, object_name: str) -> Path | None:
        """Return the authoritative database file for an object name."""
        sql = self._name_lookup(object_name)
        for db in self.bridge.database_files():
            if self.bridge.query(db, sql, timeout=self._timeout):
                return db
        return None

    async def locate_owner_async(self, object_name: str) -> Path | None:
        """Async version of locate_owner."""
        sql = self._name_lookup(object_name)
        for db in self.bridge.database_files():
            if await self.bridge.query_async(db, sql, timeout=self._timeout):
                logger.debug(f"Object '{object_name}' owned by {db}")
                return db
        return None

    async def locate_object_by_id(self, object_id: str, prefer: Path | None = None) -> Path | None:
        """Return the database file holding an object id.

        Args:
            object_id: Object identifier
            prefer: File checked before the discovered ones
        """
        sql = self._id_lookup(object_id)
        candidates = self.bridge.database_files()
        if prefer is not None:
            candidates = [prefer] + [db for db in candidates if db != prefer]
        for db in candidates:
            if await self.bridge.query_async(db, sql, timeout=self._timeout):
                return db
        return None
