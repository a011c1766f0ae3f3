"""
Query/exec bridge to the duckdb CLI.

Read paths treat a failed query the same as an empty one: a table that
does not exist yet and a typo in a statement both come back as []. Callers
that need to tell the two apart pass strict=True, which re-raises
process-level failures while zero-row success still returns [].

Invariants:
    - query() never raises unless strict=True
    - exec() never raises; it reports success as a bool
    - query_all() visits files shallowest first; with a dedupe key the
      first row seen for a key value wins
    - A missing binary or workspace yields empty results

How to change safely:
    - Keep sync and async methods as thin adapters over _prepare/_parse
    - Log swallowed failures at DEBUG so they stay diagnosable
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..config import StoreConfig
from ..errors import EngineExecutionError
from .base import CommandRunner, build_command, resolve_engine_bin
from .discovery import discover_database_files
from .runner import SubprocessRunner

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class QueryBridge:
    """Runs SQL against workspace database files through the duckdb CLI.

    Example:
        >>> bridge = QueryBridge(StoreConfig.from_env())
        >>> rows = await bridge.query_async(db, "SELECT id, name FROM objects")
        >>> ok = bridge.exec(db, "DELETE FROM entries WHERE id = 'x'")
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        runner: CommandRunner | None = None,
        bin_path: str | None = None,
    ) -> None:
        """Initialize the bridge.

        Args:
            config: Store configuration (loaded from env if not provided)
            runner: Command runner (subprocess runner if not provided)
            bin_path: duckdb binary, skips resolution when given
        """
        self.config = config or StoreConfig.from_env()
        self.runner: CommandRunner = runner or SubprocessRunner(
            max_output_bytes=self.config.engine.max_output_bytes
        )
        self._bin_path = bin_path

    # ------------------------------------------------------------------
    # Engine and file discovery
    # ------------------------------------------------------------------

    def engine_bin(self) -> str | None:
        """Resolved duckdb binary, or None if not installed."""
        return self._bin_path or resolve_engine_bin(self.config.engine)

    def engine_available(self) -> bool:
        return self.engine_bin() is not None

    def database_files(self) -> list[Path]:
        """Discovered database files, shallowest first."""
        return discover_database_files(config=self.config.workspace)

    # ------------------------------------------------------------------
    # Shared request construction and output parsing
    # ------------------------------------------------------------------

    def _prepare(self, db_file: str | Path, sql: str, json_output: bool) -> str | None:
        bin_path = self.engine_bin()
        if bin_path is None:
            logger.debug("duckdb binary not found, skipping statement")
            return None
        return build_command(bin_path, db_file, sql, json_output=json_output)

    @staticmethod
    def _parse(output: str) -> list[Row]:
        trimmed = output.strip()
        if not trimmed or trimmed == "[]":
            return []
        rows = json.loads(trimmed)
        if not isinstance(rows, list):
            raise ValueError("duckdb JSON output is not an array")
        return rows

    def _failed(self, db_file: str | Path, sql: str, error: Exception, strict: bool) -> list[Row]:
        logger.debug(
            f"Query failed on {db_file}: {error}",
            extra={"sql": sql[:200], "stderr": getattr(error, "stderr", "")},
        )
        if strict:
            if isinstance(error, EngineExecutionError):
                raise error
            raise EngineExecutionError(f"Unreadable duckdb output: {error}") from error
        return []

    # ------------------------------------------------------------------
    # Single-file queries
    # ------------------------------------------------------------------

    def query(
        self,
        db_file: str | Path,
        sql: str,
        timeout: float | None = None,
        strict: bool = False,
    ) -> list[Row]:
        """Run a query and return its rows (blocking).

        Args:
            db_file: Target database file
            sql: Statement with values already SQL-escaped
            timeout: Seconds before the process is killed
            strict: Raise EngineExecutionError on process-level failure

        Returns:
            Parsed rows, [] on any failure unless strict
        """
        command = self._prepare(db_file, sql, json_output=True)
        if command is None:
            return []
        try:
            output = self.runner.run(command, timeout or self.config.engine.query_timeout)
            return self._parse(output)
        except (EngineExecutionError, ValueError) as e:
            return self._failed(db_file, sql, e, strict)

    async def query_async(
        self,
        db_file: str | Path,
        sql: str,
        timeout: float | None = None,
        strict: bool = False,
    ) -> list[Row]:
        """Run a query and return its rows without blocking the event loop."""
        command = self._prepare(db_file, sql, json_output=True)
        if command is None:
            return []
        try:
            output = await self.runner.run_async(
                command, timeout or self.config.engine.query_timeout
            )
            return self._parse(output)
        except (EngineExecutionError, ValueError) as e:
            return self._failed(db_file, sql, e, strict)

    def query_file(self, db_file: str | Path, sql: str, strict: bool = False) -> list[Row]:
        """Query an arbitrary database file with the longer file timeout."""
        return self.query(db_file, sql, timeout=self.config.engine.file_timeout, strict=strict)

    async def query_file_async(
        self, db_file: str | Path, sql: str, strict: bool = False
    ) -> list[Row]:
        return await self.query_async(
            db_file, sql, timeout=self.config.engine.file_timeout, strict=strict
        )

    def exec(self, db_file: str | Path, sql: str, timeout: float | None = None) -> bool:
        """Run a statement that returns no rows (blocking)."""
        command = self._prepare(db_file, sql, json_output=False)
        if command is None:
            return False
        try:
            self.runner.run(command, timeout or self.config.engine.query_timeout)
        except EngineExecutionError as e:
            logger.debug(f"Statement failed on {db_file}: {e}", extra={"sql": sql[:200]})
            return False
        return True

    async def exec_async(self, db_file: str | Path, sql: str, timeout: float | None = None) -> bool:
        """Run a statement that returns no rows without blocking."""
        command = self._prepare(db_file, sql, json_output=False)
        if command is None:
            return False
        try:
            await self.runner.run_async(command, timeout or self.config.engine.query_timeout)
        except EngineExecutionError as e:
            logger.debug(f"Statement failed on {db_file}: {e}", extra={"sql": sql[:200]})
            return False
        return True

    # ------------------------------------------------------------------
    # Multi-file aggregation
    # ------------------------------------------------------------------

    @staticmethod
    def _merge(batches: list[list[Row]], dedupe_key: str | None) -> list[Row]:
        seen: set[Any] = set()
        merged: list[Row] = []
        for rows in batches:
            for row in rows:
                if dedupe_key is not None:
                    key = row.get(dedupe_key)
                    if isinstance(key, (list, dict)):
                        key = json.dumps(key, sort_keys=True, default=str)
                    if key in seen:
                        continue
                    seen.add(key)
                merged.append(row)
        return merged

    def query_all(self, sql: str, dedupe_key: str | None = None) -> list[Row]:
        """Run a query against every discovered file and merge the rows.

        Shallower files are queried first. With dedupe_key set, a key value
        already seen in an earlier file suppresses later rows with it.
        Failing files are skipped.
        """
        batches = [self.query(db, sql) for db in self.database_files()]
        return self._merge(batches, dedupe_key)

    async def query_all_async(self, sql: str, dedupe_key: str | None = None) -> list[Row]:
        """Async version of query_all."""
        batches = [await self.query_async(db, sql) for db in self.database_files()]
        return self._merge(batches, dedupe_key)
