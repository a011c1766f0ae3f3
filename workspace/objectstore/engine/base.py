"""
Shared request construction for duckdb CLI invocations.

Every statement reaches the engine as one shell command built here:

    '<bin>' -json '<db file>' '<sql>'

Escaping happens in two ordered passes. Values interpolated into SQL are
quoted for SQL first (sql_literal doubles embedded single quotes), then
every argument of the finished command is quoted for the shell
(shlex.quote). Skipping either pass, or running them in the other order,
breaks statements containing quotes.

Invariants:
    - build_command is the only place a command line is assembled
    - Runners receive a complete command string and a timeout, nothing else
    - Runners raise EngineExecutionError on any process-level failure

How to change safely:
    - New runners must implement CommandRunner (sync and async)
    - Keep the binary candidate list in sync with supported install methods
"""

from __future__ import annotations

import logging
import shlex
import shutil
from pathlib import Path
from typing import Any, Protocol

from ..config import EngineConfig

logger = logging.getLogger(__name__)


def bin_candidates() -> list[str]:
    """Common duckdb install locations, checked before PATH."""
    home = Path.home()
    return [
        # User-local installs
        str(home / ".duckdb" / "cli" / "latest" / "duckdb"),
        str(home / ".local" / "bin" / "duckdb"),
        # Homebrew
        "/opt/homebrew/bin/duckdb",
        "/usr/local/bin/duckdb",
        # System
        "/usr/bin/duckdb",
    ]


def resolve_engine_bin(config: EngineConfig | None = None) -> str | None:
    """Locate the duckdb CLI binary.

    Checks the explicit override, then common install locations, then
    PATH. Returns None when the engine is not installed.
    """
    config = config or EngineConfig()
    if config.bin_override:
        return config.bin_override if Path(config.bin_override).exists() else None

    for candidate in bin_candidates():
        if Path(candidate).exists():
            return candidate

    return shutil.which("duckdb")


def sql_literal(value: Any) -> str:
    """Quote a value as a SQL string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def sql_list(values: list[str]) -> str:
    """Comma-separated SQL string literals for an IN (...) clause."""
    return ",".join(sql_literal(v) for v in values)


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier (table or view name)."""
    return '"' + name.replace('"', '""') + '"'


def build_command(bin_path: str, db_file: str | Path, sql: str, json_output: bool = True) -> str:
    """Build the shell command for one statement.

    Args:
        bin_path: duckdb binary
        db_file: Target database file
        sql: Statement, with interpolated values already SQL-escaped
        json_output: Request JSON-formatted rows (-json)

    Returns:
        Command string safe to hand to /bin/sh
    """
    parts = [shlex.quote(bin_path)]
    if json_output:
        parts.append("-json")
    parts.append(shlex.quote(str(db_file)))
    parts.append(shlex.quote(sql))
    return " ".join(parts)


class CommandRunner(Protocol):
    """Executes a built command and returns its standard output."""

    def run(self, command: str, timeout: float) -> str:
        """Run the command, blocking the calling thread."""
        ...

    async def run_async(self, command: str, timeout: float) -> str:
        """Run the command without blocking the event loop."""
        ...
