"""
Engine module - discovery, lookup and execution against duckdb files.

This module provides:
- Discovery of workspace.duckdb files ordered by depth
- Owner lookup for object names (shallow wins)
- The query/exec bridge over the duckdb CLI, sync and async
- Command construction with SQL and shell escaping

Invariants:
    - Every statement goes through build_command
    - Read failures surface as empty results unless strict is requested
"""

from .base import (
    CommandRunner,
    build_command,
    quote_identifier,
    resolve_engine_bin,
    sql_list,
    sql_literal,
)
from .bridge import QueryBridge
from .discovery import (
    DatabaseFile,
    discover_database_files,
    is_database_file,
    primary_database_file,
    walk_database_files,
)
from .locator import DatabaseLocator
from .runner import SubprocessRunner

__all__ = [
    # Construction
    "CommandRunner",
    "build_command",
    "quote_identifier",
    "resolve_engine_bin",
    "sql_list",
    "sql_literal",
    # Execution
    "QueryBridge",
    "SubprocessRunner",
    # Discovery
    "DatabaseFile",
    "DatabaseLocator",
    "discover_database_files",
    "is_database_file",
    "primary_database_file",
    "walk_database_files",
]
