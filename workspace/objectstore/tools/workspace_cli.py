"""
Workspace CLI tool for the object store.

This tool inspects and maintains workspace databases from a shell:
- discover: List database files, shallowest (authoritative) first
- describe: Print an object's schema, entries and relations as JSON
- rename-enum: Rename an enum value across definition and entries
- query: Run a read query against any database file in the workspace

Usage:
    workspace-store discover
    workspace-store --workspace ~/notes describe Task
    workspace-store rename-enum Task <field-id> "In Progress" Doing
    workspace-store query crm/legacy.sqlite "SELECT count(*) AS n FROM deals"

Invariants:
    - Output is JSON on stdout; diagnostics go to stderr
    - Store errors exit non-zero with {"error": message}

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for scripting
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from ..config import StoreConfig
from ..errors import WorkspaceStoreError
from ..schema import MigrationCache
from ..store import WorkspaceStore

logger = logging.getLogger(__name__)


class WorkspaceCLI:
    """CLI commands over a WorkspaceStore.

    Example:
        >>> cli = WorkspaceCLI(WorkspaceStore(StoreConfig.for_root("/tmp/ws")))
        >>> cli.discover()
        [{'path': '/tmp/ws/workspace.duckdb', 'depth': 0, 'scope': ''}]
    """

    def __init__(self, store: WorkspaceStore) -> None:
        self.store = store

    def discover(self) -> list[dict[str, Any]]:
        return self.store.list_databases()

    def describe(self, name: str) -> dict[str, Any]:
        return asyncio.run(self.store.get_object_detail(name))

    def rename_enum(self, name: str, field_id: str, old_value: str, new_value: str) -> dict[str, Any]:
        result = asyncio.run(self.store.rename_enum_value(name, field_id, old_value, new_value))
        return result.to_dict()

    def query(self, path: str, sql: str) -> list[dict[str, Any]]:
        return asyncio.run(self.store.query_database(path, sql))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workspace object store tool")
    parser.add_argument(
        "--workspace", "-w", help="Workspace root (default: OPENCLAW_WORKSPACE or ~/.openclaw)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # discover command
    subparsers.add_parser("discover", help="List workspace database files")

    # describe command
    describe_parser = subparsers.add_parser("describe", help="Print an object as JSON")
    describe_parser.add_argument("name", help="Object name")

    # rename-enum command
    rename_parser = subparsers.add_parser("rename-enum", help="Rename an enum value")
    rename_parser.add_argument("name", help="Object name")
    rename_parser.add_argument("field_id", help="Enum field id")
    rename_parser.add_argument("old_value", help="Current value")
    rename_parser.add_argument("new_value", help="Replacement value")

    # query command
    query_parser = subparsers.add_parser("query", help="Query a workspace database file")
    query_parser.add_argument("path", help="Workspace-relative database path")
    query_parser.add_argument("sql", help="SQL statement")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the workspace tool."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = StoreConfig.for_root(args.workspace) if args.workspace else StoreConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    cli = WorkspaceCLI(WorkspaceStore(config, migrations=MigrationCache()))

    try:
        if args.command == "discover":
            output: Any = cli.discover()
        elif args.command == "describe":
            output = cli.describe(args.name)
        elif args.command == "rename-enum":
            output = cli.rename_enum(args.name, args.field_id, args.old_value, args.new_value)
        else:
            output = cli.query(args.path, args.sql)
    except WorkspaceStoreError as e:
        print(json.dumps(e.to_dict()))
        sys.exit(1)

    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
