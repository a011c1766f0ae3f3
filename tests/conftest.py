"""
Shared fixtures: seeded workspace databases and an in-process engine.

InProcessDuckDBRunner implements CommandRunner without the duckdb CLI.
It splits the shell command exactly as /bin/sh would (shlex.split), so
every statement still goes through both escaping passes, then runs the
SQL with the duckdb Python package against the named file.
"""

from __future__ import annotations

import json
import shlex
import tempfile
from pathlib import Path
from typing import Any

import duckdb
import pytest

from workspace.objectstore.config import StoreConfig
from workspace.objectstore.engine import QueryBridge
from workspace.objectstore.errors import EngineExecutionError
from workspace.objectstore.schema import MigrationCache
from workspace.objectstore.store import WorkspaceStore

SCHEMA_DDL = [
    """CREATE TABLE objects (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        description VARCHAR,
        icon VARCHAR,
        default_view VARCHAR,
        immutable BOOLEAN DEFAULT false
    )""",
    """CREATE TABLE fields (
        id VARCHAR PRIMARY KEY,
        object_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        type VARCHAR NOT NULL,
        description VARCHAR,
        required BOOLEAN DEFAULT false,
        enum_values VARCHAR,
        enum_colors VARCHAR,
        enum_multiple BOOLEAN DEFAULT false,
        related_object_id VARCHAR,
        relationship_type VARCHAR,
        sort_order INTEGER DEFAULT 0
    )""",
    """CREATE TABLE statuses (
        id VARCHAR PRIMARY KEY,
        object_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        color VARCHAR,
        sort_order INTEGER DEFAULT 0,
        is_default BOOLEAN DEFAULT false
    )""",
    """CREATE TABLE entries (
        id VARCHAR PRIMARY KEY,
        object_id VARCHAR NOT NULL,
        created_at TIMESTAMP,
        updated_at TIMESTAMP
    )""",
    """CREATE TABLE entry_fields (
        entry_id VARCHAR NOT NULL,
        field_id VARCHAR NOT NULL,
        value VARCHAR
    )""",
]


class InProcessDuckDBRunner:
    """CommandRunner that executes built commands with the duckdb package."""

    def __init__(self) -> None:
        self.commands: list[str] = []

    def statements(self, needle: str) -> list[str]:
        """SQL of every recorded command containing needle."""
        return [shlex.split(c)[-1] for c in self.commands if needle in shlex.split(c)[-1]]

    def run(self, command: str, timeout: float) -> str:
        self.commands.append(command)
        args = shlex.split(command)
        json_output = "-json" in args[1:-2]
        db_file, sql = args[-2], args[-1]
        try:
            with duckdb.connect(db_file) as conn:
                conn.execute(sql)
                if not json_output or conn.description is None:
                    return ""
                columns = [d[0] for d in conn.description]
                rows = [dict(zip(columns, r)) for r in conn.fetchall()]
        except duckdb.Error as e:
            raise EngineExecutionError(str(e), returncode=1, stderr=str(e)) from e
        return json.dumps(rows, default=str) if rows else ""

    async def run_async(self, command: str, timeout: float) -> str:
        return self.run(command, timeout)


class SeedDatabase:
    """Builds a workspace.duckdb with the object/field/entry tables."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        for ddl in SCHEMA_DDL:
            self.execute(ddl)

    def execute(self, sql: str, params: list[Any] | None = None) -> None:
        with duckdb.connect(str(self.path)) as conn:
            if params:
                conn.execute(sql, params)
            else:
                conn.execute(sql)

    def rows(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        with duckdb.connect(str(self.path)) as conn:
            if params:
                return conn.execute(sql, params).fetchall()
            return conn.execute(sql).fetchall()

    def add_object(self, object_id: str, name: str, display_field: str | None = None):
        if display_field:
            self.execute("ALTER TABLE objects ADD COLUMN IF NOT EXISTS display_field VARCHAR")
            self.execute(
                "INSERT INTO objects (id, name, display_field) VALUES (?, ?, ?)",
                [object_id, name, display_field],
            )
        else:
            self.execute("INSERT INTO objects (id, name) VALUES (?, ?)", [object_id, name])
        return self

    def add_field(
        self,
        field_id: str,
        object_id: str,
        name: str,
        type: str = "text",
        sort_order: int = 0,
        enum_values: list[str] | None = None,
        enum_colors: list[str] | None = None,
        related_object_id: str | None = None,
    ):
        self.execute(
            "INSERT INTO fields (id, object_id, name, type, sort_order, enum_values, "
            "enum_colors, related_object_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                field_id,
                object_id,
                name,
                type,
                sort_order,
                json.dumps(enum_values) if enum_values is not None else None,
                json.dumps(enum_colors) if enum_colors is not None else None,
                related_object_id,
            ],
        )
        return self

    def add_status(
        self, status_id: str, object_id: str, name: str, color: str | None = None, sort_order: int = 0
    ):
        self.execute(
            "INSERT INTO statuses (id, object_id, name, color, sort_order) VALUES (?, ?, ?, ?, ?)",
            [status_id, object_id, name, color, sort_order],
        )
        return self

    def add_entry(
        self,
        entry_id: str,
        object_id: str,
        values: dict[str, str] | None = None,
        created_at: str = "2026-01-01 00:00:00",
    ):
        self.execute(
            "INSERT INTO entries (id, object_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
            [entry_id, object_id, created_at, created_at],
        )
        for field_id, value in (values or {}).items():
            self.execute(
                "INSERT INTO entry_fields (entry_id, field_id, value) VALUES (?, ?, ?)",
                [entry_id, field_id, value],
            )
        return self

    def field_value(self, entry_id: str, field_id: str) -> str | None:
        rows = self.rows(
            "SELECT value FROM entry_fields WHERE entry_id = ? AND field_id = ?",
            [entry_id, field_id],
        )
        return rows[0][0] if rows else None


def seed_people(db: SeedDatabase) -> SeedDatabase:
    """Person object with two entries."""
    db.add_object("o_person", "Person")
    db.add_field("f_pname", "o_person", "Full Name", "text", sort_order=0)
    db.add_field("f_email", "o_person", "Email", "email", sort_order=1)
    db.add_entry("p1", "o_person", {"f_pname": "Ada", "f_email": "ada@example.com"})
    db.add_entry("p2", "o_person", {"f_pname": "Linus"}, created_at="2026-01-02 00:00:00")
    return db


def seed_tasks(db: SeedDatabase) -> SeedDatabase:
    """Task object with an enum status and a relation to Person."""
    db.add_object("o_task", "Task")
    db.add_field("f_title", "o_task", "Title", "text", sort_order=0)
    db.add_field(
        "f_status",
        "o_task",
        "Status",
        "enum",
        sort_order=1,
        enum_values=["Todo", "In Progress", "Done"],
        enum_colors=["#ef4444", "#f59e0b", "#22c55e"],
    )
    db.add_field("f_owner", "o_task", "Owner", "relation", sort_order=2, related_object_id="o_person")
    db.add_entry(
        "t1",
        "o_task",
        {"f_title": "Write docs", "f_status": "Todo", "f_owner": "p1"},
        created_at="2026-01-01 09:00:00",
    )
    db.add_entry(
        "t2",
        "o_task",
        {"f_title": "Ship it", "f_status": "Done", "f_owner": "p2"},
        created_at="2026-01-02 09:00:00",
    )
    db.add_entry(
        "t3",
        "o_task",
        {"f_title": "Fix bug", "f_status": "Todo", "f_owner": '["p1","p3"]'},
        created_at="2026-01-03 09:00:00",
    )
    return db


@pytest.fixture
def workspace_root():
    """Create temporary workspace directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def seed(workspace_root):
    """Factory creating a seeded database in a workspace subdirectory."""

    def make(relative_dir: str = "") -> SeedDatabase:
        return SeedDatabase(workspace_root / relative_dir / "workspace.duckdb")

    return make


@pytest.fixture
def tasks_db(seed):
    """Root database holding Person and Task."""
    return seed_tasks(seed_people(seed()))


@pytest.fixture
def runner():
    return InProcessDuckDBRunner()


@pytest.fixture
def config(workspace_root):
    return StoreConfig.for_root(workspace_root)


@pytest.fixture
def bridge(config, runner):
    return QueryBridge(config, runner=runner, bin_path="duckdb")


@pytest.fixture
def store(config, bridge):
    return WorkspaceStore(config, bridge=bridge, migrations=MigrationCache())
