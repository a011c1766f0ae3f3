"""
Unit tests for database file discovery and owner lookup.

Tests cover:
- Depth ordering and skipped directories
- Primary database selection
- Shallow-wins ownership for colliding object names
- Object id lookup with a preferred file
"""

import pytest

from workspace.objectstore.config import WorkspaceConfig
from workspace.objectstore.engine import (
    DatabaseLocator,
    discover_database_files,
    is_database_file,
    primary_database_file,
    walk_database_files,
)


class TestDiscovery:
    """Tests for walk_database_files and friends."""

    @pytest.fixture
    def ws_config(self, workspace_root):
        return WorkspaceConfig(root_override=str(workspace_root), default_root=str(workspace_root))

    def test_depth_order(self, seed, workspace_root, ws_config):
        """Shallower files come first; siblings in name order."""
        seed("b/deep")
        seed("b")
        seed("a")
        seed()

        found = walk_database_files(workspace_root, ws_config)

        assert [f.depth for f in found] == [0, 1, 1, 2]
        assert [f.path.parent.relative_to(workspace_root).as_posix() for f in found] == [
            ".",
            "a",
            "b",
            "b/deep",
        ]

    def test_skips_hidden_and_ignored_directories(self, seed, workspace_root, ws_config):
        seed(".git")
        seed("node_modules/pkg")
        seed("tmp")
        seed("exports")
        seed("notes")

        found = discover_database_files(workspace_root, ws_config)

        assert found == [workspace_root / "notes" / "workspace.duckdb"]

    def test_other_file_names_ignored(self, workspace_root, ws_config):
        (workspace_root / "data.duckdb").write_bytes(b"")
        assert discover_database_files(workspace_root, ws_config) == []

    def test_missing_workspace(self):
        config = WorkspaceConfig(root_override="/nonexistent/a", default_root="/nonexistent/b")
        assert walk_database_files(config=config) == []
        assert primary_database_file(config=config) is None

    def test_primary_prefers_root(self, seed, workspace_root, ws_config):
        seed("sub")
        assert primary_database_file(workspace_root, ws_config) == (
            workspace_root / "sub" / "workspace.duckdb"
        )

        seed()
        assert primary_database_file(workspace_root, ws_config) == (
            workspace_root / "workspace.duckdb"
        )

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("workspace.duckdb", True),
            ("legacy.SQLITE", True),
            ("app.db", True),
            ("notes.md", False),
            ("duckdb", True),
            ("workspace.duckdb.wal", False),
        ],
    )
    def test_is_database_file(self, filename, expected):
        assert is_database_file(filename) is expected


class TestDatabaseLocator:
    """Tests for DatabaseLocator."""

    @pytest.fixture
    def locator(self, bridge):
        return DatabaseLocator(bridge)

    def test_shallow_file_owns_colliding_name(self, seed, locator):
        root = seed().add_object("root_task", "Task")
        seed("team").add_object("team_task", "Task")

        assert locator.locate_owner("Task") == root.path

    @pytest.mark.asyncio
    async def test_deep_only_object(self, seed, locator):
        seed().add_object("root_task", "Task")
        team = seed("team").add_object("team_doc", "Doc")

        assert await locator.locate_owner_async("Doc") == team.path
        assert await locator.locate_owner_async("Missing") is None

    @pytest.mark.asyncio
    async def test_name_lookup_is_escaped(self, seed, locator):
        """A quote in the name is a value, not SQL."""
        seed().add_object("o1", "Task")
        assert await locator.locate_owner_async("x' OR '1'='1") is None

    @pytest.mark.asyncio
    async def test_locate_object_by_id_checks_preferred_first(self, seed, runner, locator):
        root = seed().add_object("shared", "Task")
        team = seed("team").add_object("shared", "Task")

        assert await locator.locate_object_by_id("shared", prefer=team.path) == team.path
        assert await locator.locate_object_by_id("shared") == root.path
        assert await locator.locate_object_by_id("nope", prefer=team.path) is None
