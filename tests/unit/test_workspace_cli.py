"""
Unit tests for the workspace CLI tool.
"""

import json

import pytest

from workspace.objectstore.tools import WorkspaceCLI, main


class TestWorkspaceCLI:
    """Tests for WorkspaceCLI commands."""

    @pytest.fixture
    def cli(self, store):
        return WorkspaceCLI(store)

    def test_discover(self, cli, seed, workspace_root):
        seed("crm")
        assert cli.discover() == [
            {"path": str(workspace_root / "crm" / "workspace.duckdb"), "depth": 1, "scope": "crm"}
        ]

    def test_describe(self, cli, tasks_db):
        detail = cli.describe("Person")
        assert detail["object"]["name"] == "Person"
        assert detail["effectiveDisplayField"] == "Full Name"

    def test_rename_enum(self, cli, tasks_db):
        assert cli.rename_enum("Task", "f_status", "Done", "Shipped") == {"ok": True, "updated": 1}
        assert tasks_db.field_value("t2", "f_status") == "Shipped"

    def test_query(self, cli, seed):
        db = seed("crm")
        db.add_object("o1", "Deal")
        assert cli.query("crm/workspace.duckdb", "SELECT name FROM objects") == [{"name": "Deal"}]

    def test_main_discover(self, seed, workspace_root, capsys):
        """discover only walks the tree, so it needs no engine."""
        seed()

        main(["--workspace", str(workspace_root), "discover"])

        output = json.loads(capsys.readouterr().out)
        assert output == [{"path": str(workspace_root / "workspace.duckdb"), "depth": 0, "scope": ""}]

    def test_main_requires_command(self):
        with pytest.raises(SystemExit):
            main([])
