"""
Unit tests for configuration loading and logging setup.
"""

import json
import logging

import json_log_formatter
import pytest

from workspace.objectstore.config import (
    EngineConfig,
    ObservabilityConfig,
    StoreConfig,
    WorkspaceConfig,
)
from workspace.objectstore.main import setup_logging


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_defaults(self):
        config = StoreConfig()

        assert config.workspace.db_filename == "workspace.duckdb"
        assert config.workspace.skip_dirs == ("tmp", "exports", "node_modules")
        assert config.engine.lookup_timeout == 5.0
        assert config.engine.query_timeout == 10.0
        assert config.limits.view_limit == 200
        assert config.limits.raw_limit == 5000

    def test_from_env(self, monkeypatch, workspace_root):
        monkeypatch.setenv("OPENCLAW_WORKSPACE", str(workspace_root))
        monkeypatch.setenv("WORKSPACE_DUCKDB_BIN", "/opt/duckdb")
        monkeypatch.setenv("DUCKDB_QUERY_TIMEOUT", "30")
        monkeypatch.setenv("WORKSPACE_SKIP_DIRS", "build, dist")
        monkeypatch.setenv("LOG_FORMAT", "json")

        config = StoreConfig.from_env()

        assert config.workspace.root_override == str(workspace_root)
        assert config.workspace.skip_dirs == ("build", "dist")
        assert config.engine.bin_override == "/opt/duckdb"
        assert config.engine.query_timeout == 30.0
        assert config.observability.log_format == "json"

    @pytest.mark.parametrize(
        "config",
        [
            StoreConfig(observability=ObservabilityConfig(log_format="xml")),
            StoreConfig(engine=EngineConfig(query_timeout=0)),
            StoreConfig(workspace=WorkspaceConfig(db_filename="a/b.duckdb")),
        ],
    )
    def test_validate_rejects(self, config):
        with pytest.raises(ValueError):
            config.validate()

    def test_for_root(self, workspace_root):
        config = StoreConfig.for_root(workspace_root)
        assert config.workspace.candidates() == [str(workspace_root), str(workspace_root)]


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_format(self):
        setup_logging(StoreConfig(observability=ObservabilityConfig("DEBUG", "json")))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_json_line_escapes_message_and_keeps_extra(self):
        setup_logging(StoreConfig(observability=ObservabilityConfig("INFO", "json")))
        record = logging.makeLogRecord(
            {
                "name": "workspace.objectstore.store.mutations",
                "levelno": logging.INFO,
                "levelname": "INFO",
                "msg": "Renamed enum value 'Done' -> \"Won't do\" (1 entries)",
                "object": "Task",
                "field_id": "f_status",
            }
        )

        payload = json.loads(logging.getLogger().handlers[0].format(record))

        assert payload["message"] == "Renamed enum value 'Done' -> \"Won't do\" (1 entries)"
        assert payload["object"] == "Task"
        assert payload["field_id"] == "f_status"
        assert "time" in payload

    def test_text_format(self):
        setup_logging(StoreConfig(observability=ObservabilityConfig("warning", "text")))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert "%(levelname)s" in root.handlers[0].formatter._fmt
