"""
Configuration management for the workspace object store.

All configuration is done via environment variables. This module provides
typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - The workspace root may be absent; that means "no workspace configured"
    - Timeouts are seconds, sizes are bytes

How to change safely:
    - Add new settings with defaults that keep existing deployments working
    - Never rename an environment variable without reading the old one too
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SKIP_DIRS = ("tmp", "exports", "node_modules")


def _default_workspace_dir() -> str:
    return str(Path.home() / ".openclaw" / "workspace")


@dataclass(frozen=True)
class WorkspaceConfig:
    """Workspace tree configuration.

    Attributes:
        root_override: Explicit workspace root (checked before the default)
        default_root: Well-known fallback location
        db_filename: Canonical database filename searched for in the tree
        skip_dirs: Directory names never descended into during discovery
    """

    root_override: str | None = None
    default_root: str = field(default_factory=_default_workspace_dir)
    db_filename: str = "workspace.duckdb"
    skip_dirs: tuple[str, ...] = DEFAULT_SKIP_DIRS

    @classmethod
    def from_env(cls) -> WorkspaceConfig:
        """Load configuration from environment variables."""
        skip = os.getenv("WORKSPACE_SKIP_DIRS")
        return cls(
            root_override=os.getenv("OPENCLAW_WORKSPACE") or None,
            default_root=os.getenv("WORKSPACE_DEFAULT_ROOT", _default_workspace_dir()),
            db_filename=os.getenv("WORKSPACE_DB_FILENAME", "workspace.duckdb"),
            skip_dirs=tuple(s.strip() for s in skip.split(",") if s.strip())
            if skip
            else DEFAULT_SKIP_DIRS,
        )

    def candidates(self) -> list[str]:
        """Root candidates in priority order."""
        return [c for c in (self.root_override, self.default_root) if c]


@dataclass(frozen=True)
class EngineConfig:
    """External duckdb CLI configuration.

    Attributes:
        bin_override: Explicit path to the duckdb binary
        lookup_timeout: Timeout for short existence lookups and migrations
        query_timeout: Timeout for ordinary queries and statements
        file_timeout: Timeout for queries against arbitrary database files
        max_output_bytes: Output larger than this is treated as a failure
    """

    bin_override: str | None = None
    lookup_timeout: float = 5.0
    query_timeout: float = 10.0
    file_timeout: float = 15.0
    max_output_bytes: int = 10 * 1024 * 1024  # 10MB

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load configuration from environment variables."""
        return cls(
            bin_override=os.getenv("WORKSPACE_DUCKDB_BIN") or None,
            lookup_timeout=float(os.getenv("DUCKDB_LOOKUP_TIMEOUT", "5")),
            query_timeout=float(os.getenv("DUCKDB_QUERY_TIMEOUT", "10")),
            file_timeout=float(os.getenv("DUCKDB_FILE_TIMEOUT", "15")),
            max_output_bytes=int(os.getenv("DUCKDB_MAX_OUTPUT_BYTES", str(10 * 1024 * 1024))),
        )


@dataclass(frozen=True)
class LimitsConfig:
    """Result size limits.

    Attributes:
        view_limit: Rows read from a precomputed per-object view
        raw_limit: Attribute rows read by the raw EAV fallback
        upload_max_bytes: Largest accepted upload
    """

    view_limit: int = 200
    raw_limit: int = 5000
    upload_max_bytes: int = 25 * 1024 * 1024  # 25MB

    @classmethod
    def from_env(cls) -> LimitsConfig:
        """Load configuration from environment variables."""
        return cls(
            view_limit=int(os.getenv("WORKSPACE_VIEW_LIMIT", "200")),
            raw_limit=int(os.getenv("WORKSPACE_RAW_LIMIT", "5000")),
            upload_max_bytes=int(os.getenv("WORKSPACE_UPLOAD_MAX_BYTES", str(25 * 1024 * 1024))),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass
class StoreConfig:
    """Complete store configuration.

    Attributes:
        workspace: Workspace tree configuration
        engine: duckdb CLI configuration
        limits: Result size limits
        observability: Logging configuration
    """

    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            workspace=WorkspaceConfig.from_env(),
            engine=EngineConfig.from_env(),
            limits=LimitsConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    @classmethod
    def for_root(cls, root: str | Path, **overrides) -> StoreConfig:
        """Configuration pinned to one workspace root (tests, CLI)."""
        workspace = WorkspaceConfig(root_override=str(root), default_root=str(root))
        return cls(workspace=workspace, **overrides)

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.workspace.db_filename or "/" in self.workspace.db_filename:
            raise ValueError("WORKSPACE_DB_FILENAME must be a plain file name")
        for name, value in (
            ("DUCKDB_LOOKUP_TIMEOUT", self.engine.lookup_timeout),
            ("DUCKDB_QUERY_TIMEOUT", self.engine.query_timeout),
            ("DUCKDB_FILE_TIMEOUT", self.engine.file_timeout),
        ):
            if value <= 0:
                raise ValueError(f"{name} must be positive")
        if self.limits.view_limit <= 0 or self.limits.raw_limit <= 0:
            raise ValueError("WORKSPACE_VIEW_LIMIT and WORKSPACE_RAW_LIMIT must be positive")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be one of: json, text")

        if not any(os.path.isdir(c) for c in self.workspace.candidates()):
            logger.warning(
                "No workspace directory found; object queries will return no data",
                extra={"candidates": self.workspace.candidates()},
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Store configuration loaded",
            extra={
                "workspace_candidates": self.workspace.candidates(),
                "db_filename": self.workspace.db_filename,
                "duckdb_bin": self.engine.bin_override,
                "query_timeout": self.engine.query_timeout,
                "log_level": self.observability.log_level,
            },
        )
