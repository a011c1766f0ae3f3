"""
Hierarchical database file discovery.

Any directory in the workspace tree may hold its own workspace.duckdb that
owns the objects of that subtree. Files closer to the root win when object
names collide, so discovery returns paths ordered by depth.

Invariants:
    - Results are sorted by depth, ties keep walk order
    - Hidden directories and the skip list are never entered
    - Nothing is cached; each call reflects the tree as it is now
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..config import WorkspaceConfig
from ..paths import resolve_workspace_root

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseFile:
    """A discovered database file and its depth below the workspace root."""

    path: Path
    depth: int


def walk_database_files(
    root: Path | None = None,
    config: WorkspaceConfig | None = None,
) -> list[DatabaseFile]:
    """Collect every database file under the workspace, shallowest first."""
    config = config or WorkspaceConfig.from_env()
    root = root or resolve_workspace_root(config)
    if root is None:
        return []

    results: list[DatabaseFile] = []

    def walk(directory: Path, depth: int) -> None:
        db_file = directory / config.db_filename
        if db_file.is_file():
            results.append(DatabaseFile(db_file, depth))
        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError:
            # unreadable directory
            return
        for entry in children:
            if not entry.is_dir(follow_symlinks=False):
                continue
            if entry.name.startswith(".") or entry.name in config.skip_dirs:
                continue
            walk(Path(entry.path), depth + 1)

    walk(Path(root), 0)
    results.sort(key=lambda r: r.depth)
    return results


def discover_database_files(
    root: Path | None = None,
    config: WorkspaceConfig | None = None,
) -> list[Path]:
    """Database file paths under the workspace, shallowest first."""
    return [r.path for r in walk_database_files(root, config)]


def primary_database_file(
    root: Path | None = None,
    config: WorkspaceConfig | None = None,
) -> Path | None:
    """The root-level database, or the shallowest one found below it."""
    config = config or WorkspaceConfig.from_env()
    root = root or resolve_workspace_root(config)
    if root is None:
        return None

    root_db = Path(root) / config.db_filename
    if root_db.is_file():
        return root_db

    found = discover_database_files(root, config)
    return found[0] if found else None


DB_EXTENSIONS = frozenset({"duckdb", "sqlite", "sqlite3", "db", "postgres"})


def is_database_file(filename: str) -> bool:
    """Whether a file name has a database extension."""
    _, _, ext = filename.rpartition(".")
    return bool(ext) and ext.lower() in DB_EXTENSIONS
