"""
Workspace root resolution and traversal-safe path handling.

Invariants:
    - No resolved path ever points outside the workspace root
    - Any input containing a '..' segment is rejected outright
    - A missing workspace root yields None, not an exception

How to change safely:
    - Keep the containment check component-wise (Path.relative_to),
      a plain string prefix would accept '/ws-other' for root '/ws'
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

from .config import StoreConfig, WorkspaceConfig

logger = logging.getLogger(__name__)


def resolve_workspace_root(config: WorkspaceConfig | StoreConfig | None = None) -> Path | None:
    """Return the first existing workspace directory, or None.

    Candidates are the explicit override (OPENCLAW_WORKSPACE) and then
    the well-known default location.
    """
    if config is None:
        config = WorkspaceConfig.from_env()
    elif isinstance(config, StoreConfig):
        config = config.workspace

    for candidate in config.candidates():
        path = Path(candidate).expanduser()
        if path.is_dir():
            return path
    return None


def _has_traversal(relative_path: str) -> bool:
    parts = PurePosixPath(relative_path.replace("\\", "/")).parts
    return ".." in parts


def _resolve_within(relative_path: str, root: Path) -> Path | None:
    if not relative_path or "\x00" in relative_path:
        return None
    if _has_traversal(relative_path):
        return None

    base = root.resolve()
    absolute = (base / os.path.normpath(relative_path)).resolve()
    try:
        absolute.relative_to(base)
    except ValueError:
        return None
    return absolute


def safe_resolve_new(relative_path: str, root: Path | None = None) -> Path | None:
    """Resolve a workspace-relative path without requiring it to exist.

    Used for create and rename targets. Returns None when there is no
    workspace or the path escapes it.
    """
    root = root or resolve_workspace_root()
    if root is None:
        return None
    return _resolve_within(relative_path, root)


def safe_resolve(relative_path: str, root: Path | None = None) -> Path | None:
    """Resolve a workspace-relative path to an existing absolute path.

    Returns None on traversal attempts, paths outside the root, or
    targets that do not exist.
    """
    absolute = safe_resolve_new(relative_path, root)
    if absolute is None:
        logger.debug(f"Rejected workspace path: {relative_path!r}")
        return None
    if not absolute.exists():
        return None
    return absolute


def relative_scope(db_file: Path, root: Path | None = None) -> str:
    """Workspace-relative directory a database file is authoritative for.

    Returns "" for the root-level database.
    """
    root = root or resolve_workspace_root()
    if root is None:
        return ""
    try:
        rel = Path(db_file).resolve().parent.relative_to(root.resolve())
    except ValueError:
        return ""
    return "" if str(rel) == "." else rel.as_posix()
