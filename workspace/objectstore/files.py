"""
Workspace file access: reads, uploads and system file protection.

Every path goes through safe_resolve / safe_resolve_new, so nothing here
can read or write outside the workspace root.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import StoreError, ValidationError, WorkspaceFileNotFoundError
from .paths import resolve_workspace_root, safe_resolve, safe_resolve_new

logger = logging.getLogger(__name__)

# Protected at any depth
_ALWAYS_SYSTEM = (
    re.compile(r"^\.object\.yaml$"),
    re.compile(r"\.wal$"),
    re.compile(r"\.tmp$"),
)

# Protected only at the workspace root
_ROOT_ONLY_SYSTEM = (
    re.compile(r"^workspace\.duckdb"),
    re.compile(r"^workspace_context\.yaml$"),
)


def is_system_file(relative_path: str) -> bool:
    """Whether a workspace-relative path is a protected system file."""
    base = relative_path.rsplit("/", 1)[-1]
    if any(p.search(base) for p in _ALWAYS_SYSTEM):
        return True
    is_root = "/" not in relative_path
    return is_root and any(p.search(base) for p in _ROOT_ONLY_SYSTEM)


def detect_file_type(relative_path: str) -> str:
    ext = PurePosixPath(relative_path).suffix.lower().lstrip(".")
    if ext in ("md", "mdx"):
        return "markdown"
    if ext in ("yaml", "yml"):
        return "yaml"
    return "text"


@dataclass
class WorkspaceFile:
    content: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return {"content": self.content, "type": self.type}


def read_workspace_file(relative_path: str, root: Path | None = None) -> WorkspaceFile:
    """Read a text file inside the workspace.

    Raises:
        WorkspaceFileNotFoundError: Path invalid, outside the root or missing
    """
    absolute = safe_resolve(relative_path, root)
    if absolute is None or not absolute.is_file():
        raise WorkspaceFileNotFoundError(relative_path)
    try:
        content = absolute.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Unreadable workspace file {relative_path}: {e}")
        raise WorkspaceFileNotFoundError(relative_path) from e
    return WorkspaceFile(content=content, type=detect_file_type(relative_path))


def sanitize_filename(filename: str) -> str:
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", filename)
    return re.sub(r"_{2,}", "_", safe)


def save_upload(
    filename: str,
    data: bytes,
    max_bytes: int,
    root: Path | None = None,
) -> str:
    """Store an uploaded file under assets/ with a timestamp prefix.

    Returns:
        Workspace-relative path of the stored file

    Raises:
        ValidationError: Empty name, file too large, system file or invalid target
        StoreError: No workspace or the write failed
    """
    root = root or resolve_workspace_root()
    if root is None:
        raise StoreError("Workspace not found")
    if not filename:
        raise ValidationError("Missing 'file' field", "file")
    if len(data) > max_bytes:
        raise ValidationError(f"File is too large (max {max_bytes // (1024 * 1024)} MB)", "file")

    rel_path = f"assets/{int(time.time() * 1000)}-{sanitize_filename(filename)}"
    if is_system_file(rel_path):
        raise ValidationError("Cannot upload a system file", "file")
    absolute = safe_resolve_new(rel_path, root)
    if absolute is None:
        raise ValidationError("Invalid path", "file")

    try:
        absolute.parent.mkdir(parents=True, exist_ok=True)
        absolute.write_bytes(data)
    except OSError as e:
        raise StoreError(f"Upload failed: {e}") from e

    logger.info(f"Stored upload {rel_path}", extra={"size": len(data)})
    return rel_path
