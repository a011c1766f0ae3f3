"""Command line tools for the workspace object store."""

from .workspace_cli import WorkspaceCLI, main

__all__ = ["WorkspaceCLI", "main"]
