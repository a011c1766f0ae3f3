"""
HTTP API for the workspace object store.

Provides:
- FastAPI app factory with CORS and error handlers
- Object detail, board, entry and enum-rename routes
- Workspace database listing, file read and upload routes

Usage:
    uvicorn workspace.objectstore.api.app:app --port 3100
"""

from .app import create_app, install_error_handlers
from .config import Settings
from .routes import router

__all__ = ["create_app", "install_error_handlers", "Settings", "router"]
