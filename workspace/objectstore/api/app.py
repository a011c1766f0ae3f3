"""
FastAPI application factory for the workspace object store.

This module creates the FastAPI app with:
- CORS configuration for the web UI
- WorkspaceStore lifecycle (one MigrationCache per process)
- Object, entry and workspace file routes
- Exception handlers rendering every failure as {"error": message}
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .._version import __version__
from ..config import StoreConfig
from ..errors import WorkspaceStoreError
from ..paths import resolve_workspace_root
from ..schema import MigrationCache
from ..store import WorkspaceStore
from .config import Settings
from .routes import router

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


def install_error_handlers(app: FastAPI) -> None:
    """Render store errors, validation errors and crashes as {"error": ...}."""

    @app.exception_handler(WorkspaceStoreError)
    async def store_error_handler(request: Request, exc: WorkspaceStoreError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse({"error": _validation_message(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"HTTP handler error: {exc}", exc_info=True)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(
    store: WorkspaceStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Store to serve (built from environment if not provided)
        settings: HTTP settings (loaded from environment if not provided)
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage store lifecycle."""
        app.state.store = store or WorkspaceStore(StoreConfig.from_env(), migrations=MigrationCache())
        app.state.settings = settings
        app.state.store.config.log_config()
        yield

    app = FastAPI(
        title="Workspace Object Store",
        description=(
            "Schema-driven EAV objects stored in workspace DuckDB files. "
            "Shallower database files take priority when object names collide."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health(request: Request):
        current: WorkspaceStore = request.app.state.store
        engine = current.bridge.engine_bin()
        root = resolve_workspace_root(current.config)
        healthy = engine is not None
        body = {
            "status": "healthy" if healthy else "degraded",
            "service": "workspace-objectstore",
            "engine": engine,
            "workspace": str(root) if root else None,
        }
        return JSONResponse(body, status_code=200 if healthy else 503)

    return app


# Default app instance
app = create_app()
