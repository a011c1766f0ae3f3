"""
Workspace object store - HTTP server entry point.

Starts the FastAPI app under uvicorn with a WorkspaceStore built from
the environment.

Usage:
    python -m workspace.objectstore.main
    workspace-store-server

Configuration is entirely via environment variables.
See config.py (store) and api/config.py (HTTP) for all available settings.

Invariants:
    - Logging is configured before the store is created
    - One MigrationCache is shared by every request of the process
"""

from __future__ import annotations

import logging
import sys

import json_log_formatter
import uvicorn

from .api import Settings, create_app
from .config import StoreConfig
from .schema import MigrationCache
from .store import WorkspaceStore

logger = logging.getLogger(__name__)


def setup_logging(config: StoreConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Store configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    try:
        config = StoreConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    settings = Settings()
    store = WorkspaceStore(config, migrations=MigrationCache())
    app = create_app(store=store, settings=settings)

    logger.info(f"Starting workspace object store on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
