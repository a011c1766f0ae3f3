"""
Workspace object store test suite.

This package contains:
- unit/: Unit tests (real duckdb files, in-process command runner)
- integration/: HTTP API tests through FastAPI's TestClient
"""
