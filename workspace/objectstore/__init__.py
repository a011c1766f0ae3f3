"""
Workspace Object Store - EAV object storage over layered DuckDB files.

This package implements the engine behind the workspace object views:
- Objects, Fields and Statuses describe user-defined record types
- Entries store their values as entity-attribute-value rows
- One or more workspace.duckdb files anywhere under the workspace tree
- All SQL runs through the external duckdb CLI, one process per statement

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌─────────────────┐
    │  HTTP / CLI │────▶│ WorkspaceStore│────▶│ DatabaseLocator │
    └─────────────┘     └──────┬───────┘     └────────┬────────┘
                               │                      │
             ┌─────────────────┼──────────────────┐   │
             ▼                 ▼                  ▼   ▼
       ┌───────────┐    ┌────────────┐     ┌──────────────┐
       │Introspector│   │ Pivot /    │     │ QueryBridge  │
       │ (schema)   │   │ Relations  │     │ (duckdb CLI) │
       └───────────┘    └────────────┘     └──────┬───────┘
                                                  │
                        ┌─────────────────────────┼────────────────┐
                        ▼                         ▼                ▼
                 workspace.duckdb        sub/workspace.duckdb    ...

Invariants:
    - Shallower database files are authoritative for an object name
    - Object names are validated before they are interpolated into SQL
    - Read-path query failures produce empty results, never exceptions
    - Relation labels are computed at read time, never stored

How to change safely:
    - Route every statement through QueryBridge so escaping stays uniform
    - Keep discovery uncached; the tree may change between requests
    - Multi-statement mutations have no rollback; keep them short

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
