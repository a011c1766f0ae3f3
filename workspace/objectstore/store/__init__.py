"""
Store module - entries, relations and mutations over EAV rows.

This module handles:
- Pivoting attribute rows into one record per entry
- Forward relation labels and reverse backlinks across files
- Entry creation, update and bulk deletion
- Enum value renames with cascading updates
- Board grouping for kanban views

Invariants:
    - Reads and writes for one object target its owning file
    - Reverse relations consider every discovered file
    - There is no rollback across statements

How to change safely:
    - Keep label resolution at read time; never store labels
    - Scope every delete by object id
"""

from .board import Board, BoardColumn, build_board, group_field_for
from .mutations import EnumRenameResult, MutationEngine
from .pivot import PivotEngine, pivot_eav_rows
from .relations import (
    Backlink,
    ForwardRelations,
    RelationResolver,
    ReverseRelation,
    parse_relation_value,
)
from .workspace_store import OwnedSchema, WorkspaceStore

__all__ = [
    "WorkspaceStore",
    "OwnedSchema",
    "PivotEngine",
    "pivot_eav_rows",
    "RelationResolver",
    "ForwardRelations",
    "ReverseRelation",
    "Backlink",
    "parse_relation_value",
    "MutationEngine",
    "EnumRenameResult",
    "Board",
    "BoardColumn",
    "build_board",
    "group_field_for",
]
