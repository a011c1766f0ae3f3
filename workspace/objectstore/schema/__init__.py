"""
Schema module for the workspace object store.

This module provides:
- Typed projections of object, field and status rows
- Introspection of one object's schema from its owning file
- The lazy display_field migration and its per-process cache
- Display field resolution for labels

Invariants:
    - Object names are validated with is_valid_object_name before use in SQL
    - Field order is sort_order ascending everywhere
"""

from .introspector import MigrationCache, SchemaIntrospector, resolve_display_field
from .types import (
    OBJECT_NAME_PATTERN,
    FieldDef,
    FieldKind,
    ObjectDef,
    ObjectSchema,
    StatusDef,
    is_valid_object_name,
    parse_json_list,
)

__all__ = [
    # Types
    "FieldDef",
    "FieldKind",
    "ObjectDef",
    "ObjectSchema",
    "StatusDef",
    "OBJECT_NAME_PATTERN",
    "is_valid_object_name",
    "parse_json_list",
    # Introspection
    "MigrationCache",
    "SchemaIntrospector",
    "resolve_display_field",
]
