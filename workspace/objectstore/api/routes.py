"""
API routes for the workspace object store.

Thin adapters: parse the request, call WorkspaceStore, return its payload.
Errors are raised as WorkspaceStoreError subclasses and rendered by the
app's exception handlers as {"error": message}.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..config import StoreConfig
from ..errors import StoreError, ValidationError, WorkspaceFileNotFoundError
from ..files import read_workspace_file, save_upload
from ..paths import resolve_workspace_root
from ..store import WorkspaceStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Workspace"])


# =============================================================================
# Request Models
# =============================================================================


class CreateEntryRequest(BaseModel):
    """Create an entry with optional field values keyed by field name."""

    fields: dict[str, Any] | None = Field(None, description="Field values by name")


class UpdateEntryRequest(BaseModel):
    """Replace field values of one entry."""

    fields: dict[str, Any] = Field(..., description="Field values by name (null clears)")


class BulkDeleteRequest(BaseModel):
    """Delete several entries of one object."""

    entryIds: list[str] = Field(..., description="Entry ids to delete")


class EnumRenameRequest(BaseModel):
    """Rename one enum value."""

    oldValue: str = Field(..., description="Current value")
    newValue: str = Field(..., description="Replacement value")


# =============================================================================
# Dependencies
# =============================================================================


def get_store(request: Request) -> WorkspaceStore:
    """Get the store from app state."""
    return request.app.state.store


def get_store_config(request: Request) -> StoreConfig:
    return request.app.state.store.config


# =============================================================================
# Objects
# =============================================================================


@router.get("/objects/{name}")
async def get_object(name: str, store: WorkspaceStore = Depends(get_store)):
    """
    Get an object with its schema, entries and resolved relations.

    Relation fields carry related_object_name; relationLabels maps
    field -> id -> label; reverseRelations lists backlinks from any file.
    """
    return await store.get_object_detail(name)


@router.get("/objects/{name}/board")
async def get_board(name: str, store: WorkspaceStore = Depends(get_store)):
    """Entries grouped into kanban columns."""
    board = await store.get_board(name)
    return board.to_dict()


@router.post("/objects/{name}/entries", status_code=201)
async def create_entry(
    name: str,
    request: Request,
    store: WorkspaceStore = Depends(get_store),
):
    """Create a new entry. An empty or missing body is allowed."""
    body = CreateEntryRequest()
    raw = await request.body()
    if raw.strip():
        try:
            body = CreateEntryRequest.model_validate_json(raw)
        except PydanticValidationError as e:
            raise ValidationError("fields must be an object", "fields") from e

    entry_id = await store.create_entry(name, body.fields)
    return {"entryId": entry_id, "ok": True}


@router.patch("/objects/{name}/entries/{entry_id}")
async def update_entry(
    name: str,
    entry_id: str,
    body: UpdateEntryRequest,
    store: WorkspaceStore = Depends(get_store),
):
    """Update field values of one entry (used by board card moves)."""
    updated = await store.update_entry(name, entry_id, body.fields)
    return {"ok": True, "updated": updated}


@router.post("/objects/{name}/entries/bulk-delete")
async def bulk_delete(
    name: str,
    body: BulkDeleteRequest,
    store: WorkspaceStore = Depends(get_store),
):
    """Delete several entries of the object."""
    deleted = await store.bulk_delete(name, body.entryIds)
    return {"ok": True, "deletedCount": deleted}


@router.patch("/objects/{name}/fields/{field_id}/enum-rename")
async def rename_enum_value(
    name: str,
    field_id: str,
    body: EnumRenameRequest,
    store: WorkspaceStore = Depends(get_store),
):
    """Rename an enum value in the field definition and in every entry."""
    result = await store.rename_enum_value(name, field_id, body.oldValue, body.newValue)
    return result.to_dict()


# =============================================================================
# Workspace
# =============================================================================


@router.get("/databases")
async def list_databases(store: WorkspaceStore = Depends(get_store)):
    """Database files in the workspace, shallowest (authoritative) first."""
    return {"databases": store.list_databases()}


@router.get("/file")
async def read_file(
    path: str = Query(..., description="Workspace-relative path"),
    config: StoreConfig = Depends(get_store_config),
):
    """Read a text file from the workspace."""
    root = resolve_workspace_root(config)
    if root is None:
        raise WorkspaceFileNotFoundError(path)
    return read_workspace_file(path, root).to_dict()


@router.post("/upload")
async def upload(
    file: UploadFile = File(...),
    config: StoreConfig = Depends(get_store_config),
):
    """Store an uploaded file under assets/ in the workspace."""
    root = resolve_workspace_root(config)
    if root is None:
        raise StoreError("Workspace not found")
    data = await file.read()
    rel_path = save_upload(
        file.filename or "",
        data,
        max_bytes=config.limits.upload_max_bytes,
        root=root,
    )
    return {"ok": True, "path": rel_path}
