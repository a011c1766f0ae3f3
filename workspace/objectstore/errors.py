"""
Error types for the workspace object store.

This module defines all exception types raised by the store:
- WorkspaceStoreError: Base exception, carries an HTTP status
- InvalidNameError / ValidationError: Bad caller input (400)
- ObjectNotFoundError, FieldNotFoundError, EnumValueNotFoundError (404)
- DuplicateEnumValueError: Rename target already present (409)
- StoreError: Internal failure (500)
- EngineNotInstalledError: duckdb CLI not found (503)
- EngineExecutionError / EngineTimeoutError: Process-level failures,
  swallowed by the query bridge unless strict mode is requested

Invariants:
    - All store errors inherit from WorkspaceStoreError
    - Messages are safe to return to HTTP clients
    - Engine errors never reach HTTP clients directly
"""

from __future__ import annotations

from typing import Any


class WorkspaceStoreError(Exception):
    """Base exception for all store errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
        status_code: HTTP status used by the API layer
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "STORE_ERROR"
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Error payload returned to HTTP clients."""
        return {"error": self.message}


class ValidationError(WorkspaceStoreError):
    """Request input is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, field_name: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details={"field": field_name})
        self.field_name = field_name


class InvalidNameError(ValidationError):
    """Object name is not a safe identifier."""

    def __init__(self, name: str) -> None:
        super().__init__("Invalid object name", field_name="name")
        self.code = "INVALID_NAME"
        self.name = name


class ObjectNotFoundError(WorkspaceStoreError):
    """No database file contains the requested object."""

    status_code = 404

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Object '{name}' not found",
            code="OBJECT_NOT_FOUND",
            details={"object": name},
        )
        self.name = name


class FieldNotFoundError(WorkspaceStoreError):
    """Field does not exist on the object."""

    status_code = 404

    def __init__(self, field_id: str) -> None:
        super().__init__("Field not found", code="FIELD_NOT_FOUND", details={"field_id": field_id})
        self.field_id = field_id


class EnumValueNotFoundError(WorkspaceStoreError):
    """Enum value to rename is not defined on the field."""

    status_code = 404

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Enum value '{value}' not found",
            code="ENUM_VALUE_NOT_FOUND",
            details={"value": value},
        )
        self.value = value


class DuplicateEnumValueError(WorkspaceStoreError):
    """Rename target is already one of the field's enum values."""

    status_code = 409

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Enum value '{value}' already exists",
            code="DUPLICATE_ENUM_VALUE",
            details={"value": value},
        )
        self.value = value


class WorkspaceFileNotFoundError(WorkspaceStoreError):
    """Workspace-relative path is invalid or does not exist."""

    status_code = 404

    def __init__(self, path: str) -> None:
        super().__init__("File not found", code="FILE_NOT_FOUND", details={"path": path})
        self.path = path


class StoreError(WorkspaceStoreError):
    """A statement the operation depends on failed."""

    status_code = 500


class EngineNotInstalledError(WorkspaceStoreError):
    """The duckdb CLI could not be found."""

    status_code = 503

    def __init__(self) -> None:
        super().__init__("DuckDB CLI is not installed", code="DUCKDB_NOT_INSTALLED")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class EngineExecutionError(Exception):
    """A duckdb process exited with an error.

    Attributes:
        returncode: Process exit code (None if it never ran)
        stderr: Captured standard error
    """

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class EngineTimeoutError(EngineExecutionError):
    """A duckdb process did not finish within its timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"duckdb timed out after {timeout}s")
        self.timeout = timeout
