"""
Error types for the repower data-access layer.

This module defines all exception types raised by the package:
- RepowerError: Base exception
- ConfigurationError: Invalid construction or missing write credentials
- StorageError: Query prepare/execute failures
- RecordNotFoundError: Secondary-key lookup matched nothing
- RemoteRejectedError / TransportError: Write path failures (opt-in)

Invariants:
    - All errors inherit from RepowerError
    - Errors include context for debugging
    - Secrets (API tokens) never appear in messages or details
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class RepowerError(Exception):
    """Base exception for all repower errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "REPOWER_ERROR"
        self.details = details or {}


class ConfigurationError(RepowerError):
    """The data-access object is misconfigured.

    Raised when:
    - A field-name map is not injective
    - A write is attempted on a read-only instance
    - A plugin config file cannot be read
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "CONFIGURATION_ERROR", details=details)


class FieldMapError(ConfigurationError):
    """Two application field names map to the same storage field name."""

    def __init__(self, storage_name: str, application_names: List[str]) -> None:
        super().__init__(
            f"Field name map is not injective: {', '.join(sorted(application_names))} "
            f"all map to '{storage_name}'",
            code="FIELD_MAP_NOT_INJECTIVE",
            details={
                "storage_name": storage_name,
                "application_names": sorted(application_names),
            },
        )
        self.storage_name = storage_name
        self.application_names = sorted(application_names)


class WriteNotConfiguredError(ConfigurationError):
    """A write was attempted before make_writeable() supplied credentials."""

    def __init__(self, project_id: Optional[int] = None) -> None:
        super().__init__(
            "Write credentials are not set; call make_writeable() first",
            code="WRITE_NOT_CONFIGURED",
            details={"project_id": project_id},
        )
        self.project_id = project_id


class StorageError(RepowerError):
    """A query against the EAV store could not be prepared or executed.

    The driver exception is chained as __cause__.
    """

    def __init__(self, message: str, query: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="STORAGE_ERROR",
            details={"query": query},
        )
        self.query = query


class RecordNotFoundError(RepowerError):
    """A secondary-key lookup yielded zero matching records."""

    def __init__(self, field_name: str, value: Any, project_id: Optional[int] = None) -> None:
        super().__init__(
            f"No record in project {project_id} has {field_name}={value!r}",
            code="NOT_FOUND",
            details={
                "project_id": project_id,
                "field_name": field_name,
                "value": value,
            },
        )
        self.field_name = field_name
        self.value = value
        self.project_id = project_id


class RemoteRejectedError(RepowerError):
    """The remote write API answered with a non-200 status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(
            message,
            code="REMOTE_REJECTED",
            details={"status_code": status_code},
        )
        self.status_code = status_code


class TransportError(RepowerError):
    """The remote write API could not be reached."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="TRANSPORT_ERROR",
            details={"url": url},
        )
        self.url = url
