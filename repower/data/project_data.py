"""
Public facade over the project's EAV data.

ProjectDataService composes the read path (EntityStore over QueryExecutor)
and the write path (RemoteWriter) behind one project-scoped object.

Invariants:
    - One instance is bound to exactly one project for its lifetime
    - Reads go to storage on every call; nothing is cached
    - Writes go through the remote API only, after make_writeable()
    - Read and write paths are not kept globally consistent; a write is
      visible to reads only once the remote service has applied it

Example:
    >>> service = ProjectDataService(7, conn, field_name_map={"dob_alias": "dob"})
    >>> service.get_record_by("dob_alias", "1990-01-01")
    {'dob_alias': '1990-01-01'}
    >>> service.make_writeable("https://redcap.example.org/api/", token)
    >>> service.save_record("1", {"dob_alias": "1991-02-02"})
    WriteResult(ok=True, error_message='', status_code=200, ...)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import httpx

from ..config import Settings
from ..errors import WriteNotConfiguredError
from .assembler import EavTuple, RecordAssembler
from .entity_store import DEFAULT_TABLE, EntityStore, Order
from .field_map import FieldNameMapper
from .query import QueryExecutor
from .remote_writer import RemoteWriter, WriteCredentials, WriteResult

logger = logging.getLogger(__name__)


class ProjectDataService:
    """Project-scoped record access.

    The storage connection and any HTTP client are supplied by the caller
    and outlive this object.

    Attributes:
        project_id: Project every read and write is scoped to
        mapper: Application <-> storage field-name translation
        assembler: EAV <-> record translation
        store: Read path
        writer: Write path
    """

    def __init__(
        self,
        project_id: int,
        conn: Any,
        field_name_map: Mapping[str, str] | None = None,
        table: str = DEFAULT_TABLE,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            project_id: Project identifier
            conn: DB-API connection to the EAV store (qmark paramstyle)
            field_name_map: Application name -> storage name aliases
            table: EAV table name
            client: HTTP client for the write API (caller owns it)
            timeout: Write API timeout in seconds when no client is given

        Raises:
            FieldMapError: If field_name_map is not injective
        """
        self.project_id = project_id
        self.mapper = FieldNameMapper(field_name_map)
        self.assembler = RecordAssembler(project_id, self.mapper)
        self.store = EntityStore(project_id, QueryExecutor(conn), self.assembler, table=table)
        self.writer = RemoteWriter(client=client, timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        conn: Any,
        client: httpx.Client | None = None,
    ) -> ProjectDataService:
        """Build a service from runtime settings.

        The service is made writeable when the settings carry credentials.
        """
        service = cls(
            settings.project_id,
            conn,
            field_name_map=settings.field_map,
            table=settings.data_table,
            client=client,
            timeout=settings.request_timeout,
        )
        if settings.has_write_credentials:
            service.make_writeable(settings.api_url, settings.api_token.get_secret_value())
        return service

    def make_writeable(self, api_url: str, api_token: str) -> None:
        """Attach write API credentials."""
        self.writer.credentials = WriteCredentials(api_url, api_token)
        logger.debug(
            "Project made writeable",
            extra={"project_id": self.project_id, "api_url": api_url},
        )

    @property
    def is_writeable(self) -> bool:
        return self.writer.is_configured

    # Read path

    def get_record_by(self, field_name: str, value: Any) -> dict[str, Any]:
        """Fetch the first record whose field equals value.

        ``get_record_by("record", record_id)`` fetches by id directly.

        Raises:
            RecordNotFoundError: If no record matches
        """
        return self.store.get_by(field_name, value)

    def get_records_by(self, field_name: str, value: Any) -> list[dict[str, Any]]:
        """Fetch all records whose field equals value, in record id order."""
        return self.store.get_all_by(field_name, value)

    def get_record_ids_by(
        self,
        field_name: str,
        value: Any,
        order: Order = Order.ASCENDING,
    ) -> list[str]:
        return self.store.resolve_ids(field_name, value, order)

    def fetch_record(self, record_id: str | int, event_name: str | None = None) -> dict[str, Any]:
        return self.store.fetch_record(record_id, event_name)

    # Write path

    def save_record(
        self,
        record_id: str | int,
        field_values: Mapping[str, Any],
        event_name: str | None = None,
    ) -> WriteResult:
        """Save one record's fields through the write API.

        Field names are forward-mapped before submission.

        Raises:
            WriteNotConfiguredError: If make_writeable() was not called
        """
        self._require_writeable()
        tuples = self.assembler.to_tuples(field_values, record_id, event_name)
        return self.writer.submit(tuples)

    def save_raw(self, tuples: Iterable[EavTuple]) -> WriteResult:
        """Submit already EAV-shaped tuples unchanged, e.g. for bulk import.

        No field-name mapping is applied.

        Raises:
            WriteNotConfiguredError: If make_writeable() was not called
        """
        self._require_writeable()
        return self.writer.submit(tuples)

    def _require_writeable(self) -> None:
        if not self.writer.is_configured:
            raise WriteNotConfiguredError(self.project_id)

    # Transaction control

    def begin(self) -> None:
        self.store.begin()

    def commit(self) -> None:
        self.store.commit()

    def rollback(self) -> None:
        self.store.rollback()

    @contextmanager
    def transaction(self) -> Iterator[ProjectDataService]:
        """Run several reads in one storage transaction."""
        with self.store.transaction():
            yield self
