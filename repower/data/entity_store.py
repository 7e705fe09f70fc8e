"""
Read path over the EAV table.

Resolves record ids by secondary-key lookup and fetches records as flat
field -> value dicts, using QueryExecutor for storage access and
RecordAssembler for EAV -> record translation.

Invariants:
    - Every query is filtered by the bound project_id
    - Lookup field names are forward-mapped exactly once
    - resolve_ids returns distinct ids; descending order is the exact
      reverse of ascending order over the same data
    - The store keeps no transaction state; nesting begin() is not guarded

Table layout (owned externally):
    redcap_data:
        - project_id INTEGER
        - event_name TEXT (NULL for classic projects)
        - record TEXT
        - field_name TEXT
        - value TEXT
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any

from ..errors import RecordNotFoundError
from .assembler import RecordAssembler
from .field_map import MapDirection
from .query import IntParam, QueryExecutor, QueryParam, StringParam, bind_param

logger = logging.getLogger(__name__)

# Record id is a column, not a stored field; get_by() treats it specially.
RECORD_ID_FIELD = "record"

DEFAULT_TABLE = "redcap_data"


class Order(Enum):
    """Sort order for resolved record ids."""

    ASCENDING = "ASC"
    DESCENDING = "DESC"


class EntityStore:
    """Project-scoped reads from the EAV table.

    Example:
        >>> store = EntityStore(7, QueryExecutor(conn), RecordAssembler(7))
        >>> store.get_by("dob", "1990-01-01")
        {'dob': '1990-01-01', 'name': 'Ada'}
    """

    def __init__(
        self,
        project_id: int,
        executor: QueryExecutor,
        assembler: RecordAssembler,
        table: str = DEFAULT_TABLE,
    ) -> None:
        if not table.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table!r}")
        self.project_id = project_id
        self.executor = executor
        self.assembler = assembler
        self.table = table

    def resolve_ids(
        self,
        field_name: str,
        value: Any,
        order: Order = Order.ASCENDING,
    ) -> list[str]:
        """Find the ids of all records whose field equals value.

        Args:
            field_name: Application field name (forward-mapped before lookup)
            value: Value to match; int, float, str or a tagged parameter
            order: Sort order of the returned ids

        Returns:
            Distinct record ids, ordered by the record column's text
            collation, so "10" sorts before "2"
        """
        storage_field = self.assembler.mapper.translate_name(field_name, MapDirection.FORWARD)
        query = (
            f"SELECT record FROM {self.table} "
            "WHERE project_id = ? AND field_name = ? AND value = ? "
            f"GROUP BY record ORDER BY record {order.value}"
        )
        rows = self.executor.execute(
            query,
            [IntParam(self.project_id), StringParam(storage_field), bind_param(value)],
        )
        record_ids = [str(row["record"]) for row in rows]

        logger.debug(
            "Resolved record ids",
            extra={
                "project_id": self.project_id,
                "field_name": storage_field,
                "matches": len(record_ids),
            },
        )
        return record_ids

    def resolve_first_id(
        self,
        field_name: str,
        value: Any,
        order: Order = Order.ASCENDING,
    ) -> str:
        """Return the first id from resolve_ids().

        Raises:
            RecordNotFoundError: If nothing matches
        """
        record_ids = self.resolve_ids(field_name, value, order)
        if not record_ids:
            raise RecordNotFoundError(field_name, value, project_id=self.project_id)
        return record_ids[0]

    def fetch_record(self, record_id: str | int, event_name: str | None = None) -> dict[str, Any]:
        """Fetch every stored field of one record.

        Args:
            record_id: Record identifier
            event_name: Restrict to one event; all events are merged when None

        Returns:
            The assembled record; empty when the record has no data
        """
        query = f"SELECT field_name, value FROM {self.table} WHERE project_id = ? AND record = ?"
        params: list[QueryParam] = [IntParam(self.project_id), StringParam(str(record_id))]
        if event_name is not None:
            query += " AND event_name = ?"
            params.append(StringParam(event_name))

        rows = self.executor.execute(query, params)
        return self.assembler.to_record(rows)

    def get_by(self, field_name: str, value: Any) -> dict[str, Any]:
        """Fetch the first record whose field equals value.

        The ``record`` field name looks the record up by id directly.

        Raises:
            RecordNotFoundError: If no record matches a secondary-key lookup
        """
        if field_name == RECORD_ID_FIELD:
            return self.fetch_record(value)
        return self.fetch_record(self.resolve_first_id(field_name, value))

    def get_all_by(self, field_name: str, value: Any) -> list[dict[str, Any]]:
        """Fetch every record whose field equals value, in id order."""
        return [self.fetch_record(record_id) for record_id in self.resolve_ids(field_name, value)]

    def begin(self) -> None:
        self.executor.begin()

    def commit(self) -> None:
        self.executor.commit()

    def rollback(self) -> None:
        self.executor.rollback()

    @contextmanager
    def transaction(self) -> Iterator[EntityStore]:
        """Run a block of reads in one transaction.

        Commits on success, rolls back and re-raises on error.
        """
        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        self.commit()
