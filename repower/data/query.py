"""
Parameterized query execution against the EAV store.

Every bound parameter carries an explicit type tag (IntParam, StringParam,
FloatParam) instead of having its type guessed from the value's shape. The
executor works with any DB-API 2 connection that uses the qmark paramstyle
(sqlite3 in tests and local development).

Invariants:
    - Parameters are bound positionally, one tag per placeholder
    - Driver errors surface as StorageError at this boundary, never as an
      empty result
    - No implicit commits; transaction boundaries belong to the caller

How to change safely:
    - New parameter kinds need a tag class here and a case in bind_param()
    - Keep transaction control as thin delegation to the connection
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

from ..errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntParam:
    """Integer bind parameter."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"IntParam requires an int, got {type(self.value).__name__}")


@dataclass(frozen=True)
class StringParam:
    """String bind parameter."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"StringParam requires a str, got {type(self.value).__name__}")


@dataclass(frozen=True)
class FloatParam:
    """Floating point bind parameter. Integers are widened."""

    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"FloatParam requires a float, got {type(self.value).__name__}")
        object.__setattr__(self, "value", float(self.value))


QueryParam = Union[IntParam, StringParam, FloatParam]


def bind_param(value: Any) -> QueryParam:
    """Pick the bind tag for a value from its declared Python type.

    Args:
        value: An int, float, str, or an already tagged parameter

    Returns:
        The tagged parameter

    Raises:
        TypeError: For bool and any other type
    """
    if isinstance(value, (IntParam, StringParam, FloatParam)):
        return value
    if isinstance(value, bool):
        raise TypeError("bool values have no bind type; pass IntParam or StringParam explicitly")
    if isinstance(value, int):
        return IntParam(value)
    if isinstance(value, float):
        return FloatParam(value)
    if isinstance(value, str):
        return StringParam(value)
    raise TypeError(f"Unsupported bind value type: {type(value).__name__}")


class QueryExecutor:
    """Runs parameterized queries on a caller-owned connection.

    The connection is supplied by the host and outlives the executor; the
    executor never opens, pools, or closes it.

    Example:
        >>> executor = QueryExecutor(sqlite3.connect(":memory:", isolation_level=None))
        >>> rows = executor.execute(
        ...     "SELECT record FROM redcap_data WHERE project_id = ?",
        ...     [IntParam(7)],
        ... )
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn
        # DB-API drivers expose their exception base on the connection
        self._driver_error: type[Exception] = getattr(conn, "Error", sqlite3.Error)

    @property
    def connection(self) -> Any:
        return self._conn

    def execute(self, query: str, params: Sequence[QueryParam] = ()) -> list[dict[str, Any]]:
        """Execute a query and return its rows.

        Args:
            query: SQL text with one ``?`` placeholder per parameter
            params: Tagged parameters, in placeholder order

        Returns:
            One dict per row, keyed by column name

        Raises:
            TypeError: If a parameter is not tagged
            StorageError: If the driver cannot prepare or execute the query
        """
        values = []
        for param in params:
            if not isinstance(param, (IntParam, StringParam, FloatParam)):
                raise TypeError(f"Untagged query parameter: {param!r}")
            values.append(param.value)

        try:
            cursor = self._conn.cursor()
            try:
                cursor.execute(query, values)
                if cursor.description is None:
                    return []
                columns = [column[0] for column in cursor.description]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            finally:
                cursor.close()
        # sqlite3 raises OverflowError for integers beyond 64 bits
        except (self._driver_error, OverflowError) as e:
            logger.error(
                "Query failed",
                extra={"query": query, "error": str(e)},
            )
            raise StorageError(f"Query failed: {e}", query=query) from e

        logger.debug(
            "Query executed",
            extra={"query": query, "rows": len(rows)},
        )
        return rows

    def begin(self) -> None:
        """Open a transaction on the underlying connection."""
        self._run_control("BEGIN")

    def commit(self) -> None:
        """Commit the connection's open transaction."""
        try:
            self._conn.commit()
        except self._driver_error as e:
            raise StorageError(f"Commit failed: {e}", query="COMMIT") from e

    def rollback(self) -> None:
        """Roll back the connection's open transaction."""
        try:
            self._conn.rollback()
        except self._driver_error as e:
            raise StorageError(f"Rollback failed: {e}", query="ROLLBACK") from e

    def _run_control(self, statement: str) -> None:
        try:
            cursor = self._conn.cursor()
            try:
                cursor.execute(statement)
            finally:
                cursor.close()
        except self._driver_error as e:
            raise StorageError(f"{statement} failed: {e}", query=statement) from e
