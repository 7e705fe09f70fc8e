"""
Translation between EAV tuples and flat records.

An EAV tuple is one field's value for one record (and optionally one event)
in one project. A record is the flat field -> value view of every tuple
sharing that scope.

Invariants:
    - to_record applies the reverse field-name map exactly once
    - to_tuples applies the forward field-name map exactly once
    - Duplicate field names within one batch resolve last-write-wins
    - An empty tuple batch assembles to an empty record
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .field_map import FieldNameMapper, MapDirection


@dataclass(frozen=True)
class EavTuple:
    """One attribute value of one record.

    Attributes:
        project_id: Project the value belongs to
        record_id: Record identifier (a storage column, not a field)
        field_name: Storage field name
        value: Stored value, always a string
        event_name: Unique event name for longitudinal projects
    """

    project_id: int
    record_id: str
    field_name: str
    value: str
    event_name: str | None = None

    def to_wire(self) -> dict[str, str]:
        """Encode as one item of the write API's EAV ``data`` array."""
        item = {"record": self.record_id}
        if self.event_name is not None:
            item["redcap_event_name"] = self.event_name
        item["field_name"] = self.field_name
        item["value"] = self.value
        return item

    @classmethod
    def from_wire(cls, project_id: int, item: Mapping[str, Any]) -> EavTuple:
        """Decode one EAV item as produced by to_wire() or an export.

        Raises:
            KeyError: If record or field_name is missing
        """
        value = item.get("value")
        return cls(
            project_id=project_id,
            record_id=str(item["record"]),
            field_name=item["field_name"],
            value="" if value is None else str(value),
            event_name=item.get("redcap_event_name"),
        )


def _stored_value(value: Any) -> str:
    return "" if value is None else str(value)


class RecordAssembler:
    """Collapses EAV tuples into records and expands records into tuples."""

    def __init__(self, project_id: int, mapper: FieldNameMapper | None = None) -> None:
        self.project_id = project_id
        self.mapper = mapper or FieldNameMapper()

    def to_record(self, tuples: Iterable[EavTuple | Mapping[str, Any]]) -> dict[str, Any]:
        """Assemble a flat record from tuples that share one scope.

        Accepts EavTuple objects or row dicts with ``field_name`` and
        ``value`` keys, as returned by QueryExecutor.
        """
        storage_record: dict[str, Any] = {}
        for item in tuples:
            if isinstance(item, EavTuple):
                storage_record[item.field_name] = item.value
            else:
                storage_record[item["field_name"]] = item["value"]
        return self.mapper.translate_record(storage_record, MapDirection.REVERSE)

    def to_tuples(
        self,
        record: Mapping[str, Any],
        record_id: str | int,
        event_name: str | None = None,
    ) -> list[EavTuple]:
        """Expand a flat record into one tuple per field."""
        storage_record = self.mapper.translate_record(record, MapDirection.FORWARD)
        return [
            EavTuple(
                project_id=self.project_id,
                record_id=str(record_id),
                field_name=field_name,
                value=_stored_value(value),
                event_name=event_name,
            )
            for field_name, value in storage_record.items()
        ]
