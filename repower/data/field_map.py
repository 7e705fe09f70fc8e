"""
Bidirectional field-name translation.

Application code may use field names that differ from the names stored in
the EAV table. A FieldNameMapper holds the application -> storage table and
its derived inverse.

Invariants:
    - The forward map is injective; the inverse is derived once at construction
    - Names absent from the active map pass through unchanged
    - Translating a record rewrites keys only; values are untouched

Example:
    >>> mapper = FieldNameMapper({"dob_alias": "dob"})
    >>> mapper.translate("dob_alias", MapDirection.FORWARD)
    'dob'
    >>> mapper.translate({"dob": "1990-01-01"}, MapDirection.REVERSE)
    {'dob_alias': '1990-01-01'}
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, overload

from ..errors import FieldMapError


class MapDirection(Enum):
    """Direction of a field-name translation."""

    FORWARD = "forward"  # application -> storage
    REVERSE = "reverse"  # storage -> application


class FieldNameMapper:
    """Translates field names between application and storage vocabularies.

    With no map configured every translation is the identity.
    """

    def __init__(self, field_name_map: Mapping[str, str] | None = None) -> None:
        forward = dict(field_name_map or {})

        reverse: dict[str, str] = {}
        collisions: dict[str, list[str]] = {}
        for app_name, storage_name in forward.items():
            if storage_name in reverse:
                collisions.setdefault(storage_name, [reverse[storage_name]]).append(app_name)
            else:
                reverse[storage_name] = app_name

        if collisions:
            storage_name, app_names = next(iter(collisions.items()))
            raise FieldMapError(storage_name, app_names)

        self._forward = MappingProxyType(forward)
        self._reverse = MappingProxyType(reverse)

    @property
    def forward_map(self) -> Mapping[str, str]:
        return self._forward

    @property
    def reverse_map(self) -> Mapping[str, str]:
        return self._reverse

    def __bool__(self) -> bool:
        return bool(self._forward)

    def _active(self, direction: MapDirection) -> Mapping[str, str]:
        return self._forward if direction is MapDirection.FORWARD else self._reverse

    def translate_name(self, name: str, direction: MapDirection = MapDirection.FORWARD) -> str:
        """Translate a single field name."""
        return self._active(direction).get(name, name)

    def translate_record(
        self,
        record: Mapping[str, Any],
        direction: MapDirection = MapDirection.FORWARD,
    ) -> dict[str, Any]:
        """Translate every key of a record, leaving values untouched."""
        active = self._active(direction)
        if not active:
            return dict(record)
        return {active.get(key, key): value for key, value in record.items()}

    @overload
    def translate(self, target: str, direction: MapDirection = ...) -> str: ...

    @overload
    def translate(
        self, target: Mapping[str, Any], direction: MapDirection = ...
    ) -> dict[str, Any]: ...

    def translate(self, target, direction=MapDirection.FORWARD):
        """Translate a field name or the keys of a record.

        Args:
            target: A field name, or a mapping of field name to value
            direction: FORWARD (application -> storage) or REVERSE

        Returns:
            The translated name, or a new dict with translated keys
        """
        if isinstance(target, Mapping):
            return self.translate_record(target, direction)
        return self.translate_name(target, direction)

    def __repr__(self) -> str:
        return f"FieldNameMapper({dict(self._forward)!r})"
