"""
Data module for repower - project records over an EAV table.

This module handles:
- Field-name aliasing between application and storage vocabularies
- Typed, parameterized queries against the EAV table
- EAV tuple <-> flat record assembly
- Secondary-key record lookup (read path)
- Record submission through the remote write API (write path)

Invariants:
    - Every read and write is scoped to one project
    - Reads hit storage directly; writes go through the remote API only
    - Expected failures (not found, remote rejection, transport) are
      catchable or returned; storage and configuration failures propagate
"""

from .assembler import EavTuple, RecordAssembler
from .entity_store import RECORD_ID_FIELD, EntityStore, Order
from .field_map import FieldNameMapper, MapDirection
from .project_data import ProjectDataService
from .query import FloatParam, IntParam, QueryExecutor, QueryParam, StringParam, bind_param
from .remote_writer import RemoteWriter, WriteCredentials, WriteOutcome, WriteResult

__all__ = [
    "EavTuple",
    "RecordAssembler",
    "RECORD_ID_FIELD",
    "EntityStore",
    "Order",
    "FieldNameMapper",
    "MapDirection",
    "ProjectDataService",
    "FloatParam",
    "IntParam",
    "QueryExecutor",
    "QueryParam",
    "StringParam",
    "bind_param",
    "RemoteWriter",
    "WriteCredentials",
    "WriteOutcome",
    "WriteResult",
]
