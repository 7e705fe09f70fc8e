"""
repower - project record access for REDCap-style plugins.

This package exposes a project's records, stored as entity-attribute-value
rows, as flat dicts keyed by application field names:
- ProjectDataService: project-scoped facade for reads and writes
- FieldNameMapper: application <-> storage field-name aliases
- EntityStore: secondary-key lookup over the EAV table
- RemoteWriter: record submission through the remote import API
- web: plugin request glue (controllers, routing, CSRF tokens)

Example:
    >>> from repower import ProjectDataService
    >>>
    >>> service = ProjectDataService(7, conn, field_name_map={"dob_alias": "dob"})
    >>> record = service.get_record_by("dob_alias", "1990-01-01")
    >>> service.make_writeable(api_url, api_token)
    >>> result = service.save_record("1", {"dob_alias": "1991-02-02"})
    >>> if not result.ok:
    ...     print(result.error_message)

Invariants:
    - One data service instance is bound to one project
    - Storage connections and HTTP clients are owned by the caller
    - Writes never modify storage directly
"""

from ._version import __version__
from .config import PluginConfig, Settings
from .data import (
    EavTuple,
    EntityStore,
    FieldNameMapper,
    MapDirection,
    Order,
    ProjectDataService,
    RecordAssembler,
    RemoteWriter,
    WriteCredentials,
    WriteOutcome,
    WriteResult,
)
from .errors import (
    ConfigurationError,
    FieldMapError,
    RecordNotFoundError,
    RemoteRejectedError,
    RepowerError,
    StorageError,
    TransportError,
    WriteNotConfiguredError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "PluginConfig",
    "Settings",
    # Data access
    "EavTuple",
    "EntityStore",
    "FieldNameMapper",
    "MapDirection",
    "Order",
    "ProjectDataService",
    "RecordAssembler",
    "RemoteWriter",
    "WriteCredentials",
    "WriteOutcome",
    "WriteResult",
    # Errors
    "RepowerError",
    "ConfigurationError",
    "FieldMapError",
    "WriteNotConfiguredError",
    "StorageError",
    "RecordNotFoundError",
    "RemoteRejectedError",
    "TransportError",
]
