"""
Configuration for repower.

Runtime settings come from environment variables via pydantic-settings.
Plugin-specific values come from an INI file loaded once into an immutable
PluginConfig that is shared by reference afterwards.

Invariants:
    - Settings have defaults suitable for local development
    - The API token is never logged or included in repr output
    - A PluginConfig cannot be modified after loading
"""

from __future__ import annotations

import configparser
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment."""

    # Project scope
    project_id: int = Field(default=0, description="Project every query is scoped to")
    data_table: str = Field(default="redcap_data", description="EAV table name")

    # Field-name aliases, application name -> storage name (JSON object)
    field_map: dict[str, str] = Field(default_factory=dict)

    # Remote write API
    api_url: str | None = Field(default=None, description="Record import API endpoint")
    api_token: SecretStr | None = Field(default=None, description="Record import API token")
    request_timeout: float | None = Field(
        default=None, description="Write API timeout seconds (None = HTTP client default)"
    )

    # Plugin
    config_file: str = Field(default="config.ini", description="Plugin INI config path")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    model_config = {"env_prefix": "REPOWER_"}

    @property
    def has_write_credentials(self) -> bool:
        """Whether both API URL and token are configured."""
        return bool(self.api_url) and self.api_token is not None

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Configuration loaded",
            extra={
                "project_id": self.project_id,
                "data_table": self.data_table,
                "mapped_fields": len(self.field_map),
                "api_url": self.api_url,
                "writeable": self.has_write_credentials,
                "log_level": self.log_level,
            },
        )


@dataclass(frozen=True)
class PluginConfig:
    """Immutable plugin configuration read from an INI file.

    Sections behave like read-only dicts. Looking up a missing section
    returns None rather than raising.

    Example:
        >>> config = PluginConfig.from_file("config.ini")
        >>> config["versions"]["twig"]
        '1.24.0'
    """

    _sections: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    source: str | None = None

    def __post_init__(self) -> None:
        frozen = MappingProxyType(
            {name: MappingProxyType(dict(values)) for name, values in self._sections.items()}
        )
        object.__setattr__(self, "_sections", frozen)

    @classmethod
    def from_file(cls, path: str | Path) -> PluginConfig:
        """Load configuration from an INI file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or malformed
        """
        path = Path(path)
        parser = configparser.ConfigParser(interpolation=None)
        try:
            with path.open(encoding="utf-8") as f:
                parser.read_file(f)
        except OSError as e:
            raise ConfigurationError(
                f"Config file not readable at {path}.",
                details={"path": str(path)},
            ) from e
        except configparser.Error as e:
            raise ConfigurationError(
                f"Config file malformed at {path}: {e}",
                details={"path": str(path)},
            ) from e

        sections = {name: dict(parser.items(name)) for name in parser.sections()}
        logger.debug("Loaded plugin config", extra={"path": str(path), "sections": len(sections)})
        return cls(sections, source=str(path))

    def __getitem__(self, section: str) -> Mapping[str, str] | None:
        return self._sections.get(section)

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def __iter__(self) -> Iterator[str]:
        return iter(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def get(self, section: str, option: str | None = None, default: Any = None) -> Any:
        """Return a section, or one option within it, with a fallback."""
        values = self._sections.get(section)
        if values is None:
            return default
        if option is None:
            return values
        return values.get(option, default)

    def sections(self) -> list[str]:
        return list(self._sections)
