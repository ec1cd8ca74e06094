"""Read-only view of the project manifest."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mincompile.exceptions import ConfigurationError
from mincompile.models.version import Version


@dataclass(frozen=True)
class Manifest:
    """Manifest attributes this package consumes."""

    min_version: str | None = None
    source: str = "manifest"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], source: str = "manifest") -> Manifest:
        value = data.get("min_version")
        return cls(min_version=str(value) if value is not None else None, source=source)

    def require_min_version(self) -> Version:
        """Return the declared minimum version or raise ConfigurationError."""
        if not self.min_version:
            raise ConfigurationError(f"{self.source}: missing required field 'min_version'")
        try:
            return Version.parse(self.min_version)
        except ValueError as e:
            raise ConfigurationError(f"{self.source}: {e}") from e
