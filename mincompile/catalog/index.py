"""Version indexes — find the next available version of the platform."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from mincompile.exceptions import VersionNotFoundError
from mincompile.models.version import Version

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    version: Version
    withdrawn: bool = False

    @property
    def available(self) -> bool:
        return not self.withdrawn


def select_next_available(
    requested: Version, entries: Iterable[CatalogEntry], catalog: str = "catalog"
) -> Version:
    """Smallest available version >= *requested*.

    Withdrawn entries never qualify, not even as an exact match.
    """
    candidates = [e.version for e in entries if e.available and e.version >= requested]
    if not candidates:
        raise VersionNotFoundError(str(requested), catalog)
    return min(candidates)


class VersionIndex(ABC):
    """A queryable catalog of published platform versions.

    Implementations may touch the network, so call
    :meth:`resolve_next_available` from task actions only.
    """

    name: str = "catalog"

    @abstractmethod
    async def resolve_next_available(self, requested: Version) -> Version:
        """Return *requested* if available, else the smallest available version above it."""
        ...

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> VersionIndex:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


class StaticVersionIndex(VersionIndex):
    """In-memory catalog."""

    def __init__(
        self,
        versions: Iterable[str | Version],
        withdrawn: Iterable[str | Version] = (),
        name: str = "static catalog",
    ) -> None:
        gone = {_as_version(v) for v in withdrawn}
        self.name = name
        self.entries = [
            CatalogEntry(v, withdrawn=v in gone) for v in sorted({_as_version(v) for v in versions})
        ]

    async def resolve_next_available(self, requested: Version) -> Version:
        resolved = select_next_available(requested, self.entries, self.name)
        log.info("catalog.resolved", catalog=self.name, requested=str(requested), resolved=str(resolved))
        return resolved


def _as_version(value: str | Version) -> Version:
    return value if isinstance(value, Version) else Version.parse(value)
