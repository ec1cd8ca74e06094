"""Data models for platform versions and dependency coordinates."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

_SEGMENT_RE = re.compile(r"^\d+$")


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """Dotted numeric version (``"1.2"``, ``"18822"``).

    Trailing zero segments are insignificant: ``1.0 == 1``.
    """

    raw: str
    parts: tuple[int, ...] = field(repr=False, compare=False)

    @classmethod
    def parse(cls, text: str) -> Version:
        raw = str(text).strip()
        segments = raw.split(".")
        if not raw or not all(_SEGMENT_RE.match(s) for s in segments):
            raise ValueError(f"Invalid version string: {text!r}")
        return cls(raw=raw, parts=tuple(int(s) for s in segments))

    @property
    def _key(self) -> tuple[int, ...]:
        parts = list(self.parts)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    def bump(self, steps: int = 1) -> Version:
        """Add *steps* to the last segment."""
        parts = self.parts[:-1] + (self.parts[-1] + steps,)
        return Version(raw=".".join(str(p) for p in parts), parts=parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class Dependency:
    """A ``group:name:version`` coordinate declared in a scope."""

    group: str
    name: str
    version: str | None = None

    @classmethod
    def parse(cls, notation: str) -> Dependency:
        pieces = notation.strip().split(":")
        if len(pieces) not in (2, 3) or not all(pieces):
            raise ValueError(f"Invalid dependency notation: {notation!r}")
        return cls(*pieces)

    @property
    def module(self) -> str:
        return f"{self.group}:{self.name}"

    def with_version(self, version: Version | str) -> Dependency:
        return Dependency(self.group, self.name, str(version))

    def __str__(self) -> str:
        return f"{self.module}:{self.version}" if self.version else self.module
