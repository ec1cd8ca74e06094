"""Named containers of dependency declarations."""

from __future__ import annotations

import threading

from mincompile.models.version import Dependency


class DependencyScope:
    """Mutable set of dependency declarations that may extend other scopes.

    Extension is by reference: entries added to a parent later are visible
    through every child.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._direct: tuple[Dependency, ...] = ()
        self._parents: tuple[DependencyScope, ...] = ()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"DependencyScope({self.name!r})"

    @property
    def direct(self) -> tuple[Dependency, ...]:
        return self._direct

    @property
    def parents(self) -> tuple[DependencyScope, ...]:
        return self._parents

    def extend(self, *parents: DependencyScope) -> DependencyScope:
        for parent in parents:
            if parent is self or self in parent.hierarchy():
                raise ValueError(f"Scope {self.name!r} cannot extend {parent.name!r}: cycle")
            if parent not in self._parents:
                self._parents = self._parents + (parent,)
        return self

    def add(self, dependency: Dependency) -> None:
        # Swapping the whole tuple keeps readers from ever seeing a half-added entry.
        with self._lock:
            if dependency not in self._direct:
                self._direct = self._direct + (dependency,)

    def hierarchy(self) -> list[DependencyScope]:
        """All transitively extended scopes, nearest first, without self."""
        seen: list[DependencyScope] = []
        stack = list(reversed(self._parents))
        while stack:
            scope = stack.pop()
            if scope in seen:
                continue
            seen.append(scope)
            stack.extend(reversed(scope._parents))
        return seen

    def inherited(self) -> list[Dependency]:
        result: list[Dependency] = []
        for scope in reversed(self.hierarchy()):
            for dep in scope._direct:
                if dep not in result:
                    result.append(dep)
        return result

    def resolve(self) -> list[Dependency]:
        """Inherited entries (base first) followed by direct ones."""
        result = self.inherited()
        for dep in self._direct:
            if dep not in result:
                result.append(dep)
        return result
