"""Deferred injection of the resolved platform dependency into a scope."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

import structlog

from mincompile.build.project import Project
from mincompile.build.scope import DependencyScope
from mincompile.build.task import Task
from mincompile.models.version import Dependency

log = structlog.get_logger(__name__)

DependencySupplier = Callable[[], "Dependency | Awaitable[Dependency]"]

SCOPE_PREFIX = "minVersion"


def mirror_scope_name(base: DependencyScope) -> str:
    """``implementation`` → ``minVersionImplementation``."""
    return SCOPE_PREFIX + base.name[:1].upper() + base.name[1:]


class DependencyBinder:
    """Owns the mirror's dependency scope and fills it on demand."""

    def __init__(self, project: Project) -> None:
        self.project = project

    def create_scope(self, base: DependencyScope) -> DependencyScope:
        return self.project.create_scope(mirror_scope_name(base), extends=base)

    def bind_on_demand(
        self,
        scope: DependencyScope,
        supplier: DependencySupplier,
        task: Task,
    ) -> None:
        """Add ``supplier()`` to *scope* the first time *task* executes.

        The supplier is not called here. If it raises, nothing is added and
        the task fails with that error.
        """
        bound = False

        async def _bind(_: Task) -> None:
            nonlocal bound
            if bound:
                return
            dependency = supplier()
            if inspect.isawaitable(dependency):
                dependency = await dependency
            scope.add(dependency)
            bound = True
            log.info("binder.bound", scope=scope.name, dependency=str(dependency), task=task.name)

        task.do_last(_bind)
