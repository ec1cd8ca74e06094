"""Project model — two-phase (declare, then finalize) build configuration."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Generic, TypeVar

import structlog

from mincompile.build.compiler import Compiler, compile_action
from mincompile.build.executor import BuildResult, TaskExecutor
from mincompile.build.scope import DependencyScope
from mincompile.build.target import DirectorySet, Target
from mincompile.build.task import Task, TaskResult
from mincompile.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

T = TypeVar("T")


class Phase(enum.Enum):
    DECLARING = "declaring"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"
    FAILED = "failed"  # a finalize hook raised; the project cannot run


class Registry(Generic[T]):
    """Holds objects created by the project.

    Callers keep the returned objects as handles. Name lookup exists for
    display and command-line use only.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._items: dict[str, T] = {}

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return any(existing is item for existing in self._items.values())

    def _register(self, name: str, item: T) -> T:
        if name in self._items:
            raise ConfigurationError(f"{self.kind} {name!r} already exists")
        self._items[name] = item
        return item

    def find(self, name: str) -> T | None:
        return self._items.get(name)

    def named(self, name: str) -> T:
        item = self._items.get(name)
        if item is None:
            raise ConfigurationError(f"{self.kind} {name!r} not found")
        return item


class Project:
    """A buildable project.

    Configuration happens in two phases. While ``DECLARING``, scopes,
    targets and tasks may be created and directory sets changed freely.
    :meth:`finalize` then runs the hooks queued with :meth:`after_finalize`,
    in registration order, exactly once.
    """

    def __init__(self, name: str, root: str | Path = ".", compiler: Compiler | None = None) -> None:
        self.name = name
        self.root = Path(root)
        self.compiler = compiler
        self.phase = Phase.DECLARING
        self.scopes: Registry[DependencyScope] = Registry("scope")
        self.targets: Registry[Target] = Registry("target")
        self.tasks: Registry[Task] = Registry("task")
        self.task_listeners: list[Callable[[TaskResult], None]] = []
        self._finalize_hooks: list[Callable[[Project], None]] = []
        self._failure: Exception | None = None

    def __repr__(self) -> str:
        return f"Project({self.name!r}, phase={self.phase.value})"

    # ── declaration ────────────────────────────────────────────────────────

    def create_scope(self, name: str, extends: DependencyScope | None = None) -> DependencyScope:
        scope = self.scopes._register(name, DependencyScope(name))
        if extends is not None:
            scope.extend(extends)
        return scope

    def create_task(
        self, name: str, description: str = "", group: str | None = None
    ) -> Task:
        return self.tasks._register(name, Task(name=name, description=description, group=group))

    def create_target(
        self,
        name: str,
        scope: DependencyScope,
        sources: DirectorySet | None = None,
        resources: DirectorySet | None = None,
    ) -> Target:
        """Create a target plus its compile task and aggregate ``classes`` task."""
        target = Target(
            name=name,
            sources=sources if sources is not None else DirectorySet(f"{name}.sources"),
            resources=resources if resources is not None else DirectorySet(f"{name}.resources"),
            scope=scope,
        )
        self.targets._register(name, target)
        target.compile_task = self.create_task(
            target.compile_task_name, description=f"Compiles the {name} sources."
        ).do_last(compile_action(self, target))
        target.classes_task = self.create_task(
            target.classes_task_name, description=f"Assembles the {name} classes."
        ).depends_on(target.compile_task)
        return target

    def after_finalize(self, hook: Callable[[Project], None]) -> None:
        if self.phase is not Phase.DECLARING:
            raise ConfigurationError(
                f"Project {self.name!r} is {self.phase.value}; hooks must be queued while declaring"
            )
        self._finalize_hooks.append(hook)

    # ── finalization ───────────────────────────────────────────────────────

    def finalize(self) -> None:
        """Run the queued hooks. A hook that raises leaves the project ``FAILED``.

        A failed project stays failed: later calls to ``finalize()`` or
        ``run()`` raise ConfigurationError instead of building.
        """
        if self.phase is Phase.FAILED:
            raise ConfigurationError(
                f"Configuration of project {self.name!r} was aborted: {self._failure}"
            ) from self._failure
        if self.phase is not Phase.DECLARING:
            return
        self.phase = Phase.FINALIZING
        log.debug("project.finalizing", project=self.name, hooks=len(self._finalize_hooks))
        hooks, self._finalize_hooks = self._finalize_hooks, []
        for hook in hooks:
            try:
                hook(self)
            except Exception as e:
                self.phase = Phase.FAILED
                self._failure = e
                log.error("project.configuration_failed", project=self.name, error=str(e))
                raise
        self.phase = Phase.FINALIZED

    # ── execution ──────────────────────────────────────────────────────────

    async def run(self, *tasks: Task) -> BuildResult:
        """Finalize if still declaring, then execute *tasks* and their dependencies."""
        self.finalize()
        return await TaskExecutor(self.task_listeners).run(*tasks)

    def require_target(self, name: str) -> Target:
        target = self.targets.find(name)
        if target is None:
            raise ConfigurationError(f"Project {self.name!r} has no target {name!r}")
        return target
