"""Tasks: units of build work with ordering edges and display metadata."""

from __future__ import annotations

import asyncio
import enum
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

log = structlog.get_logger(__name__)

TaskAction = Callable[["Task"], "Awaitable[None] | None"]


class TaskStatus(enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"  # a dependency failed, actions never ran


@dataclass
class TaskResult:
    task: Task
    status: TaskStatus
    error: BaseException | None = None
    duration: float | None = None
    failed_dependency: Task | None = None

    @property
    def success(self) -> bool:
        return self.status == TaskStatus.COMPLETED


@dataclass(eq=False)
class Task:
    """A unit of work. Identity is the object itself; ``name`` is for display."""

    name: str
    description: str = ""
    group: str | None = None
    actions: list[TaskAction] = field(default_factory=list, repr=False)
    dependencies: list[Task] = field(default_factory=list, repr=False)
    result: TaskResult | None = field(default=None, repr=False)
    _running: asyncio.Future[TaskResult] | None = field(default=None, init=False, repr=False)

    def __hash__(self) -> int:
        return id(self)

    def depends_on(self, *tasks: Task) -> Task:
        for task in tasks:
            if task is self:
                raise ValueError(f"Task {self.name!r} cannot depend on itself")
            if task not in self.dependencies:
                self.dependencies.append(task)
        return self

    def do_first(self, action: TaskAction) -> Task:
        self.actions.insert(0, action)
        return self

    def do_last(self, action: TaskAction) -> Task:
        self.actions.append(action)
        return self

    @property
    def executed(self) -> bool:
        return self.result is not None and self.result.status != TaskStatus.SKIPPED

    async def execute(self) -> TaskResult:
        """Run all actions in order. A task runs at most once per build session.

        Callers arriving while the task is running await that same run.
        """
        if self.executed:
            assert self.result is not None
            return self.result
        if self._running is None:
            self._running = asyncio.ensure_future(self._run_actions())
        running = self._running
        try:
            return await asyncio.shield(running)
        finally:
            if running.done() and self._running is running:
                self._running = None

    async def _run_actions(self) -> TaskResult:
        start = time.monotonic()
        log.debug("task.started", task=self.name)
        try:
            for action in list(self.actions):
                outcome = action(self)
                if inspect.isawaitable(outcome):
                    await outcome
        except Exception as e:
            self.result = TaskResult(
                self, TaskStatus.FAILED, error=e, duration=round(time.monotonic() - start, 2)
            )
            log.error("task.failed", task=self.name, error=str(e))
            return self.result
        self.result = TaskResult(
            self, TaskStatus.COMPLETED, duration=round(time.monotonic() - start, 2)
        )
        log.debug("task.completed", task=self.name, duration=self.result.duration)
        return self.result
