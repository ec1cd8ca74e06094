"""Task graph execution on asyncio."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from mincompile.build.task import Task, TaskResult, TaskStatus
from mincompile.exceptions import ConfigurationError

log = structlog.get_logger(__name__)


@dataclass
class BuildResult:
    results: list[TaskResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def failures(self) -> list[TaskResult]:
        return [r for r in self.results if r.status == TaskStatus.FAILED]

    @property
    def skipped(self) -> list[TaskResult]:
        return [r for r in self.results if r.status == TaskStatus.SKIPPED]

    def for_task(self, task: Task) -> TaskResult | None:
        for r in self.results:
            if r.task is task:
                return r
        return None

    def raise_for_failure(self) -> None:
        """Re-raise the first task failure unchanged."""
        for r in self.failures:
            if r.error is not None:
                raise r.error


def plan(*requested: Task) -> list[Task]:
    """Transitive closure of *requested* in dependency order.

    Raises ConfigurationError on a dependency cycle.
    """
    order: list[Task] = []
    state: dict[Task, str] = {}

    def visit(task: Task, path: list[Task]) -> None:
        mark = state.get(task)
        if mark == "done":
            return
        if mark == "visiting":
            cycle = " -> ".join(t.name for t in path[path.index(task):] + [task])
            raise ConfigurationError(f"Task dependency cycle: {cycle}")
        state[task] = "visiting"
        for dep in task.dependencies:
            visit(dep, path + [task])
        state[task] = "done"
        order.append(task)

    for task in requested:
        visit(task, [])
    return order


class TaskExecutor:
    """Run a task graph, starting each task once all of its dependencies completed.

    Independent tasks run concurrently. A task whose dependency failed is
    never started and reported as ``SKIPPED``; unrelated tasks keep going.
    """

    def __init__(self, listeners: list[Callable[[TaskResult], None]] | None = None) -> None:
        self.listeners = list(listeners or [])

    async def run(self, *requested: Task) -> BuildResult:
        order = plan(*requested)
        log.info("build.started", tasks=[t.name for t in order])
        running: dict[Task, asyncio.Task[TaskResult]] = {}

        async def run_one(task: Task) -> TaskResult:
            dep_results = await asyncio.gather(*(running[d] for d in task.dependencies))
            failed = next((r for r in dep_results if not r.success), None)
            if failed is not None:
                culprit = failed.failed_dependency or failed.task
                log.info("task.skipped", task=task.name, because=culprit.name)
                result = TaskResult(task, TaskStatus.SKIPPED, failed_dependency=culprit)
                if task.result is None:
                    task.result = result
            else:
                result = await task.execute()
            self._notify(result)
            return result

        # dependencies precede dependants in `order`, so lookups in run_one always hit
        for task in order:
            running[task] = asyncio.create_task(run_one(task), name=f"task-{task.name}")
        results = await asyncio.gather(*running.values())

        build = BuildResult(results=list(results))
        if build.success:
            log.info("build.succeeded", tasks=len(results))
        else:
            log.warning(
                "build.failed",
                failed=[r.task.name for r in build.failures],
                skipped=[r.task.name for r in build.skipped],
            )
        return build

    def _notify(self, result: TaskResult) -> None:
        for cb in self.listeners:
            try:
                cb(result)
            except Exception:
                log.debug("executor.listener_error", task=result.task.name, exc_info=True)
