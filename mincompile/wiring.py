"""Wire the minimum-version compile check into a project's task graph.

``install`` runs while the project is still being declared and only
creates the resolution task. Everything that reads the main target is
deferred to the project's finalize phase, because its directory sets may
change until then. No network access happens during configuration; the
catalog is queried when the resolution task executes.
"""

from __future__ import annotations

import structlog

from mincompile.binder import DependencyBinder
from mincompile.build.project import Phase, Project
from mincompile.build.scope import DependencyScope
from mincompile.build.target import Target
from mincompile.build.task import Task, TaskResult, TaskStatus
from mincompile.catalog.index import VersionIndex
from mincompile.config import MinCompileSettings
from mincompile.exceptions import ConfigurationError
from mincompile.mirror import TargetMirror
from mincompile.models.manifest import Manifest
from mincompile.models.version import Dependency, Version
from mincompile.progress import MirrorState, ProgressTracker

log = structlog.get_logger(__name__)

RESOLUTION_TASK = "addMinVersionDependency"


class TaskGraphWire:
    """Connects resolution, the mirror scope and the mirror target."""

    def __init__(
        self,
        project: Project,
        manifest: Manifest,
        index: VersionIndex,
        settings: MinCompileSettings | None = None,
    ) -> None:
        self.project = project
        self.manifest = manifest
        self.index = index
        self.settings = settings or MinCompileSettings()
        self.binder = DependencyBinder(project)
        self.progress = ProgressTracker(project.name)
        self.resolution_task: Task | None = None
        self.scope: DependencyScope | None = None
        self.mirror: Target | None = None
        self.resolved: Dependency | None = None

    def install(self) -> TaskGraphWire:
        if self.project.phase is not Phase.DECLARING:
            raise ConfigurationError(
                f"Cannot install the minimum-version check into {self.project.name!r}: "
                "configuration is already finalized"
            )
        self.resolution_task = self.project.create_task(
            RESOLUTION_TASK,
            description=(
                "Adds the dependency on the minimum required platform version "
                "to the mirror target's scope."
            ),
        )
        self.project.after_finalize(self._wire)
        self.project.task_listeners.append(self._on_task_result)
        return self

    # ── finalize phase ─────────────────────────────────────────────────────

    def _wire(self, project: Project) -> None:
        try:
            main = project.require_target(self.settings.main_target)
            base = project.scopes.find(self.settings.base_scope)
            if base is None:
                raise ConfigurationError(
                    f"Project {project.name!r} has no scope {self.settings.base_scope!r}"
                )
            requested = self.manifest.require_min_version()
        except ConfigurationError as e:
            self.progress.fail(str(e))
            raise
        self.progress.advance(MirrorState.MAIN_TARGET_READY, detail=f"target={main.name}")

        assert self.resolution_task is not None
        task = self.resolution_task
        task.do_last(lambda _: self._mark(MirrorState.DEPENDENCY_RESOLVING))
        self.scope = self.binder.create_scope(base)
        self.binder.bind_on_demand(self.scope, lambda: self._resolve(requested), task)
        task.do_last(lambda _: self._mark(MirrorState.DEPENDENCY_BOUND, detail=str(self.resolved)))

        self.mirror = TargetMirror(project, group=self.settings.task_group).mirror(main, self.scope)
        assert self.mirror.compile_task is not None
        self.mirror.compile_task.depends_on(task)
        self.mirror.compile_task.do_first(lambda _: self._mark(MirrorState.COMPILING))
        self.progress.advance(
            MirrorState.MIRROR_TARGET_WIRED,
            detail=f"{self.mirror.compile_task.name} -> {task.name}",
        )
        log.info(
            "wire.installed",
            project=project.name,
            mirror=self.mirror.name,
            scope=self.scope.name,
            requested=str(requested),
        )

    # ── execution phase ────────────────────────────────────────────────────

    async def _resolve(self, requested: Version) -> Dependency:
        version = await self.index.resolve_next_available(requested)
        self.resolved = self.settings.platform_dependency.with_version(version)
        return self.resolved

    def _mark(self, state: MirrorState, detail: str = "") -> None:
        # progress bookkeeping never fails a task; repeated or late marks are dropped
        if not self.progress.can_advance(state):
            log.debug("wire.state_kept", state=self.progress.state.value, ignored=state.value)
            return
        self.progress.advance(state, detail=detail)

    def _on_task_result(self, result: TaskResult) -> None:
        if result.task is self.resolution_task and result.status is TaskStatus.FAILED:
            self.progress.fail(str(result.error))
        elif self.mirror is not None and result.task is self.mirror.compile_task:
            if result.status is TaskStatus.COMPLETED:
                self._mark(MirrorState.DONE)
            else:
                culprit = result.failed_dependency.name if result.failed_dependency else "unknown"
                self.progress.fail(str(result.error or f"skipped: {culprit} failed"))


def install(
    project: Project,
    manifest: Manifest,
    index: VersionIndex,
    settings: MinCompileSettings | None = None,
) -> TaskGraphWire:
    """Install the minimum-version compile check into *project*."""
    return TaskGraphWire(project, manifest, index, settings).install()
