"""End-to-end tests for TaskGraphWire — configuration, resolution and compile ordering."""

from __future__ import annotations

import asyncio

import pytest

from mincompile.build.project import Phase, Project
from mincompile.build.task import Task, TaskStatus
from mincompile.catalog.index import StaticVersionIndex, VersionIndex
from mincompile.config import MinCompileSettings
from mincompile.exceptions import (
    CompileAgainstOldVersionError,
    ConfigurationError,
    VersionNotFoundError,
)
from mincompile.models.manifest import Manifest
from mincompile.models.version import Dependency, Version
from mincompile.progress import MirrorState
from mincompile.wiring import RESOLUTION_TASK, install


class CountingIndex(VersionIndex):
    def __init__(self, inner: VersionIndex) -> None:
        self.inner = inner
        self.calls: list[Version] = []

    async def resolve_next_available(self, requested: Version) -> Version:
        self.calls.append(requested)
        await asyncio.sleep(0)
        return await self.inner.resolve_next_available(requested)


@pytest.fixture
def index(catalog) -> CountingIndex:
    return CountingIndex(catalog)


class TestConfiguration:
    def test_no_resolution_during_configuration(self, project, manifest, index):
        install(project, manifest, index)
        project.finalize()
        assert index.calls == []

    def test_mirror_created_only_at_finalize(self, project, manifest, index):
        wire = install(project, manifest, index)
        assert wire.mirror is None
        assert wire.progress.state is MirrorState.UNCONFIGURED
        project.finalize()
        assert wire.mirror is not None
        assert project.phase is Phase.FINALIZED
        assert wire.progress.state is MirrorState.MIRROR_TARGET_WIRED

    def test_sees_directory_changes_made_before_finalize(self, project, manifest, index, tmp_path):
        wire = install(project, manifest, index)
        main = project.require_target("main")
        main.sources.src_dir(tmp_path / "generated")
        project.finalize()
        assert wire.mirror.sources.src_dirs == [tmp_path / "A", tmp_path / "generated"]

    def test_ordering_edge(self, project, manifest, index):
        wire = install(project, manifest, index)
        project.finalize()
        assert wire.resolution_task.name == RESOLUTION_TASK
        assert wire.resolution_task in wire.mirror.compile_task.dependencies

    def test_scope_extends_base(self, project, manifest, index):
        wire = install(project, manifest, index)
        project.finalize()
        assert wire.scope.name == "minVersionImplementation"
        assert wire.scope.parents == (project.scopes.named("implementation"),)
        assert wire.scope.direct == ()

    def test_missing_main_target(self, manifest, index):
        empty = Project("empty")
        empty.create_scope("implementation")
        wire = install(empty, manifest, index)
        with pytest.raises(ConfigurationError, match="main"):
            empty.finalize()
        assert wire.progress.state is MirrorState.FAILED

    def test_missing_manifest_field(self, project, index):
        install(project, Manifest(min_version=None, source="MANIFEST.MF"), index)
        with pytest.raises(ConfigurationError, match="min_version"):
            project.finalize()

    @pytest.mark.asyncio
    async def test_missing_manifest_field_blocks_later_builds(self, project, index, compiler):
        install(project, Manifest(min_version=None, source="MANIFEST.MF"), index)
        with pytest.raises(ConfigurationError, match="min_version"):
            project.finalize()

        main = project.require_target("main")
        with pytest.raises(ConfigurationError, match="aborted"):
            await project.run(main.classes_task)
        assert project.phase is Phase.FAILED
        assert compiler.calls == []
        assert project.targets.find("minVersion") is None

    def test_malformed_manifest_version(self, project, index):
        install(project, Manifest(min_version="one.two"), index)
        with pytest.raises(ConfigurationError):
            project.finalize()

    def test_install_after_finalize_rejected(self, project, manifest, index):
        project.finalize()
        with pytest.raises(ConfigurationError):
            install(project, manifest, index)

    def test_task_group_from_settings(self, project, manifest, index):
        wire = install(project, manifest, index, MinCompileSettings(task_group="josm"))
        project.finalize()
        assert wire.mirror.classes_task.group == "josm"


class TestExecution:
    @pytest.mark.asyncio
    async def test_resolves_next_available_and_compiles(self, project, manifest, index, compiler):
        wire = install(project, manifest, index)
        project.finalize()

        result = await project.run(wire.mirror.classes_task)

        assert result.success
        assert index.calls == [Version.parse("1.1")]
        platform = Dependency.parse("org.openstreetmap.josm:josm-core:1.2")
        assert wire.scope.direct == (platform,)
        name, classpath = compiler.calls[-1]
        assert name == "minVersion"
        assert classpath == [Dependency.parse("org.example:helper:1.4"), platform]
        assert wire.progress.history == [
            MirrorState.UNCONFIGURED,
            MirrorState.MAIN_TARGET_READY,
            MirrorState.MIRROR_TARGET_WIRED,
            MirrorState.DEPENDENCY_RESOLVING,
            MirrorState.DEPENDENCY_BOUND,
            MirrorState.COMPILING,
            MirrorState.DONE,
        ]

    @pytest.mark.asyncio
    async def test_exact_match(self, project, index):
        wire = install(project, Manifest(min_version="2.0"), index)
        await project.run(_classes(project))
        assert wire.scope.direct == (Dependency.parse("org.openstreetmap.josm:josm-core:2.0"),)

    @pytest.mark.asyncio
    async def test_version_not_found_prevents_compile(self, project, index, compiler):
        wire = install(project, Manifest(min_version="2.1"), index)
        project.finalize()

        result = await project.run(wire.mirror.classes_task)

        assert not result.success
        failure = result.for_task(wire.resolution_task)
        assert failure.status is TaskStatus.FAILED
        assert isinstance(failure.error, VersionNotFoundError)
        assert "2.1" in str(failure.error)
        assert result.for_task(wire.mirror.compile_task).status is TaskStatus.SKIPPED
        assert not compiler.compiled("minVersion")
        assert wire.scope.direct == ()
        assert wire.progress.state is MirrorState.FAILED

    @pytest.mark.asyncio
    async def test_resolution_failure_does_not_stop_main_compile(self, project, index, compiler):
        wire = install(project, Manifest(min_version="2.1"), index)
        project.finalize()
        main = project.require_target("main")

        result = await project.run(wire.mirror.classes_task, main.classes_task)

        assert result.for_task(main.classes_task).status is TaskStatus.COMPLETED
        assert compiler.compiled("main")
        assert not compiler.compiled("minVersion")

    @pytest.mark.asyncio
    async def test_compile_diagnostics_propagate_verbatim(self, project, manifest, index, compiler):
        diagnostics = "A.java:3: error: cannot find symbol\n  symbol: method newApi()"
        compiler.failing["minVersion"] = diagnostics
        wire = install(project, manifest, index)
        project.finalize()

        result = await project.run(wire.mirror.classes_task)

        error = result.for_task(wire.mirror.compile_task).error
        assert isinstance(error, CompileAgainstOldVersionError)
        assert error.diagnostics == diagnostics
        assert diagnostics in str(error)
        assert wire.progress.state is MirrorState.FAILED
        with pytest.raises(CompileAgainstOldVersionError):
            result.raise_for_failure()

    @pytest.mark.asyncio
    async def test_resolution_finishes_before_compile_starts(self, project, manifest, index):
        events: list[str] = []
        wire = install(project, manifest, index)
        project.finalize()
        wire.resolution_task.do_last(lambda t: events.append("resolved"))
        wire.mirror.compile_task.do_first(lambda t: events.append("compile"))

        await project.run(wire.mirror.compile_task)
        assert events == ["resolved", "compile"]

    @pytest.mark.asyncio
    async def test_main_target_never_sees_minimum_version(self, project, manifest, index, compiler):
        install(project, manifest, index)
        main = project.require_target("main")
        await project.run(_classes(project), main.compile_task)
        main_classpath = next(cp for name, cp in compiler.calls if name == "main")
        assert Dependency.parse("org.openstreetmap.josm:josm-core:1.2") not in main_classpath

    @pytest.mark.asyncio
    async def test_concurrent_builds_share_one_resolution(self, project, manifest, index, compiler):
        wire = install(project, manifest, index)
        project.finalize()

        first, second = await asyncio.gather(
            project.run(wire.mirror.classes_task),
            project.run(wire.mirror.compile_task),
        )

        assert first.success and second.success
        assert first.for_task(wire.resolution_task).status is TaskStatus.COMPLETED
        assert second.for_task(wire.resolution_task).status is TaskStatus.COMPLETED
        assert index.calls == [Version.parse("1.1")]
        assert wire.scope.direct == (Dependency.parse("org.openstreetmap.josm:josm-core:1.2"),)
        assert [name for name, _ in compiler.calls] == ["minVersion"]
        assert wire.progress.state is MirrorState.DONE
        assert wire.progress.history.count(MirrorState.DEPENDENCY_RESOLVING) == 1


def _classes(project) -> Task:
    project.finalize()
    return project.tasks.named("minVersionClasses")
