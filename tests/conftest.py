"""Shared pytest fixtures for mincompile tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mincompile.build.compiler import CompileResult
from mincompile.build.project import Project
from mincompile.build.target import DirectorySet, Target
from mincompile.catalog.index import StaticVersionIndex
from mincompile.models.manifest import Manifest
from mincompile.models.version import Dependency


class RecordingCompiler:
    """Compiler double: records every call, fails for targets listed in ``failing``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[Dependency]]] = []
        self.failing: dict[str, str] = {}

    async def compile(self, target: Target, classpath: list[Dependency]) -> CompileResult:
        self.calls.append((target.name, list(classpath)))
        if target.name in self.failing:
            return CompileResult(returncode=1, stderr=self.failing[target.name])
        return CompileResult(returncode=0)

    def compiled(self, target_name: str) -> bool:
        return any(name == target_name for name, _ in self.calls)


@pytest.fixture
def compiler() -> RecordingCompiler:
    return RecordingCompiler()


@pytest.fixture
def catalog() -> StaticVersionIndex:
    return StaticVersionIndex(["1.0", "1.2", "1.5", "2.0"])


@pytest.fixture
def project(tmp_path: Path, compiler: RecordingCompiler) -> Project:
    """Project with a ``main`` target: sources {A}, resources {B} including *.xml."""
    proj = Project("demo", root=tmp_path, compiler=compiler)
    base = proj.create_scope("implementation")
    base.add(Dependency.parse("org.example:helper:1.4"))
    main_scope = proj.create_scope("mainCompileClasspath", extends=base)
    main_scope.add(Dependency.parse("org.openstreetmap.josm:josm-core:2.0"))
    proj.create_target(
        "main",
        scope=main_scope,
        sources=DirectorySet("sources", dirs=[tmp_path / "A"]),
        resources=DirectorySet("resources", dirs=[tmp_path / "B"], includes=["*.xml"]),
    )
    return proj


@pytest.fixture
def manifest() -> Manifest:
    return Manifest(min_version="1.1")
