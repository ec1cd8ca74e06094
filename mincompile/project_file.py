"""Load a project description from JSON.

Example::

    {
      "name": "my-plugin",
      "root": ".",
      "min_version": "18822",
      "compile_version": "19017",
      "sources": {"dirs": ["src"]},
      "resources": {"dirs": ["data", "images"], "includes": ["*.xml", "*.png"]},
      "dependencies": ["org.example:helper:1.4"],
      "compile_command": ["javac", "-cp", "{classpath}", "-sourcepath", "{sources}"]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mincompile.build.compiler import CommandCompiler
from mincompile.build.project import Project
from mincompile.build.target import DirectorySet, Target
from mincompile.config import MinCompileSettings
from mincompile.exceptions import ConfigurationError
from mincompile.models.manifest import Manifest
from mincompile.models.version import Dependency

PROJECT_TEMPLATE: dict[str, Any] = {
    "name": "my-plugin",
    "root": ".",
    "min_version": "18822",
    "compile_version": None,
    "sources": {"dirs": ["src"], "includes": [], "excludes": []},
    "resources": {"dirs": ["resources"], "includes": [], "excludes": []},
    "dependencies": [],
    "compile_command": ["javac", "-cp", "{classpath}", "-sourcepath", "{sources}"],
}


@dataclass
class LoadedProject:
    project: Project
    main: Target
    manifest: Manifest


def read_project_file(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    # a relative root is taken relative to the project file
    data["root"] = str(path.parent / (data.get("root") or "."))
    return data


def _directory_set(name: str, entry: Any, root: Path) -> DirectorySet:
    if entry is None:
        entry = {}
    if not isinstance(entry, dict):
        raise ConfigurationError(f"'{name}' must be a JSON object")
    return DirectorySet(
        name,
        dirs=[root / d for d in entry.get("dirs", [])],
        includes=entry.get("includes"),
        excludes=entry.get("excludes"),
    )


def build_project(data: dict[str, Any], settings: MinCompileSettings) -> LoadedProject:
    """Declare the main target described by *data*. The project is left unfinalized."""
    for field in ("name", "compile_command"):
        if not data.get(field):
            raise ConfigurationError(f"Missing required field '{field}' in project file")

    root = Path(data.get("root") or ".")
    project = Project(
        data["name"],
        root=root,
        compiler=CommandCompiler(list(data["compile_command"]), cwd=str(root)),
    )

    base = project.create_scope(settings.base_scope)
    try:
        for notation in data.get("dependencies", []):
            base.add(Dependency.parse(notation))
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    # The main target compiles against the regular platform version, kept out
    # of the base scope so the mirror never inherits it.
    main_scope = project.create_scope(f"{settings.main_target}CompileClasspath", extends=base)
    if data.get("compile_version"):
        main_scope.add(settings.platform_dependency.with_version(str(data["compile_version"])))

    main = project.create_target(
        settings.main_target,
        scope=main_scope,
        sources=_directory_set("sources", data.get("sources"), root),
        resources=_directory_set("resources", data.get("resources"), root),
    )
    manifest = Manifest.from_mapping(data, source=f"project file of {data['name']!r}")
    return LoadedProject(project=project, main=main, manifest=manifest)
