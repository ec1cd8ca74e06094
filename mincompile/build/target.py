"""Compilation targets and the directory sets they read from."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mincompile.build.scope import DependencyScope
    from mincompile.build.task import Task


class DirectorySet:
    """Ordered source directories with include/exclude glob patterns."""

    def __init__(
        self,
        name: str,
        dirs: list[str | Path] | None = None,
        includes: list[str] | None = None,
        excludes: list[str] | None = None,
    ) -> None:
        self.name = name
        self.src_dirs: list[Path] = [Path(d) for d in dirs or []]
        self.includes: list[str] = list(includes or [])
        self.excludes: list[str] = list(excludes or [])

    def __repr__(self) -> str:
        return (
            f"DirectorySet({self.name!r}, dirs={[str(d) for d in self.src_dirs]}, "
            f"includes={self.includes}, excludes={self.excludes})"
        )

    def src_dir(self, path: str | Path) -> DirectorySet:
        self.src_dirs.append(Path(path))
        return self

    def include(self, *patterns: str) -> DirectorySet:
        self.includes.extend(patterns)
        return self

    def exclude(self, *patterns: str) -> DirectorySet:
        self.excludes.extend(patterns)
        return self

    def matches(self, relative: str) -> bool:
        if self.includes and not any(fnmatch.fnmatch(relative, p) for p in self.includes):
            return False
        return not any(fnmatch.fnmatch(relative, p) for p in self.excludes)

    def files(self) -> list[Path]:
        """Files under all dirs that pass the patterns, sorted per dir."""
        result: list[Path] = []
        for root in self.src_dirs:
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if path.is_file() and self.matches(path.relative_to(root).as_posix()):
                    result.append(path)
        return result


@dataclass(eq=False)
class Target:
    """A compilation unit: sources, resources and the scope it compiles against."""

    name: str
    sources: DirectorySet
    resources: DirectorySet
    scope: DependencyScope
    compile_task: Task | None = field(default=None, repr=False)
    classes_task: Task | None = field(default=None, repr=False)

    @property
    def compile_task_name(self) -> str:
        return _task_name("compile", self.name, "sources")

    @property
    def classes_task_name(self) -> str:
        return _task_name("", self.name, "classes")


def _task_name(verb: str, target: str, noun: str) -> str:
    """``compile`` + ``minVersion`` + ``sources`` → ``compileMinVersionSources``.

    The main target is elided: ``main`` + ``classes`` → ``classes``.
    """
    if target == "main":
        target = ""
    words = [w for w in (verb, target, noun) if w]
    return words[0] + "".join(w[0].upper() + w[1:] for w in words[1:])
