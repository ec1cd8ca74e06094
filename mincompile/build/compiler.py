"""Compiler integration for target compile tasks."""

from __future__ import annotations

import asyncio
import os
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

from mincompile.exceptions import BuildError, CompileAgainstOldVersionError, ConfigurationError
from mincompile.models.version import Dependency

if TYPE_CHECKING:
    from mincompile.build.project import Project
    from mincompile.build.target import Target
    from mincompile.build.task import Task

log = structlog.get_logger(__name__)


@dataclass
class CompileResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""
    source_files: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostics(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@runtime_checkable
class Compiler(Protocol):
    """Anything able to compile a target against a resolved classpath."""

    async def compile(self, target: Target, classpath: list[Dependency]) -> CompileResult: ...


class CommandCompiler:
    """Run an external compile command.

    Placeholders in *command* are substituted per target:
        {target}     target name
        {sources}    source dirs joined by os.pathsep
        {resources}  resource dirs joined by os.pathsep
        {classpath}  dependency coordinates joined by os.pathsep
    The same values are exported as MINCOMPILE_* environment variables.
    """

    def __init__(self, command: list[str], cwd: str | None = None, timeout: float = 600) -> None:
        if not command:
            raise ConfigurationError("Compile command must not be empty")
        self.command = list(command)
        self.cwd = cwd
        self.timeout = timeout

    def render(self, target: Target, classpath: list[Dependency]) -> tuple[list[str], dict[str, str]]:
        values = {
            "target": target.name,
            "sources": os.pathsep.join(str(d) for d in target.sources.src_dirs),
            "resources": os.pathsep.join(str(d) for d in target.resources.src_dirs),
            "classpath": os.pathsep.join(str(d) for d in classpath),
        }
        cmd = [part.format(**values) for part in self.command]
        env = {f"MINCOMPILE_{k.upper()}": v for k, v in values.items()}
        return cmd, env

    async def compile(self, target: Target, classpath: list[Dependency]) -> CompileResult:
        cmd, extra_env = self.render(target, classpath)
        log.info("compiler.run", target=target.name, cmd=cmd)
        try:
            files, proc = await asyncio.to_thread(self._run, target, cmd, extra_env)
        except subprocess.TimeoutExpired as e:
            raise BuildError(f"Compile of '{target.name}' timed out after {self.timeout}s") from e
        except OSError as e:
            raise BuildError(f"Cannot run compile command {cmd[0]!r}: {e}") from e
        return CompileResult(
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
            source_files=files,
        )

    def _run(
        self, target: Target, cmd: list[str], extra_env: dict[str, str]
    ) -> tuple[list[str], subprocess.CompletedProcess[str]]:
        # runs in a worker thread, off the event loop
        files = [str(p) for p in target.sources.files()]
        log.debug("compiler.sources", target=target.name, files=len(files))
        proc = subprocess.run(
            cmd,
            cwd=self.cwd,
            env={**os.environ, **extra_env},
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )
        return files, proc


def compile_action(project: Project, target: Target):
    """Task action compiling *target* with the project's compiler."""

    async def _compile(task: Task) -> None:
        if project.compiler is None:
            raise ConfigurationError(f"No compiler configured for project {project.name!r}")
        classpath = target.scope.resolve()
        result = await project.compiler.compile(target, classpath)
        if not result.ok:
            against = ", ".join(str(d) for d in target.scope.direct) or None
            raise CompileAgainstOldVersionError(target.name, against, result.diagnostics)
        log.info("compiler.ok", target=target.name, classpath=[str(d) for d in classpath])

    return _compile
