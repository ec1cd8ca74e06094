"""Custom exceptions for mincompile."""

from __future__ import annotations


class MinCompileError(Exception):
    """Base exception for all mincompile errors."""


class ConfigurationError(MinCompileError):
    """Raised when project configuration cannot be completed.

    Fatal: aborts configuration before any task runs.
    """


class ResolutionError(MinCompileError):
    """Raised when the minimum platform version cannot be resolved.

    Fails only the tasks that depend on the resolution.
    """

    def __init__(self, requested: str, message: str) -> None:
        self.requested = requested
        super().__init__(message)


class VersionNotFoundError(ResolutionError):
    """Raised when the catalog holds no available version >= the requested one."""

    def __init__(self, requested: str, catalog: str = "catalog") -> None:
        self.catalog = catalog
        super().__init__(
            requested,
            f"No available version >= {requested} found in {catalog}",
        )


class CatalogUnavailableError(ResolutionError):
    """Raised when the catalog cannot be reached or returns garbage."""

    def __init__(self, requested: str, reason: str) -> None:
        self.reason = reason
        super().__init__(
            requested,
            f"Could not resolve version {requested}: catalog unavailable ({reason})",
        )


class CompileAgainstOldVersionError(MinCompileError):
    """Raised when sources do not compile against the minimum platform version.

    ``diagnostics`` is the compiler output, unmodified.
    """

    def __init__(self, target: str, version: str | None, diagnostics: str) -> None:
        self.target = target
        self.version = version
        self.diagnostics = diagnostics
        against = f" against {version}" if version else ""
        super().__init__(f"Compilation of '{target}'{against} failed:\n{diagnostics}")


class BuildError(MinCompileError):
    """Raised when the compiler cannot be run at all (missing binary, timeout)."""
