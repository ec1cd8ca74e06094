"""mincompile: verify that a project compiles against its minimum platform version."""

__version__ = "0.1.0"

from mincompile.binder import DependencyBinder
from mincompile.build.executor import BuildResult, TaskExecutor
from mincompile.build.project import Project
from mincompile.build.scope import DependencyScope
from mincompile.build.target import DirectorySet, Target
from mincompile.build.task import Task, TaskResult, TaskStatus
from mincompile.catalog.http import HttpCatalogIndex, ProbingVersionIndex
from mincompile.catalog.index import StaticVersionIndex, VersionIndex
from mincompile.config import MinCompileSettings
from mincompile.mirror import TargetMirror
from mincompile.models.manifest import Manifest
from mincompile.models.version import Dependency, Version
from mincompile.progress import MirrorState, ProgressTracker
from mincompile.wiring import TaskGraphWire, install

__all__ = [
    "BuildResult",
    "Dependency",
    "DependencyBinder",
    "DependencyScope",
    "DirectorySet",
    "HttpCatalogIndex",
    "Manifest",
    "MinCompileSettings",
    "MirrorState",
    "ProbingVersionIndex",
    "Project",
    "ProgressTracker",
    "StaticVersionIndex",
    "Target",
    "TargetMirror",
    "Task",
    "TaskExecutor",
    "TaskGraphWire",
    "TaskResult",
    "TaskStatus",
    "Version",
    "VersionIndex",
    "install",
]
