"""Mirror a target onto another dependency scope."""

from __future__ import annotations

import structlog

from mincompile.build.project import Project
from mincompile.build.scope import DependencyScope
from mincompile.build.target import Target

log = structlog.get_logger(__name__)

MIRROR_TARGET = "minVersion"
DEFAULT_GROUP = "verification"
DEFAULT_DESCRIPTION = (
    "Try to compile against the version of the platform that the manifest "
    "declares as the minimum compatible version"
)


class TargetMirror:
    """Builds a target that shares the main target's directory sets."""

    def __init__(
        self,
        project: Project,
        name: str = MIRROR_TARGET,
        group: str = DEFAULT_GROUP,
        description: str = DEFAULT_DESCRIPTION,
    ) -> None:
        self.project = project
        self.name = name
        self.group = group
        self.description = description

    def mirror(self, main: Target, scope: DependencyScope) -> Target:
        # The directory sets are shared, not copied.
        mirror = self.project.create_target(
            self.name, scope=scope, sources=main.sources, resources=main.resources
        )
        assert mirror.classes_task is not None
        mirror.classes_task.group = self.group
        mirror.classes_task.description = self.description
        log.debug(
            "mirror.created",
            target=mirror.name,
            main=main.name,
            scope=scope.name,
            sources=[str(d) for d in main.sources.src_dirs],
        )
        return mirror
