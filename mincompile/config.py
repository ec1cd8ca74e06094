"""Settings for the minimum-version compile check.

Values come from ``MINCOMPILE_*`` environment variables unless passed
explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from mincompile.models.version import Dependency

_ENV_PREFIX = "MINCOMPILE_"


class MinCompileSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Platform whose minimum version is checked, as "group:name"
    platform: str = "org.openstreetmap.josm:josm-core"

    # JSON listing of published versions
    catalog_url: str | None = None
    # Probe URL, "{version}" is substituted (e.g. ".../josm-snapshot-{version}.jar")
    probe_url_template: str | None = None
    # How many versions above the requested one are probed before giving up
    fuzziness: int = 30
    http_timeout: float = 30.0

    base_scope: str = "implementation"
    main_target: str = "main"
    task_group: str = "verification"

    @field_validator("fuzziness")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(
                f"only nonnegative values are allowed for fuzziness, got {v}"
            )
        return v

    @field_validator("platform")
    @classmethod
    def _valid_platform(cls, v: str) -> str:
        dep = Dependency.parse(v)
        if dep.version:
            raise ValueError(f"platform must not carry a version: {v!r}")
        return v.strip()

    @property
    def platform_dependency(self) -> Dependency:
        return Dependency.parse(self.platform)

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: object
    ) -> MinCompileSettings:
        """Build settings from ``MINCOMPILE_<FIELD>`` variables; *overrides* win."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
