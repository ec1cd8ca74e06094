"""Tests for MinCompileSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mincompile.config import MinCompileSettings
from mincompile.models.version import Dependency


class TestMinCompileSettings:
    def test_defaults(self):
        settings = MinCompileSettings.from_env({})
        assert settings.fuzziness == 30
        assert settings.base_scope == "implementation"
        assert settings.task_group == "verification"
        assert settings.catalog_url is None

    def test_from_env(self):
        env = {
            "MINCOMPILE_CATALOG_URL": "https://catalog.test/v.json",
            "MINCOMPILE_FUZZINESS": "5",
            "MINCOMPILE_HTTP_TIMEOUT": "2.5",
            "MINCOMPILE_PLATFORM": "org.example:platform",
        }
        settings = MinCompileSettings.from_env(env)
        assert settings.catalog_url == "https://catalog.test/v.json"
        assert settings.fuzziness == 5
        assert settings.http_timeout == 2.5
        assert settings.platform_dependency == Dependency("org.example", "platform")

    def test_overrides_win_and_none_is_ignored(self):
        env = {"MINCOMPILE_FUZZINESS": "5", "MINCOMPILE_TASK_GROUP": "josm"}
        settings = MinCompileSettings.from_env(env, fuzziness=7, task_group=None)
        assert settings.fuzziness == 7
        assert settings.task_group == "josm"

    def test_empty_env_value_ignored(self):
        settings = MinCompileSettings.from_env({"MINCOMPILE_CATALOG_URL": ""})
        assert settings.catalog_url is None

    def test_negative_fuzziness_rejected(self):
        with pytest.raises(ValidationError, match="nonnegative"):
            MinCompileSettings(fuzziness=-1)

    @pytest.mark.parametrize("platform", ["josm", "org.example:platform:1.0"])
    def test_bad_platform_rejected(self, platform):
        with pytest.raises(ValidationError):
            MinCompileSettings(platform=platform)
