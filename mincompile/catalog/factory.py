"""Pick a version index implementation from settings."""

from __future__ import annotations

from mincompile.catalog.http import HttpCatalogIndex, ProbingVersionIndex
from mincompile.catalog.index import VersionIndex
from mincompile.config import MinCompileSettings
from mincompile.exceptions import ConfigurationError


def index_from_settings(settings: MinCompileSettings) -> VersionIndex:
    """A JSON catalog wins over URL probing when both are configured."""
    if settings.catalog_url:
        return HttpCatalogIndex(settings.catalog_url, timeout=settings.http_timeout)
    if settings.probe_url_template:
        return ProbingVersionIndex(
            settings.probe_url_template,
            fuzziness=settings.fuzziness,
            timeout=settings.http_timeout,
        )
    raise ConfigurationError(
        "No version catalog configured: set MINCOMPILE_CATALOG_URL or "
        "MINCOMPILE_PROBE_URL_TEMPLATE (or pass --catalog / --probe)"
    )
