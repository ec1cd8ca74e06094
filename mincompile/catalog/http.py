"""HTTP-backed version indexes, with retries on transient failures."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from mincompile.catalog.index import CatalogEntry, VersionIndex, select_next_available
from mincompile.exceptions import CatalogUnavailableError, ConfigurationError, VersionNotFoundError
from mincompile.models.version import Version

log = structlog.get_logger(__name__)

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds


class _HttpIndex(VersionIndex):
    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = _MAX_RETRIES,
        retry_base_delay: float = _RETRY_BASE_DELAY,
    ) -> None:
        # Creating the client does no I/O; connections open on first request.
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)
        self.max_retries = max(1, max_retries)
        self.retry_base_delay = retry_base_delay

    async def close(self) -> None:
        await self._client.aclose()

    async def _request_with_retry(self, method: str, url: str, requested: Version) -> httpx.Response:
        """Request with exponential backoff on 5xx, timeouts and connection errors.

        Returns any response below 500; raises CatalogUnavailableError when
        retries are exhausted.
        """
        reason = "no attempt made"
        for attempt in range(self.max_retries):
            try:
                resp = await self._client.request(method, url)
                if resp.status_code < 500:
                    return resp
                reason = f"HTTP {resp.status_code} from {url}"
                log.warning(
                    "catalog.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                )
            except httpx.TimeoutException:
                reason = f"timeout requesting {url}"
                log.warning("catalog.timeout", url=url, attempt=attempt + 1, max_retries=self.max_retries)
            except httpx.TransportError as exc:
                reason = f"{type(exc).__name__} requesting {url}"
                log.warning(
                    "catalog.transport_error",
                    url=url,
                    error=str(exc),
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                )

            if attempt < self.max_retries - 1:
                await asyncio.sleep(self.retry_base_delay * (2**attempt))

        raise CatalogUnavailableError(str(requested), reason)


class HttpCatalogIndex(_HttpIndex):
    """Catalog published as a JSON listing.

    Accepted shapes::

        ["1.0", "1.2"]
        {"versions": ["1.0", "1.2"]}
        {"versions": [{"version": "1.0", "withdrawn": true}, {"version": "1.2"}]}

    The listing is fetched once and cached for the lifetime of the index.
    """

    def __init__(self, url: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url
        self.name = url
        self._entries: list[CatalogEntry] | None = None
        self._lock = asyncio.Lock()

    async def entries(self, requested: Version) -> list[CatalogEntry]:
        async with self._lock:
            if self._entries is None:
                resp = await self._request_with_retry("GET", self.url, requested)
                if resp.status_code != 200:
                    raise CatalogUnavailableError(
                        str(requested), f"HTTP {resp.status_code} from {self.url}"
                    )
                try:
                    payload = resp.json()
                except ValueError as e:
                    raise CatalogUnavailableError(str(requested), f"invalid JSON from {self.url}") from e
                self._entries = parse_listing(payload, self.url, requested)
                log.debug("catalog.fetched", url=self.url, entries=len(self._entries))
            return self._entries

    async def resolve_next_available(self, requested: Version) -> Version:
        resolved = select_next_available(requested, await self.entries(requested), self.name)
        log.info("catalog.resolved", catalog=self.name, requested=str(requested), resolved=str(resolved))
        return resolved


def parse_listing(payload: Any, source: str, requested: Version) -> list[CatalogEntry]:
    items = payload.get("versions") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise CatalogUnavailableError(str(requested), f"unexpected listing format from {source}")

    entries: list[CatalogEntry] = []
    for item in items:
        if isinstance(item, dict):
            raw = item.get("version")
            # only a JSON true counts; "false" and other strings do not
            withdrawn = item.get("withdrawn") is True or item.get("yanked") is True
        else:
            raw, withdrawn = item, False
        try:
            entries.append(CatalogEntry(Version.parse(str(raw)), withdrawn=withdrawn))
        except ValueError:
            log.warning("catalog.bad_entry", source=source, entry=raw)
    return entries


class ProbingVersionIndex(_HttpIndex):
    """Find the next version by probing download URLs.

    For ``requested=1234`` and ``fuzziness=20`` the URLs for 1234 through
    1253 are checked in order; the first that exists wins. ``fuzziness=0``
    checks the requested version only.
    """

    def __init__(self, url_template: str, fuzziness: int = 30, **kwargs: Any) -> None:
        if "{version}" not in url_template:
            raise ConfigurationError(f"Probe URL template lacks '{{version}}': {url_template}")
        if fuzziness < 0:
            raise ConfigurationError(f"fuzziness must be nonnegative, got {fuzziness}")
        super().__init__(**kwargs)
        self.url_template = url_template
        self.fuzziness = fuzziness
        self.name = url_template

    async def exists(self, version: Version, requested: Version) -> bool:
        url = self.url_template.format(version=version)
        resp = await self._request_with_retry("HEAD", url, requested)
        if resp.status_code == 405:
            resp = await self._request_with_retry("GET", url, requested)
        return resp.is_success

    async def resolve_next_available(self, requested: Version) -> Version:
        for step in range(max(1, self.fuzziness)):
            candidate = requested.bump(step) if step else requested
            if await self.exists(candidate, requested):
                log.info(
                    "catalog.resolved",
                    catalog=self.name,
                    requested=str(requested),
                    resolved=str(candidate),
                    probes=step + 1,
                )
                return candidate
            log.debug("catalog.probe_miss", version=str(candidate))
        raise VersionNotFoundError(
            str(requested), f"{self.name} (probed {max(1, self.fuzziness)} versions)"
        )
