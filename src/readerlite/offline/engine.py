"""Offline cache strategy engine.

``OfflineCacheTransport`` sits between an ``httpx.AsyncClient`` and the real
network transport and decides, per request, whether to answer from the
network or from a local cache:

* feed proxy requests are network-first, falling back to a cached copy
  only when the network fails;
* everything else is cache-first, populating the cache opportunistically.

The cache is versioned. ``install`` precaches the shell assets under the
current version and ``activate`` deletes every other version.
"""

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urljoin

import httpx

from readerlite.offline.storage import CachedResponse, CacheStorage
from readerlite.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SHELL_ASSETS = ("/", "/manifest.webmanifest")


class WorkerState(str, Enum):
    """Lifecycle of the offline cache."""

    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class InstallError(Exception):
    """Raised when the shell assets cannot be precached."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class CacheVersion:
    """Cache namespace name plus the version bumped at deploy time."""

    name: str
    version: str

    @property
    def cache_name(self) -> str:
        return f"{self.name}-{self.version}"


def stale_caches(existing: Iterable[str], current: str) -> set[str]:
    """Return the cache names that activation must delete."""
    return {name for name in existing if name != current}


class OfflineCacheTransport(httpx.AsyncBaseTransport):
    """httpx transport applying network-first or cache-first per request."""

    def __init__(
        self,
        network: httpx.AsyncBaseTransport,
        storage: CacheStorage,
        version: CacheVersion,
        origin: str,
        shell_assets: Sequence[str] = DEFAULT_SHELL_ASSETS,
        proxy_path: str = "/api/fetch",
        skip_waiting: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            network: Transport used for live requests.
            storage: Where cached responses are kept.
            version: Identifies the cache owned by this deployment.
            origin: Base URL the shell asset paths are resolved against.
            shell_assets: Paths precached at install time.
            proxy_path: Path prefix of the feed proxy (network-first).
            skip_waiting: Activate straight after a successful install.
        """
        self._network = network
        self._storage = storage
        self._version = version
        self._origin = origin
        self._shell_assets = tuple(shell_assets)
        self._proxy_path = proxy_path
        self._skip_waiting = skip_waiting
        self._pending: set[asyncio.Task[None]] = set()
        self.state = WorkerState.PARSED
        self.controlling = False

    @property
    def cache_name(self) -> str:
        return self._version.cache_name

    async def install(self) -> None:
        """Precache the shell assets, all or nothing.

        Raises:
            InstallError: If any asset cannot be fetched or is not 2xx. No
                asset is stored in that case.
        """
        self.state = WorkerState.INSTALLING
        logger.info("Installing offline cache", cache=self.cache_name)

        results = await asyncio.gather(
            *(self._precache(path) for path in self._shell_assets),
            return_exceptions=True,
        )
        entries: list[CachedResponse] = []
        for result in results:
            if isinstance(result, BaseException):
                self.state = WorkerState.REDUNDANT
                logger.warning(
                    "Offline cache install failed", cache=self.cache_name, error=str(result)
                )
                raise result
            entries.append(result)

        cache = await self._storage.open(self.cache_name)
        await cache.put_all({entry.url: entry for entry in entries})
        self.state = WorkerState.INSTALLED
        logger.info("Offline cache installed", cache=self.cache_name, assets=len(entries))

        if self._skip_waiting:
            await self.activate()

    async def _precache(self, path: str) -> CachedResponse:
        request = httpx.Request("GET", urljoin(self._origin, path))
        try:
            response = await self._network.handle_async_request(request)
            entry = await CachedResponse.from_response(request, response)
        except httpx.TransportError as e:
            raise InstallError(f"{request.url}: {e}") from e
        if not 200 <= entry.status_code < 300:
            raise InstallError(f"{request.url}: status {entry.status_code}")
        return entry

    async def activate(self) -> None:
        """Delete caches from other versions and start intercepting."""
        self.state = WorkerState.ACTIVATING
        existing = await self._storage.keys()
        for name in sorted(stale_caches(existing, self.cache_name)):
            await self._storage.delete(name)
            logger.info("Deleted stale cache", cache=name)

        self.state = WorkerState.ACTIVATED
        self.controlling = True
        logger.info("Offline cache activated", cache=self.cache_name)

    def is_proxy_request(self, request: httpx.Request) -> bool:
        path = request.url.path
        return path == self._proxy_path or path.startswith(self._proxy_path.rstrip("/") + "/")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not self.controlling:
            return await self._network.handle_async_request(request)
        if self.is_proxy_request(request):
            return await self._network_first(request)
        return await self._cache_first(request)

    async def _network_first(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self._network.handle_async_request(request)
        except httpx.TransportError:
            cached = None
            if request.method == "GET":
                cached = await self._storage.match(str(request.url))
            if cached is None:
                raise
            logger.info("Network unavailable, serving cached response", url=str(request.url))
            return cached.to_response(request)

    async def _cache_first(self, request: httpx.Request) -> httpx.Response:
        # Only GET responses are cacheable.
        if request.method != "GET":
            return await self._network.handle_async_request(request)

        url = str(request.url)
        cached = await self._storage.match(url)
        if cached is not None:
            logger.debug("Serving from offline cache", url=url)
            return cached.to_response(request)

        response = await self._network.handle_async_request(request)
        entry = await CachedResponse.from_response(request, response)
        if 200 <= entry.status_code < 300:
            self._store_in_background(url, entry)
        return entry.to_response(request)

    def _store_in_background(self, url: str, entry: CachedResponse) -> None:
        task = asyncio.create_task(self._store(url, entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _store(self, url: str, entry: CachedResponse) -> None:
        try:
            cache = await self._storage.open(self.cache_name)
            await cache.put(url, entry)
        except Exception as e:
            logger.warning("Failed to store response in offline cache", url=url, error=str(e))
            return
        logger.debug("Stored response in offline cache", url=url)

    async def drain(self) -> None:
        """Wait for background cache writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def aclose(self) -> None:
        await self.drain()
        await self._network.aclose()
