"""Named cache stores for the offline cache.

A ``CacheStorage`` holds any number of named ``Cache`` namespaces, each
mapping an absolute request URL to a buffered ``CachedResponse``.
"""

import asyncio
import base64
import hashlib
import json
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import httpx

from readerlite.utils.logging import get_logger

logger = get_logger(__name__)

# Recomputed by httpx when a response is rebuilt from decoded content.
_FRAMING_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


@dataclass(frozen=True)
class CachedResponse:
    """A fully buffered response snapshot."""

    url: str
    status_code: int
    headers: tuple[tuple[str, str], ...]
    body: bytes

    @classmethod
    async def from_response(
        cls, request: httpx.Request, response: httpx.Response
    ) -> "CachedResponse":
        """Buffer a response so it can be both returned and stored."""
        body = await response.aread()
        await response.aclose()
        return cls(
            url=str(request.url),
            status_code=response.status_code,
            headers=tuple(
                (name, value)
                for name, value in response.headers.multi_items()
                if name.lower() not in _FRAMING_HEADERS
            ),
            body=body,
        )

    def to_response(self, request: httpx.Request) -> httpx.Response:
        """Build a fresh response for ``request`` from this snapshot."""
        return httpx.Response(
            self.status_code,
            headers=list(self.headers),
            content=self.body,
            request=request,
        )

    def to_json(self) -> dict:
        return {
            "url": self.url,
            "status_code": self.status_code,
            "headers": [list(pair) for pair in self.headers],
            "body": base64.b64encode(self.body).decode("ascii"),
        }

    @classmethod
    def from_json(cls, data: Mapping) -> "CachedResponse":
        return cls(
            url=data["url"],
            status_code=int(data["status_code"]),
            headers=tuple((str(k), str(v)) for k, v in data["headers"]),
            body=base64.b64decode(data["body"]),
        )


class Cache(ABC):
    """One named cache namespace."""

    @abstractmethod
    async def match(self, url: str) -> CachedResponse | None:
        """Return the stored response for ``url``, if any."""

    @abstractmethod
    async def put(self, url: str, entry: CachedResponse) -> None:
        """Store ``entry`` under ``url``, replacing any previous entry."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """Return the URLs currently stored."""

    async def put_all(self, entries: Mapping[str, CachedResponse]) -> None:
        for url, entry in entries.items():
            await self.put(url, entry)


class CacheStorage(ABC):
    """A collection of named caches."""

    @abstractmethod
    async def open(self, name: str) -> Cache:
        """Open the cache called ``name``, creating it if needed."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """Return the names of every existing cache, oldest first."""

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete the cache called ``name``. Returns whether it existed."""

    async def match(self, url: str) -> CachedResponse | None:
        """Look ``url`` up in every cache, oldest first."""
        for name in await self.keys():
            cache = await self.open(name)
            entry = await cache.match(url)
            if entry is not None:
                return entry
        return None


class InMemoryCache(Cache):
    def __init__(self) -> None:
        self._entries: dict[str, CachedResponse] = {}

    async def match(self, url: str) -> CachedResponse | None:
        return self._entries.get(url)

    async def put(self, url: str, entry: CachedResponse) -> None:
        self._entries[url] = entry

    async def keys(self) -> list[str]:
        return list(self._entries)


class InMemoryCacheStorage(CacheStorage):
    """Cache storage that lives for the duration of the process."""

    def __init__(self) -> None:
        self._caches: dict[str, InMemoryCache] = {}

    async def open(self, name: str) -> Cache:
        if name not in self._caches:
            self._caches[name] = InMemoryCache()
        return self._caches[name]

    async def keys(self) -> list[str]:
        return list(self._caches)

    async def delete(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None


class FileCache(Cache):
    """Cache namespace stored as one JSON file per entry."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def _path(self, url: str) -> Path:
        digest = hashlib.sha256(url.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}.json"

    async def match(self, url: str) -> CachedResponse | None:
        path = self._path(url)
        try:
            data = await asyncio.to_thread(path.read_text, encoding="utf-8")
            return CachedResponse.from_json(json.loads(data))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry", path=str(path), error=str(e))
            return None

    async def put(self, url: str, entry: CachedResponse) -> None:
        await asyncio.to_thread(self._write, self._path(url), json.dumps(entry.to_json()))

    def _write(self, path: Path, data: str) -> None:
        # Write to a sibling temp file and rename so readers never see a partial entry.
        fd, tmp = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._read_urls)

    def _read_urls(self) -> list[str]:
        urls = []
        for path in sorted(self._directory.glob("*.json")):
            try:
                urls.append(json.loads(path.read_text(encoding="utf-8"))["url"])
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Skipping unreadable cache entry", path=str(path), error=str(e))
        return urls


class FileCacheStorage(CacheStorage):
    """Cache storage persisted under a directory, one subdirectory per cache."""

    def __init__(self, root: Path) -> None:
        self._root = root

    async def open(self, name: str) -> Cache:
        directory = self._root / name
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        return FileCache(directory)

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._list_caches)

    def _list_caches(self) -> list[str]:
        if not self._root.is_dir():
            return []
        directories = [p for p in self._root.iterdir() if p.is_dir()]
        directories.sort(key=lambda p: (p.stat().st_ctime, p.name))
        return [p.name for p in directories]

    async def match(self, url: str) -> CachedResponse | None:
        # Lookups read existing caches in place and never create directories.
        for name in await self.keys():
            entry = await FileCache(self._root / name).match(url)
            if entry is not None:
                return entry
        return None

    async def delete(self, name: str) -> bool:
        return await asyncio.to_thread(self._remove, self._root / name)

    @staticmethod
    def _remove(directory: Path) -> bool:
        if not directory.is_dir():
            return False
        shutil.rmtree(directory)
        return True
