"""Unit tests for offline cache storage."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from readerlite.offline.storage import (
    CachedResponse,
    CacheStorage,
    FileCacheStorage,
    InMemoryCacheStorage,
)

URL = "http://reader.test/manifest.webmanifest"


def _entry(body: bytes = b'{"name": "Reader Lite"}') -> CachedResponse:
    return CachedResponse(
        url=URL,
        status_code=200,
        headers=(("content-type", "application/manifest+json"), ("x-version", "1")),
        body=body,
    )


class TestCachedResponse:
    """Tests for response snapshots."""

    async def test_from_response_drops_framing_headers(self) -> None:
        """Decoded bodies must not keep the original encoding headers."""
        request = httpx.Request("GET", URL)
        response = httpx.Response(
            200,
            headers={"content-type": "text/plain", "content-encoding": "identity"},
            content=b"hello",
        )

        entry = await CachedResponse.from_response(request, response)

        assert entry.url == URL
        assert entry.body == b"hello"
        assert dict(entry.headers) == {"content-type": "text/plain"}

    def test_to_response(self) -> None:
        request = httpx.Request("GET", URL)
        response = _entry().to_response(request)

        assert response.status_code == 200
        assert response.json() == {"name": "Reader Lite"}
        assert response.headers["x-version"] == "1"
        assert response.request is request

    def test_json_round_trip(self) -> None:
        entry = _entry(body=b"\x00\xffbinary")
        assert CachedResponse.from_json(entry.to_json()) == entry


class TestStorages:
    """Behaviour shared by every storage backend."""

    @pytest.fixture(params=["memory", "file"])
    def storage(self, request: pytest.FixtureRequest, tmp_path: Path) -> CacheStorage:
        if request.param == "memory":
            return InMemoryCacheStorage()
        return FileCacheStorage(tmp_path / "cache")

    async def test_put_and_match(self, storage: CacheStorage) -> None:
        cache = await storage.open("reader-lite-v1")
        await cache.put(URL, _entry())

        assert await cache.match(URL) == _entry()
        assert await cache.keys() == [URL]
        assert await storage.match(URL) == _entry()

    async def test_last_write_wins(self, storage: CacheStorage) -> None:
        cache = await storage.open("reader-lite-v1")
        await cache.put(URL, _entry(b"first"))
        await cache.put(URL, _entry(b"second"))

        entry = await cache.match(URL)
        assert entry is not None
        assert entry.body == b"second"

    async def test_miss(self, storage: CacheStorage) -> None:
        cache = await storage.open("reader-lite-v1")
        assert await cache.match(URL) is None
        assert await storage.match(URL) is None

    async def test_keys_and_delete(self, storage: CacheStorage) -> None:
        await storage.open("reader-lite-v1")
        await storage.open("reader-lite-v2")

        assert sorted(await storage.keys()) == ["reader-lite-v1", "reader-lite-v2"]
        assert await storage.delete("reader-lite-v1") is True
        assert await storage.delete("reader-lite-v1") is False
        assert await storage.keys() == ["reader-lite-v2"]

    async def test_match_searches_every_cache(self, storage: CacheStorage) -> None:
        await storage.open("reader-lite-v1")
        newer = await storage.open("reader-lite-v2")
        await newer.put(URL, _entry())

        assert await storage.match(URL) == _entry()


class TestFileCacheStorage:
    """Tests specific to the on-disk backend."""

    async def test_persists_across_instances(self, tmp_path: Path) -> None:
        cache = await FileCacheStorage(tmp_path).open("reader-lite-v1")
        await cache.put(URL, _entry())

        reopened = await FileCacheStorage(tmp_path).open("reader-lite-v1")
        assert await reopened.match(URL) == _entry()

    async def test_corrupt_entry_is_a_miss(self, tmp_path: Path) -> None:
        cache = await FileCacheStorage(tmp_path).open("reader-lite-v1")
        await cache.put(URL, _entry())
        for path in (tmp_path / "reader-lite-v1").glob("*.json"):
            path.write_text("{not json", encoding="utf-8")

        assert await cache.match(URL) is None

    async def test_missing_root_has_no_caches(self, tmp_path: Path) -> None:
        assert await FileCacheStorage(tmp_path / "absent").keys() == []

    async def test_lookup_does_not_create_caches(self, tmp_path: Path) -> None:
        storage = FileCacheStorage(tmp_path)
        cache = await storage.open("reader-lite-v1")
        await cache.put(URL, _entry())

        assert await storage.match("http://reader.test/absent") is None
        assert await storage.match(URL) == _entry()
        assert [p.name for p in tmp_path.iterdir()] == ["reader-lite-v1"]

    async def test_disk_access_runs_in_threads(self, tmp_path: Path) -> None:
        storage = FileCacheStorage(tmp_path)
        cache = await storage.open("reader-lite-v1")
        await cache.put(URL, _entry())

        with patch(
            "readerlite.offline.storage.asyncio.to_thread", wraps=asyncio.to_thread
        ) as to_thread:
            assert await storage.keys() == ["reader-lite-v1"]
            assert await cache.keys() == [URL]
            assert await storage.match(URL) == _entry()

        # keys, cache keys, then keys plus one entry read for the lookup
        assert to_thread.await_count == 4
