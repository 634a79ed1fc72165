"""Reader client: subscriptions, the displayed feed, search and read state."""

import re

import httpx
from pydantic import ValidationError

from readerlite.api.models import FeedResponse
from readerlite.config import Settings
from readerlite.models import FeedItem, NormalizedFeed
from readerlite.offline.engine import CacheVersion, InstallError, OfflineCacheTransport
from readerlite.offline.storage import FileCacheStorage
from readerlite.reader import opml
from readerlite.reader.storage import LocalStore
from readerlite.utils.logging import get_logger

logger = get_logger(__name__)

HTTP_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def filter_items(items: tuple[FeedItem, ...], query: str) -> list[FeedItem]:
    """Case-insensitive search over title, summary and content."""
    if not query.strip():
        return list(items)
    needle = query.lower()
    return [
        item
        for item in items
        if needle in item.title.lower()
        or needle in item.summary.lower()
        or needle in item.content.lower()
    ]


class ReaderClient:
    """Holds the reader's state and talks to the feed proxy.

    Failures never clear existing state: they only set ``error``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: LocalStore,
        proxy_path: str = "/api/fetch",
        offline: OfflineCacheTransport | None = None,
    ) -> None:
        self._http = http_client
        self._store = store
        self._proxy_path = proxy_path
        self._offline = offline

        self.feed_urls: list[str] = store.load_feeds()
        self.read_ids: set[str] = store.load_read()
        self.selected_url = ""
        self.current_feed: NormalizedFeed | None = None
        self.error: str | None = None
        self.busy = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReaderClient":
        """Build a client whose requests go through the offline cache."""
        data_path = settings.data_path
        offline = OfflineCacheTransport(
            network=httpx.AsyncHTTPTransport(),
            storage=FileCacheStorage(data_path / "cache"),
            version=CacheVersion(settings.cache_name, settings.cache_version),
            origin=settings.app_origin,
            shell_assets=settings.shell_assets,
            proxy_path=settings.proxy_path,
        )
        http_client = httpx.AsyncClient(base_url=settings.app_origin, transport=offline)
        return cls(
            http_client,
            LocalStore(data_path / "reader.json"),
            proxy_path=settings.proxy_path,
            offline=offline,
        )

    async def close(self) -> None:
        """Close the HTTP client and flush pending cache writes."""
        await self._http.aclose()

    async def __aenter__(self) -> "ReaderClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def start(self) -> None:
        """Install the offline cache and show the first subscription."""
        if self._offline is not None:
            try:
                await self._offline.install()
            except InstallError as e:
                logger.warning("Offline cache unavailable", reason=e.reason)
        if not self.selected_url and self.feed_urls:
            await self.select(self.feed_urls[0])

    async def select(self, url: str) -> None:
        self.selected_url = url
        if url:
            await self.load_feed(url)

    async def refresh(self) -> None:
        if self.selected_url:
            await self.load_feed(self.selected_url)

    async def load_feed(self, url: str) -> NormalizedFeed | None:
        """Load one feed through the proxy and make it the current feed.

        Returns:
            The loaded feed, or None if loading failed (see ``error``).
        """
        self.busy = True
        self.error = None
        try:
            response = await self._http.get(self._proxy_path, params={"url": url})
        except httpx.HTTPError as e:
            logger.warning("Feed request failed", url=url, error=str(e))
            self.error = str(e) or "Failed to load feed"
            return None
        finally:
            self.busy = False

        if not response.is_success:
            self.error = self._error_message(response)
            logger.warning("Feed proxy returned an error", url=url, error=self.error)
            return None

        try:
            feed = FeedResponse.model_validate(response.json()).to_feed()
        except (ValueError, ValidationError) as e:
            logger.warning("Malformed proxy response", url=url, error=str(e))
            self.error = "Failed to load feed"
            return None

        self.current_feed = feed
        return feed

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return f"Fetch failed: {response.status_code}"

    async def add_feed(self, url: str) -> None:
        """Subscribe to ``url`` and select it."""
        url = url.strip()
        if not url:
            return
        if not HTTP_URL_PATTERN.match(url):
            self.error = "Feed URL must start with http(s)://"
            return
        if url not in self.feed_urls:
            self.feed_urls = [url, *self.feed_urls]
            self._store.save_feeds(self.feed_urls)
            logger.info("Subscribed to feed", url=url)
        self.error = None
        await self.select(url)

    async def remove_feed(self, url: str) -> None:
        """Unsubscribe from ``url``, moving the selection if needed."""
        self.feed_urls = [u for u in self.feed_urls if u != url]
        self._store.save_feeds(self.feed_urls)
        logger.info("Unsubscribed from feed", url=url)
        if self.selected_url == url:
            self.current_feed = None
            await self.select(self.feed_urls[0] if self.feed_urls else "")

    def toggle_read(self, item_id: str) -> bool:
        """Flip the read flag of an item. Returns the new state."""
        if item_id in self.read_ids:
            self.read_ids.discard(item_id)
        else:
            self.read_ids.add(item_id)
        self._store.save_read(self.read_ids)
        return item_id in self.read_ids

    def is_read(self, item_id: str) -> bool:
        return item_id in self.read_ids

    def filtered_items(self, query: str = "") -> list[FeedItem]:
        if self.current_feed is None:
            return []
        return filter_items(self.current_feed.items, query)

    def export_opml(self) -> str:
        return opml.export_opml(self.feed_urls)

    async def import_opml(self, text: str) -> int:
        """Merge the subscriptions listed in an OPML document.

        Returns:
            Number of URLs found in the document.
        """
        urls = opml.extract_urls(text)
        if not urls:
            self.error = "No feeds found in OPML"
            return 0

        self.feed_urls = opml.merge_urls(urls, self.feed_urls)
        self._store.save_feeds(self.feed_urls)
        logger.info("Imported OPML", found=len(urls), total=len(self.feed_urls))
        if not self.selected_url and self.feed_urls:
            await self.select(self.feed_urls[0])
        return len(urls)
