"""Unit tests for the upstream feed client and proxy service."""

import httpx
import pytest
import respx
from httpx import Response

from readerlite.clients.feed import FeedClient
from readerlite.config import DEFAULT_USER_AGENT
from readerlite.errors import (
    InvalidURLError,
    InvalidXMLError,
    MissingURLError,
    UnsupportedFeedError,
    UpstreamError,
)
from readerlite.services.proxy import FeedProxy

FEED_URL = "https://example.com/feed.xml"

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
  <title>Example</title><link>https://example.com/</link>
  <item><guid>42</guid><title>Hi</title><pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate></item>
</channel></rss>"""


class TestFeedClient:
    """Tests for FeedClient."""

    @pytest.fixture
    def client(self) -> FeedClient:
        """Create a test client."""
        return FeedClient()

    @respx.mock
    async def test_fetch_success(self, client: FeedClient) -> None:
        """Should return the body and send identifying no-cache headers."""
        route = respx.get(FEED_URL).mock(return_value=Response(200, content=RSS))

        body = await client.fetch(FEED_URL)

        assert body == RSS
        request = route.calls[0].request
        assert request.headers["User-Agent"] == DEFAULT_USER_AGENT
        assert request.headers["Cache-Control"] == "no-cache"
        await client.close()

    @respx.mock
    async def test_fetch_non_2xx_raises_upstream_error(self, client: FeedClient) -> None:
        """Should carry the upstream status code."""
        respx.get(FEED_URL).mock(return_value=Response(404))

        with pytest.raises(UpstreamError, match="Upstream 404") as exc_info:
            await client.fetch(FEED_URL)
        assert exc_info.value.status == 404
        assert exc_info.value.status_code == 502
        await client.close()

    @respx.mock
    async def test_fetch_network_error_raises_upstream_error(self, client: FeedClient) -> None:
        """Network failures have no status code."""
        respx.get(FEED_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(UpstreamError, match="Upstream unreachable") as exc_info:
            await client.fetch(FEED_URL)
        assert exc_info.value.status is None
        await client.close()

    @respx.mock
    async def test_fetch_follows_redirects(self, client: FeedClient) -> None:
        """Moved feeds should be followed."""
        respx.get("https://example.com/old.xml").mock(
            return_value=Response(301, headers={"Location": FEED_URL})
        )
        respx.get(FEED_URL).mock(return_value=Response(200, content=RSS))

        assert await client.fetch("https://example.com/old.xml") == RSS
        await client.close()

    async def test_fetch_unsupported_scheme(self, client: FeedClient) -> None:
        """Non-http URLs are rejected as invalid."""
        with pytest.raises(InvalidURLError, match="Invalid url"):
            await client.fetch("ftp://example.com/feed.xml")
        await client.close()


class TestFeedProxy:
    """Tests for FeedProxy."""

    @pytest.fixture
    def client(self) -> FeedClient:
        return FeedClient()

    @pytest.mark.parametrize("url", ["", "   ", None])
    async def test_missing_url(self, client: FeedClient, url: str | None) -> None:
        """Empty or whitespace URLs never reach the network."""
        with pytest.raises(MissingURLError, match="Missing url"):
            await FeedProxy(client).fetch(url)
        await client.close()

    @respx.mock
    async def test_fetch_normalizes_feed(self, client: FeedClient) -> None:
        """Should fetch, parse and normalize; surrounding whitespace is ignored."""
        respx.get(FEED_URL).mock(return_value=Response(200, content=RSS))

        feed = await FeedProxy(client).fetch(f"  {FEED_URL}  ")

        assert feed.url == FEED_URL
        assert feed.title == "Example"
        assert feed.link == "https://example.com/"
        assert [item.id for item in feed.items] == ["42"]
        await client.close()

    @respx.mock
    async def test_invalid_xml(self, client: FeedClient) -> None:
        respx.get(FEED_URL).mock(return_value=Response(200, text="not xml at all"))

        with pytest.raises(InvalidXMLError):
            await FeedProxy(client).fetch(FEED_URL)
        await client.close()

    @respx.mock
    async def test_unsupported_feed(self, client: FeedClient) -> None:
        respx.get(FEED_URL).mock(
            return_value=Response(200, text="<html><body><p>Hello</p></body></html>")
        )

        with pytest.raises(UnsupportedFeedError):
            await FeedProxy(client).fetch(FEED_URL)
        await client.close()
