"""Upstream feed HTTP client for Reader Lite."""

import httpx

from readerlite.config import DEFAULT_USER_AGENT
from readerlite.errors import InvalidURLError, UpstreamError
from readerlite.utils.logging import get_logger

logger = get_logger(__name__)


class FeedClient:
    """Fetches raw feed documents, always bypassing intermediate caches."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            user_agent: Identifying User-Agent sent upstream.
            timeout: Seconds before giving up on the upstream server. None
                waits indefinitely.
        """
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={
                "User-Agent": user_agent,
                "Cache-Control": "no-cache",
                "Pragma": "no-cache",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "FeedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def fetch(self, url: str) -> bytes:
        """Fetch the raw body of a feed.

        Args:
            url: Absolute http(s) URL of the feed.

        Returns:
            The response body as bytes.

        Raises:
            InvalidURLError: If the URL cannot be requested.
            UpstreamError: If the server answers non-2xx or cannot be reached.
        """
        logger.info("Fetching feed", url=url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            logger.warning("Invalid feed URL", url=url, error=str(e))
            raise InvalidURLError() from e
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error fetching feed", url=url, status=e.response.status_code)
            raise UpstreamError(e.response.status_code) from e
        except httpx.RequestError as e:
            logger.warning("Request error fetching feed", url=url, error=str(e))
            raise UpstreamError() from e

        logger.info("Feed fetched", url=url, size=len(response.content))
        return response.content
