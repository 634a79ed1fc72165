"""Feed proxy service: fetch, parse and normalize one feed."""

from readerlite.clients.feed import FeedClient
from readerlite.errors import MissingURLError
from readerlite.feeds.normalizer import normalize_feed
from readerlite.feeds.xmltree import parse_xml
from readerlite.models import NormalizedFeed


class FeedProxy:
    """Fetches a feed server-side and returns its normalized snapshot."""

    def __init__(self, feed_client: FeedClient) -> None:
        self._client = feed_client

    async def fetch(self, url: str | None) -> NormalizedFeed:
        """Fetch and normalize the feed at ``url``.

        Args:
            url: Feed URL as supplied by the caller; surrounding whitespace
                is ignored.

        Returns:
            The normalized feed.

        Raises:
            MissingURLError: If the URL is empty.
            InvalidURLError: If the URL cannot be requested.
            UpstreamError: If the upstream fetch fails.
            InvalidXMLError: If the body is not XML.
            UnsupportedFeedError: If the XML is neither RSS nor Atom.
        """
        url = url.strip() if isinstance(url, str) else ""
        if not url:
            raise MissingURLError()

        body = await self._client.fetch(url)
        document = parse_xml(body)
        return normalize_feed(url, document)
