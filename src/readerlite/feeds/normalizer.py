"""RSS/Atom normalization into one canonical item model."""

import secrets
from datetime import timezone

from dateutil import parser as date_parser

from readerlite.errors import UnsupportedFeedError
from readerlite.feeds.fields import first_non_empty, href_of, resolve
from readerlite.feeds.xmltree import XmlNode
from readerlite.models import FeedItem, NormalizedFeed
from readerlite.utils.logging import get_logger

logger = get_logger(__name__)


def synthetic_id() -> str:
    """Random identifier for items that carry no natural one."""
    return secrets.token_hex(8)


def _atom_link(node: XmlNode) -> str:
    # Atom allows several <link> elements; the first one is canonical.
    return resolve(node.first("link"), href_of)


def normalize_item(node: XmlNode, is_atom: bool = False) -> FeedItem:
    """Map one RSS ``<item>`` or Atom ``<entry>`` onto a ``FeedItem``.

    Never raises: any missing or oddly shaped field becomes an empty string.
    """
    if is_atom:
        link = _atom_link(node)
        return FeedItem(
            id=(
                first_non_empty(node, "id")
                or link
                or first_non_empty(node, "title")
                or synthetic_id()
            ),
            title=first_non_empty(node, "title"),
            link=link,
            summary=first_non_empty(node, "summary", "content"),
            content=first_non_empty(node, "content"),
            published=first_non_empty(node, "updated", "published"),
        )

    return FeedItem(
        id=first_non_empty(node, "guid", "link", "title") or synthetic_id(),
        title=first_non_empty(node, "title"),
        link=first_non_empty(node, "link"),
        summary=first_non_empty(node, "description", "content:encoded"),
        content=first_non_empty(node, "content:encoded"),
        published=first_non_empty(node, "pubDate"),
    )


def published_timestamp(value: str) -> float:
    """Parse an RFC-822 or ISO 8601 date into a POSIX timestamp.

    Empty or unparseable dates yield 0 so they sort as the oldest items.
    Naive datetimes are taken as UTC.
    """
    if not value:
        return 0.0
    try:
        parsed = date_parser.parse(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        # Out-of-range offsets only fail once the timestamp is computed.
        return parsed.timestamp()
    except (ValueError, OverflowError, OSError):
        return 0.0


def sort_items(items: list[FeedItem]) -> tuple[FeedItem, ...]:
    """Order items newest first; ties keep document order."""
    return tuple(
        sorted(items, key=lambda item: published_timestamp(item.published), reverse=True)
    )


def normalize_feed(url: str, document: XmlNode) -> NormalizedFeed:
    """Normalize a parsed RSS or Atom document.

    Args:
        url: The source URL the document was fetched from.
        document: Root node returned by the XML parser adapter.

    Returns:
        A NormalizedFeed with items sorted by publication date, newest first.

    Raises:
        UnsupportedFeedError: If the root is neither ``<rss>`` nor ``<feed>``.
    """
    if document.name == "rss":
        channel = document.first("channel") or XmlNode(name="channel")
        title = first_non_empty(channel, "title")
        link = first_non_empty(channel, "link")
        items = [normalize_item(node, is_atom=False) for node in channel.all("item")]
        dialect = "rss"
    elif document.name == "feed":
        title = first_non_empty(document, "title")
        link = _atom_link(document)
        items = [normalize_item(node, is_atom=True) for node in document.all("entry")]
        dialect = "atom"
    else:
        logger.warning("Unsupported feed root", url=url, root=document.name)
        raise UnsupportedFeedError()

    logger.info("Feed normalized", url=url, dialect=dialect, item_count=len(items))
    return NormalizedFeed(url=url, title=title, link=link, items=sort_items(items))
