"""Shared data models for Reader Lite."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeedItem:
    """One syndication entry, normalized from an RSS item or Atom entry."""

    id: str
    title: str
    link: str
    summary: str
    content: str
    published: str


@dataclass(frozen=True)
class NormalizedFeed:
    """One fetched feed snapshot, items ordered newest first."""

    url: str
    title: str
    link: str
    items: tuple[FeedItem, ...]
