"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from readerlite.models import FeedItem, NormalizedFeed


class FetchRequest(BaseModel):
    """Request body for the feed proxy endpoint."""

    url: str = Field(default="", description="Feed URL to fetch")

    @classmethod
    def from_payload(cls, payload: Any) -> "FetchRequest":
        """Build a request from an arbitrary decoded JSON body.

        Anything other than an object with a string ``url`` is treated as
        an empty request.
        """
        if isinstance(payload, dict) and isinstance(payload.get("url"), str):
            return cls(url=payload["url"])
        return cls()


class FeedItemModel(BaseModel):
    """One normalized feed item."""

    id: str
    title: str
    link: str
    summary: str
    content: str
    published: str


class FeedResponse(BaseModel):
    """Response model for the feed proxy endpoint."""

    url: str = Field(description="Requested feed URL")
    title: str = Field(description="Feed title")
    link: str = Field(description="Site home page")
    items: list[FeedItemModel] = Field(description="Items, newest first")

    @classmethod
    def from_feed(cls, feed: NormalizedFeed) -> "FeedResponse":
        return cls(
            url=feed.url,
            title=feed.title,
            link=feed.link,
            items=[
                FeedItemModel(
                    id=item.id,
                    title=item.title,
                    link=item.link,
                    summary=item.summary,
                    content=item.content,
                    published=item.published,
                )
                for item in feed.items
            ],
        )

    def to_feed(self) -> NormalizedFeed:
        """Convert a decoded proxy response back into the domain model."""
        return NormalizedFeed(
            url=self.url,
            title=self.title,
            link=self.link,
            items=tuple(FeedItem(**item.model_dump()) for item in self.items),
        )


class ErrorResponse(BaseModel):
    """Body returned for every proxy failure."""

    error: str = Field(description="Human-readable failure reason")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(description="Health status")
    version: str = Field(description="Application version")
