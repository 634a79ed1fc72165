"""API routes for Reader Lite."""

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from readerlite import __version__
from readerlite.api.models import ErrorResponse, FeedResponse, FetchRequest, HealthResponse
from readerlite.clients.feed import FeedClient
from readerlite.config import get_settings
from readerlite.errors import FeedError
from readerlite.services.proxy import FeedProxy
from readerlite.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

NO_STORE = {"Cache-Control": "no-store"}

ERROR_RESPONSES: dict[int | str, dict] = {
    status: {"model": ErrorResponse} for status in (400, 415, 422, 500, 502)
}


def feed_error_response(error: FeedError) -> JSONResponse:
    """Render a proxy failure as a non-cacheable JSON error."""
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.message},
        headers=NO_STORE,
    )


async def feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
    """Exception handler registered on the app for ``FeedError``."""
    logger.info(
        "Feed request failed",
        path=request.url.path,
        status=exc.status_code,
        error=exc.message,
    )
    return feed_error_response(exc)


async def _proxy(url: str | None, response: Response) -> FeedResponse:
    settings = get_settings()
    response.headers.update(NO_STORE)

    try:
        async with FeedClient(
            user_agent=settings.user_agent,
            timeout=settings.fetch_timeout,
        ) as client:
            feed = await FeedProxy(client).fetch(url)
    except FeedError:
        raise
    except Exception as e:
        logger.exception("Unexpected error fetching feed", url=url)
        raise FeedError(str(e) or "Fetch error") from e

    return FeedResponse.from_feed(feed)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@router.post("/fetch", response_model=FeedResponse, responses=ERROR_RESPONSES)
async def fetch_feed(request: Request, response: Response) -> FeedResponse:
    """Fetch and normalize a feed on behalf of the browser.

    The body is ``{"url": "..."}``. A missing, malformed or non-JSON body
    is reported as a missing URL rather than a validation error.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    fetch_request = FetchRequest.from_payload(payload)
    logger.info("Fetch endpoint called", method="POST", url=fetch_request.url)
    return await _proxy(fetch_request.url, response)


@router.get("/fetch", response_model=FeedResponse, responses=ERROR_RESPONSES)
async def fetch_feed_query(
    response: Response,
    url: str = Query(default="", description="Feed URL to fetch"),
) -> FeedResponse:
    """Query-string variant of the feed proxy, addressable by URL alone."""
    logger.info("Fetch endpoint called", method="GET", url=url)
    return await _proxy(url, response)
