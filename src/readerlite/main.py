"""FastAPI application entry point for Reader Lite."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from readerlite import __version__
from readerlite.api.routes import feed_error_handler, router
from readerlite.config import get_settings
from readerlite.errors import FeedError
from readerlite.utils.logging import get_logger, setup_logging

WEB_MANIFEST: dict[str, Any] = {
    "name": "Reader Lite",
    "short_name": "Reader",
    "description": "A minimal, installable RSS reader",
    "start_url": "/",
    "display": "standalone",
    "background_color": "#0b0b0c",
    "theme_color": "#0b0b0c",
    "icons": [
        {"src": "/icons/icon-192.png", "sizes": "192x192", "type": "image/png"},
        {"src": "/icons/icon-512.png", "sizes": "512x512", "type": "image/png"},
    ],
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.json_logs)
    logger = get_logger(__name__)
    logger.info("Reader Lite starting", version=__version__)
    yield
    logger.info("Reader Lite shutting down")


app = FastAPI(
    title="Reader Lite",
    description="Server-side RSS/Atom fetch-and-normalize proxy",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)
app.add_exception_handler(FeedError, feed_error_handler)  # type: ignore[arg-type]


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic info."""
    return {
        "name": "Reader Lite",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/manifest.webmanifest")
async def manifest() -> JSONResponse:
    """Web app manifest, precached by the offline cache."""
    return JSONResponse(WEB_MANIFEST, media_type="application/manifest+json")
