"""Error taxonomy for the feed proxy.

Every failure the proxy can report is a ``FeedError`` carrying the
user-facing message and the HTTP status it maps to.
"""


class FeedError(Exception):
    """Base class for failures reported by the feed proxy."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MissingURLError(FeedError):
    """Raised when the request carries no usable feed URL."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Missing url")


class InvalidURLError(FeedError):
    """Raised when the feed URL cannot be requested (bad scheme or syntax)."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid url")


class UpstreamError(FeedError):
    """Raised when the upstream feed server fails or cannot be reached."""

    status_code = 502

    def __init__(self, status: int | None = None) -> None:
        self.status = status
        super().__init__(f"Upstream {status}" if status is not None else "Upstream unreachable")


class InvalidXMLError(FeedError):
    """Raised when the upstream body is not well-formed XML."""

    status_code = 422

    def __init__(self) -> None:
        super().__init__("Invalid XML")


class UnsupportedFeedError(FeedError):
    """Raised when the document is XML but neither RSS nor Atom."""

    status_code = 415

    def __init__(self) -> None:
        super().__init__("Unsupported feed (expect RSS/Atom)")
