"""
Error types raised by the feed pipeline.

Transport, dispatch and parse failures are raised by the leaf components;
repositories wrap them in EpgError / IptvError so callers get a single typed
error naming the resource with the underlying cause chained.
"""


class FeedError(Exception):
    """Base class for all feed pipeline errors"""

    def __init__(self, message: str, *, resource: str | None = None):
        super().__init__(message)
        self.resource = resource


class TransportError(FeedError):
    """Network/IO failure or non-success HTTP status"""

    def __init__(self, message: str, *, resource: str | None = None, status_code: int | None = None):
        super().__init__(message, resource=resource)
        self.status_code = status_code


class UnsupportedSourceError(FeedError):
    """No registered fetcher or parser supports the source"""


class ParseError(FeedError):
    """Malformed document or cached payload"""


class RefreshError(FeedError):
    """Refresh failed and there is no previously cached payload to fall back on"""


class EpgError(FeedError):
    """Programme guide could not be obtained"""


class IptvError(FeedError):
    """Playlist could not be obtained"""


__all__ = [
    "FeedError",
    "TransportError",
    "UnsupportedSourceError",
    "ParseError",
    "RefreshError",
    "EpgError",
    "IptvError",
]
