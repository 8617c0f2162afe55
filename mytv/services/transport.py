"""
HTTP transport

Performs a single GET and hands back status + body. Failures are not retried
here; the caller decides on retry policy.
"""
import logging
from dataclasses import dataclass, field

import httpx

from mytv.errors import TransportError
from mytv.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransportResponse:
    """Status and raw body of a completed GET."""
    url: str
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    encoding: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")


class HttpTransport:
    """httpx-backed GET with follow-redirects and a fixed timeout."""

    def __init__(self, timeout: float = 30.0, *, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport

    async def get(self, url: str) -> TransportResponse:
        """
        GET ``url``

        Returns:
            TransportResponse for any HTTP status (callers check is_success)

        Raises:
            TransportError: On connection/timeout/protocol failure
        """
        safe_url = sanitize_url_for_logging(url)
        logger.debug(f"GET {safe_url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"GET {safe_url} failed: {type(e).__name__}: {e}")
            raise TransportError(f"Request to {safe_url} failed: {e}", resource=safe_url) from e

        logger.debug(f"GET {safe_url} -> HTTP {response.status_code} ({len(response.content)} bytes)")
        return TransportResponse(
            url=url,
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
            encoding=response.charset_encoding,
        )
