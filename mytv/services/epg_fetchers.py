"""
Programme guide fetchers

Turn a successful HTTP response into the guide XML text. Selected by source URL
through the ordered registry built by default_epg_fetchers().
"""
import gzip
import logging
import zlib
from abc import ABC, abstractmethod
from urllib.parse import urlsplit

from mytv.errors import ParseError
from mytv.services.registry import SourceRegistry
from mytv.services.transport import TransportResponse


logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def _decompress(response: TransportResponse) -> str:
    try:
        content = gzip.decompress(response.content)
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise ParseError(f"Invalid gzip payload: {e}", resource=response.url) from e

    logger.debug(f"Decompressed guide: {len(response.content)} -> {len(content)} bytes")
    return content.decode("utf-8", errors="replace")


class EpgFetcher(ABC):
    """Base fetcher; subclasses decide which URLs they handle."""

    @abstractmethod
    def is_support(self, url: str) -> bool:
        ...

    @abstractmethod
    def fetch(self, response: TransportResponse) -> str:
        """Guide XML text carried by a successful ``response``."""


class GzipEpgFetcher(EpgFetcher):
    """Gzip-compressed XMLTV (URL path ends with .gz)"""

    def is_support(self, url: str) -> bool:
        return urlsplit(url).path.lower().endswith(".gz")

    def fetch(self, response: TransportResponse) -> str:
        return _decompress(response)


class DefaultEpgFetcher(EpgFetcher):
    """Plain XMLTV; gzip bodies served under other names are still unpacked."""

    def is_support(self, url: str) -> bool:
        return True

    def fetch(self, response: TransportResponse) -> str:
        if response.content.startswith(GZIP_MAGIC):
            logger.info("Detected gzipped guide content, decompressing...")
            return _decompress(response)
        return response.text


def default_epg_fetchers() -> SourceRegistry[EpgFetcher]:
    return SourceRegistry("EPG fetcher", [GzipEpgFetcher(), DefaultEpgFetcher()])
