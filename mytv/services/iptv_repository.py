"""
Playlist repository

Raw playlist text is cached under ``iptv.txt`` with a plain TTL; each call
parses it with the first matching parser and optionally narrows it with the
simplify rule.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from importlib import resources

import aiofiles

from mytv.cache import CacheBackend, CacheStore
from mytv.cache.freshness import Clock, utc_now
from mytv.config import ASSET_URL_PREFIX
from mytv.errors import IptvError, TransportError
from mytv.schemas import Iptv, IptvGroup
from mytv.services.iptv_parsers import IptvParser, default_iptv_parsers
from mytv.services.registry import SourceRegistry
from mytv.services.transport import HttpTransport
from mytv.utils.logging_helpers import log_iptv_summary, sanitize_url_for_logging


logger = logging.getLogger(__name__)

IPTV_KEY = "iptv.txt"
ASSETS_PACKAGE = "mytv.assets"

SIMPLIFY_PREFIX = "cctv"
SIMPLIFY_SUFFIX = "卫视"


def simplify_test(iptv: Iptv) -> bool:
    """Keep national network channels and provincial satellite channels"""
    return iptv.name.lower().startswith(SIMPLIFY_PREFIX) or iptv.name.endswith(SIMPLIFY_SUFFIX)


def simplify_groups(groups: list[IptvGroup]) -> list[IptvGroup]:
    simplified = [
        IptvGroup(name=group.name, iptv_list=[iptv for iptv in group.iptv_list if simplify_test(iptv)])
        for group in groups
    ]
    return [group for group in simplified if group.iptv_list]


async def read_asset(source_url: str) -> str:
    """
    Read a playlist bundled in the package (``asset://<name>``)

    Raises:
        TransportError: If the asset does not exist
    """
    name = source_url[len(ASSET_URL_PREFIX):].strip("/")
    parts = [part for part in name.split("/") if part]
    if not parts or any(part in (".", "..") for part in parts):
        raise TransportError(f"Invalid asset name: {name!r}", resource=source_url)

    resource = resources.files(ASSETS_PACKAGE).joinpath(*parts)
    try:
        with resources.as_file(resource) as path:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
    except (FileNotFoundError, IsADirectoryError) as e:
        logger.error(f"Bundled playlist not found: {name}")
        raise TransportError(f"Bundled playlist not found: {name}", resource=source_url) from e


class IptvRepository:
    """Grouped playlist with TTL-based raw cache."""

    def __init__(
        self,
        backend: CacheBackend,
        transport: HttpTransport,
        parsers: SourceRegistry[IptvParser] | None = None,
        *,
        clock: Clock = utc_now,
    ):
        self._store = CacheStore(backend, IPTV_KEY, clock=clock)
        self._transport = transport
        self.parsers = parsers or default_iptv_parsers()

    async def _fetch_source(self, source_url: str) -> str:
        if source_url.startswith(ASSET_URL_PREFIX):
            logger.info(f"Reading bundled playlist: {source_url}")
            return await read_asset(source_url)

        safe_url = sanitize_url_for_logging(source_url)
        logger.info(f"Fetching remote playlist: {safe_url}")

        response = await self._transport.get(source_url)
        if not response.is_success:
            raise TransportError(
                f"Playlist request failed: HTTP {response.status_code}",
                resource=safe_url,
                status_code=response.status_code,
            )
        return response.text

    async def get_iptv_group_list(
        self,
        source_url: str,
        cache_time: timedelta,
        simplify: bool = False,
    ) -> list[IptvGroup]:
        """
        Get the playlist as groups of entries

        Args:
            source_url: Remote URL or bundled asset reference
            cache_time: How long the raw playlist stays fresh
            simplify: Keep only entries passing simplify_test, dropping emptied groups

        Raises:
            IptvError: If fetching or parsing the playlist fails
        """
        try:
            source_data = await self._store.get_or_refresh(
                cache_time,
                lambda: self._fetch_source(source_url),
            )

            parser = self.parsers.select(source_url, source_data)
            groups = await asyncio.to_thread(parser.parse, source_data)
            log_iptv_summary(logger, len(groups), sum(len(group.iptv_list) for group in groups))

            if simplify:
                groups = simplify_groups(groups)
                logger.debug(f"Simplified playlist: {len(groups)} groups kept")

            return groups
        except Exception as e:
            logger.error(f"Failed to get playlist: {e}", exc_info=True)
            raise IptvError(f"Failed to get playlist: {e}", resource=IPTV_KEY) from e
