"""
Feed Service

Settings-driven entry points used by the HTTP routes and the scheduler.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from mytv.config import settings
from mytv import dependencies
from mytv.cache import ttl
from mytv.errors import FeedError
from mytv.schemas import Epg, IptvGroup
from mytv.services.epg_repository import EpgRepository
from mytv.services.iptv_repository import IptvRepository
from mytv.utils.logging_helpers import log_refresh_end, log_refresh_start


logger = logging.getLogger(__name__)

# Prevents overlapping refresh cycles (scheduler + manual trigger)
_refresh_lock = asyncio.Lock()


async def load_epg(repository: EpgRepository) -> list[Epg]:
    return await repository.get_epg_list(
        settings.epg_xml_url,
        settings.epg_filtered_channels or [],
        settings.epg_refresh_time_threshold,
    )


async def load_iptv(repository: IptvRepository, simplify: bool | None = None) -> list[IptvGroup]:
    return await repository.get_iptv_group_list(
        settings.iptv_source_url,
        ttl(settings.iptv_source_cache_time_sec),
        settings.iptv_source_simplify if simplify is None else simplify,
    )


async def refresh_feeds(
    epg_repository: EpgRepository | None = None,
    iptv_repository: IptvRepository | None = None,
) -> dict:
    """
    Warm both caches. Per-feed failures are logged and reported, not raised.

    Returns:
        Dictionary with per-feed status or a skip message
    """
    if _refresh_lock.locked():
        logger.warning("Feed refresh already in progress, skipping this request")
        return {
            "status": "skipped",
            "message": "Feed refresh already in progress",
        }

    async with _refresh_lock:
        log_refresh_start(logger)
        epg_repository = epg_repository or dependencies.get_epg_repository()
        iptv_repository = iptv_repository or dependencies.get_iptv_repository()

        result: dict = {"timestamp": datetime.now(timezone.utc).isoformat()}

        try:
            iptv_groups = await load_iptv(iptv_repository)
            result["iptv"] = {
                "status": "success",
                "groups": len(iptv_groups),
                "channels": sum(len(group.iptv_list) for group in iptv_groups),
            }
        except FeedError as exc:
            logger.error("Playlist refresh failed: %s", exc)
            result["iptv"] = {"status": "failed", "error": str(exc)}

        try:
            epg_list = await load_epg(epg_repository)
            result["epg"] = {
                "status": "success",
                "channels": len(epg_list),
                "programmes": sum(len(epg.programmes) for epg in epg_list),
            }
        except FeedError as exc:
            logger.error("Guide refresh failed: %s", exc)
            result["epg"] = {"status": "failed", "error": str(exc)}

        failed = [name for name in ("iptv", "epg") if result[name]["status"] == "failed"]
        result["status"] = "failed" if len(failed) == 2 else "partial" if failed else "success"
        log_refresh_end(logger)
        return result
