from datetime import datetime, timezone
from typing import Annotated
from fastapi import APIRouter, Depends, Query
import logging

from mytv import __version__
from mytv.config import settings
from mytv.dependencies import get_epg_repository, get_iptv_repository
from mytv.schemas import EpgListResponse, IptvGroupListResponse
from mytv.services import (
    EpgRepository,
    IptvRepository,
    load_epg,
    load_iptv,
    refresh_feeds,
    feed_scheduler
)


logger = logging.getLogger(__name__)

main_router = APIRouter()

@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = feed_scheduler.get_next_run_time()

    return {
        "service": "MyTV Feed Service",
        "version": __version__,
        "next_scheduled_refresh": next_run.isoformat() if next_run else None,
        "endpoints": {
            "epg": "/epg - Programme guide (GET)",
            "iptv": "/iptv - Playlist groups (GET, query param: simplify)",
            "refresh": "/refresh - Manually refresh both feeds (POST)",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = feed_scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": feed_scheduler.running,
        "next_refresh": next_run.isoformat() if next_run else None
    }


@main_router.get("/epg", response_model=EpgListResponse)
async def get_epg(
    repository: Annotated[EpgRepository, Depends(get_epg_repository)]
) -> EpgListResponse:
    """Programme guide for the configured source and channel filter"""
    epg_list = await load_epg(repository)
    return EpgListResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        channels=len(epg_list),
        programmes=sum(len(epg.programmes) for epg in epg_list),
        epg=epg_list,
    )


@main_router.get("/iptv", response_model=IptvGroupListResponse)
async def get_iptv(
    repository: Annotated[IptvRepository, Depends(get_iptv_repository)],
    simplify: Annotated[bool | None, Query(description="Override the configured simplify flag")] = None,
) -> IptvGroupListResponse:
    """Playlist groups for the configured source"""
    effective_simplify = settings.iptv_source_simplify if simplify is None else simplify
    groups = await load_iptv(repository, effective_simplify)
    return IptvGroupListResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        simplified=effective_simplify,
        groups=len(groups),
        channels=sum(len(group.iptv_list) for group in groups),
        iptv=groups,
    )


@main_router.post("/refresh")
async def trigger_refresh(
    epg_repository: Annotated[EpgRepository, Depends(get_epg_repository)],
    iptv_repository: Annotated[IptvRepository, Depends(get_iptv_repository)],
) -> dict:
    """
    Manually refresh both feeds

    Stale caches are re-fetched and re-parsed; fresh ones are left as they are.
    """
    logger.info("Manual feed refresh triggered via API")
    return await refresh_feeds(epg_repository, iptv_repository)
