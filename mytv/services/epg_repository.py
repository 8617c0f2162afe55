"""
Programme guide repository

Two cache slots back the guide: ``epg.xml`` keeps the raw document fetched
during the last refresh, ``epg.json`` keeps the parsed result and is refreshed
once per local calendar day, after the configured hour.
"""
from __future__ import annotations

import logging
from datetime import timedelta, tzinfo
from typing import Collection

from pydantic import TypeAdapter, ValidationError

from mytv.cache import CacheBackend, CacheStore, calendar_day_changed
from mytv.cache.freshness import Clock, utc_now
from mytv.errors import EpgError, ParseError, TransportError
from mytv.schemas import Epg
from mytv.services.epg_fetchers import EpgFetcher, default_epg_fetchers
from mytv.services.epg_parser import parse_epg_xml_async
from mytv.services.registry import SourceRegistry
from mytv.services.transport import HttpTransport
from mytv.utils.logging_helpers import log_epg_summary, sanitize_url_for_logging
from mytv.utils.timezone import local_now


logger = logging.getLogger(__name__)

EPG_XML_KEY = "epg.xml"
EPG_JSON_KEY = "epg.json"

_EPG_LIST = TypeAdapter(list[Epg])


def encode_epg_list(epg_list: list[Epg]) -> str:
    return _EPG_LIST.dump_json(epg_list).decode("utf-8")


def decode_epg_list(payload: str) -> list[Epg]:
    try:
        return _EPG_LIST.validate_json(payload)
    except ValidationError as e:
        raise ParseError(f"Malformed cached guide: {e.error_count()} validation error(s)", resource=EPG_JSON_KEY) from e


class EpgXmlRepository:
    """Raw guide document, re-fetched on every call (zero TTL)."""

    def __init__(
        self,
        backend: CacheBackend,
        transport: HttpTransport,
        fetchers: SourceRegistry[EpgFetcher] | None = None,
        *,
        clock: Clock = utc_now,
    ):
        self._store = CacheStore(backend, EPG_XML_KEY, clock=clock)
        self._transport = transport
        self.fetchers = fetchers or default_epg_fetchers()

    async def _fetch_xml(self, url: str) -> str:
        if not url.strip():
            logger.debug("EPG URL is empty, skipping remote fetch")
            return ""

        safe_url = sanitize_url_for_logging(url)
        logger.info(f"Fetching guide XML: {safe_url}")

        response = await self._transport.get(url)
        if not response.is_success:
            raise TransportError(
                f"Guide request failed: HTTP {response.status_code}",
                resource=safe_url,
                status_code=response.status_code,
            )

        fetcher = self.fetchers.select(url)
        xml_string = fetcher.fetch(response)
        logger.info(f"Fetched guide XML: {len(xml_string)} chars")
        return xml_string

    async def get_epg_xml(self, url: str) -> str:
        return await self._store.get_or_refresh(timedelta(0), lambda: self._fetch_xml(url))


class EpgRepository:
    """Parsed programme guide, cached for the current local day."""

    def __init__(
        self,
        backend: CacheBackend,
        transport: HttpTransport,
        *,
        tz: tzinfo,
        fetchers: SourceRegistry[EpgFetcher] | None = None,
        parse_timeout_seconds: int | None = None,
        clock: Clock = utc_now,
    ):
        self._store = CacheStore(backend, EPG_JSON_KEY, clock=clock)
        self._xml_repository = EpgXmlRepository(backend, transport, fetchers, clock=clock)
        self._tz = tz
        self._parse_timeout = parse_timeout_seconds
        self._clock = clock

    async def _refresh(self, xml_url: str, filtered_channels: Collection[str]) -> str:
        xml_string = await self._xml_repository.get_epg_xml(xml_url)
        epg_list = await parse_epg_xml_async(
            xml_string,
            filtered_channels,
            self._tz,
            parse_timeout_seconds=self._parse_timeout,
        )
        log_epg_summary(logger, len(epg_list), sum(len(epg.programmes) for epg in epg_list))
        return encode_epg_list(epg_list)

    async def get_epg_list(
        self,
        xml_url: str,
        filtered_channels: Collection[str] = (),
        refresh_time_threshold: int = 0,
    ) -> list[Epg]:
        """
        Get the programme guide

        Args:
            xml_url: Guide URL; empty disables fetching and yields an empty guide
            filtered_channels: Channel display names to keep; empty keeps all
            refresh_time_threshold: Local hour before which an empty guide is returned

        Returns:
            Channels with their programmes

        Raises:
            EpgError: If fetching, parsing or decoding the guide fails
        """
        now = local_now(self._tz, self._clock())
        if now.hour < refresh_time_threshold:
            logger.debug(f"Before {refresh_time_threshold}:00 ({now:%H:%M}), guide not refreshed")
            return []

        try:
            payload = await self._store.get_or_refresh(
                calendar_day_changed(self._tz, self._clock),
                lambda: self._refresh(xml_url, filtered_channels),
            )
            return decode_epg_list(payload)
        except Exception as e:
            logger.error(f"Failed to get programme guide: {e}", exc_info=True)
            raise EpgError(f"Failed to get programme guide: {e}", resource=EPG_JSON_KEY) from e
