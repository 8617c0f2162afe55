"""
Services package for the feed pipeline

This package contains fetching, parsing, repository and scheduling components.
"""
from mytv.services.epg_parser import parse_epg_xml, parse_epg_xml_async
from mytv.services.epg_repository import EpgRepository
from mytv.services.iptv_repository import IptvRepository
from mytv.services.feed_service import load_epg, load_iptv, refresh_feeds
from mytv.services.scheduler_service import feed_scheduler

__all__ = [
    'parse_epg_xml',
    'parse_epg_xml_async',
    'EpgRepository',
    'IptvRepository',
    'load_epg',
    'load_iptv',
    'refresh_feeds',
    'feed_scheduler',
]
