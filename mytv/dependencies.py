"""
Dependency wiring

Builds the cache backend, transport and repositories from settings as lazily
created singletons. FastAPI routes receive them through these getters, and
tests swap them via ``app.dependency_overrides`` or reset_dependencies().
"""
import logging

from mytv.cache import CacheBackend, FileCacheBackend, SqliteCacheBackend
from mytv.config import settings
from mytv.database import get_session_factory
from mytv.services.epg_repository import EpgRepository
from mytv.services.iptv_repository import IptvRepository
from mytv.services.transport import HttpTransport


logger = logging.getLogger(__name__)

_backend: CacheBackend | None = None
_transport: HttpTransport | None = None
_epg_repository: EpgRepository | None = None
_iptv_repository: IptvRepository | None = None


def get_cache_backend() -> CacheBackend:
    """
    Get or create the configured cache backend.

    Raises:
        RuntimeError: If the SQLite backend is selected before init_db() ran
    """
    global _backend
    if _backend is None:
        if settings.cache_backend == "sqlite":
            _backend = SqliteCacheBackend(get_session_factory())
        else:
            _backend = FileCacheBackend(settings.cache_dir)
        logger.debug(f"Created cache backend: {type(_backend).__name__}")
    return _backend


def get_transport() -> HttpTransport:
    global _transport
    if _transport is None:
        _transport = HttpTransport(timeout=settings.http_timeout_sec)
    return _transport


def get_epg_repository() -> EpgRepository:
    global _epg_repository
    if _epg_repository is None:
        _epg_repository = EpgRepository(
            get_cache_backend(),
            get_transport(),
            tz=settings.tzinfo,
            parse_timeout_seconds=settings.epg_parse_timeout_sec,
        )
    return _epg_repository


def get_iptv_repository() -> IptvRepository:
    global _iptv_repository
    if _iptv_repository is None:
        _iptv_repository = IptvRepository(get_cache_backend(), get_transport())
    return _iptv_repository


def reset_dependencies() -> None:
    """
    Drop all singletons (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _backend, _transport, _epg_repository, _iptv_repository
    _backend = None
    _transport = None
    _epg_repository = None
    _iptv_repository = None
