"""
Refresh-on-demand cache: durable backends, freshness policies and the
get-or-refresh store.
"""
from mytv.cache.backends import CacheBackend, CacheSlot, FileCacheBackend, SqliteCacheBackend
from mytv.cache.freshness import calendar_day_changed, ttl
from mytv.cache.store import CacheStore

__all__ = [
    'CacheBackend',
    'CacheSlot',
    'FileCacheBackend',
    'SqliteCacheBackend',
    'CacheStore',
    'calendar_day_changed',
    'ttl',
]
