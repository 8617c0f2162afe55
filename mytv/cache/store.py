"""
Refresh-on-demand cache over a single named slot.
"""
import logging
from typing import Awaitable, Callable

from mytv.cache.backends import CacheBackend
from mytv.cache.freshness import Clock, Freshness, is_stale, utc_now
from mytv.errors import RefreshError


logger = logging.getLogger(__name__)

RefreshFunc = Callable[[], Awaitable[str]]


class CacheStore:
    """
    Get-or-refresh access to one cache key.

    Refreshes of a key are serialized through the backend's per-key lock, so
    concurrent callers hitting a stale slot share a single refresh: whoever
    waited re-checks freshness and reuses the payload just stored.
    """

    def __init__(self, backend: CacheBackend, key: str, *, clock: Clock = utc_now):
        self.backend = backend
        self.key = key
        self._clock = clock

    def _is_fresh(self, slot, freshness: Freshness) -> bool:
        if slot is None:
            return False
        return not is_stale(freshness, slot.last_modified, slot.payload, self._clock())

    async def get_or_refresh(self, freshness: Freshness, refresh: RefreshFunc) -> str:
        """
        Return the cached payload if fresh, otherwise refresh and store it.

        Args:
            freshness: TTL as timedelta, or predicate (last_modified, payload) -> is_stale
            refresh: Async function producing the new payload

        Returns:
            The cached or freshly produced payload

        Raises:
            RefreshError: If refresh fails and nothing was cached before
            Exception: Whatever refresh raised, when a previous payload exists (left untouched)
        """
        slot = await self.backend.read(self.key)
        if self._is_fresh(slot, freshness):
            logger.debug(f"Cache hit: {self.key}")
            return slot.payload

        async with self.backend.lock(self.key):
            slot = await self.backend.read(self.key)
            if self._is_fresh(slot, freshness):
                logger.debug(f"Cache refreshed by concurrent caller: {self.key}")
                return slot.payload

            logger.debug(f"Cache {'stale' if slot else 'empty'}, refreshing: {self.key}")
            try:
                payload = await refresh()
            except Exception as exc:
                if slot is None:
                    raise RefreshError(
                        f"Failed to refresh {self.key}: {exc}", resource=self.key
                    ) from exc
                logger.warning(f"Refresh of {self.key} failed, cached payload kept: {exc}")
                raise

            await self.backend.write(self.key, payload, self._clock())
            logger.debug(f"Cache updated: {self.key} ({len(payload)} chars)")
            return payload
