"""
Durable cache backends

A backend owns the storage of named cache slots: one payload plus its
last-modified timestamp per key. Writes replace a slot in one step so a reader
never observes a half-written payload.
"""
from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import aiofiles
import aiofiles.os
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mytv.database import session_scope
from mytv.models import CacheEntry


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CacheSlot:
    """Stored payload of a single cache key."""
    key: str
    payload: str
    last_modified: datetime


class CacheBackend(ABC):
    """Key-named payload store with last-modified timestamps."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, key: str) -> asyncio.Lock:
        """Return the lock serializing refreshes of ``key``."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @abstractmethod
    async def read(self, key: str) -> CacheSlot | None:
        """Return the stored slot, or None if the key was never written."""

    @abstractmethod
    async def write(self, key: str, payload: str, modified_at: datetime) -> None:
        """Replace the slot's payload and stamp it with ``modified_at``."""


class FileCacheBackend(CacheBackend):
    """
    Stores each key as a UTF-8 file under ``cache_dir``.

    The file's mtime is the slot's last-modified timestamp. New payloads are
    written to a temporary sibling, stamped, and moved over the target with
    os.replace, so payload and timestamp change together.
    """

    def __init__(self, cache_dir: str | Path) -> None:
        super().__init__()
        self.cache_dir = Path(cache_dir)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.cache_dir / key

    async def read(self, key: str) -> CacheSlot | None:
        path = self._path(key)
        try:
            stat = await aiofiles.os.stat(path)
            async with aiofiles.open(path, "r", encoding="utf-8", newline="") as f:
                payload = await f.read()
        except FileNotFoundError:
            logger.debug(f"No cache file for {key}")
            return None

        return CacheSlot(
            key=key,
            payload=payload,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    async def write(self, key: str, payload: str, modified_at: datetime) -> None:
        path = self._path(key)
        await aiofiles.os.makedirs(self.cache_dir, exist_ok=True)

        temp_path = path.with_name(f".{key}.{uuid4().hex}.tmp")
        timestamp = modified_at.timestamp()
        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8", newline="") as f:
                await f.write(payload)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            os.utime(temp_path, (timestamp, timestamp))
            await aiofiles.os.replace(temp_path, path)
        except BaseException:
            try:
                await aiofiles.os.remove(temp_path)
            except FileNotFoundError:
                pass
            raise

        logger.debug(f"Cache file written: {path} ({len(payload)} chars)")


class SqliteCacheBackend(CacheBackend):
    """Stores slots as rows of the ``cache_entries`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory

    async def read(self, key: str) -> CacheSlot | None:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(select(CacheEntry).where(CacheEntry.key == key))
            entry = result.scalar_one_or_none()

        if entry is None:
            logger.debug(f"No cache row for {key}")
            return None

        return CacheSlot(
            key=entry.key,
            payload=entry.payload,
            last_modified=datetime.fromtimestamp(entry.last_modified, tz=timezone.utc),
        )

    async def write(self, key: str, payload: str, modified_at: datetime) -> None:
        stmt = text(
            """
            INSERT INTO cache_entries (key, payload, last_modified)
            VALUES (:key, :payload, :last_modified)
            ON CONFLICT(key) DO UPDATE SET
                payload = excluded.payload,
                last_modified = excluded.last_modified
            """
        )
        async with session_scope(self._session_factory) as session:
            await session.execute(
                stmt,
                {"key": key, "payload": payload, "last_modified": modified_at.timestamp()},
            )

        logger.debug(f"Cache row written: {key} ({len(payload)} chars)")


__all__ = ["CacheSlot", "CacheBackend", "FileCacheBackend", "SqliteCacheBackend"]
