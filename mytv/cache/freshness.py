"""
Freshness policies for cache slots.

A policy is either a ``timedelta`` TTL measured from the slot's last
modification, or a predicate ``(last_modified, payload) -> bool`` that returns
True when the slot is stale.
"""
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Union


Clock = Callable[[], datetime]
FreshnessPredicate = Callable[[datetime, str], bool]
Freshness = Union[timedelta, FreshnessPredicate]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ttl(seconds: float) -> timedelta:
    """TTL policy from a number of seconds"""
    if seconds < 0:
        raise ValueError("TTL must be >= 0")
    return timedelta(seconds=seconds)


def calendar_day_changed(tz: tzinfo, clock: Clock = utc_now) -> FreshnessPredicate:
    """
    Stale once the local calendar date in ``tz`` differs from the date of the
    last refresh.
    """
    def is_stale(last_modified: datetime, _payload: str) -> bool:
        return clock().astimezone(tz).date() != last_modified.astimezone(tz).date()

    return is_stale


def is_stale(freshness: Freshness, last_modified: datetime, payload: str, now: datetime) -> bool:
    if isinstance(freshness, timedelta):
        return now - last_modified >= freshness
    return freshness(last_modified, payload)
