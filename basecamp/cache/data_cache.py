"""
In-process TTL cache for slowly changing reference data.

Each entry remembers when it was stored and for how long it stays valid.
Expired entries are evicted lazily on read. There is no size bound and no
locking: the cache is only touched from the event loop thread.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger


T = TypeVar("T")

DEFAULT_TTL = 60.0


@dataclass
class CacheEntry:
    """A cached value with its storage time and lifetime."""

    value: Any
    stored_at: float
    ttl: float


class DataCache:
    """
    Key -> value map with per-entry TTL.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
        """Store a value valid for ``ttl`` seconds from now."""
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the cached value, or ``default`` on a miss.

        An entry older than its TTL is evicted and counts as a miss.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default

        if self._clock() - entry.stored_at > entry.ttl:
            del self._entries[key]
            return default

        return entry.value

    def invalidate(self, key: str) -> None:
        """Evict one key."""
        self._entries.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> int:
        """Evict every key containing ``pattern``. Returns count evicted."""
        matching = [key for key in self._entries if pattern in key]
        for key in matching:
            del self._entries[key]
        if matching:
            logger.debug("Cache evicted {} keys matching '{}'", len(matching), pattern)
        return len(matching)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl: float = DEFAULT_TTL,
    ) -> T:
        """Return the cached value or await ``fetch()``, cache and return it."""
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit: {}", key)
            return cached

        logger.debug("Cache miss: {}", key)
        value = await fetch()
        self.set(key, value, ttl)
        return value


__all__ = ["CacheEntry", "DataCache", "DEFAULT_TTL"]
