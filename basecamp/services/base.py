"""Shared plumbing for the data-access services."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from loguru import logger

from basecamp.cache import DataCache
from basecamp.errors import StoreError, ValidationError
from basecamp.store import StoreClient

T = TypeVar("T")


def utc_now() -> str:
    """ISO-8601 timestamp the store accepts for timestamptz columns."""
    return datetime.now(timezone.utc).isoformat()


def clean_updates(updates: dict[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    """
    Drop None values and reject columns outside ``allowed``.

    Raises:
        ValidationError: Unknown column, or nothing left to update
    """
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    cleaned = {key: value for key, value in updates.items() if value is not None}
    if not cleaned:
        raise ValidationError("Nothing to update")
    return cleaned


def require(**values: Any) -> None:
    """Raise a ValidationError naming the first blank argument."""
    for name, value in values.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required")


class StoreService:
    """Base for services that read through the cache and write to the store."""

    def __init__(self, store: StoreClient, cache: DataCache) -> None:
        self.store = store
        self.cache = cache

    async def _cached_read(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl: float,
        fallback: Callable[[], T] = list,  # type: ignore[assignment]
        degraded: list[str] | None = None,
    ) -> T:
        """
        Cache-first read that degrades instead of failing.

        A store error is logged and ``fallback()`` is returned without being
        cached, so the next call tries the store again. When ``degraded`` is
        given, the key is appended to it so a caller building an aggregate
        knows not to cache the result either.
        """
        try:
            return await self.cache.get_or_fetch(key, fetch, ttl)
        except StoreError as e:
            logger.warning("Read of '{}' failed, serving empty result: {}", key, e)
            if degraded is not None:
                degraded.append(key)
            return fallback()

    async def _safe(
        self,
        awaitable: Awaitable[T],
        default: T,
        label: str,
        degraded: list[str] | None = None,
    ) -> T:
        """Await one read of a fan-out, substituting ``default`` on a store error."""
        try:
            return await awaitable
        except StoreError as e:
            logger.warning("{} unavailable: {}", label, e)
            if degraded is not None:
                degraded.append(label)
            return default

    async def _cache_complete(
        self,
        key: str,
        build: Callable[[list[str]], Awaitable[T]],
        ttl: float,
    ) -> T:
        """
        Cache-first read of an aggregate built from several degrading reads.

        ``build`` receives a list to report degraded parts in; the result is
        only cached when that list stays empty.
        """
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: {}", key)
            return cached

        degraded: list[str] = []
        value = await build(degraded)
        if degraded:
            logger.warning("Not caching '{}', degraded parts: {}", key, ", ".join(degraded))
        elif value is not None:
            self.cache.set(key, value, ttl)
        return value
