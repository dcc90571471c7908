"""TTL cache for reference data."""

from basecamp.cache import keys
from basecamp.cache.data_cache import DEFAULT_TTL, CacheEntry, DataCache

__all__ = [
    "CacheEntry",
    "DataCache",
    "DEFAULT_TTL",
    "keys",
]
