"""Remote store access (PostgREST)."""

from basecamp.store.client import StoreClient
from basecamp.store.join import attach, group_count, index_by
from basecamp.store.query import Filter, Query

__all__ = [
    "StoreClient",
    "Query",
    "Filter",
    # Join helpers
    "attach",
    "group_count",
    "index_by",
]
