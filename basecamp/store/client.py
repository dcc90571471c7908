"""
Async PostgREST client for the remote relational store.

Handles HTTP communication with the Supabase REST endpoint:
- query-string filters and select= projections (see store.query)
- header-based request shaping (apikey, bearer token, Prefer)
- single-row reads via the PostgREST object media type
- exact counts from Content-Range

Usage:
    async with StoreClient.from_settings() as store:
        tracks = await store.select(Query("tracks").order("name"))
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from basecamp.errors import ConfigurationError, NotFoundError, StoreError
from basecamp.store.query import Query
from config import Settings, get_settings

OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


class StoreClient:
    """HTTP client for one PostgREST schema."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the store client.

        Args:
            base_url: PostgREST root, e.g. https://xyz.supabase.co/rest/v1
            api_key: Project API key (apikey header)
            access_token: Bearer token; falls back to the API key
            timeout: Transport timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        if not base_url or not api_key:
            raise ConfigurationError(
                "Missing store configuration: SUPABASE_URL and SUPABASE_ANON_KEY must be set"
            )
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        logger.debug("Initialized store client: url={}, timeout={}s", self.base_url, timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> StoreClient:
        """Build a client from environment configuration."""
        settings = settings or get_settings()
        if not settings.has_store_configured():
            raise ConfigurationError(
                "Missing store configuration: SUPABASE_URL and SUPABASE_ANON_KEY must be set"
            )
        return cls(
            base_url=settings.rest_url,
            api_key=settings.supabase_anon_key,
            access_token=settings.supabase_access_token,
            timeout=settings.store_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    # =========================================================================
    # Reads
    # =========================================================================

    async def select(self, query: Query, single: bool = False) -> Any:
        """
        Run a read.

        Args:
            query: Table, projection, filters and ordering
            single: Expect exactly one row and return it as a dict

        Returns:
            List of rows, or one row when ``single`` is set

        Raises:
            NotFoundError: ``single`` was set and no row matched
            StoreError: Any other failed request
        """
        headers = {"Accept": OBJECT_MEDIA_TYPE} if single else None
        response = await self._request("GET", query.table, params=query.to_params(), headers=headers)
        data = self._decode(response)
        if data is None:
            return None if single else []
        return data

    async def select_one(self, query: Query) -> dict[str, Any] | None:
        """Single-row read that returns None instead of raising when nothing matches."""
        try:
            return await self.select(query, single=True)
        except NotFoundError:
            return None

    async def count(self, query: Query) -> int:
        """Exact row count for the query's filters."""
        response = await self._request(
            "HEAD",
            query.table,
            params=[("select", "*"), *query.filter_params()],
            headers={"Prefer": "count=exact"},
        )
        return _parse_content_range(response.headers.get("content-range"))

    # =========================================================================
    # Writes
    # =========================================================================

    async def insert(
        self,
        table: str,
        values: dict[str, Any] | list[dict[str, Any]],
        returning: str = "*",
        single: bool = False,
    ) -> Any:
        """Insert one row or a batch and return the representation."""
        return await self._write("POST", Query(table).select(returning), values, single)

    async def update(
        self,
        query: Query,
        values: dict[str, Any],
        single: bool = False,
    ) -> Any:
        """PATCH the rows matched by the query's filters."""
        if not query.filters:
            raise StoreError("Refusing to update without a row filter")
        return await self._write("PATCH", query, values, single)

    async def upsert(
        self,
        table: str,
        values: dict[str, Any] | list[dict[str, Any]],
        on_conflict: str | None = None,
        returning: str = "*",
        single: bool = False,
    ) -> Any:
        """Insert or merge on primary key (or ``on_conflict`` columns)."""
        query = Query(table).select(returning)
        extra = [("on_conflict", on_conflict)] if on_conflict else []
        return await self._write(
            "POST",
            query,
            values,
            single,
            prefer="resolution=merge-duplicates,return=representation",
            extra_params=extra,
        )

    async def delete(self, query: Query) -> None:
        """DELETE the rows matched by the query's filters."""
        if not query.filters:
            raise StoreError("Refusing to delete without a row filter")
        await self._request("DELETE", query.table, params=query.filter_params())

    async def _write(
        self,
        method: str,
        query: Query,
        values: Any,
        single: bool,
        prefer: str = "return=representation",
        extra_params: list[tuple[str, str]] | None = None,
    ) -> Any:
        headers = {"Prefer": prefer}
        if single:
            headers["Accept"] = OBJECT_MEDIA_TYPE

        params = [("select", query.columns)]
        if method == "PATCH":
            params.extend(query.filter_params())
        params.extend(extra_params or [])

        response = await self._request(method, query.table, params=params, json=values, headers=headers)
        return self._decode(response)

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        logger.debug("Store request: {} /{} params={}", method, table, params)
        try:
            response = await self.client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.error("Store connection error on {} /{}: {}", method, table, e)
            raise StoreError(f"Could not reach the store: {e}") from e

        if response.is_success:
            return response

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        error = StoreError.from_payload(response.status_code, payload)
        if isinstance(error, NotFoundError):
            logger.debug("Store {} /{}: no matching row", method, table)
        else:
            logger.warning("Store error on {} /{}: {} {}", method, table, response.status_code, error)
        raise error

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(
                f"Malformed JSON from store: {e}",
                status_code=response.status_code,
            ) from e


def _parse_content_range(value: str | None) -> int:
    """Total from ``0-24/25`` or ``*/0``."""
    if not value or "/" not in value:
        return 0
    total = value.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0
