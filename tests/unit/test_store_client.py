"""
Unit tests for the PostgREST client.

Requests go through httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest
import pytest_asyncio

from basecamp.errors import ConfigurationError, NotFoundError, StoreError
from basecamp.store import Query, StoreClient
from basecamp.store.client import OBJECT_MEDIA_TYPE
from config import Settings


class Recorder:
    """Collects requests and answers each with a fresh canned response."""

    def __init__(self, status_code, **kwargs):
        self.status_code = status_code
        self.kwargs = kwargs
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.kwargs)


def _client(handler):
    return StoreClient(
        base_url="https://example.supabase.co/rest/v1/",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
    )


@pytest_asyncio.fixture
async def tracks_client():
    recorder = Recorder(200, json=[{"id": "t1", "name": "Frontend"}])
    client = _client(recorder)
    yield client, recorder
    await client.close()


class TestConfiguration:
    """Client construction."""

    def test_missing_key_raises(self):
        with pytest.raises(ConfigurationError, match="SUPABASE_URL"):
            StoreClient(base_url="https://example.supabase.co/rest/v1", api_key="")

    def test_from_settings_requires_store(self):
        settings = Settings(_env_file=None, supabase_url="", supabase_anon_key="")

        with pytest.raises(ConfigurationError):
            StoreClient.from_settings(settings)

    @pytest.mark.asyncio
    async def test_from_settings_uses_rest_url(self, settings):
        recorder = Recorder(200, json=[])
        client = StoreClient.from_settings(settings, transport=httpx.MockTransport(recorder))

        await client.select(Query("tracks"))
        await client.close()

        assert str(recorder.requests[0].url).startswith("https://example.supabase.co/rest/v1/tracks")


class TestSelect:
    """Reads."""

    @pytest.mark.asyncio
    async def test_headers_and_params(self, tracks_client):
        client, recorder = tracks_client

        rows = await client.select(Query("tracks").select("id, name").order("name"))

        request = recorder.requests[0]
        assert rows == [{"id": "t1", "name": "Frontend"}]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/tracks"
        assert request.url.params["select"] == "id,name"
        assert request.url.params["order"] == "name.asc"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_single_requests_object_media_type(self):
        recorder = Recorder(200, json={"id": "t1"})
        client = _client(recorder)

        row = await client.select(Query("tracks").eq("id", "t1"), single=True)
        await client.close()

        assert row == {"id": "t1"}
        assert recorder.requests[0].headers["accept"] == OBJECT_MEDIA_TYPE

    @pytest.mark.asyncio
    async def test_no_row_maps_to_not_found(self):
        recorder = Recorder(406, json={"code": "PGRST116", "message": "JSON object requested"})
        client = _client(recorder)

        with pytest.raises(NotFoundError) as exc_info:
            await client.select(Query("tracks").eq("id", "missing"), single=True)
        assert await client.select_one(Query("tracks").eq("id", "missing")) is None
        await client.close()

        assert exc_info.value.status_code == 406

    @pytest.mark.asyncio
    async def test_error_payload_is_kept(self):
        recorder = Recorder(
            400,
            json={"code": "42703", "message": "column does not exist", "hint": "check it"},
        )
        client = _client(recorder)

        with pytest.raises(StoreError) as exc_info:
            await client.select(Query("tracks"))
        await client.close()

        error = exc_info.value
        assert not isinstance(error, NotFoundError)
        assert (error.status_code, error.code, error.hint) == (400, "42703", "check it")
        assert str(error) == "column does not exist (42703)"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        client = _client(Recorder(502, text="Bad gateway"))

        with pytest.raises(StoreError, match="status 502"):
            await client.select(Query("tracks"))
        await client.close()

    @pytest.mark.asyncio
    async def test_malformed_success_body(self):
        client = _client(Recorder(200, text="{not json"))

        with pytest.raises(StoreError, match="Malformed JSON"):
            await client.select(Query("tracks"))
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(StoreError, match="Could not reach the store"):
            await client.select(Query("tracks"))
        await client.close()


class TestCount:
    """Exact counts."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content_range,expected",
        [("0-24/25", 25), ("*/0", 0), (None, 0), ("0-9/*", 0)],
    )
    async def test_reads_content_range(self, content_range, expected):
        headers = {"Content-Range": content_range} if content_range else {}
        recorder = Recorder(200, headers=headers)
        client = _client(recorder)

        total = await client.count(Query("submissions").eq("status", "in_review"))
        await client.close()

        request = recorder.requests[0]
        assert total == expected
        assert request.method == "HEAD"
        assert request.headers["prefer"] == "count=exact"
        assert request.url.params["status"] == "eq.in_review"


class TestWrites:
    """Insert, update, upsert and delete."""

    @pytest.mark.asyncio
    async def test_insert_returns_representation(self):
        recorder = Recorder(201, json={"id": "p1", "student1_id": "s1"})
        client = _client(recorder)

        row = await client.insert("accountability_partners", {"student1_id": "s1"}, single=True)
        await client.close()

        request = recorder.requests[0]
        assert row["id"] == "p1"
        assert request.method == "POST"
        assert request.headers["prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_update_sends_filters(self):
        recorder = Recorder(200, json=[{"id": "x", "status": "approved"}])
        client = _client(recorder)

        await client.update(Query("submissions").eq("id", "x"), {"status": "approved"})
        await client.close()

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.x"

    @pytest.mark.asyncio
    async def test_update_and_delete_without_filter_refused(self):
        recorder = Recorder(200, json=[])
        client = _client(recorder)

        with pytest.raises(StoreError):
            await client.update(Query("submissions"), {"status": "approved"})
        with pytest.raises(StoreError):
            await client.delete(Query("submissions"))
        await client.close()

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_upsert_merges_on_conflict(self):
        recorder = Recorder(201, json=[{"cohort_id": "c1"}])
        client = _client(recorder)

        await client.upsert("admin_settings", {"cohort_id": "c1"}, on_conflict="cohort_id")
        await client.close()

        request = recorder.requests[0]
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        assert request.url.params["on_conflict"] == "cohort_id"

    @pytest.mark.asyncio
    async def test_delete_with_empty_body(self):
        recorder = Recorder(204)
        client = _client(recorder)

        assert await client.delete(Query("whitelist").eq("id", "w1")) is None
        await client.close()

        assert recorder.requests[0].method == "DELETE"
