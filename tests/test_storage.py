"""Unit tests for the storage URL resolver."""

import httpx
import pytest

from app.services.storage import StorageClient
from app.services.ttl_cache import BoundedTTLCache


def _client(handler, cache=None) -> StorageClient:
    return StorageClient(
        base_url="https://storage.test/api",
        api_key="secret",
        url_cache=cache if cache is not None else BoundedTTLCache(maxsize=10, ttl=60),
        transport=httpx.MockTransport(handler),
    )


class TestResolveUrl:
    """Tests for StorageClient.resolve_url."""

    @pytest.mark.asyncio
    async def test_resolves_known_id(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"url": "https://cdn.test/abc.jpg"})

        client = _client(handler)

        assert await client.resolve_url("abc") == "https://cdn.test/abc.jpg"
        assert seen[0].url.path == "/api/storage/abc"
        assert seen[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self):
        client = _client(lambda request: httpx.Response(404))
        assert await client.resolve_url("missing") is None

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self):
        client = _client(lambda request: httpx.Response(500))
        assert await client.resolve_url("abc") is None

    @pytest.mark.asyncio
    async def test_connection_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        assert await client.resolve_url("abc") is None

    @pytest.mark.asyncio
    async def test_resolved_urls_are_cached(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"url": "https://cdn.test/abc.jpg"})

        cache = BoundedTTLCache(maxsize=10, ttl=60)
        client = _client(handler, cache)

        await client.resolve_url("abc")
        await client.resolve_url("abc")

        assert len(calls) == 1
        assert cache.get("abc") == "https://cdn.test/abc.jpg"

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        responses = iter([httpx.Response(503), httpx.Response(200, json={"url": "u"})])
        client = _client(lambda request: next(responses))

        assert await client.resolve_url("abc") is None
        assert await client.resolve_url("abc") == "u"


class TestResolveUrls:
    """Tests for StorageClient.resolve_urls."""

    @pytest.mark.asyncio
    async def test_drops_failures_and_keeps_order(self):
        def handler(request):
            storage_id = request.url.path.rsplit("/", 1)[-1]
            if storage_id == "bad":
                return httpx.Response(404)
            return httpx.Response(200, json={"url": f"https://cdn.test/{storage_id}"})

        client = _client(handler)

        urls = await client.resolve_urls(["a", "bad", "b"])

        assert urls == ["https://cdn.test/a", "https://cdn.test/b"]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        client = _client(lambda request: httpx.Response(500))
        assert await client.resolve_urls(None) == []
        assert await client.resolve_urls([]) == []
