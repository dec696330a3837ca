"""Tests for the Gist API client against an in-memory gist server."""

from __future__ import annotations

import json

import httpx
import pytest

from bookmark_queue.adapters.gist.client import GistClient
from bookmark_queue.core.errors import ErrorCategory, StoreRejectedError, TransportError
from tests.fakes import QUEUE_FILE, TEST_GIST_ID, TEST_TOKEN, FakeGistServer


def _client(server: FakeGistServer, token: str = TEST_TOKEN) -> GistClient:
    return GistClient(token, transport=server.transport)


@pytest.mark.asyncio
async def test_read_file_returns_content_and_sends_headers():
    server = FakeGistServer(files={QUEUE_FILE: "[]"})
    async with _client(server) as client:
        content = await client.read_file(TEST_GIST_ID, QUEUE_FILE)

    assert content == "[]"
    (request,) = server.requests
    assert request.method == "GET"
    assert request.url.path == f"/gists/{TEST_GIST_ID}"
    assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.headers["User-Agent"] == "bookmark-queue"


@pytest.mark.asyncio
async def test_read_file_absent_returns_none():
    server = FakeGistServer(files={"other.md": "# notes"})
    async with _client(server) as client:
        assert await client.read_file(TEST_GIST_ID, QUEUE_FILE) is None


@pytest.mark.asyncio
async def test_truncated_file_is_fetched_from_raw_url():
    full = json.dumps([{"url": f"https://e.com/{i}"} for i in range(50)])
    server = FakeGistServer(files={QUEUE_FILE: full}, truncate_over=32)
    async with _client(server) as client:
        content = await client.read_file(TEST_GIST_ID, QUEUE_FILE)

    assert content == full
    assert [r.url.host for r in server.requests] == [
        "api.github.com",
        "gist.githubusercontent.com",
    ]


@pytest.mark.asyncio
async def test_write_file_patches_full_content():
    server = FakeGistServer(files={QUEUE_FILE: "[]", "other.md": "keep"})
    async with _client(server) as client:
        gist = await client.write_file(TEST_GIST_ID, QUEUE_FILE, '[{"a": 1}]')

    (request,) = server.requests
    assert request.method == "PATCH"
    assert json.loads(request.content) == {"files": {QUEUE_FILE: {"content": '[{"a": 1}]'}}}
    assert server.content() == '[{"a": 1}]'
    assert server.content("other.md") == "keep"
    assert gist.id == TEST_GIST_ID


@pytest.mark.asyncio
async def test_bad_credentials_is_store_rejected():
    server = FakeGistServer(files={QUEUE_FILE: "[]"})
    async with _client(server, token="wrong") as client:
        with pytest.raises(StoreRejectedError) as exc_info:
            await client.read_file(TEST_GIST_ID, QUEUE_FILE)

    err = exc_info.value
    assert err.status_code == 401
    assert err.store_message == "Bad credentials"
    assert err.category is ErrorCategory.STORE_REJECTED
    assert err.message.startswith("Failed to fetch Gist: 401 Bad credentials")
    assert not err.retryable


@pytest.mark.asyncio
async def test_unknown_gist_is_store_rejected():
    server = FakeGistServer()
    async with _client(server) as client:
        with pytest.raises(StoreRejectedError) as exc_info:
            await client.read_file("missing", QUEUE_FILE)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_write_rejection_carries_status():
    server = FakeGistServer(files={QUEUE_FILE: "[]"})
    server.fail_next["PATCH"].append(422)
    async with _client(server) as client:
        with pytest.raises(StoreRejectedError) as exc_info:
            await client.write_file(TEST_GIST_ID, QUEUE_FILE, "[]")
    assert exc_info.value.status_code == 422
    assert exc_info.value.operation == "update Gist"


@pytest.mark.asyncio
@pytest.mark.parametrize("exc_type", [httpx.ConnectError, httpx.ReadTimeout])
async def test_transport_failures_are_wrapped(exc_type):
    server = FakeGistServer(files={QUEUE_FILE: "[]"})
    server.fail_next["GET"].append(exc_type)
    async with _client(server) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.read_file(TEST_GIST_ID, QUEUE_FILE)

    err = exc_info.value
    assert isinstance(err.cause, exc_type)
    assert isinstance(err.__cause__, exc_type)
    assert err.retryable


@pytest.mark.asyncio
async def test_message_only_body_is_rejected_even_on_success():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": "API rate limit exceeded"})

    async with GistClient(TEST_TOKEN, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(StoreRejectedError, match="API rate limit exceeded"):
            await client.get_gist(TEST_GIST_ID)


@pytest.mark.asyncio
async def test_non_json_read_body_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    async with GistClient(TEST_TOKEN, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(StoreRejectedError, match="not JSON"):
            await client.get_gist(TEST_GIST_ID)


@pytest.mark.asyncio
async def test_accepted_write_with_odd_body_is_not_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="ok")

    async with GistClient(TEST_TOKEN, transport=httpx.MockTransport(handler)) as client:
        gist = await client.write_file(TEST_GIST_ID, QUEUE_FILE, "[]")
    assert gist.files == {}


def test_client_requires_context_manager():
    client = GistClient(TEST_TOKEN)
    with pytest.raises(RuntimeError, match="async context manager"):
        _ = client.client
