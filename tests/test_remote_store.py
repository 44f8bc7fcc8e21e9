"""GitHub contents store tests using httpx.MockTransport."""

import base64
import json

import httpx
import pytest

from publisher.errors import StaleRevisionError, WriteError
from publisher.services.remote_store import GitHubContentStore

CONTENTS = "/repos/owner/repo/contents/static/60s/2024-01-01.json"


def _store(settings, handler) -> GitHubContentStore:
    client = httpx.AsyncClient(
        base_url="https://api.github.com", transport=httpx.MockTransport(handler)
    )
    return GitHubContentStore(settings, client=client)


@pytest.mark.asyncio
async def test_read_decodes_content_and_revision(settings):
    encoded = base64.encodebytes(b'{"date": "2024-01-01"}').decode()

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == CONTENTS
        assert request.url.params["ref"] == "main"
        return httpx.Response(200, json={"content": encoded, "sha": "abc"})

    async with _store(settings, handler) as store:
        stored = await store.read("static/60s/2024-01-01.json")

    assert stored is not None
    assert stored.content == b'{"date": "2024-01-01"}'
    assert stored.revision == "abc"


@pytest.mark.asyncio
async def test_read_missing_file_returns_none(settings):
    async with _store(settings, lambda r: httpx.Response(404)) as store:
        assert await store.read("static/60s/2024-01-01.json") is None


@pytest.mark.asyncio
async def test_read_server_error_is_not_treated_as_absent(settings):
    async with _store(settings, lambda r: httpx.Response(500)) as store:
        with pytest.raises(WriteError) as exc_info:
            await store.read("static/60s/2024-01-01.json")

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_write_create_omits_sha(settings):
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(201, json={"content": {"sha": "new-sha"}})

    async with _store(settings, handler) as store:
        revision = await store.write(
            "static/60s/2024-01-01.json", b"data", None, "Create"
        )

    assert revision == "new-sha"
    assert "sha" not in seen
    assert seen["branch"] == "main"
    assert seen["message"] == "Create"
    assert base64.b64decode(seen["content"]) == b"data"


@pytest.mark.asyncio
async def test_write_update_sends_sha(settings):
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"content": {"sha": "next"}})

    async with _store(settings, handler) as store:
        await store.write("static/60s/2024-01-01.json", b"data", "old", "Update")

    assert seen["sha"] == "old"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [409, 422])
async def test_write_conflict_raises_stale_revision(settings, status_code):
    async with _store(settings, lambda r: httpx.Response(status_code)) as store:
        with pytest.raises(StaleRevisionError):
            await store.write("static/60s/2024-01-01.json", b"data", "old", "Update")


@pytest.mark.asyncio
async def test_write_other_error_raises_write_error(settings):
    async with _store(settings, lambda r: httpx.Response(403)) as store:
        with pytest.raises(WriteError) as exc_info:
            await store.write("static/60s/2024-01-01.json", b"data", None, "Create")

    assert not isinstance(exc_info.value, StaleRevisionError)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_network_error_raises_write_error(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    async with _store(settings, handler) as store:
        with pytest.raises(WriteError, match="Network error"):
            await store.write("static/60s/2024-01-01.json", b"data", None, "Create")
