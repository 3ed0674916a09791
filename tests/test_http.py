import asyncio

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from bizpulse.clients import NotificationClient
from bizpulse.clients.http import HttpClient
from bizpulse.errors import MalformedResponseError, TransientError
from bizpulse.models import Notification


def make_app(hits):
    async def json_body(request):
        return web.json_response({"ok": True})

    async def no_content(request):
        return web.Response(status=204)

    async def plain_text(request):
        return web.Response(text="not json")

    async def unavailable(request):
        return web.Response(status=503, text="busy")

    async def slow(request):
        await asyncio.sleep(0.5)
        return web.json_response({})

    async def webhook(request):
        hits.append(await request.json())
        return web.Response(text="ok")

    app = web.Application()
    app.router.add_get("/json", json_body)
    app.router.add_get("/empty", no_content)
    app.router.add_get("/text", plain_text)
    app.router.add_get("/unavailable", unavailable)
    app.router.add_get("/slow", slow)
    app.router.add_post("/hook", webhook)
    return app


@pytest.fixture
def hits():
    return []


@pytest_asyncio.fixture
async def server(hits):
    server = test_utils.TestServer(make_app(hits))
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def client():
    client = HttpClient(timeout=0.2)
    yield client
    await client.close()


@pytest.mark.asyncio
async def test_json_body_is_decoded(server, client):
    assert await client._request_json("GET", str(server.make_url("/json"))) == {"ok": True}


@pytest.mark.asyncio
async def test_no_content_returns_none(server, client):
    assert await client._request_json("GET", str(server.make_url("/empty"))) is None


@pytest.mark.asyncio
async def test_non_json_body_is_malformed(server, client):
    with pytest.raises(MalformedResponseError, match="Non-JSON response"):
        await client._request_json("GET", str(server.make_url("/text")))


@pytest.mark.asyncio
async def test_text_body_is_returned_undecoded(server, client):
    assert await client._request_text("GET", str(server.make_url("/text"))) == "not json"


@pytest.mark.asyncio
async def test_error_status_is_transient(server, client):
    with pytest.raises(TransientError, match="HTTP 503") as excinfo:
        await client._request_json("GET", str(server.make_url("/unavailable")))
    assert excinfo.value.source == "http"
    assert "busy" in str(excinfo.value)


@pytest.mark.asyncio
async def test_timeout_is_transient(server, client):
    with pytest.raises(TransientError, match="Timeout calling"):
        await client._request_json("GET", str(server.make_url("/slow")))


@pytest.mark.asyncio
async def test_connection_error_is_transient(hits, client):
    server = test_utils.TestServer(make_app(hits))
    await server.start_server()
    url = str(server.make_url("/json"))
    await server.close()

    with pytest.raises(TransientError):
        await client._request_json("GET", url)


@pytest.mark.asyncio
async def test_slack_plain_text_acknowledgement_counts_as_delivered(server, hits):
    notifier = NotificationClient(slack_webhook_url=str(server.make_url("/hook")), resend_api_key=None)
    try:
        outcomes = await notifier.send(Notification(subject="Batch failed", message="2 of 10 failed"), ("slack",))
    finally:
        await notifier.close()

    assert outcomes == {"slack": True}
    assert len(hits) == 1
    assert hits[0]["attachments"][0]["title"] == "Batch failed"
