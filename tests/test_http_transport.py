import httpx
import pytest

from hlclient.core.abort import AbortSignal
from hlclient.core.json_utils import loads
from hlclient.errors import AbortError, HttpRequestError
from hlclient.infra.http_transport import HttpTransport


def _transport(handler):
    client = httpx.AsyncClient(base_url="https://api.test", transport=httpx.MockTransport(handler))
    return HttpTransport("https://api.test", client=client), client


@pytest.mark.asyncio
async def test_posts_to_group_and_preserves_key_order():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, json={"status": "ok"})

    transport, client = _transport(handler)
    body = {"action": {"type": "order", "orders": [], "grouping": "na"}, "nonce": 1}
    assert await transport.request("exchange", body) == {"status": "ok"}
    assert seen["path"] == "/exchange"
    assert list(loads(seen["body"])["action"]) == ["type", "orders", "grouping"]
    await client.aclose()


@pytest.mark.asyncio
async def test_http_error_status_raises():
    transport, client = _transport(lambda request: httpx.Response(429, text="rate limited"))
    with pytest.raises(HttpRequestError) as exc:
        await transport.request("info", {"type": "meta"})
    assert exc.value.status_code == 429
    assert "rate limited" in str(exc.value)
    await client.aclose()


@pytest.mark.asyncio
async def test_aborted_signal_rejects_locally():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    transport, client = _transport(handler)
    signal = AbortSignal()
    signal.abort("shutdown")
    with pytest.raises(AbortError):
        await transport.request("info", {"type": "meta"}, signal)
    assert calls == []
    await client.aclose()


@pytest.mark.asyncio
async def test_shared_client_not_closed():
    transport, client = _transport(lambda request: httpx.Response(200, json={}))
    async with transport:
        pass
    assert not client.is_closed
    await client.aclose()
