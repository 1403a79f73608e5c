import asyncio

import pytest

from hlclient.core.abort import AbortSignal
from hlclient.errors import AbortError, ApiRequestError
from hlclient.execution.exchange_client import ExchangeClient
from hlclient.infra.nonce import NonceSequencer

from conftest import FakeTransport


def _client(transport, signer, translator=None, **kw):
    return ExchangeClient(transport, signer, translator=translator, nonce_manager=NonceSequencer(lambda: 500), **kw)


@pytest.mark.asyncio
async def test_order_posts_signed_wire_body(transport, signer, translator):
    client = _client(transport, signer, translator, default_vault_address="0xvault")
    resp = await client.order([{"a": "BTC-PERP", "b": True, "p": 43250.5, "s": 0.01, "t": {"limit": {"tif": "Gtc"}}}])
    assert resp["status"] == "ok"

    group, body = transport.requests[0]
    assert group == "exchange"
    assert list(body) == ["action", "signature", "nonce", "vaultAddress"]
    assert body["action"] == {
        "type": "order",
        "orders": [{"a": 0, "b": True, "p": "43250.5", "s": "0.01", "r": False, "t": {"limit": {"tif": "Gtc"}}}],
        "grouping": "na",
    }
    assert body["nonce"] == 500
    assert body["vaultAddress"] == "0xvault"


@pytest.mark.asyncio
async def test_cancel_partial_failure_surfaces_envelope(signer, translator):
    envelope = {"status": "ok", "response": {"type": "cancel", "data": {"statuses": ["success", {"error": "Order was never placed"}]}}}
    client = _client(FakeTransport(lambda g, b: envelope), signer, translator)
    with pytest.raises(ApiRequestError) as exc:
        await client.cancel([{"a": "BTC-PERP", "o": 1}, {"a": "ETH-PERP", "o": 2}])
    assert exc.value.response == envelope


@pytest.mark.asyncio
async def test_err_status_raises(signer):
    client = _client(FakeTransport(lambda g, b: {"status": "err", "response": "User or API Wallet does not exist."}), signer)
    with pytest.raises(ApiRequestError, match="does not exist"):
        await client.schedule_cancel(1_700_000_000_000)


@pytest.mark.asyncio
async def test_write_variants_build_expected_actions(transport, signer, translator):
    client = _client(transport, signer, translator)
    await client.update_leverage("ETH-PERP", 5, is_cross=False)
    await client.update_isolated_margin(1, True, 1_000_000)
    await client.twap_cancel("BTC-PERP", 9)
    await client.cancel_by_cloid([{"asset": "PURR-SPOT", "cloid": "0x" + "00" * 16}])
    await client.modify(42, {"a": "BTC-PERP", "b": False, "p": "100", "s": "1", "t": {"limit": {"tif": "Alo"}}})
    await client.twap_order({"a": "ETH-PERP", "b": True, "s": "1", "r": False, "m": 30, "t": False})

    actions = [b["action"] for b in transport.exchange_bodies()]
    assert actions[0] == {"type": "updateLeverage", "asset": 1, "isCross": False, "leverage": 5}
    assert actions[1] == {"type": "updateIsolatedMargin", "asset": 1, "isBuy": True, "ntli": 1_000_000}
    assert actions[2] == {"type": "twapCancel", "a": 0, "t": 9}
    assert actions[3]["cancels"] == [{"asset": 10001, "cloid": "0x" + "00" * 16}]
    assert actions[4]["oid"] == 42 and actions[4]["order"]["a"] == 0
    assert actions[5]["twap"] == {"a": 1, "b": True, "s": "1", "r": False, "m": 30, "t": False}


@pytest.mark.asyncio
async def test_aborted_signal_stops_before_signing(transport, signer):
    client = _client(transport, signer)
    signal = AbortSignal()
    signal.abort("user")
    with pytest.raises(AbortError):
        await client.schedule_cancel(signal=signal)
    assert signer.messages == []
    assert transport.requests == []


def test_transport_failure_propagates(signer):
    async def inner():
        client = _client(FakeTransport(lambda g, b: ConnectionError("reset")), signer)
        with pytest.raises(ConnectionError):
            await client.schedule_cancel()

    asyncio.run(inner())
