"""
Tests for SubscriptionRouter - message matching, ordering and lifecycle.
"""

import asyncio

import pytest

from hlclient.subscriptions.router import SubscriptionRouter, SubscriptionState


def _by_coin(coin):
    return lambda data: data.get("coin") == coin


async def _drain():
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_listener_only_sees_its_coin(stream):
    router = SubscriptionRouter(stream)
    btc, eth = [], []
    await router.subscribe("l2Book", {"type": "l2Book", "coin": "BTC"}, btc.append, predicate=_by_coin("BTC"))
    await router.subscribe("l2Book", {"type": "l2Book", "coin": "ETH"}, eth.append, predicate=_by_coin("ETH"))

    stream.emit("l2Book", {"coin": "ETH", "levels": [[], []]})
    stream.emit("l2Book", {"coin": "BTC", "levels": [[], []]})
    await _drain()

    assert [m["coin"] for m in btc] == ["BTC"]
    assert [m["coin"] for m in eth] == ["ETH"]
    await router.close()


@pytest.mark.asyncio
async def test_pending_until_first_match(stream):
    router = SubscriptionRouter(stream)
    sub = await router.subscribe("bbo", {"type": "bbo", "coin": "BTC"}, lambda d: None, predicate=_by_coin("BTC"))
    assert sub.state is SubscriptionState.PENDING
    stream.emit("bbo", {"coin": "ETH"})
    await _drain()
    assert sub.state is SubscriptionState.PENDING
    stream.emit("bbo", {"coin": "BTC"})
    await _drain()
    assert sub.state is SubscriptionState.ACTIVE
    await router.close()


@pytest.mark.asyncio
async def test_ordering_preserved_when_translation_suspends(stream):
    router = SubscriptionRouter(stream)
    seen = []

    async def slow_converter(data):
        # first message translates slower than the second
        await asyncio.sleep(0.02 if data["seq"] == 1 else 0)
        return data

    await router.subscribe("trades", {"type": "trades"}, lambda d: seen.append(d["seq"]), converter=slow_converter)
    stream.emit("trades", {"seq": 1})
    stream.emit("trades", {"seq": 2})
    stream.emit("trades", {"seq": 3})
    await asyncio.sleep(0.05)
    assert seen == [1, 2, 3]
    await router.close()


@pytest.mark.asyncio
async def test_no_delivery_after_unsubscribe_resolves(stream):
    router = SubscriptionRouter(stream)
    seen = []
    gate = asyncio.Event()

    async def converter(data):
        await gate.wait()
        return data

    sub = await router.subscribe("userFills", {"type": "userFills", "user": "0xa"}, seen.append, converter=converter)
    stream.emit("userFills", {"user": "0xa"})
    await _drain()
    # translation for the message is suspended; unsubscribe resolves first
    await sub.unsubscribe()
    gate.set()
    await _drain()

    assert seen == []
    assert sub.state is SubscriptionState.CLOSED
    assert stream.handles[0].unsubscribed


@pytest.mark.asyncio
async def test_last_unsubscribe_tears_channel_down(stream):
    router = SubscriptionRouter(stream)
    a = await router.subscribe("allMids", {"type": "allMids"}, lambda d: None)
    b = await router.subscribe("allMids", {"type": "allMids"}, lambda d: None)
    await a.unsubscribe()
    assert router.subscriptions("allMids") == (b,)
    await b.unsubscribe()
    assert router.subscriptions("allMids") == ()
    assert "allMids" not in router._workers
    assert all(h.unsubscribed for h in stream.handles)
    await _drain()


@pytest.mark.asyncio
async def test_non_discriminating_channel_reaches_every_listener(stream):
    router = SubscriptionRouter(stream)
    first, second = [], []
    s1 = await router.subscribe("user", {"type": "userEvents", "user": "0xa"}, first.append)
    s2 = await router.subscribe("user", {"type": "userEvents", "user": "0xb"}, second.append)
    assert s1.state is SubscriptionState.ACTIVE and s2.state is SubscriptionState.ACTIVE

    # the transport fans the message out to both registrations
    stream.emit("user", {"fills": []})
    await _drain()
    assert first == [{"fills": []}]
    assert second == [{"fills": []}]
    await router.close()


@pytest.mark.asyncio
async def test_listener_added_during_dispatch_misses_current_message(stream):
    router = SubscriptionRouter(stream)
    late = []

    async def register_late(data):
        await router.subscribe("trades", {"type": "trades"}, late.append)

    await router.subscribe("trades", {"type": "trades"}, register_late)
    stream.emit("trades", {"seq": 1})
    await _drain()
    assert late == []

    stream.emit("trades", {"seq": 2})
    await _drain()
    assert late == [{"seq": 2}]
    await router.close()


@pytest.mark.asyncio
async def test_listener_error_does_not_stop_delivery(stream):
    router = SubscriptionRouter(stream)
    good = []

    def bad(data):
        raise RuntimeError("boom")

    await router.subscribe("notification", {"type": "notification"}, bad)
    await router.subscribe("notification", {"type": "notification"}, good.append)
    stream.emit("notification", {"notification": "a"})
    stream.emit("notification", {"notification": "b"})
    await _drain()
    assert [m["notification"] for m in good] == ["a", "b"]
    await router.close()


@pytest.mark.asyncio
async def test_close_stops_everything(stream):
    router = SubscriptionRouter(stream)
    seen = []
    subs = [
        await router.subscribe("l2Book", {"type": "l2Book", "coin": "BTC"}, seen.append, predicate=_by_coin("BTC")),
        await router.subscribe("allMids", {"type": "allMids"}, seen.append),
    ]
    await router.close()
    stream.emit("allMids", {"mids": {}})
    await _drain()
    assert seen == []
    assert all(s.closed for s in subs)
    assert stream.closed
