import asyncio

import pytest

from hlclient.subscriptions.client import SubscriptionClient


async def _drain():
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_l2_book_translates_payload_and_response(stream, translator):
    client = SubscriptionClient(stream, translator)
    btc, eth = [], []
    await client.l2_book("BTC-PERP", btc.append)
    await client.l2_book("ETH-PERP", eth.append, n_sig_figs=5)

    assert stream.payloads[0] == ("l2Book", {"type": "l2Book", "coin": "BTC"})
    assert stream.payloads[1] == ("l2Book", {"type": "l2Book", "coin": "ETH", "nSigFigs": 5})

    stream.emit("l2Book", {"coin": "ETH", "time": 1, "levels": [[], []]})
    await _drain()
    assert btc == []
    assert eth == [{"coin": "ETH-PERP", "time": 1, "levels": [[], []]}]
    await client.close()


@pytest.mark.asyncio
async def test_active_asset_ctx_uses_spot_channel_for_spot_coins(stream, translator):
    client = SubscriptionClient(stream, translator)
    seen = []
    await client.active_asset_ctx("PURR-SPOT", seen.append)
    await client.active_asset_ctx("BTC-PERP", seen.append)
    assert stream.payloads[0] == ("activeSpotAssetCtx", {"type": "activeAssetCtx", "coin": "@1"})
    assert stream.payloads[1] == ("activeAssetCtx", {"type": "activeAssetCtx", "coin": "BTC"})

    stream.emit("activeSpotAssetCtx", {"coin": "@1", "ctx": {"markPx": "0.2"}})
    await _drain()
    assert seen == [{"coin": "PURR-SPOT", "ctx": {"markPx": "0.2"}}]
    await client.close()


@pytest.mark.asyncio
async def test_active_asset_data_matches_coin_and_user(stream, translator):
    client = SubscriptionClient(stream, translator)
    seen = []
    await client.active_asset_data("0xABCD", "BTC-PERP", seen.append)
    stream.emit("activeAssetData", {"user": "0xabcd", "coin": "ETH"})
    stream.emit("activeAssetData", {"user": "0xffff", "coin": "BTC"})
    stream.emit("activeAssetData", {"user": "0xabcd", "coin": "BTC", "leverage": {"type": "cross", "value": 5}})
    await _drain()
    assert seen == [{"user": "0xabcd", "coin": "BTC-PERP", "leverage": {"type": "cross", "value": 5}}]
    await client.close()


@pytest.mark.asyncio
async def test_candle_matches_and_translates_s_field(stream, translator):
    client = SubscriptionClient(stream, translator)
    seen = []
    await client.candle("ETH-PERP", "1m", seen.append)
    assert stream.payloads[0] == ("candle", {"type": "candle", "coin": "ETH", "interval": "1m"})
    stream.emit("candle", {"s": "BTC", "i": "1m"})
    stream.emit("candle", {"s": "ETH", "i": "1m", "coin": "ETH"})
    await _drain()
    # only "s" is translated for candles
    assert seen == [{"s": "ETH-PERP", "i": "1m", "coin": "ETH"}]
    await client.close()


@pytest.mark.asyncio
async def test_trades_match_on_first_trade(stream, translator):
    client = SubscriptionClient(stream, translator)
    seen = []
    await client.trades("BTC-PERP", seen.append)
    stream.emit("trades", [{"coin": "ETH", "px": "1"}])
    stream.emit("trades", [])
    stream.emit("trades", [{"coin": "BTC", "px": "2"}])
    await _drain()
    assert seen == [[{"coin": "BTC-PERP", "px": "2"}]]
    await client.close()


@pytest.mark.asyncio
async def test_all_mids_keys_translated_and_values_floats(stream, translator):
    client = SubscriptionClient(stream, translator)
    seen = []
    await client.all_mids(seen.append)
    stream.emit("allMids", {"mids": {"BTC": "43250.5", "@1": "0.21"}})
    await _drain()
    assert seen == [{"BTC-PERP": 43250.5, "PURR-SPOT": 0.21}]
    await client.close()


@pytest.mark.asyncio
async def test_user_channels_match_lowercased_user(stream, translator):
    client = SubscriptionClient(stream, translator)
    fills, ledger = [], []
    await client.user_fills("0xABCD", fills.append)
    await client.user_non_funding_ledger_updates("0xABCD", ledger.append)

    stream.emit("userFills", {"user": "0xother", "fills": [{"coin": "BTC"}]})
    stream.emit("userFills", {"user": "0xabcd", "fills": [{"coin": "BTC"}]})
    stream.emit("userNonFundingLedgerUpdates", {"user": "0xabcd", "nonFundingLedgerUpdates": [{"delta": {"coin": "BTC"}}]})
    await _drain()

    assert fills == [{"user": "0xabcd", "fills": [{"coin": "BTC-PERP"}]}]
    # ledger updates are delivered untranslated
    assert ledger == [{"user": "0xabcd", "nonFundingLedgerUpdates": [{"delta": {"coin": "BTC"}}]}]
    await client.close()


@pytest.mark.asyncio
async def test_user_events_use_generic_user_channel(stream, translator):
    client = SubscriptionClient(stream, translator)
    seen = []
    await client.user_events("0xabcd", seen.append)
    assert stream.payloads[0] == ("user", {"type": "userEvents", "user": "0xabcd"})
    stream.emit("user", {"fills": [{"coin": "ETH"}]})
    await _drain()
    assert seen == [{"fills": [{"coin": "ETH-PERP"}]}]
    await client.close()


@pytest.mark.asyncio
async def test_without_translator_payloads_pass_through(stream):
    client = SubscriptionClient(stream)
    seen = []
    await client.bbo("BTC", seen.append)
    assert stream.payloads[0] == ("bbo", {"type": "bbo", "coin": "BTC"})
    stream.emit("bbo", {"coin": "BTC", "bbo": [None, None]})
    await _drain()
    assert seen == [{"coin": "BTC", "bbo": [None, None]}]
    await client.close()
