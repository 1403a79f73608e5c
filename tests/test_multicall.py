from unittest.mock import AsyncMock, MagicMock

import pytest

from hlclient.evm.multicall import (
    HYPERLIQUID_RPC_URLS,
    MulticallClient,
    TokenInfo,
    balance_of_calldata,
    decode_balances,
)

WALLET = "0x1234567890abcdef1234567890abcdef12345678"
TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20


def test_decode_empty_and_valid_entries():
    tokens = [TokenInfo(TOKEN_A, "A"), TokenInfo(TOKEN_B, "B")]
    out = decode_balances(tokens, ["0x", "0x" + "00" * 31 + "02"])
    assert [b.balance for b in out] == [0, 2]
    # no decimals, no formatted balance
    assert [b.formatted_balance for b in out] == [None, None]


def test_decode_formats_only_with_decimals():
    tokens = [TokenInfo(TOKEN_A, "A", decimals=6), TokenInfo(TOKEN_B, "B")]
    raw = [(1_500_000).to_bytes(32, "big"), (7).to_bytes(32, "big")]
    out = decode_balances(tokens, raw)
    assert out[0].balance == 1_500_000
    assert out[0].formatted_balance == "1.5"
    assert out[1].formatted_balance is None


def test_decode_malformed_and_missing_entries_are_zero():
    tokens = [TokenInfo(TOKEN_A, decimals=18), TokenInfo(TOKEN_B, decimals=18), TokenInfo(TOKEN_A, decimals=18)]
    out = decode_balances(tokens, ["0xzz", b""])
    assert [b.balance for b in out] == [0, 0, 0]
    assert out[0].formatted_balance == "0"


def test_balance_of_calldata_layout():
    data = balance_of_calldata(WALLET)
    assert data[:4].hex() == "70a08231"
    assert len(data) == 36
    assert data[-20:].hex() == WALLET[2:]


def _client_with(aggregate_result=None, eth_balance=None, error=None):
    w3 = MagicMock()
    contract = MagicMock()
    w3.eth.contract.return_value = contract
    if error is not None:
        contract.functions.aggregate.return_value.call = AsyncMock(side_effect=error)
    else:
        contract.functions.aggregate.return_value.call = AsyncMock(return_value=aggregate_result)
    contract.functions.getEthBalance.return_value.call = AsyncMock(return_value=eth_balance)
    return MulticallClient(w3=w3), contract


@pytest.mark.asyncio
async def test_get_token_balances_batches_one_aggregate_call():
    client, contract = _client_with(aggregate_result=(123, [b"", (5).to_bytes(32, "big")]))
    result = await client.get_token_balances(WALLET, [TokenInfo(TOKEN_A, "A", 0), TokenInfo(TOKEN_B, "B", 1)])

    assert result.block_number == 123
    assert result.wallet_address == WALLET
    assert [(b.balance, b.formatted_balance) for b in result.balances] == [(0, "0"), (5, "0.5")]
    (calls,), _ = contract.functions.aggregate.call_args
    assert len(calls) == 2
    assert calls[0][1] == balance_of_calldata(WALLET)


@pytest.mark.asyncio
async def test_rpc_failure_propagates():
    client, _ = _client_with(error=ConnectionError("rpc down"))
    with pytest.raises(ConnectionError):
        await client.get_token_balances(WALLET, [TokenInfo(TOKEN_A)])


@pytest.mark.asyncio
async def test_native_balance_formatted_with_18_decimals():
    client, _ = _client_with(eth_balance=2 * 10**18 + 5 * 10**17)
    bal = await client.get_native_balance(WALLET)
    assert bal.symbol == "HYPE"
    assert bal.balance == 2_500_000_000_000_000_000
    assert bal.formatted_balance == "2.5"


def test_rpc_url_selection():
    w3 = MagicMock()
    assert MulticallClient(is_testnet=True, w3=w3).rpc_url == HYPERLIQUID_RPC_URLS["testnet"]
    assert MulticallClient(w3=w3).rpc_url == HYPERLIQUID_RPC_URLS["mainnet"]
    assert MulticallClient(rpc_url="http://localhost:8545", w3=w3).rpc_url == "http://localhost:8545"
