"""
Batched ERC20 balance lookups on HyperEVM via Multicall3.

One `aggregate` eth_call returns (blockNumber, returnData[]); each entry is
decoded to an integer balance. Entries that are empty or cannot be decoded
count as zero. A failure of the whole RPC call is raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

from eth_abi import encode
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from hlclient.core.utils import format_units
from hlclient.infra.logging_cfg import log_event

log = logging.getLogger("hlclient")

HYPERLIQUID_RPC_URLS = {
    "mainnet": "https://rpc.hyperliquid.xyz/evm",
    "testnet": "https://rpc.hyperliquid-testnet.xyz/evm",
}
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_DECIMALS = 18

# balanceOf(address)
BALANCE_OF_SELECTOR = bytes.fromhex("70a08231")

MULTICALL3_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "target", "type": "address"},
                    {"internalType": "bytes", "name": "callData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Call[]",
                "name": "calls",
                "type": "tuple[]",
            }
        ],
        "name": "aggregate",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes[]", "name": "returnData", "type": "bytes[]"},
        ],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "addr", "type": "address"}],
        "name": "getEthBalance",
        "outputs": [{"internalType": "uint256", "name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: Optional[str] = None
    decimals: Optional[int] = None


@dataclass
class TokenBalance:
    address: str
    balance: int
    symbol: Optional[str] = None
    decimals: Optional[int] = None
    formatted_balance: Optional[str] = None


@dataclass
class BalanceQueryResult:
    wallet_address: str
    block_number: Optional[int] = None
    balances: List[TokenBalance] = field(default_factory=list)


def balance_of_calldata(wallet: str) -> bytes:
    return BALANCE_OF_SELECTOR + encode(["address"], [Web3.to_checksum_address(wallet)])


def _decode_uint(data: Union[bytes, str, None]) -> int:
    if data is None:
        return 0
    if isinstance(data, (bytes, bytearray)):
        return int.from_bytes(data, "big") if data else 0
    if isinstance(data, str):
        text = data[2:] if data.startswith("0x") else data
        if not text:
            return 0
        try:
            return int(text, 16)
        except ValueError:
            return 0
    return 0


def decode_balances(tokens: Sequence[TokenInfo], return_data: Sequence[Union[bytes, str, None]]) -> List[TokenBalance]:
    """
    Pair each token with its aggregate return entry.

    Missing, empty ("0x") or malformed entries decode to 0. The formatted
    balance is only filled when the token's decimals are known.
    """
    out: List[TokenBalance] = []
    for i, token in enumerate(tokens):
        raw = return_data[i] if i < len(return_data) else None
        balance = _decode_uint(raw)
        formatted = format_units(balance, token.decimals) if token.decimals is not None else None
        out.append(
            TokenBalance(
                address=token.address,
                balance=balance,
                symbol=token.symbol,
                decimals=token.decimals,
                formatted_balance=formatted,
            )
        )
    return out


class MulticallClient:
    def __init__(self, is_testnet: bool = False, rpc_url: Optional[str] = None, w3: Optional[AsyncWeb3] = None) -> None:
        self.rpc_url = rpc_url or HYPERLIQUID_RPC_URLS["testnet" if is_testnet else "mainnet"]
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        self.contract = self.w3.eth.contract(address=Web3.to_checksum_address(MULTICALL3_ADDRESS), abi=MULTICALL3_ABI)

    async def get_token_balances(self, wallet_address: str, tokens: Sequence[TokenInfo]) -> BalanceQueryResult:
        if not tokens:
            return BalanceQueryResult(wallet_address=wallet_address)
        calldata = balance_of_calldata(wallet_address)
        calls: List[Tuple[str, bytes]] = [(Web3.to_checksum_address(t.address), calldata) for t in tokens]
        block_number, return_data = await self.contract.functions.aggregate(calls).call()
        log_event(log, "multicall_balances", level=logging.DEBUG, n=len(calls), block=block_number)
        return BalanceQueryResult(
            wallet_address=wallet_address,
            block_number=block_number,
            balances=decode_balances(tokens, return_data),
        )

    async def get_native_balance(self, wallet_address: str) -> TokenBalance:
        raw: Any = await self.contract.functions.getEthBalance(Web3.to_checksum_address(wallet_address)).call()
        balance = int(raw or 0)
        return TokenBalance(
            address=ZERO_ADDRESS,
            balance=balance,
            symbol="HYPE",
            decimals=NATIVE_DECIMALS,
            formatted_balance=format_units(balance, NATIVE_DECIMALS),
        )
