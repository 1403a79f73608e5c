from hlclient.evm.multicall import (
    HYPERLIQUID_RPC_URLS,
    MULTICALL3_ADDRESS,
    BalanceQueryResult,
    MulticallClient,
    TokenBalance,
    TokenInfo,
    decode_balances,
)
from hlclient.evm.tokens import EvmTokenService, get_system_address

__all__ = [
    "HYPERLIQUID_RPC_URLS",
    "MULTICALL3_ADDRESS",
    "BalanceQueryResult",
    "MulticallClient",
    "TokenBalance",
    "TokenInfo",
    "decode_balances",
    "EvmTokenService",
    "get_system_address",
]
