"""
hlclient: asyncio client for the Hyperliquid exchange.

Write path: ExchangeClient (ActionBuilder -> signer -> transport -> validator).
Read path: InfoClient for queries, SubscriptionClient for streams.
Derived operations (bulk cancel, market close) live in TradingOperations.
"""

from hlclient.core.abort import AbortSignal
from hlclient.core.assets import ByIndex, BySymbol
from hlclient.core.symbols import MetaSymbolTranslator
from hlclient.errors import (
    AbortError,
    ApiRequestError,
    ConfigError,
    HttpRequestError,
    HyperliquidClientError,
    NoMatchingOrdersError,
    NoOrdersError,
    PositionNotFoundError,
    TransportError,
    UnknownAssetError,
)
from hlclient.execution.exchange_client import ExchangeClient
from hlclient.execution.trading_ops import TradingOperations
from hlclient.infra.async_info import InfoClient
from hlclient.infra.http_transport import HttpTransport
from hlclient.subscriptions.client import SubscriptionClient

__version__ = "0.1.0"

__all__ = [
    "AbortSignal",
    "ByIndex",
    "BySymbol",
    "MetaSymbolTranslator",
    "AbortError",
    "ApiRequestError",
    "ConfigError",
    "HttpRequestError",
    "HyperliquidClientError",
    "NoMatchingOrdersError",
    "NoOrdersError",
    "PositionNotFoundError",
    "TransportError",
    "UnknownAssetError",
    "ExchangeClient",
    "TradingOperations",
    "InfoClient",
    "HttpTransport",
    "SubscriptionClient",
]
