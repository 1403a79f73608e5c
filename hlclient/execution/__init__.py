"""
Execution package.

Signed write path (ActionBuilder, ExchangeClient), response validation, and
the derived trading operations built on top of them.
"""

from hlclient.execution.action_builder import ActionBuilder, SignedRequest
from hlclient.execution.exchange_client import ExchangeClient
from hlclient.execution.response_validator import validate_response
from hlclient.execution.trading_ops import (
    Category,
    DEFAULT_SLIPPAGE,
    TradingOperations,
    is_perp_symbol,
    is_spot_symbol,
    slippage_price,
)

__all__ = [
    "ActionBuilder",
    "SignedRequest",
    "ExchangeClient",
    "validate_response",
    "Category",
    "DEFAULT_SLIPPAGE",
    "TradingOperations",
    "is_perp_symbol",
    "is_spot_symbol",
    "slippage_price",
]
