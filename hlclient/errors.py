"""
Error taxonomy for the client.

Every error raised by this package derives from HyperliquidClientError so
callers can catch the whole family at once. Errors coming from signer
delegates and from the network layer below the transport are not wrapped.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class HyperliquidClientError(Exception):
    """Base class for all client errors."""


class ConfigError(HyperliquidClientError):
    """Invalid or missing configuration."""


class UnknownAssetError(HyperliquidClientError):
    """A display symbol could not be resolved to an asset index."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Unknown asset: {symbol}")
        self.symbol = symbol


class ApiRequestError(HyperliquidClientError):
    """
    The venue rejected a request, or one or more items of a bulk request.

    `response` always holds the full envelope so callers can inspect which
    items of a bulk order/cancel went through.
    """

    def __init__(self, response: Dict[str, Any]) -> None:
        self.response = response
        super().__init__(self._describe(response))

    @staticmethod
    def _describe(response: Dict[str, Any]) -> str:
        if response.get("status") == "err":
            return str(response.get("response"))
        body = response.get("response") or {}
        statuses = (body.get("data") or {}).get("statuses") or []
        kind = "Order" if body.get("type") == "order" else "Cancel"
        parts: List[str] = []
        for i, status in enumerate(statuses):
            if isinstance(status, dict) and "error" in status:
                parts.append(f"{kind} {i}: {status['error']}")
        return ", ".join(parts) or "An unknown error occurred while processing the request"

    @property
    def failed_indices(self) -> List[int]:
        body = self.response.get("response") or {}
        if not isinstance(body, dict):
            return []
        statuses = (body.get("data") or {}).get("statuses") or []
        return [i for i, s in enumerate(statuses) if isinstance(s, dict) and "error" in s]


class NoOrdersError(HyperliquidClientError):
    """There are no open orders to act on."""


class NoMatchingOrdersError(NoOrdersError):
    """Open orders exist, but none match the requested symbol or category."""


class PositionNotFoundError(HyperliquidClientError):
    """No open position exists for the symbol."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No position found for {symbol}")
        self.symbol = symbol


class AbortError(HyperliquidClientError):
    """The caller aborted an in-flight call."""

    def __init__(self, reason: Optional[Any] = None) -> None:
        super().__init__("Aborted" if reason is None else f"Aborted: {reason}")
        self.reason = reason


class TransportError(HyperliquidClientError):
    """The transport failed to deliver a request or subscription."""


class HttpRequestError(TransportError):
    """Non-success HTTP status from the API."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body
