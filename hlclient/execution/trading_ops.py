"""
Derived trading operations: bulk cancel by category, market close, and
close-all-positions.

Each operation reads current account state from the venue right before
acting; nothing is cached between calls. Responses flow through
ExchangeClient, so they are validated before they are returned.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Collection, Dict, List, Optional, Set, TYPE_CHECKING

from hyperliquid.utils.signing import float_to_wire

from hlclient.core.abort import AbortSignal
from hlclient.core.assets import BySymbol
from hlclient.core.symbols import REVERSE
from hlclient.core.utils import price_decimals
from hlclient.errors import ConfigError, NoMatchingOrdersError, NoOrdersError, PositionNotFoundError, UnknownAssetError
from hlclient.infra.async_info import InfoClient
from hlclient.infra.logging_cfg import log_event

if TYPE_CHECKING:
    from hlclient.core.symbols import SymbolTranslator
    from hlclient.execution.exchange_client import ExchangeClient

log = logging.getLogger("hlclient")

DEFAULT_SLIPPAGE = 0.05
SPOT_PRICE_DECIMALS = 8


class Category(str, Enum):
    ALL = "all"
    SPOT = "spot"
    PERP = "perp"


def is_perp_symbol(symbol: str, perp_catalog: Collection[str] = ()) -> bool:
    """Catalog membership first; the "-PERP" suffix is a best-effort fallback."""
    return symbol in perp_catalog or symbol.endswith("-PERP")


def is_spot_symbol(symbol: str, spot_catalog: Collection[str] = ()) -> bool:
    """Catalog membership first; "has a dash but no -PERP suffix" is a best-effort fallback."""
    return symbol in spot_catalog or (not symbol.endswith("-PERP") and "-" in symbol)


def slippage_price(reference_px: Any, is_buy: bool, slippage: float, is_spot: bool) -> float:
    """
    Marketable limit price around a reference price.

    Buys move the price up, sells down. Spot prices are rounded to a fixed
    number of decimals; perp prices to one decimal fewer than the reference.
    """
    decimals = SPOT_PRICE_DECIMALS if is_spot else max(0, price_decimals(reference_px) - 1)
    factor = Decimal(1) + Decimal(str(slippage)) if is_buy else Decimal(1) - Decimal(str(slippage))
    px = Decimal(str(reference_px)) * factor
    return float(px.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP))


class TradingOperations:
    def __init__(
        self,
        exchange: "ExchangeClient",
        user: str,
        translator: Optional["SymbolTranslator"] = None,
        info: Optional[InfoClient] = None,
    ) -> None:
        self.exchange = exchange
        self.user = user
        self.translator = translator or exchange.translator
        if self.translator is None:
            raise ConfigError("Derived trading operations require a symbol translator")
        # raw reads over the given transport; coins are translated explicitly below
        self.info = InfoClient(info.transport if info is not None else exchange.transport)
        self._background: Set[asyncio.Future] = set()

    # -------------------------------------------------------------------------
    # Cancel by category
    # -------------------------------------------------------------------------

    async def _open_orders_display(self, signal: Optional[AbortSignal]) -> List[Dict[str, Any]]:
        orders = await self.info.open_orders(self.user, signal=signal)
        out = []
        for order in orders or []:
            out.append({**order, "coin": await self.translator.convert_symbol(order["coin"])})
        return out

    async def cancel_orders(
        self,
        category: Category | str = Category.ALL,
        symbol: Optional[str] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        """
        Cancel open orders for a symbol or a whole category in one bulk cancel.

        Raises NoOrdersError when there is nothing open, NoMatchingOrdersError
        when nothing open matches the filter.
        """
        category = Category(category)
        orders = await self._open_orders_display(signal)
        if not orders:
            raise NoOrdersError("No orders to cancel")

        if symbol is not None:
            selected = [o for o in orders if o["coin"] == symbol]
        elif category is Category.ALL:
            selected = orders
        else:
            catalog = await self.translator.get_all_assets()
            if category is Category.SPOT:
                spot = set(catalog.get("spot", []))
                selected = [o for o in orders if is_spot_symbol(o["coin"], spot)]
            else:
                perp = set(catalog.get("perp", []))
                selected = [o for o in orders if is_perp_symbol(o["coin"], perp)]

        if not selected:
            what = symbol or category.value
            raise NoMatchingOrdersError(f"No {what} orders to cancel")

        cancels = [{"a": BySymbol(o["coin"]), "o": o["oid"]} for o in selected]
        log_event(log, "cancel_batch", category=category.value, symbol=symbol, n=len(cancels))
        return await self.exchange.cancel(cancels, signal=signal)

    async def cancel_all_orders(self, symbol: Optional[str] = None, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        return await self.cancel_orders(Category.ALL, symbol=symbol, signal=signal)

    async def cancel_all_spot_orders(self, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        return await self.cancel_orders(Category.SPOT, signal=signal)

    async def cancel_all_perp_orders(self, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        return await self.cancel_orders(Category.PERP, signal=signal)

    # -------------------------------------------------------------------------
    # Market close
    # -------------------------------------------------------------------------

    async def _reference_price(self, symbol: str, signal: Optional[AbortSignal]) -> Any:
        mids = await self.info.all_mids(signal=signal)
        internal = await self.translator.convert_symbol(symbol, REVERSE)
        px = mids.get(internal)
        if px is None:
            raise UnknownAssetError(symbol)
        return px

    async def market_close(
        self,
        symbol: str,
        size: Optional[float] = None,
        px: Optional[float] = None,
        slippage: float = DEFAULT_SLIPPAGE,
        cloid: Optional[str] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        """
        Flatten the position in `symbol` with a reduce-only IoC limit order.

        The limit price is `px` (or the current mid) moved by `slippage`
        against us so the order is marketable.
        """
        state = await self.info.clearinghouse_state(self.user, signal=signal)
        for entry in state.get("assetPositions", []):
            position = entry.get("position") or {}
            coin = await self.translator.convert_symbol(position.get("coin", ""))
            if coin != symbol:
                continue
            szi = float(position.get("szi", 0))
            if szi == 0:
                continue

            close_size = size or abs(szi)
            is_buy = szi < 0
            reference = px if px is not None else await self._reference_price(symbol, signal)
            limit_px = slippage_price(reference, is_buy, slippage, is_spot_symbol(symbol))

            order: Dict[str, Any] = {
                "a": BySymbol(symbol),
                "b": is_buy,
                "p": float_to_wire(limit_px),
                "s": float_to_wire(close_size),
                "r": True,
                "t": {"limit": {"tif": "Ioc"}},
            }
            if cloid:
                order["c"] = cloid
            log_event(log, "market_close", symbol=symbol, side="buy" if is_buy else "sell", sz=close_size, px=limit_px)
            return await self.exchange.order([order], grouping="na", signal=signal)

        raise PositionNotFoundError(symbol)

    # -------------------------------------------------------------------------
    # Close all positions
    # -------------------------------------------------------------------------

    def _track(self, fut: asyncio.Future) -> None:
        self._background.add(fut)

        def _done(f: asyncio.Future) -> None:
            self._background.discard(f)
            if f.cancelled():
                return
            exc = f.exception()
            if exc is not None:
                log_event(log, "background_close_failed", level=logging.WARNING, err=str(exc))

        fut.add_done_callback(_done)

    async def close_all_positions(
        self,
        slippage: float = DEFAULT_SLIPPAGE,
        signal: Optional[AbortSignal] = None,
    ) -> List[Dict[str, Any]]:
        """
        Market-close every nonzero position concurrently.

        If any close rejects, this call rejects with the first error. Closes
        already started keep running to completion; their results are dropped.
        Partial execution is possible.
        """
        state = await self.info.clearinghouse_state(self.user, signal=signal)
        symbols: List[str] = []
        for entry in state.get("assetPositions", []):
            position = entry.get("position") or {}
            if float(position.get("szi", 0)) != 0:
                symbols.append(await self.translator.convert_symbol(position["coin"]))

        closes = [asyncio.ensure_future(self.market_close(s, slippage=slippage, signal=signal)) for s in symbols]
        for fut in closes:
            self._track(fut)
        log_event(log, "close_all_positions", n=len(closes))
        return list(await asyncio.gather(*closes))
