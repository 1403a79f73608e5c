"""
Async read client for the info endpoint.

Thin forwarding queries used by the derived trading operations and the EVM
token helpers. When a translator is configured, symbol-bearing fields in the
responses are converted to display form; otherwise responses pass through.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from hlclient.core.abort import AbortSignal

if TYPE_CHECKING:
    from hlclient.core.symbols import SymbolTranslator
    from hlclient.infra.transport import RequestTransport


class InfoClient:
    def __init__(self, transport: "RequestTransport", translator: Optional["SymbolTranslator"] = None) -> None:
        self.transport = transport
        self.translator = translator

    async def meta(self, dex: Optional[str] = None, signal: Optional[AbortSignal] = None) -> Any:
        payload: Dict[str, Any] = {"type": "meta"}
        if dex:
            payload["dex"] = dex
        return await self._post_info(payload, signal)

    async def spot_meta(self, signal: Optional[AbortSignal] = None) -> Any:
        return await self._post_info({"type": "spotMeta"}, signal)

    async def all_mids(self, dex: Optional[str] = None, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        """
        Mid prices keyed by coin.

        With a translator, keys are display symbols and values floats;
        without one the raw {coin: "price"} mapping is returned.
        """
        payload: Dict[str, Any] = {"type": "allMids"}
        if dex:
            payload["dex"] = dex
        mids = await self._post_info(payload, signal)
        if self.translator is None:
            return mids
        converted: Dict[str, float] = {}
        for coin, px in mids.items():
            converted[await self.translator.convert_symbol(coin)] = float(px)
        return converted

    async def open_orders(self, user: str, dex: Optional[str] = None, signal: Optional[AbortSignal] = None) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"type": "openOrders", "user": user}
        if dex:
            payload["dex"] = dex
        return await self._converted(await self._post_info(payload, signal))

    async def frontend_open_orders(self, user: str, dex: Optional[str] = None, signal: Optional[AbortSignal] = None) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"type": "frontendOpenOrders", "user": user}
        if dex:
            payload["dex"] = dex
        return await self._converted(await self._post_info(payload, signal))

    async def clearinghouse_state(self, user: str, dex: Optional[str] = None, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": "clearinghouseState", "user": user}
        if dex:
            payload["dex"] = dex
        state = await self._post_info(payload, signal)
        return await self._converted(state, ["name", "coin", "symbol"], "PERP")

    async def spot_clearinghouse_state(self, user: str, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        state = await self._post_info({"type": "spotClearinghouseState", "user": user}, signal)
        return await self._converted(state, ["coin"], "SPOT")

    async def get_all_assets(self) -> Dict[str, List[str]]:
        if self.translator is None:
            return {"perp": [], "spot": []}
        return await self.translator.get_all_assets()

    async def _converted(self, data: Any, field_names: Optional[List[str]] = None, category: Optional[str] = None) -> Any:
        if self.translator is None:
            return data
        return await self.translator.convert_response(data, field_names, category)

    async def _post_info(self, payload: Dict[str, Any], signal: Optional[AbortSignal] = None) -> Any:
        return await self.transport.request("info", payload, signal)
