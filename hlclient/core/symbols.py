"""
Symbol translation between display names and venue-internal names.

Display names: perps "BTC-PERP", spot "PURR-SPOT".
Internal names: perps "BTC", spot "PURR/USDC" or "@107".

The client consumes translation only through the SymbolTranslator protocol.
MetaSymbolTranslator is the default implementation, built from the venue's
meta and spotMeta snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from hlclient.infra.logging_cfg import log_event

log = logging.getLogger("hlclient")

FORWARD = "forward"
REVERSE = "reverse"

CATEGORY_PERP = "PERP"
CATEGORY_SPOT = "SPOT"

DEFAULT_FIELDS: Sequence[str] = ("coin", "symbol")

SPOT_INDEX_OFFSET = 10000


class SymbolTranslator(Protocol):
    async def convert_symbol(self, symbol: str, direction: str = FORWARD, category: Optional[str] = None) -> str: ...

    async def convert_response(
        self, payload: Any, field_names: Optional[Sequence[str]] = None, category: Optional[str] = None
    ) -> Any: ...

    async def get_asset_index(self, symbol: str) -> Optional[int]: ...

    async def get_all_assets(self) -> Dict[str, List[str]]: ...


class MetaSymbolTranslator:
    """
    Translator backed by `meta` + `spotMeta`.

    Metadata is loaded lazily on first use and kept until refresh(). The
    mapping is static reference data, not account state.
    """

    def __init__(self, transport: Any) -> None:
        self._transport = transport
        self._lock = asyncio.Lock()
        self._loaded = False
        # internal -> display
        self._perp_display: Dict[str, str] = {}
        self._spot_display: Dict[str, str] = {}
        # display -> internal
        self._perp_internal: Dict[str, str] = {}
        self._spot_internal: Dict[str, str] = {}
        # display -> asset index
        self._index: Dict[str, int] = {}

    async def refresh(self) -> None:
        meta, spot_meta = await asyncio.gather(
            self._transport.request("info", {"type": "meta"}),
            self._transport.request("info", {"type": "spotMeta"}),
        )
        self._load(meta or {}, spot_meta or {})

    def _load(self, meta: Dict[str, Any], spot_meta: Dict[str, Any]) -> None:
        perp_display: Dict[str, str] = {}
        spot_display: Dict[str, str] = {}
        index: Dict[str, int] = {}

        for i, asset in enumerate(meta.get("universe", [])):
            name = asset.get("name")
            if not name:
                continue
            display = f"{name}-PERP"
            perp_display[name] = display
            index[display] = i

        token_names = {t.get("index"): t.get("name") for t in spot_meta.get("tokens", [])}
        for pair in spot_meta.get("universe", []):
            name = pair.get("name")
            tokens = pair.get("tokens") or []
            if not name or not tokens:
                continue
            base = token_names.get(tokens[0])
            if not base:
                continue
            display = f"{base}-SPOT"
            # the first pair listed for a base token wins
            if display in index:
                continue
            spot_display[name] = display
            index[display] = SPOT_INDEX_OFFSET + int(pair.get("index", 0))

        self._perp_display = perp_display
        self._spot_display = spot_display
        self._perp_internal = {v: k for k, v in perp_display.items()}
        self._spot_internal = {v: k for k, v in spot_display.items()}
        self._index = index
        self._loaded = True
        log_event(log, "symbol_meta_loaded", level=logging.DEBUG, perps=len(perp_display), spot=len(spot_display))

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._lock:
            if not self._loaded:
                await self.refresh()

    def _maps(self, direction: str, category: Optional[str]) -> Iterable[Dict[str, str]]:
        if direction == REVERSE:
            perp, spot = self._perp_internal, self._spot_internal
        else:
            perp, spot = self._perp_display, self._spot_display
        if category == CATEGORY_PERP:
            return (perp,)
        if category == CATEGORY_SPOT:
            return (spot,)
        return (perp, spot)

    async def convert_symbol(self, symbol: str, direction: str = FORWARD, category: Optional[str] = None) -> str:
        await self._ensure_loaded()
        for mapping in self._maps(direction, category):
            converted = mapping.get(symbol)
            if converted is not None:
                return converted
        return symbol

    async def convert_response(
        self, payload: Any, field_names: Optional[Sequence[str]] = None, category: Optional[str] = None
    ) -> Any:
        await self._ensure_loaded()
        fields = frozenset(field_names or DEFAULT_FIELDS)
        maps = tuple(self._maps(FORWARD, category))
        return self._convert(payload, fields, maps)

    def _convert(self, node: Any, fields: frozenset, maps: Sequence[Dict[str, str]]) -> Any:
        if isinstance(node, list):
            return [self._convert(item, fields, maps) for item in node]
        if not isinstance(node, dict):
            return node
        out: Dict[str, Any] = {}
        for key, value in node.items():
            if key in fields and isinstance(value, str):
                out[key] = next((m[value] for m in maps if value in m), value)
            else:
                out[key] = self._convert(value, fields, maps)
        return out

    async def get_asset_index(self, symbol: str) -> Optional[int]:
        await self._ensure_loaded()
        if symbol in self._index:
            return self._index[symbol]
        # also accept internal names
        display = self._perp_display.get(symbol) or self._spot_display.get(symbol)
        if display is not None:
            return self._index.get(display)
        return None

    async def get_all_assets(self) -> Dict[str, List[str]]:
        await self._ensure_loaded()
        return {"perp": list(self._perp_internal), "spot": list(self._spot_internal)}
