"""
Typed subscribe calls for every streaming event kind.

Each call translates the display coin to its internal name, picks the
channel and the matching predicate for the event kind, and registers a
payload converter that maps symbol fields back to display names.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, TYPE_CHECKING

from hlclient.core.symbols import REVERSE
from hlclient.subscriptions.router import Listener, Predicate, Subscription, SubscriptionRouter

if TYPE_CHECKING:
    from hlclient.core.symbols import SymbolTranslator
    from hlclient.infra.transport import SubscriptionTransport


def coin_matches(coin: str) -> Predicate:
    return lambda data: isinstance(data, dict) and data.get("coin") == coin


def user_matches(user: str) -> Predicate:
    # the venue echoes addresses lowercased
    wanted = user.lower()
    return lambda data: isinstance(data, dict) and str(data.get("user", "")).lower() == wanted


def coin_and_user_match(coin: str, user: str) -> Predicate:
    by_coin, by_user = coin_matches(coin), user_matches(user)
    return lambda data: by_coin(data) and by_user(data)


class SubscriptionClient:
    def __init__(
        self,
        transport: "SubscriptionTransport",
        translator: Optional["SymbolTranslator"] = None,
        router: Optional[SubscriptionRouter] = None,
    ) -> None:
        self.translator = translator
        self.router = router or SubscriptionRouter(transport)

    async def _internal(self, coin: str) -> str:
        if self.translator is None:
            return coin
        return await self.translator.convert_symbol(coin, REVERSE)

    def _converter(
        self, field_names: Optional[Sequence[str]] = None, category: Optional[str] = None
    ) -> Optional[Callable[[Any], Awaitable[Any]]]:
        if self.translator is None:
            return None
        translator = self.translator

        async def convert(data: Any) -> Any:
            return await translator.convert_response(data, list(field_names) if field_names else None, category)

        return convert

    async def _subscribe(
        self,
        channel: str,
        payload: Dict[str, Any],
        listener: Listener,
        predicate: Optional[Predicate] = None,
        translate: bool = True,
        field_names: Optional[Sequence[str]] = None,
    ) -> Subscription:
        converter = self._converter(field_names) if translate else None
        return await self.router.subscribe(channel, payload, listener, predicate=predicate, converter=converter)

    # -------------------------------------------------------------------------
    # Market data
    # -------------------------------------------------------------------------

    async def active_asset_ctx(self, coin: str, listener: Listener) -> Subscription:
        internal = await self._internal(coin)
        # spot contexts arrive on their own channel
        channel = "activeSpotAssetCtx" if internal.startswith("@") else "activeAssetCtx"
        payload = {"type": "activeAssetCtx", "coin": internal}
        return await self._subscribe(channel, payload, listener, coin_matches(internal))

    async def active_asset_data(self, user: str, coin: str, listener: Listener) -> Subscription:
        internal = await self._internal(coin)
        payload = {"type": "activeAssetData", "user": user, "coin": internal}
        return await self._subscribe("activeAssetData", payload, listener, coin_and_user_match(internal, user))

    async def all_mids(self, listener: Listener, dex: Optional[str] = None) -> Subscription:
        """
        Mid prices for every coin. Not discriminated: every allMids listener
        receives every message. With a translator, keys are display symbols
        and values floats.
        """
        payload: Dict[str, Any] = {"type": "allMids"}
        if dex:
            payload["dex"] = dex

        converter = None
        if self.translator is not None:
            translator = self.translator

            async def converter(data: Any) -> Dict[str, float]:
                mids = data.get("mids", data) if isinstance(data, dict) else data
                out: Dict[str, float] = {}
                for key, value in mids.items():
                    out[await translator.convert_symbol(key)] = float(value)
                return out

        return await self.router.subscribe("allMids", payload, listener, converter=converter)

    async def bbo(self, coin: str, listener: Listener) -> Subscription:
        internal = await self._internal(coin)
        return await self._subscribe("bbo", {"type": "bbo", "coin": internal}, listener, coin_matches(internal))

    async def candle(self, coin: str, interval: str, listener: Listener) -> Subscription:
        internal = await self._internal(coin)
        payload = {"type": "candle", "coin": internal, "interval": interval}
        predicate = lambda data: isinstance(data, dict) and data.get("s") == internal  # noqa: E731
        return await self._subscribe("candle", payload, listener, predicate, field_names=["s"])

    async def l2_book(
        self,
        coin: str,
        listener: Listener,
        n_sig_figs: Optional[int] = None,
        mantissa: Optional[int] = None,
    ) -> Subscription:
        internal = await self._internal(coin)
        payload: Dict[str, Any] = {"type": "l2Book", "coin": internal}
        if n_sig_figs is not None:
            payload["nSigFigs"] = n_sig_figs
        if mantissa is not None:
            payload["mantissa"] = mantissa
        return await self._subscribe("l2Book", payload, listener, coin_matches(internal))

    async def trades(self, coin: str, listener: Listener) -> Subscription:
        internal = await self._internal(coin)

        def predicate(data: Any) -> bool:
            return isinstance(data, list) and bool(data) and data[0].get("coin") == internal

        return await self._subscribe("trades", {"type": "trades", "coin": internal}, listener, predicate)

    # -------------------------------------------------------------------------
    # User streams
    # -------------------------------------------------------------------------

    async def notification(self, user: str, listener: Listener) -> Subscription:
        return await self._subscribe("notification", {"type": "notification", "user": user}, listener)

    async def order_updates(self, user: str, listener: Listener) -> Subscription:
        return await self._subscribe("orderUpdates", {"type": "orderUpdates", "user": user}, listener)

    async def user_events(self, user: str, listener: Listener) -> Subscription:
        # delivered on the generic "user" channel
        return await self._subscribe("user", {"type": "userEvents", "user": user}, listener)

    async def user_fills(self, user: str, listener: Listener, aggregate_by_time: bool = False) -> Subscription:
        payload = {"type": "userFills", "user": user, "aggregateByTime": aggregate_by_time}
        return await self._subscribe("userFills", payload, listener, user_matches(user))

    async def user_fundings(self, user: str, listener: Listener) -> Subscription:
        return await self._subscribe("userFundings", {"type": "userFundings", "user": user}, listener, user_matches(user))

    async def user_non_funding_ledger_updates(self, user: str, listener: Listener) -> Subscription:
        payload = {"type": "userNonFundingLedgerUpdates", "user": user}
        return await self._subscribe("userNonFundingLedgerUpdates", payload, listener, user_matches(user), translate=False)

    async def user_twap_history(self, user: str, listener: Listener) -> Subscription:
        payload = {"type": "userTwapHistory", "user": user}
        return await self._subscribe("userTwapHistory", payload, listener, user_matches(user), translate=False)

    async def user_twap_slice_fills(self, user: str, listener: Listener) -> Subscription:
        payload = {"type": "userTwapSliceFills", "user": user}
        return await self._subscribe("userTwapSliceFills", payload, listener, user_matches(user))

    async def web_data2(self, user: str, listener: Listener) -> Subscription:
        return await self._subscribe(
            "webData2", {"type": "webData2", "user": user}, listener, user_matches(user), field_names=["coin", "name"]
        )

    async def close(self) -> None:
        await self.router.close()
