"""
ExchangeClient: signed write path for the exchange endpoint.

Every method builds a signed action through ActionBuilder, sends it once
through the transport and passes the response through validate_response
before returning it. Nothing is retried: a failed submission must be
resubmitted by the caller, which draws a fresh nonce.

Asset fields accept an index, a display symbol, or an explicit AssetRef:

    await exchange.order([{
        "a": "BTC-PERP", "b": True, "p": "30000", "s": "0.1", "r": False,
        "t": {"limit": {"tif": "Gtc"}},
    }])
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from hlclient.core.abort import AbortSignal
from hlclient.core.resolvable import Resolvable
from hlclient.execution.action_builder import ActionBuilder, NonceSource, SignedRequest
from hlclient.execution.response_validator import validate_response
from hlclient.infra.logging_cfg import log_event
from hlclient.signing.signer import AnyWallet

if TYPE_CHECKING:
    from hlclient.core.symbols import SymbolTranslator
    from hlclient.infra.transport import RequestTransport

log = logging.getLogger("hlclient")


class ExchangeClient:
    def __init__(
        self,
        transport: "RequestTransport",
        wallet: AnyWallet,
        translator: Optional["SymbolTranslator"] = None,
        is_testnet: bool = False,
        default_vault_address: Optional[Resolvable[str]] = None,
        default_expires_after: Optional[Resolvable[int]] = None,
        signature_chain_id: Optional[Resolvable[str]] = None,
        nonce_manager: Optional[NonceSource] = None,
    ) -> None:
        self.transport = transport
        self.translator = translator
        self.is_testnet = is_testnet
        self.builder = ActionBuilder(
            wallet,
            translator=translator,
            is_testnet=is_testnet,
            default_vault_address=default_vault_address,
            default_expires_after=default_expires_after,
            signature_chain_id=signature_chain_id,
            nonce_manager=nonce_manager,
        )

    @property
    def address(self) -> Optional[str]:
        return getattr(self.builder.signer, "address", None)

    async def order(
        self,
        orders: List[Dict[str, Any]],
        grouping: str = "na",
        builder: Optional[Dict[str, Any]] = None,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        """Place one or more orders. Raises ApiRequestError if any order is rejected."""
        action: Dict[str, Any] = {"type": "order", "orders": orders, "grouping": grouping}
        if builder:
            action["builder"] = builder
        return await self._submit(action, vault_address, expires_after, signal)

    async def cancel(
        self,
        cancels: List[Dict[str, Any]],
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        """Cancel orders by oid: cancels=[{"a": asset, "o": oid}, ...]."""
        return await self._submit({"type": "cancel", "cancels": cancels}, vault_address, expires_after, signal)

    async def cancel_by_cloid(
        self,
        cancels: List[Dict[str, Any]],
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        return await self._submit({"type": "cancelByCloid", "cancels": cancels}, vault_address, expires_after, signal)

    async def modify(
        self,
        oid: Any,
        order: Dict[str, Any],
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        return await self._submit({"type": "modify", "oid": oid, "order": order}, vault_address, expires_after, signal)

    async def batch_modify(
        self,
        modifies: List[Dict[str, Any]],
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        return await self._submit({"type": "batchModify", "modifies": modifies}, vault_address, expires_after, signal)

    async def schedule_cancel(
        self,
        time_ms: Optional[int] = None,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        """Arm (or with time_ms=None, clear) the dead man's switch."""
        action: Dict[str, Any] = {"type": "scheduleCancel"}
        if time_ms is not None:
            action["time"] = time_ms
        return await self._submit(action, vault_address, expires_after, signal)

    async def update_leverage(
        self,
        asset: Any,
        leverage: int,
        is_cross: bool = True,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        action = {"type": "updateLeverage", "asset": asset, "isCross": is_cross, "leverage": leverage}
        return await self._submit(action, vault_address, expires_after, signal)

    async def update_isolated_margin(
        self,
        asset: Any,
        is_buy: bool,
        ntli: int,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        action = {"type": "updateIsolatedMargin", "asset": asset, "isBuy": is_buy, "ntli": ntli}
        return await self._submit(action, vault_address, expires_after, signal)

    async def twap_order(
        self,
        twap: Dict[str, Any],
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        return await self._submit({"type": "twapOrder", "twap": twap}, vault_address, expires_after, signal)

    async def twap_cancel(
        self,
        asset: Any,
        twap_id: int,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signal: Optional[AbortSignal] = None,
    ) -> Dict[str, Any]:
        return await self._submit({"type": "twapCancel", "a": asset, "t": twap_id}, vault_address, expires_after, signal)

    async def _submit(
        self,
        action: Dict[str, Any],
        vault_address: Optional[str],
        expires_after: Optional[int],
        signal: Optional[AbortSignal],
    ) -> Dict[str, Any]:
        if signal is not None:
            signal.throw_if_aborted()
        signed = await self.builder.build(action, vault_address=vault_address, expires_after=expires_after)
        return await self.send(signed, signal)

    async def send(self, signed: SignedRequest, signal: Optional[AbortSignal] = None) -> Dict[str, Any]:
        """Send an already signed request and validate the response."""
        log_event(log, "exchange_submit", level=logging.DEBUG, type=signed.action["type"], nonce=signed.nonce)
        response = await self.transport.request("exchange", signed.to_wire(), signal)
        return validate_response(response)
