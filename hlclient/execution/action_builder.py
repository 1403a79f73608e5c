"""
ActionBuilder: turn raw action parameters into a SignedRequest.

Pipeline, in order:
1. resolve every asset reference to an index (UnknownAssetError otherwise)
2. merge vault_address / expires_after with the configured defaults
3. draw a nonce
4. rebuild the action in its canonical key order
5. resolve the signature chain id
6. sign through the wallet's delegate
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union, TYPE_CHECKING

from hlclient.core.assets import resolve_asset
from hlclient.core.resolvable import Resolvable, maybe_await, resolve
from hlclient.infra.logging_cfg import log_event
from hlclient.infra.nonce import get_default_coordinator
from hlclient.signing.canonical import canonicalize, resolve_action_assets
from hlclient.signing.signer import AnyWallet, L1ActionMessage, as_signer, resolve_signature_chain_id

if TYPE_CHECKING:
    from hlclient.core.symbols import SymbolTranslator

log = logging.getLogger("hlclient")

NonceSource = Callable[[], Union[int, Awaitable[int]]]


@dataclass(frozen=True)
class SignedRequest:
    """
    Signed action ready for the exchange endpoint.

    Owned by the call that built it; never mutated after signing.
    """
    action: Dict[str, Any]
    signature: Dict[str, Any]
    nonce: int
    vault_address: Optional[str] = None
    expires_after: Optional[int] = None

    def to_wire(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "action": copy.deepcopy(self.action),
            "signature": dict(self.signature),
            "nonce": self.nonce,
        }
        if self.vault_address is not None:
            body["vaultAddress"] = self.vault_address
        if self.expires_after is not None:
            body["expiresAfter"] = self.expires_after
        return body


class ActionBuilder:
    def __init__(
        self,
        wallet: AnyWallet,
        translator: Optional["SymbolTranslator"] = None,
        is_testnet: bool = False,
        default_vault_address: Optional[Resolvable[str]] = None,
        default_expires_after: Optional[Resolvable[int]] = None,
        signature_chain_id: Optional[Resolvable[str]] = None,
        nonce_manager: Optional[NonceSource] = None,
    ) -> None:
        self.signer = as_signer(wallet)
        self.translator = translator
        self.is_testnet = is_testnet
        self.default_vault_address = default_vault_address
        self.default_expires_after = default_expires_after
        self.signature_chain_id = signature_chain_id
        if nonce_manager is None:
            address = getattr(self.signer, "address", None)
            nonce_manager = get_default_coordinator().get_sequencer(address).get_nonce
        self.nonce_manager = nonce_manager

    async def _resolve_asset(self, value: Any) -> int:
        return await resolve_asset(value, self.translator)

    async def build(
        self,
        action: Dict[str, Any],
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
    ) -> SignedRequest:
        resolved = await resolve_action_assets(action, self._resolve_asset)

        if vault_address is None:
            vault_address = await resolve(self.default_vault_address)
        if expires_after is None:
            expires_after = await resolve(self.default_expires_after)

        nonce = int(await maybe_await(self.nonce_manager()))
        canonical = canonicalize(resolved)
        chain_id = await resolve_signature_chain_id(self.signature_chain_id, self.signer, self.is_testnet)

        message = L1ActionMessage(
            action=canonical,
            nonce=nonce,
            is_mainnet=not self.is_testnet,
            signature_chain_id=chain_id,
            vault_address=vault_address,
            expires_after=expires_after,
        )
        signature = await self.signer.sign_l1_action(message)
        log_event(log, "action_signed", level=logging.DEBUG, type=canonical["type"], nonce=nonce, chain=chain_id)
        return SignedRequest(
            action=copy.deepcopy(canonical),
            signature=dict(signature),
            nonce=nonce,
            vault_address=vault_address,
            expires_after=expires_after,
        )
