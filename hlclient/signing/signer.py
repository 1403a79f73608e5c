"""
Signer delegates for L1 actions.

Three wallet capabilities are supported:
- LocalKeySigner: an eth_account LocalAccount, signed in-process with the SDK.
- RemoteSigner: any object exposing sign_typed_data(typed_data) and optionally
  get_chain_id() (hardware wallets, KMS, web3 signing middleware).
- InjectedProviderSigner: an EIP-1193 style provider exposing
  request({"method", "params"}), as injected by browser wallets.

All of them receive an L1ActionMessage and return {"r", "s", "v"}. Failures
inside a delegate propagate unwrapped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union

from eth_account.signers.local import LocalAccount
from hyperliquid.utils.signing import action_hash, construct_phantom_agent, sign_l1_action

from hlclient.core.json_utils import dumps
from hlclient.core.resolvable import Resolvable, maybe_await, resolve
from hlclient.infra.logging_cfg import log_event

log = logging.getLogger("hlclient")

MAINNET_SIGNATURE_CHAIN_ID = "0xa4b1"
TESTNET_SIGNATURE_CHAIN_ID = "0x66eee"

Signature = Dict[str, Any]

_EIP712_DOMAIN_TYPES = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


@dataclass(frozen=True)
class L1ActionMessage:
    """Structured message handed to a signer delegate."""
    action: Dict[str, Any]
    nonce: int
    is_mainnet: bool
    signature_chain_id: str
    vault_address: Optional[str] = None
    expires_after: Optional[int] = None

    def typed_data(self) -> Dict[str, Any]:
        """EIP-712 payload for the phantom agent wrapping this action."""
        digest = action_hash(self.action, self.vault_address, self.nonce, self.expires_after)
        agent = construct_phantom_agent(digest, self.is_mainnet)
        return {
            "domain": {
                "chainId": 1337,
                "name": "Exchange",
                "verifyingContract": "0x0000000000000000000000000000000000000000",
                "version": "1",
            },
            "types": {
                "Agent": [
                    {"name": "source", "type": "string"},
                    {"name": "connectionId", "type": "bytes32"},
                ],
                "EIP712Domain": _EIP712_DOMAIN_TYPES,
            },
            "primaryType": "Agent",
            "message": agent,
        }


class Signer(Protocol):
    async def sign_l1_action(self, message: L1ActionMessage) -> Signature: ...


def _jsonable(node: Any) -> Any:
    if isinstance(node, (bytes, bytearray)):
        return "0x" + bytes(node).hex()
    if isinstance(node, dict):
        return {k: _jsonable(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_jsonable(v) for v in node]
    return node


def split_signature(sig: Any) -> Signature:
    """Normalize a 65-byte signature (hex, bytes, dict or SignedMessage-like) into r/s/v."""
    if isinstance(sig, dict) and {"r", "s", "v"} <= sig.keys():
        return {"r": sig["r"], "s": sig["s"], "v": int(sig["v"])}
    if all(hasattr(sig, attr) for attr in ("r", "s", "v")) and not isinstance(sig, (str, bytes)):
        return {"r": hex(sig.r), "s": hex(sig.s), "v": int(sig.v)}
    if isinstance(sig, (bytes, bytearray)):
        raw = bytes(sig).hex()
    elif isinstance(sig, str):
        raw = sig[2:] if sig.startswith("0x") else sig
    else:
        raise TypeError(f"Unsupported signature: {type(sig).__name__}")
    if len(raw) != 130:
        raise ValueError(f"Expected a 65-byte signature, got {len(raw) // 2} bytes")
    v = int(raw[128:130], 16)
    if v < 27:
        v += 27
    return {"r": "0x" + raw[0:64], "s": "0x" + raw[64:128], "v": v}


def _chain_hex(chain_id: Any) -> str:
    if isinstance(chain_id, str):
        return chain_id if chain_id.startswith("0x") else hex(int(chain_id))
    return hex(int(chain_id))


class LocalKeySigner:
    def __init__(self, wallet: LocalAccount) -> None:
        self.wallet = wallet

    @property
    def address(self) -> str:
        return self.wallet.address

    async def sign_l1_action(self, message: L1ActionMessage) -> Signature:
        return sign_l1_action(
            self.wallet,
            message.action,
            message.vault_address,
            message.nonce,
            message.expires_after,
            message.is_mainnet,
        )


class RemoteSigner:
    def __init__(self, backend: Any, address: Optional[str] = None) -> None:
        self.backend = backend
        self.address = address or getattr(backend, "address", None)

    async def sign_l1_action(self, message: L1ActionMessage) -> Signature:
        sig = await maybe_await(self.backend.sign_typed_data(message.typed_data()))
        return split_signature(sig)

    async def chain_id(self) -> Optional[str]:
        getter = getattr(self.backend, "get_chain_id", None)
        if getter is None:
            return None
        return _chain_hex(await maybe_await(getter()))


class InjectedProviderSigner:
    def __init__(self, provider: Any, address: Optional[str] = None) -> None:
        self.provider = provider
        self.address = address or getattr(provider, "selected_address", None) or getattr(provider, "address", None)
        if not self.address:
            raise ValueError("Injected provider signer needs an account address")

    async def _request(self, method: str, params: list) -> Any:
        return await maybe_await(self.provider.request({"method": method, "params": params}))

    async def sign_l1_action(self, message: L1ActionMessage) -> Signature:
        payload = dumps(_jsonable(message.typed_data()))
        sig = await self._request("eth_signTypedData_v4", [self.address, payload])
        return split_signature(sig)

    async def chain_id(self) -> Optional[str]:
        result = await self._request("eth_chainId", [])
        if isinstance(result, list):
            result = result[0] if result else None
        return None if result is None else _chain_hex(result)


AnyWallet = Union[Signer, LocalAccount, Any]


def as_signer(wallet: AnyWallet) -> Signer:
    """Pick the delegate matching the wallet's capability."""
    if isinstance(wallet, (LocalKeySigner, RemoteSigner, InjectedProviderSigner)):
        return wallet
    if isinstance(wallet, LocalAccount):
        return LocalKeySigner(wallet)
    if callable(getattr(wallet, "sign_l1_action", None)):
        return wallet
    if callable(getattr(wallet, "request", None)):
        return InjectedProviderSigner(wallet)
    if callable(getattr(wallet, "sign_typed_data", None)):
        return RemoteSigner(wallet)
    raise TypeError(f"Unsupported wallet type: {type(wallet).__name__}")


async def resolve_signature_chain_id(
    configured: Optional[Resolvable[str]],
    signer: Any,
    is_testnet: bool,
) -> str:
    """
    Chain id precedence: explicit config, then the chain the signer reports,
    then the static default for the network. Never raises for the last two.
    """
    explicit = await resolve(configured)
    if explicit:
        return _chain_hex(explicit)

    probe = getattr(signer, "chain_id", None)
    if callable(probe):
        try:
            reported = await maybe_await(probe())
        except Exception as exc:
            log_event(log, "chain_id_probe_failed", level=logging.DEBUG, err=str(exc))
            reported = None
        if reported:
            return _chain_hex(reported)

    return TESTNET_SIGNATURE_CHAIN_ID if is_testnet else MAINNET_SIGNATURE_CHAIN_ID
