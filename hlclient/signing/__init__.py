"""
Signing package.

Canonical action layouts and the signer delegates that produce L1 action
signatures.
"""

from hlclient.signing.canonical import ACTION_LAYOUTS, ASSET_FIELDS, BULK_TYPES, canonicalize, order_wire, resolve_action_assets
from hlclient.signing.signer import (
    InjectedProviderSigner,
    L1ActionMessage,
    LocalKeySigner,
    MAINNET_SIGNATURE_CHAIN_ID,
    RemoteSigner,
    Signer,
    TESTNET_SIGNATURE_CHAIN_ID,
    as_signer,
    resolve_signature_chain_id,
    split_signature,
)

__all__ = [
    "ACTION_LAYOUTS",
    "ASSET_FIELDS",
    "BULK_TYPES",
    "canonicalize",
    "order_wire",
    "resolve_action_assets",
    "InjectedProviderSigner",
    "L1ActionMessage",
    "LocalKeySigner",
    "MAINNET_SIGNATURE_CHAIN_ID",
    "RemoteSigner",
    "Signer",
    "TESTNET_SIGNATURE_CHAIN_ID",
    "as_signer",
    "resolve_signature_chain_id",
    "split_signature",
]
