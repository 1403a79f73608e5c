"""
Core primitives package.

Asset references, value-or-producer resolution, abort signals, JSON helpers
and small utilities shared by the write and read paths.
"""

from hlclient.core.abort import AbortSignal, with_signal
from hlclient.core.assets import AssetRef, ByIndex, BySymbol, as_asset_ref, resolve_asset
from hlclient.core.resolvable import Resolvable, resolve
from hlclient.core.utils import format_units, now_ms, price_decimals

__all__ = [
    "AbortSignal",
    "with_signal",
    "AssetRef",
    "ByIndex",
    "BySymbol",
    "as_asset_ref",
    "resolve_asset",
    "Resolvable",
    "resolve",
    "format_units",
    "now_ms",
    "price_decimals",
]
