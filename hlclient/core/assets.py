"""
Asset references for trading actions.

Callers may name an instrument by venue index or by display symbol. The
union is resolved to an index exactly once, when the action is built for
signing; nothing past that boundary sees a symbol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class ByIndex:
    index: int


@dataclass(frozen=True)
class BySymbol:
    symbol: str


AssetRef = Union[ByIndex, BySymbol]


class _IndexLookup(Protocol):
    async def get_asset_index(self, symbol: str) -> Optional[int]: ...


def as_asset_ref(value: Union[AssetRef, int, str]) -> AssetRef:
    """Coerce a duck-typed `a: str | int` field into an explicit AssetRef."""
    if isinstance(value, (ByIndex, BySymbol)):
        return value
    # bool is an int subclass and never a valid asset
    if isinstance(value, bool):
        raise TypeError(f"Invalid asset reference: {value!r}")
    if isinstance(value, int):
        return ByIndex(value)
    if isinstance(value, str):
        return BySymbol(value)
    raise TypeError(f"Invalid asset reference: {value!r}")


async def resolve_asset(value: Union[AssetRef, int, str], translator: Optional[_IndexLookup]) -> int:
    """Resolve an asset reference to its index, raising UnknownAssetError when impossible."""
    from hlclient.errors import UnknownAssetError

    ref = as_asset_ref(value)
    if isinstance(ref, ByIndex):
        return ref.index
    if translator is None:
        raise UnknownAssetError(ref.symbol)
    index = await translator.get_asset_index(ref.symbol)
    if index is None:
        raise UnknownAssetError(ref.symbol)
    return int(index)
