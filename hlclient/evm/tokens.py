"""
Spot <-> HyperEVM token views.

Combines spot metadata, the user's spot clearinghouse balances and on-chain
balances from the multicall helper.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from hlclient.evm.multicall import MulticallClient, TokenInfo

if TYPE_CHECKING:
    from hlclient.infra.async_info import InfoClient

HYPE = "HYPE"
HYPE_SYSTEM_ADDRESS = "0x2222222222222222222222222222222222222222"


def get_system_address(token_index: int, name: Optional[str] = None) -> str:
    """
    System address used to bridge a spot token to HyperEVM.

    "0x20" followed by the big-endian token index, zero padded to 40 hex
    digits. HYPE has a fixed address.
    """
    if name == HYPE:
        return HYPE_SYSTEM_ADDRESS
    hex_index = format(int(token_index), "x")
    return "0x20" + hex_index.rjust(38, "0")


def _withdrawable(balance: Dict[str, Any]) -> str:
    diff = Decimal(str(balance["total"])) - Decimal(str(balance["hold"]))
    return format(diff.normalize(), "f")


class EvmTokenService:
    def __init__(self, info: "InfoClient", user: str, multicall: Optional[MulticallClient] = None) -> None:
        self.info = info
        self.user = user
        self.multicall = multicall

    get_system_address = staticmethod(get_system_address)

    async def get_evm_tokens(self) -> List[Dict[str, Any]]:
        """Tokens with an EVM contract (plus HYPE)."""
        meta = await self.info.spot_meta()
        out = []
        for token in meta.get("tokens", []):
            contract = token.get("evmContract")
            if not contract and token.get("name") != HYPE:
                continue
            out.append(
                {
                    "name": token["name"],
                    "index": token["index"],
                    "evmAddress": contract["address"] if contract else "",
                    "systemAddress": get_system_address(token["index"], token["name"]),
                    "tokenId": token.get("tokenId") or "",
                    "decimals": (token.get("weiDecimals") or 0) + ((contract or {}).get("evm_extra_wei_decimals") or 0),
                }
            )
        return out

    async def _state_and_meta(self):
        return await asyncio.gather(self.info.spot_clearinghouse_state(self.user), self.info.spot_meta())

    async def get_transferrable_assets(self) -> List[Dict[str, Any]]:
        """Spot balances that can move to HyperEVM (token has an EVM contract, or is HYPE)."""
        state, meta = await self._state_and_meta()
        transferrable = {t["index"]: bool(t.get("evmContract")) or t.get("name") == HYPE for t in meta.get("tokens", [])}
        token_ids = {t["index"]: t["tokenId"] for t in meta.get("tokens", []) if t.get("tokenId")}

        out = []
        for balance in state.get("balances", []):
            if not transferrable.get(balance["token"]):
                continue
            out.append(
                {
                    "coin": balance["coin"],
                    "token": balance["token"],
                    "total": balance["total"],
                    "hold": balance["hold"],
                    "withdrawable": _withdrawable(balance),
                    "systemAddress": get_system_address(balance["token"], balance["coin"]),
                    "tokenId": token_ids.get(balance["token"], ""),
                }
            )
        return out

    async def get_all_spot_balances(self) -> List[Dict[str, Any]]:
        state, meta = await self._state_and_meta()
        token_ids = {t["index"]: t["tokenId"] for t in meta.get("tokens", []) if t.get("tokenId")}
        return [
            {
                "coin": balance["coin"],
                "token": balance["token"],
                "total": balance["total"],
                "hold": balance["hold"],
                "withdrawable": _withdrawable(balance),
                "tokenId": token_ids.get(balance["token"], ""),
            }
            for balance in state.get("balances", [])
        ]

    async def get_evm_tokens_with_balances(self) -> List[Dict[str, Any]]:
        """
        EVM tokens merged with on-chain balances (`balance`, `rawBalance`)
        and spot balances (`coreTotal`, `coreHold`, `coreWithdrawable`,
        "0" when the user holds none).
        """
        if self.multicall is None:
            self.multicall = MulticallClient()
        tokens = await self.get_evm_tokens()
        state = await self.info.spot_clearinghouse_state(self.user)
        core = {b["token"]: b for b in state.get("balances", [])}

        infos = [TokenInfo(address=t["evmAddress"], symbol=t["name"], decimals=t["decimals"]) for t in tokens if t["evmAddress"]]
        onchain = await self.multicall.get_token_balances(self.user, infos)
        native = await self.multicall.get_native_balance(self.user)
        by_address = {b.address.lower(): b for b in onchain.balances}

        out = []
        for token in tokens:
            row = dict(token)
            if token["name"] == HYPE:
                row["balance"] = native.formatted_balance
                row["rawBalance"] = str(native.balance)
            else:
                entry = by_address.get(token["evmAddress"].lower()) if token["evmAddress"] else None
                row["balance"] = entry.formatted_balance if entry and entry.formatted_balance is not None else "0"
                row["rawBalance"] = str(entry.balance) if entry else "0"

            balance = core.get(token["index"])
            if balance is not None:
                row["coreTotal"] = balance["total"]
                row["coreHold"] = balance["hold"]
                row["coreWithdrawable"] = _withdrawable(balance)
            else:
                row["coreTotal"] = row["coreHold"] = row["coreWithdrawable"] = "0"
            out.append(row)
        return out
