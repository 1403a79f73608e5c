"""
Canonical action layouts.

The venue hashes the msgpack encoding of the action, so dict key order is
part of the signature. Every variant is rebuilt from scratch in the fixed
order below; unknown keys are dropped.

    order                 type, orders[a,b,p,s,r,t,c?], grouping, builder?
    cancel                type, cancels[a,o]
    cancelByCloid         type, cancels[asset,cloid]
    modify                type, oid, order
    batchModify           type, modifies[oid,order]
    scheduleCancel        type, time?
    updateLeverage        type, asset, isCross, leverage
    updateIsolatedMargin  type, asset, isBuy, ntli
    twapOrder             type, twap[a,b,s,r,m,t]
    twapCancel            type, a, t

Asset fields are resolved to indices before canonicalization; see
ASSET_FIELDS for where they live in each variant.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Tuple

from hyperliquid.utils.signing import float_to_wire

# Paths to asset-reference fields; "*" iterates a list.
ASSET_FIELDS: Dict[str, List[Tuple[str, ...]]] = {
    "order": [("orders", "*", "a")],
    "cancel": [("cancels", "*", "a")],
    "cancelByCloid": [("cancels", "*", "asset")],
    "modify": [("order", "a")],
    "batchModify": [("modifies", "*", "order", "a")],
    "scheduleCancel": [],
    "updateLeverage": [("asset",)],
    "updateIsolatedMargin": [("asset",)],
    "twapOrder": [("twap", "a")],
    "twapCancel": [("a",)],
}

# Variants whose ok-response carries per-item statuses.
BULK_TYPES = frozenset({"order", "cancel"})


def _wire_number(value: Any) -> str:
    if isinstance(value, str):
        return value
    return float_to_wire(float(value))


def _order_type(t: Dict[str, Any]) -> Dict[str, Any]:
    if "limit" in t:
        return {"limit": {"tif": t["limit"]["tif"]}}
    if "trigger" in t:
        trig = t["trigger"]
        return {
            "trigger": {
                "isMarket": bool(trig["isMarket"]),
                "triggerPx": _wire_number(trig["triggerPx"]),
                "tpsl": trig["tpsl"],
            }
        }
    raise ValueError(f"Unsupported order type: {t!r}")


def order_wire(order: Dict[str, Any]) -> Dict[str, Any]:
    wire = {
        "a": int(order["a"]),
        "b": bool(order["b"]),
        "p": _wire_number(order["p"]),
        "s": _wire_number(order["s"]),
        "r": bool(order.get("r", False)),
        "t": _order_type(order["t"]),
    }
    if order.get("c") is not None:
        wire["c"] = order["c"]
    return wire


def _order(action: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "type": "order",
        "orders": [order_wire(o) for o in action["orders"]],
        "grouping": action.get("grouping", "na"),
    }
    builder = action.get("builder")
    if builder:
        out["builder"] = {"b": str(builder["b"]).lower(), "f": int(builder["f"])}
    return out


def _cancel(action: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "cancel",
        "cancels": [{"a": int(c["a"]), "o": int(c["o"])} for c in action["cancels"]],
    }


def _cancel_by_cloid(action: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "cancelByCloid",
        "cancels": [{"asset": int(c["asset"]), "cloid": c["cloid"]} for c in action["cancels"]],
    }


def _modify(action: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "modify", "oid": action["oid"], "order": order_wire(action["order"])}


def _batch_modify(action: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "batchModify",
        "modifies": [{"oid": m["oid"], "order": order_wire(m["order"])} for m in action["modifies"]],
    }


def _schedule_cancel(action: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"type": "scheduleCancel"}
    if action.get("time") is not None:
        out["time"] = int(action["time"])
    return out


def _update_leverage(action: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "updateLeverage",
        "asset": int(action["asset"]),
        "isCross": bool(action["isCross"]),
        "leverage": int(action["leverage"]),
    }


def _update_isolated_margin(action: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "updateIsolatedMargin",
        "asset": int(action["asset"]),
        "isBuy": bool(action["isBuy"]),
        "ntli": int(action["ntli"]),
    }


def _twap_order(action: Dict[str, Any]) -> Dict[str, Any]:
    twap = action["twap"]
    return {
        "type": "twapOrder",
        "twap": {
            "a": int(twap["a"]),
            "b": bool(twap["b"]),
            "s": _wire_number(twap["s"]),
            "r": bool(twap.get("r", False)),
            "m": int(twap["m"]),
            "t": bool(twap.get("t", False)),
        },
    }


def _twap_cancel(action: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "twapCancel", "a": int(action["a"]), "t": int(action["t"])}


ACTION_LAYOUTS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "order": _order,
    "cancel": _cancel,
    "cancelByCloid": _cancel_by_cloid,
    "modify": _modify,
    "batchModify": _batch_modify,
    "scheduleCancel": _schedule_cancel,
    "updateLeverage": _update_leverage,
    "updateIsolatedMargin": _update_isolated_margin,
    "twapOrder": _twap_order,
    "twapCancel": _twap_cancel,
}


def canonicalize(action: Dict[str, Any]) -> Dict[str, Any]:
    """Rebuild an action in its variant's canonical key order."""
    variant = action.get("type")
    layout = ACTION_LAYOUTS.get(variant)
    if layout is None:
        raise ValueError(f"Unsupported action type: {variant!r}")
    return layout(action)


async def _resolve_path(node: Any, path: Tuple[str, ...], resolver: Callable[[Any], Awaitable[int]]) -> Any:
    if not path:
        return await resolver(node)
    head, rest = path[0], path[1:]
    if head == "*":
        return [await _resolve_path(item, rest, resolver) for item in node]
    if not isinstance(node, dict) or head not in node:
        return node
    out = dict(node)
    out[head] = await _resolve_path(node[head], rest, resolver)
    return out


async def resolve_action_assets(
    action: Dict[str, Any], resolver: Callable[[Any], Awaitable[int]]
) -> Dict[str, Any]:
    """Return a copy of `action` with every asset field replaced by its index."""
    variant = action.get("type")
    if variant not in ASSET_FIELDS:
        raise ValueError(f"Unsupported action type: {variant!r}")
    resolved = dict(action)
    for path in ASSET_FIELDS[variant]:
        resolved = await _resolve_path(resolved, path, resolver)
    return resolved
