"""
Fast JSON utilities backed by orjson.

orjson preserves dict insertion order, which matters for signed actions:
the canonical key order produced at signing time is the order that goes
over the wire.

Usage:
    from hlclient.core.json_utils import dumps, loads

    log.info(dumps({"event": "order_submit", "nonce": 1700000000000}))
"""

from __future__ import annotations

from typing import Any

import orjson


def dumps(obj: Any) -> str:
    """Compact JSON encode to string."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def dumps_bytes(obj: Any) -> bytes:
    """Compact JSON encode to bytes (request bodies)."""
    return orjson.dumps(obj)


def loads(s: str | bytes) -> Any:
    """JSON decode."""
    return orjson.loads(s)
