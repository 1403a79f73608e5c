"""
Utility helpers.
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


def price_decimals(px: Any) -> int:
    """
    Number of decimals in the shortest representation of a price.

    "43250.5" -> 1, 100.0 -> 0, "0.000123" -> 6.
    """
    try:
        d = Decimal(str(px)).normalize()
    except InvalidOperation:
        return 0
    exponent = d.as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def format_units(value: int, decimals: int) -> str:
    """Format an integer amount of base units as a decimal string (like viem formatUnits)."""
    if decimals <= 0:
        return str(value)
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = Decimal(value).scaleb(-decimals)
    text = format(scaled, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
