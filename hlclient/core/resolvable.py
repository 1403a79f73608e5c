"""
Value-or-producer configuration fields.

Some client defaults (expires_after, signature_chain_id) are either a literal
or a zero-argument producer, sync or async, evaluated right before use.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

T = TypeVar("T")

Resolvable = Union[T, Callable[[], Union[T, Awaitable[T]]]]


async def resolve(value: Optional[Resolvable[T]]) -> Optional[T]:
    """Evaluate a Resolvable. Literals are returned as-is, producers are called per use."""
    if value is None:
        return None
    if callable(value):
        result = value()
        if inspect.isawaitable(result):
            result = await result
        return result
    return value


async def maybe_await(value: Any) -> Any:
    """Await `value` if it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value
