"""
Caller-driven cancellation for in-flight calls.

An AbortSignal is handed to read/write calls. Aborting rejects the pending
call locally with AbortError; bytes already on the wire are not retracted.

Usage:
    signal = AbortSignal.timeout(2.0)
    mids = await info.all_mids(signal=signal)
"""

from __future__ import annotations

import asyncio
import inspect
import weakref
from typing import Any, Awaitable, Iterable, List, Optional, TypeVar

from hlclient.errors import AbortError

T = TypeVar("T")


class AbortSignal:
    """
    One-shot abort flag that async callers can wait on.

    timeout() and any() need a running event loop.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[Any] = None
        # combined signals hang off their parents weakly
        self._children: "weakref.WeakSet[AbortSignal]" = weakref.WeakSet()
        self._parents: List["AbortSignal"] = []

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[Any]:
        return self._reason

    def abort(self, reason: Optional[Any] = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason if reason is not None else "aborted"
        self._event.set()
        for parent in self._parents:
            parent._children.discard(self)
        self._parents.clear()
        for child in list(self._children):
            child.abort(self._reason)
        self._children.clear()

    def throw_if_aborted(self) -> None:
        if self.aborted:
            raise AbortError(self._reason)

    async def wait(self) -> None:
        await self._event.wait()

    @classmethod
    def timeout(cls, seconds: float) -> "AbortSignal":
        signal = cls()
        asyncio.get_running_loop().call_later(seconds, signal.abort, "timeout")
        return signal

    @classmethod
    def any(cls, signals: Iterable[Optional["AbortSignal"]]) -> "AbortSignal":
        """Signal that aborts as soon as any of the given signals aborts."""
        combined = cls()
        for s in signals:
            if s is None:
                continue
            if s.aborted:
                combined.abort(s.reason)
                break
            s._children.add(combined)
            combined._parents.append(s)
        return combined


async def with_signal(aw: Awaitable[T], signal: Optional[AbortSignal]) -> T:
    """
    Await `aw`, raising AbortError if `signal` fires first.

    The inner task is cancelled on abort. A result that completes in the same
    loop iteration as the abort wins.
    """
    if signal is None:
        return await aw
    if signal.aborted:
        if inspect.iscoroutine(aw):
            aw.close()
        raise AbortError(signal.reason)

    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()
    task.cancel()
    raise AbortError(signal.reason)
