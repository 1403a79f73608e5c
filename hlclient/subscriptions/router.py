"""
Subscription router: many logical subscriptions over one streaming transport.

Each Subscription opens its own transport registration; the transport calls
back once per inbound message. Callbacks only enqueue. One worker task per
channel drains the queue so that messages on a channel are matched,
translated and delivered strictly in arrival order, even when translation
awaits.

Channels without per-message discrimination (no predicate) deliver every
message to every subscription on the channel. Two logical subscriptions
sharing such a channel cannot be told apart; this mirrors the venue protocol.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from hlclient.core.resolvable import maybe_await
from hlclient.infra.logging_cfg import log_event

if TYPE_CHECKING:
    from hlclient.infra.transport import SubscriptionTransport, TransportSubscription

log = logging.getLogger("hlclient")

Listener = Callable[[Any], Any]
Predicate = Callable[[Any], bool]
Converter = Callable[[Any], Awaitable[Any]]

_STOP = object()


class SubscriptionState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(eq=False)
class Subscription:
    channel: str
    payload: Dict[str, Any]
    listener: Listener
    predicate: Optional[Predicate] = None
    converter: Optional[Converter] = None
    state: SubscriptionState = SubscriptionState.PENDING
    _router: Optional["SubscriptionRouter"] = field(default=None, repr=False)
    _handle: Optional["TransportSubscription"] = field(default=None, repr=False)

    @property
    def closed(self) -> bool:
        return self.state is SubscriptionState.CLOSED

    async def unsubscribe(self) -> None:
        """Stop delivery. No listener call starts after this returns."""
        if self._router is None:
            self.state = SubscriptionState.CLOSED
            return
        await self._router.unsubscribe(self)


class _ChannelWorker:
    """Ordered delivery loop for one channel."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        self.queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self.subscriptions: List[Subscription] = []
        self.task = asyncio.create_task(self._run(), name=f"hl-sub-{channel}")

    def stop(self) -> None:
        self.queue.put_nowait(_STOP)

    async def _run(self) -> None:
        while True:
            item = await self.queue.get()
            if item is _STOP:
                return
            sub, msg = item
            await self._deliver(sub, msg)

    async def _deliver(self, sub: Subscription, msg: Any) -> None:
        if sub.closed:
            return
        try:
            if sub.predicate is not None and not sub.predicate(msg):
                return
            data = await sub.converter(msg) if sub.converter is not None else msg
            # unsubscribe may have resolved while translation was suspended
            if sub.closed:
                return
            sub.state = SubscriptionState.ACTIVE
            await maybe_await(sub.listener(data))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_event(log, "listener_error", level=logging.WARNING, channel=self.channel, err=str(e))


class SubscriptionRouter:
    def __init__(self, transport: "SubscriptionTransport") -> None:
        self.transport = transport
        self._workers: Dict[str, _ChannelWorker] = {}

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def subscriptions(self, channel: Optional[str] = None) -> Tuple[Subscription, ...]:
        if channel is not None:
            worker = self._workers.get(channel)
            return tuple(worker.subscriptions) if worker else ()
        return tuple(s for w in self._workers.values() for s in w.subscriptions)

    def _worker_for(self, channel: str) -> _ChannelWorker:
        worker = self._workers.get(channel)
        if worker is None:
            worker = _ChannelWorker(channel)
            self._workers[channel] = worker
        return worker

    def _detach(self, sub: Subscription) -> None:
        worker = self._workers.get(sub.channel)
        if worker is None:
            return
        if sub in worker.subscriptions:
            worker.subscriptions.remove(sub)
        if not worker.subscriptions:
            del self._workers[sub.channel]
            worker.stop()

    def _enqueue(self, sub: Subscription, msg: Any) -> None:
        if sub.closed:
            return
        worker = self._workers.get(sub.channel)
        if worker is not None:
            worker.queue.put_nowait((sub, msg))

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def subscribe(
        self,
        channel: str,
        payload: Dict[str, Any],
        listener: Listener,
        predicate: Optional[Predicate] = None,
        converter: Optional[Converter] = None,
    ) -> Subscription:
        """
        Register `listener` for messages on `channel` accepted by `predicate`.

        Without a predicate the subscription is non-discriminating and starts
        active. `converter` translates the payload before the listener sees it.
        """
        sub = Subscription(
            channel=channel,
            payload=payload,
            listener=listener,
            predicate=predicate,
            converter=converter,
            state=SubscriptionState.PENDING if predicate is not None else SubscriptionState.ACTIVE,
            _router=self,
        )
        self._worker_for(channel).subscriptions.append(sub)
        try:
            sub._handle = await self.transport.subscribe(channel, payload, lambda msg: self._enqueue(sub, msg))
        except BaseException:
            sub.state = SubscriptionState.CLOSED
            self._detach(sub)
            raise

        if sub.closed:
            # unsubscribed while the subscribe request was in flight
            await sub._handle.unsubscribe()
        log_event(log, "subscribed", level=logging.DEBUG, channel=channel, payload=payload)
        return sub

    async def unsubscribe(self, sub: Subscription) -> None:
        if sub.closed and sub not in self.subscriptions(sub.channel):
            return
        sub.state = SubscriptionState.CLOSED
        self._detach(sub)
        if sub._handle is not None:
            await sub._handle.unsubscribe()
        log_event(log, "unsubscribed", level=logging.DEBUG, channel=sub.channel)

    async def close(self) -> None:
        """Close every subscription and stop all channel workers."""
        workers = list(self._workers.values())
        self._workers.clear()
        handles = []
        for worker in workers:
            for sub in worker.subscriptions:
                sub.state = SubscriptionState.CLOSED
                if sub._handle is not None:
                    handles.append(sub._handle)
            worker.subscriptions.clear()
            worker.stop()

        results = await asyncio.gather(*(h.unsubscribe() for h in handles), return_exceptions=True)
        for res in results:
            if isinstance(res, Exception):
                log_event(log, "unsubscribe_failed", level=logging.WARNING, err=str(res))

        current = asyncio.current_task()
        tasks = [w.task for w in workers if w.task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        close = getattr(self.transport, "close", None)
        if close is not None:
            await maybe_await(close())
