"""
Subscription transport over the hyperliquid SDK websocket manager.

The SDK owns the socket (connect, ping, background thread) but its own
routing table only knows a subset of channels and refuses a second
userEvents/orderUpdates registration. This adapter takes inbound routing
over: every frame is dispatched by its `channel` field to the callbacks
registered for that channel, and subscribe/unsubscribe frames are sent once
per distinct payload, reference counted across logical subscriptions.

Callbacks fire on the SDK websocket thread; messages are hopped onto the
owning event loop before they reach the subscription router, mirroring how
market data callbacks are bridged.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

from hyperliquid.info import Info
from hyperliquid.websocket_manager import WebsocketManager

from hlclient.core.json_utils import dumps, loads
from hlclient.infra.logging_cfg import log_event
from hlclient.infra.transport import MessageCallback

log = logging.getLogger("hlclient")

# frames that never carry subscription data
_CONTROL_CHANNELS = frozenset({"pong", "subscriptionResponse", "error"})
_GREETING = "Websocket connection established."


class _Registration:
    def __init__(self, transport: "InfoSubscriptionTransport", channel: str, key: str,
                 on_message: MessageCallback, loop: asyncio.AbstractEventLoop) -> None:
        self._transport = transport
        self.channel = channel
        self.key = key
        self.on_message = on_message
        self.loop = loop
        self._closed = False

    def deliver(self, data: Any) -> None:
        # runs on the SDK websocket thread
        if self._closed:
            return
        try:
            self.loop.call_soon_threadsafe(self.on_message, data)
        except RuntimeError:
            # loop already closed during shutdown
            log_event(log, "ws_message_after_close", level=logging.DEBUG, channel=self.channel)

    async def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._transport._release(self)


class InfoSubscriptionTransport:
    """Adapts `hyperliquid.info.Info` (constructed with skip_ws=False) to the async subscribe contract."""

    def __init__(self, info: Info) -> None:
        if info.ws_manager is None:
            raise RuntimeError("InfoSubscriptionTransport needs an Info built with skip_ws=False")
        self._info = info
        self._manager: WebsocketManager = info.ws_manager
        self._lock = threading.Lock()
        self._by_channel: Dict[str, List[_Registration]] = {}
        # payload key -> (payload, refcount)
        self._payloads: Dict[str, List[Any]] = {}
        # payloads subscribed before the socket opened
        self._pending: List[str] = []
        self._install_hooks()

    @classmethod
    def connect(cls, base_url: str, **info_kwargs: Any) -> "InfoSubscriptionTransport":
        return cls(Info(base_url, skip_ws=False, **info_kwargs))

    # -------------------------------------------------------------------------
    # SDK hooks
    # -------------------------------------------------------------------------

    def _install_hooks(self) -> None:
        manager = self._manager
        sdk_on_open = manager.on_open

        def on_open(ws: Any) -> None:
            sdk_on_open(ws)
            with self._lock:
                pending, self._pending = self._pending, []
                frames = [self._payloads[key][0] for key in pending if key in self._payloads]
            for payload in frames:
                self._send("subscribe", payload)

        # WebSocketApp resolves its callbacks at call time, so both the
        # manager attribute and the socket's copy are replaced
        manager.on_message = self._on_message
        manager.on_open = on_open
        manager.ws.on_message = self._on_message
        manager.ws.on_open = on_open

    def _on_message(self, _ws: Any, message: str) -> None:
        if message == _GREETING:
            return
        try:
            msg = loads(message)
        except ValueError:
            log_event(log, "ws_bad_frame", level=logging.WARNING, frame=message[:200])
            return
        if not isinstance(msg, dict):
            return
        channel = msg.get("channel")
        if channel in _CONTROL_CHANNELS:
            if channel == "error":
                log_event(log, "ws_error_frame", level=logging.WARNING, data=msg.get("data"))
            return
        with self._lock:
            targets = list(self._by_channel.get(channel, ()))
        if not targets:
            log_event(log, "ws_unrouted_message", level=logging.DEBUG, channel=channel)
            return
        data = msg.get("data")
        for reg in targets:
            reg.deliver(data)

    def _send(self, method: str, payload: Dict[str, Any]) -> None:
        self._manager.ws.send(dumps({"method": method, "subscription": payload}))

    # -------------------------------------------------------------------------
    # Subscribe contract
    # -------------------------------------------------------------------------

    async def subscribe(self, channel: str, payload: Dict[str, Any], on_message: MessageCallback) -> _Registration:
        payload = dict(payload)
        key = dumps(payload)
        reg = _Registration(self, channel, key, on_message, asyncio.get_running_loop())
        send = False
        with self._lock:
            self._by_channel.setdefault(channel, []).append(reg)
            entry = self._payloads.get(key)
            shared = entry is not None
            if entry is None:
                self._payloads[key] = [payload, 1]
                if self._manager.ws_ready:
                    send = True
                else:
                    self._pending.append(key)
            else:
                entry[1] += 1
        if send:
            try:
                await asyncio.to_thread(self._send, "subscribe", payload)
            except BaseException:
                await reg.unsubscribe()
                raise
        log_event(log, "ws_subscribed", level=logging.DEBUG, channel=channel, shared=shared)
        return reg

    async def _release(self, reg: _Registration) -> None:
        send: Optional[Dict[str, Any]] = None
        with self._lock:
            regs = self._by_channel.get(reg.channel, [])
            if reg in regs:
                regs.remove(reg)
            if not regs:
                self._by_channel.pop(reg.channel, None)
            entry = self._payloads.get(reg.key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] > 0:
                return
            del self._payloads[reg.key]
            if reg.key in self._pending:
                self._pending.remove(reg.key)
            elif self._manager.ws_ready:
                send = entry[0]
        if send is not None:
            await asyncio.to_thread(self._send, "unsubscribe", send)
            log_event(log, "ws_unsubscribed", level=logging.DEBUG, channel=reg.channel)

    async def close(self) -> None:
        with self._lock:
            self._by_channel.clear()
            self._payloads.clear()
            self._pending.clear()
        await asyncio.to_thread(self._info.disconnect_websocket)
