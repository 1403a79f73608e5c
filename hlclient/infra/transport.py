"""
Transport contracts consumed by the clients.

The literal network layer (connection management, framing, reconnection) is
an external collaborator; the clients only rely on these two calls.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from hlclient.core.abort import AbortSignal

MessageCallback = Callable[[Any], None]


class TransportSubscription(Protocol):
    async def unsubscribe(self) -> None: ...


class RequestTransport(Protocol):
    async def request(self, group: str, body: Dict[str, Any], signal: Optional["AbortSignal"] = None) -> Any:
        """POST `body` to the `info` / `exchange` endpoint group and return the decoded response."""
        ...


class SubscriptionTransport(Protocol):
    async def subscribe(self, channel: str, payload: Dict[str, Any], on_message: MessageCallback) -> TransportSubscription:
        """
        Send the subscribe `payload` and register `on_message` for `channel`.

        on_message is called on the event loop thread with the message's
        `data` field, once per inbound message on the channel.
        """
        ...
