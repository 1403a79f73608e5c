"""
Pytest configuration and shared fakes.
Adds the repo root to sys.path so tests can import hlclient without installing.
"""

import copy
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


class FakeTranslator:
    """Static display <-> internal mapping: BTC/ETH perps and one spot pair."""

    def __init__(self):
        self.perp = {"BTC": "BTC-PERP", "ETH": "ETH-PERP"}
        self.spot = {"@1": "PURR-SPOT"}
        self.index = {"BTC-PERP": 0, "ETH-PERP": 1, "PURR-SPOT": 10001}
        self.calls: List[str] = []

    async def convert_symbol(self, symbol, direction="forward", category=None):
        self.calls.append(symbol)
        if direction == "reverse":
            for internal, display in {**self.perp, **self.spot}.items():
                if display == symbol:
                    return internal
            return symbol
        return self.perp.get(symbol) or self.spot.get(symbol) or symbol

    async def convert_response(self, payload, field_names=None, category=None):
        fields = set(field_names or ("coin", "symbol"))
        mapping = {**self.perp, **self.spot}

        def walk(node):
            if isinstance(node, list):
                return [walk(n) for n in node]
            if isinstance(node, dict):
                return {
                    k: mapping.get(v, v) if k in fields and isinstance(v, str) else walk(v)
                    for k, v in node.items()
                }
            return node

        return walk(payload)

    async def get_asset_index(self, symbol):
        return self.index.get(symbol)

    async def get_all_assets(self):
        return {"perp": list(self.perp.values()), "spot": list(self.spot.values())}


class FakeSigner:
    address = "0x1234567890abcdef1234567890abcdef12345678"

    def __init__(self):
        self.messages = []

    async def sign_l1_action(self, message):
        self.messages.append(message)
        return {"r": "0x01", "s": "0x02", "v": 27}


class FakeTransport:
    """
    Request transport that records calls and answers through `responder`.

    responder(group, body) returns the decoded response; default is an ok
    envelope echoing the action type.
    """

    def __init__(self, responder: Optional[Callable[[str, Dict[str, Any]], Any]] = None):
        self.requests: List[tuple] = []
        self.responder = responder or self._ok

    @staticmethod
    def _ok(group, body):
        if group == "exchange":
            return {"status": "ok", "response": {"type": body["action"]["type"], "data": {"statuses": ["success"]}}}
        return {}

    async def request(self, group, body, signal=None):
        self.requests.append((group, copy.deepcopy(body)))
        result = self.responder(group, body)
        if isinstance(result, Exception):
            raise result
        return result

    def exchange_bodies(self):
        return [body for group, body in self.requests if group == "exchange"]


class FakeHandle:
    def __init__(self, transport, channel, callback):
        self.transport = transport
        self.channel = channel
        self.callback = callback
        self.unsubscribed = False

    async def unsubscribe(self):
        self.unsubscribed = True
        self.transport.callbacks[self.channel].remove(self.callback)


class FakeStreamTransport:
    """Subscription transport: emit() fans a message out to every callback on a channel."""

    def __init__(self):
        self.callbacks: Dict[str, List[Callable]] = {}
        self.payloads: List[tuple] = []
        self.handles: List[FakeHandle] = []
        self.closed = False

    async def subscribe(self, channel, payload, on_message):
        self.payloads.append((channel, dict(payload)))
        self.callbacks.setdefault(channel, []).append(on_message)
        handle = FakeHandle(self, channel, on_message)
        self.handles.append(handle)
        return handle

    def emit(self, channel, msg):
        for cb in list(self.callbacks.get(channel, [])):
            cb(msg)

    async def close(self):
        self.closed = True


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def signer():
    return FakeSigner()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def stream():
    return FakeStreamTransport()
