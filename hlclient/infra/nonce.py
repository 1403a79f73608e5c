"""
Per-signer nonce sequencing.

Nonces are wall-clock milliseconds, bumped to last + 1 whenever the clock
has not moved past the last issued value. A NonceCoordinator hands out one
sequencer per signer address so every client signing for the same account
draws from the same strictly increasing sequence.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional

from hlclient.core.utils import now_ms


class NonceSequencer:
    """Strictly increasing nonce source. Safe across asyncio tasks and threads."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    @property
    def last_issued(self) -> int:
        return self._last

    def get_nonce(self) -> int:
        with self._lock:
            nonce = self._clock()
            if nonce <= self._last:
                nonce = self._last + 1
            self._last = nonce
            return nonce

    __call__ = get_nonce


class NonceCoordinator:
    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        # map account -> sequencer
        self._sequencers: Dict[str, NonceSequencer] = {}
        self._guard = threading.Lock()

    def get_sequencer(self, account: Optional[str]) -> NonceSequencer:
        """Return the shared sequencer for the given signer address (case-insensitive)."""
        key = (account or "").lower()
        with self._guard:
            seq = self._sequencers.get(key)
            if seq is None:
                seq = NonceSequencer(self._clock)
                self._sequencers[key] = seq
            return seq


_default_coordinator = NonceCoordinator()


def get_default_coordinator() -> NonceCoordinator:
    return _default_coordinator
