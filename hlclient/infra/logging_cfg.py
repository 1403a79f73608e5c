"""
Structured logging setup for the client.

Library modules log through logging.getLogger("hlclient") and emit
structured events with log_event(). Applications call build_logger() once
to attach handlers:
- rich console handler for humans
- optional JSON file handler for ingestion
- throttling for repetitive warnings (listener errors, malformed frames)
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Dict, Optional

from rich.logging import RichHandler

from hlclient.core.json_utils import dumps, loads

LOGGER_NAME = "hlclient"

# warnings that can repeat once per inbound message or per position
THROTTLED_EVENTS = frozenset({"listener_error", "background_close_failed", "ws_bad_frame"})


class JsonFormatter(logging.Formatter):
    """Compact JSON formatter for structured log ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        ts = record.created
        payload = {
            "ts": ts,
            "ts_iso": datetime.fromtimestamp(ts).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return dumps(payload)


class ThrottledFilter(logging.Filter):
    """
    Filter that throttles repetitive structured events.

    Allows the first occurrence, then suppresses duplicates with the same
    event/channel key for cooldown_sec.
    """

    def __init__(self, cooldown_sec: float = 30.0):
        super().__init__()
        self._cooldown = cooldown_sec
        self._last_seen: Dict[str, float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            data = loads(record.getMessage())
        except ValueError:
            return True
        if not isinstance(data, dict):
            return True
        event = data.get("event", "")
        if event not in THROTTLED_EVENTS:
            return True

        now = time.time()
        key = f"{event}:{data.get('channel', '')}"
        last = self._last_seen.get(key, 0.0)
        if now - last < self._cooldown:
            return False
        self._last_seen[key] = now
        return True


def build_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    file_path: Optional[str] = None,
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the client logger.

    Idempotent: a second call only adjusts levels.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    stream_handler = RichHandler(
        rich_tracebacks=False,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
    )
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    stream_handler.addFilter(ThrottledFilter(cooldown_sec=30.0))
    logger.addHandler(stream_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(JsonFormatter())
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **data,
) -> None:
    """
    Log a structured event.

    Usage:
        log_event(log, "order_submit", level=logging.DEBUG, nonce=nonce, n=3)
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, dumps({"event": event, **data}))
