"""
Infrastructure package.

Transports, the info read client, nonce sequencing and logging configuration.
"""

from hlclient.infra.async_info import InfoClient
from hlclient.infra.http_transport import HttpTransport
from hlclient.infra.logging_cfg import build_logger, log_event
from hlclient.infra.nonce import NonceCoordinator, NonceSequencer
from hlclient.infra.ws_transport import InfoSubscriptionTransport

__all__ = [
    "InfoClient",
    "HttpTransport",
    "build_logger",
    "log_event",
    "NonceCoordinator",
    "NonceSequencer",
    "InfoSubscriptionTransport",
]
