"""
Client factory: wires transports, translator and clients from Settings.

Usage:
    from hlclient.config import Settings
    from hlclient.client_factory import build_clients

    clients = build_clients(Settings.load())
    await clients.trading.cancel_all_perp_orders()
    await clients.aclose()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from hlclient.core.symbols import MetaSymbolTranslator
from hlclient.evm.multicall import MulticallClient
from hlclient.evm.tokens import EvmTokenService
from hlclient.execution.exchange_client import ExchangeClient
from hlclient.execution.trading_ops import TradingOperations
from hlclient.infra.async_info import InfoClient
from hlclient.infra.http_transport import HttpTransport
from hlclient.infra.logging_cfg import build_logger, log_event
from hlclient.infra.ws_transport import InfoSubscriptionTransport
from hlclient.subscriptions.client import SubscriptionClient

if TYPE_CHECKING:
    from hlclient.config.config import Settings

log = logging.getLogger("hlclient")


@dataclass
class Clients:
    """Everything a caller needs, sharing one transport and one translator."""
    settings: "Settings"
    transport: HttpTransport
    translator: MetaSymbolTranslator
    info: InfoClient
    exchange: Optional[ExchangeClient]
    trading: Optional[TradingOperations]
    subscriptions: Optional[SubscriptionClient]
    multicall: MulticallClient
    evm_tokens: Optional[EvmTokenService]

    async def aclose(self) -> None:
        if self.subscriptions is not None:
            await self.subscriptions.close()
        await self.transport.close()


def build_clients(settings: "Settings", with_subscriptions: bool = False, configure_logging: bool = True) -> Clients:
    """
    Build the client set described by `settings`.

    Signing clients are only built when a private key is configured; the
    websocket connection is only opened when `with_subscriptions` is set.
    """
    if configure_logging:
        build_logger(level=getattr(logging, settings.log_level), file_path=settings.log_file)

    transport = HttpTransport(settings.base_url, is_testnet=settings.is_testnet, timeout=settings.http_timeout)
    translator = MetaSymbolTranslator(transport)
    info = InfoClient(transport, translator)
    multicall = MulticallClient(is_testnet=settings.is_testnet, rpc_url=settings.evm_rpc_url)

    exchange = None
    trading = None
    if settings.private_key:
        exchange = ExchangeClient(
            transport,
            settings.resolve_signer(),
            translator=translator,
            is_testnet=settings.is_testnet,
            default_vault_address=settings.vault_address,
            default_expires_after=settings.expires_after(),
            signature_chain_id=settings.signature_chain_id,
        )

    user = None
    if settings.user_address or settings.private_key:
        user = settings.resolve_account()
        if exchange is not None:
            # vault trading reads the vault's positions and orders
            trading = TradingOperations(exchange, settings.vault_address or user, translator)

    subscriptions = None
    if with_subscriptions:
        ws = InfoSubscriptionTransport.connect(settings.base_url)
        subscriptions = SubscriptionClient(ws, translator)

    evm_tokens = EvmTokenService(InfoClient(transport), user, multicall) if user else None

    log_event(
        log,
        "clients_built",
        base_url=settings.base_url,
        testnet=settings.is_testnet,
        signing=exchange is not None,
        subscriptions=subscriptions is not None,
    )
    return Clients(
        settings=settings,
        transport=transport,
        translator=translator,
        info=info,
        exchange=exchange,
        trading=trading,
        subscriptions=subscriptions,
        multicall=multicall,
        evm_tokens=evm_tokens,
    )
