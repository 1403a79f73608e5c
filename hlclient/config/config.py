"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import load_dotenv
from hyperliquid.utils import constants

from hlclient.core.utils import now_ms
from hlclient.errors import ConfigError
from hlclient.infra.logging_cfg import log_event

load_dotenv()

log = logging.getLogger("hlclient")


def env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    base_url: str
    is_testnet: bool
    private_key: str | None
    user_address: str | None
    vault_address: str | None
    expires_after_ms: int  # relative offset applied at signing time (0=disabled)
    signature_chain_id: str | None
    http_timeout: float
    evm_rpc_url: str | None
    log_level: str
    log_file: str | None

    def dump(self) -> dict:
        """Return a dict of settings for logging, without the key."""
        data = self.__dict__.copy()
        if data.get("private_key"):
            data["private_key"] = "***"
        return data

    @classmethod
    def load(cls) -> "Settings":
        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ConfigError(f"{key} must be an integer, got {raw!r}") from e

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            try:
                return float(raw)
            except ValueError as e:
                raise ConfigError(f"{key} must be a number, got {raw!r}") from e

        is_testnet = env_bool("HL_TESTNET", False)
        default_url = constants.TESTNET_API_URL if is_testnet else constants.MAINNET_API_URL
        cfg = cls(
            base_url=os.getenv("HL_BASE_URL") or default_url,
            is_testnet=is_testnet,
            private_key=os.getenv("HL_PRIVATE_KEY") or None,
            user_address=os.getenv("HL_USER_ADDRESS") or None,
            vault_address=os.getenv("HL_VAULT_ADDRESS") or None,
            expires_after_ms=_int_env("HL_EXPIRES_AFTER_MS", 0),
            signature_chain_id=os.getenv("HL_SIGNATURE_CHAIN_ID") or None,
            http_timeout=_float_env("HL_HTTP_TIMEOUT", 10.0),
            evm_rpc_url=os.getenv("HL_EVM_RPC_URL") or None,
            log_level=os.getenv("HL_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("HL_LOG_FILE") or None,
        )
        cfg._validate()
        log_event(log, "config_loaded", level=logging.DEBUG, **cfg.dump())
        return cfg

    def resolve_account(self) -> str:
        if self.user_address:
            return self.user_address
        if self.private_key:
            from eth_account import Account

            return Account.from_key(self.private_key).address
        raise ConfigError("Missing HL_USER_ADDRESS or HL_PRIVATE_KEY")

    def resolve_signer(self):
        from eth_account import Account

        if self.private_key:
            return Account.from_key(self.private_key)
        raise ConfigError("Missing credentials: set HL_PRIVATE_KEY")

    def expires_after(self) -> Optional[Callable[[], int]]:
        """Producer of an absolute expiry, evaluated per action, or None when disabled."""
        if self.expires_after_ms <= 0:
            return None
        offset = self.expires_after_ms
        return lambda: now_ms() + offset

    def _validate(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError(f"HL_BASE_URL must be an http(s) URL, got {self.base_url!r}")
        if self.http_timeout <= 0:
            raise ConfigError("HL_HTTP_TIMEOUT must be > 0")
        if self.expires_after_ms < 0:
            raise ConfigError("HL_EXPIRES_AFTER_MS must be >= 0")
        for key, addr in (("HL_USER_ADDRESS", self.user_address), ("HL_VAULT_ADDRESS", self.vault_address)):
            if addr is not None and not (addr.startswith("0x") and len(addr) == 42):
                raise ConfigError(f"{key} must be a 0x-prefixed 20-byte address")
        if self.signature_chain_id is not None and not self.signature_chain_id.startswith("0x"):
            raise ConfigError("HL_SIGNATURE_CHAIN_ID must be a 0x-prefixed hex chain id")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigError(f"HL_LOG_LEVEL {self.log_level!r} is not a logging level")
