"""
Async HTTP transport for the info and exchange endpoints using HTTP/2.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from hyperliquid.utils import constants

from hlclient.core.abort import AbortSignal, with_signal
from hlclient.core.json_utils import dumps_bytes, loads
from hlclient.errors import HttpRequestError
from hlclient.infra.logging_cfg import log_event

log = logging.getLogger("hlclient")


class HttpTransport:
    def __init__(
        self,
        base_url: Optional[str] = None,
        is_testnet: bool = False,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        default_url = constants.TESTNET_API_URL if is_testnet else constants.MAINNET_API_URL
        self.base_url = (base_url or default_url).rstrip("/")
        self.is_testnet = is_testnet
        # If a shared client is passed in, we won't close it in close(); otherwise we own the client.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(base_url=self.base_url, http2=True, timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def request(self, group: str, body: Dict[str, Any], signal: Optional[AbortSignal] = None) -> Any:
        return await with_signal(self._post(group, body), signal)

    async def _post(self, group: str, body: Dict[str, Any]) -> Any:
        # body is serialized as-is: key order of signed actions must survive
        resp = await self.client.post(
            f"/{group}",
            content=dumps_bytes(body),
            headers={"Content-Type": "application/json"},
        )
        if resp.status_code >= 400:
            log_event(log, "http_error", level=logging.WARNING, group=group, status=resp.status_code)
            raise HttpRequestError(resp.status_code, resp.text)
        return loads(resp.content)
