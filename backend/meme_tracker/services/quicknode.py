from __future__ import annotations
import logging
from typing import Any, Optional

import httpx

from meme_tracker.config import Settings, get_settings
from meme_tracker.errors import ConfigError, InvalidParameterError, RpcError, ServiceError

logger = logging.getLogger(__name__)


class QuickNodeClient:
    """JSON-RPC 2.0 gateway, one endpoint per chain."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    def endpoint(self, chain: str) -> str:
        if chain == "solana":
            endpoint = self.settings.quicknode_solana_endpoint
        elif chain == "ethereum":
            endpoint = self.settings.quicknode_ethereum_endpoint
        else:
            raise InvalidParameterError(f"Unknown chain: {chain}")
        if not endpoint:
            raise ConfigError(
                f"QuickNode {chain} endpoint not configured. Please set QUICKNODE_{chain.upper()}_ENDPOINT"
            )
        return endpoint

    async def call(self, chain: str, method: str, params: Optional[list | dict] = None) -> Any:
        endpoint = self.endpoint(chain)
        async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
            resp = await client.post(
                endpoint,
                json={
                    "jsonrpc": "2.0",
                    "id": 1,
                    "method": method,
                    "params": params if params is not None else [],
                },
            )
        if resp.is_error:
            raise ServiceError("QuickNode", resp.status_code, resp.text)
        data = resp.json()
        if data.get("error"):
            error = data["error"]
            raise RpcError(error.get("code"), error.get("message", ""))
        return data.get("result")

    # ── solana ─────────────────────────────────────────────────────

    async def get_signatures_for_address(self, address: str, limit: int = 1000) -> list[dict]:
        return await self.call("solana", "getSignaturesForAddress", [address, {"limit": limit}])

    async def get_slot(self) -> int:
        return await self.call("solana", "getSlot")

    # ── ethereum ───────────────────────────────────────────────────

    async def get_wallet_token_transactions(self, address: str, page: int = 1, per_page: int = 100) -> dict:
        return await self.call(
            "ethereum",
            "qn_getWalletTokenTransactions",
            [{"address": address, "page": page, "perPage": per_page}],
        )

    async def get_block_number(self) -> int:
        result = await self.call("ethereum", "eth_blockNumber")
        return int(result, 16)
