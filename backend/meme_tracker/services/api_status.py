from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from meme_tracker.config import Settings
from meme_tracker.errors import InvalidParameterError, TrackerError
from meme_tracker.services.birdeye import BirdeyeClient
from meme_tracker.services.dune import DuneClient
from meme_tracker.services.quicknode import QuickNodeClient

logger = logging.getLogger(__name__)

SERVICES = ("birdeye", "quicknode_solana", "quicknode_ethereum", "dune")

# WIF, used as a known-good token for the Birdeye check
BIRDEYE_TEST_TOKEN = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"


@dataclass
class ConnectionCheck:
    service: str
    status: str  # success / error
    message: str


class ApiStatusService:
    def __init__(
        self,
        settings: Settings,
        birdeye: BirdeyeClient,
        quicknode: QuickNodeClient,
        dune: DuneClient,
    ):
        self.settings = settings
        self.birdeye = birdeye
        self.quicknode = quicknode
        self.dune = dune

    def status(self) -> dict[str, str]:
        """Which API keys/endpoints are configured ("set" / "not_set")."""
        configured = {
            "birdeye": bool(self.settings.birdeye_api_key),
            "quicknode_solana": bool(self.settings.quicknode_solana_endpoint),
            "quicknode_ethereum": bool(self.settings.quicknode_ethereum_endpoint),
            "dune": self.settings.dune_configured,
        }
        return {name: "set" if ok else "not_set" for name, ok in configured.items()}

    async def test(self, service: str) -> ConnectionCheck:
        if service not in SERVICES:
            raise InvalidParameterError(f"Unknown service: {service}")
        try:
            message = await self._probe(service)
        except (TrackerError, httpx.HTTPError) as e:
            logger.warning(f"API status: {service} check failed: {e}")
            return ConnectionCheck(service=service, status="error", message=str(e))
        logger.info(f"API status: {service} check passed ({message})")
        return ConnectionCheck(service=service, status="success", message=message)

    async def _probe(self, service: str) -> str:
        if service == "birdeye":
            price = await self.birdeye.get_price(BIRDEYE_TEST_TOKEN, chain="solana")
            return f"WIF price {price.value}"
        if service == "quicknode_solana":
            slot = await self.quicknode.get_slot()
            return f"current slot {slot}"
        if service == "quicknode_ethereum":
            block = await self.quicknode.get_block_number()
            return f"latest block {block}"
        execution_id = await self.dune.submit(self.settings.dune_test_query_id)
        return f"execution {execution_id} started"
