from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import httpx

from meme_tracker.config import Settings, get_settings
from meme_tracker.errors import ConfigError, InvalidParameterError, ServiceError

logger = logging.getLogger(__name__)

INTERVAL_SECONDS = {"1m": 60, "5m": 300, "1h": 3600, "1d": 86400}
MAX_CANDLES = 1000


@dataclass
class PriceData:
    value: float
    update_unix_time: int
    update_human_time: str


@dataclass
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


def _to_timestamp(value: Union[str, datetime, int]) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return int(value.timestamp())


def validate_date_range(
    start: Union[str, datetime, int], end: Union[str, datetime, int], interval: str
) -> bool:
    """True if the range fits in one OHLCV request (at most 1000 candles)."""
    if interval not in INTERVAL_SECONDS:
        raise InvalidParameterError(f"Unsupported interval: {interval}")
    return _to_timestamp(end) - _to_timestamp(start) <= MAX_CANDLES * INTERVAL_SECONDS[interval]


class BirdeyeClient:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.birdeye_api_url.rstrip("/")
        self._transport = transport
        self._semaphore = asyncio.Semaphore(self.settings.birdeye_rate_limit)

    def _headers(self, chain: str) -> dict:
        if not self.settings.birdeye_api_key:
            raise ConfigError("Birdeye API key not configured. Please set BIRDEYE_API_KEY")
        return {
            "accept": "application/json",
            "X-API-KEY": self.settings.birdeye_api_key,
            "x-chain": chain,
        }

    async def _get(self, path: str, chain: str, params: Optional[dict] = None) -> dict:
        headers = self._headers(chain)
        async with self._semaphore:
            async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
                resp = await client.get(
                    f"{self.base_url}{path}",
                    headers=headers,
                    params=params or {},
                )
        if resp.is_error:
            raise ServiceError("Birdeye", resp.status_code, resp.text)
        data = resp.json()
        if not data.get("success", False):
            raise ServiceError("Birdeye", resp.status_code, "Birdeye API returned error response")
        return data

    async def get_price(self, address: str, chain: str = "solana") -> PriceData:
        """Get current price for a token."""
        data = await self._get("/defi/price", chain, params={"address": address})
        price = data.get("data") or {}
        return PriceData(
            value=price.get("value", 0) or 0,
            update_unix_time=price.get("updateUnixTime", 0) or 0,
            update_human_time=price.get("updateHumanTime", "") or "",
        )

    async def get_prices(self, addresses: list[str], chain: str = "solana") -> dict[str, PriceData]:
        """Prices for several tokens, fetched one by one with spacing.
        Tokens whose lookup fails are left out."""
        results = {}
        for i, address in enumerate(addresses):
            try:
                results[address] = await self.get_price(address, chain)
            except ServiceError as e:
                logger.warning(f"Birdeye: price lookup failed for {address}: {e}")
            except httpx.TransportError as e:
                logger.warning(f"Birdeye: price lookup failed for {address}: {e}")
            if i < len(addresses) - 1:
                await asyncio.sleep(self.settings.birdeye_batch_spacing_seconds)
        return results

    async def get_ohlcv(
        self,
        address: str,
        interval: str,
        time_from: Union[str, datetime, int],
        time_to: Union[str, datetime, int],
        chain: str = "solana",
    ) -> list[Candle]:
        """Fetch OHLCV candles for a token."""
        if interval not in INTERVAL_SECONDS:
            raise InvalidParameterError(f"Unsupported interval: {interval}")
        data = await self._get(
            "/defi/ohlcv",
            chain,
            params={
                "address": address,
                "type": interval,
                "time_from": _to_timestamp(time_from),
                "time_to": _to_timestamp(time_to),
            },
        )
        items = (data.get("data") or {}).get("items")
        if items is None:
            raise ServiceError("Birdeye", 200, "Invalid response from Birdeye API")
        return [
            Candle(
                timestamp=item["unixTime"],
                open=item["o"],
                high=item["h"],
                low=item["l"],
                close=item["c"],
                volume=item["v"],
            )
            for item in items
        ]
