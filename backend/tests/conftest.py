"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Optional

import httpx
import pytest

from meme_tracker.config import Settings
from meme_tracker.main import create_app
from meme_tracker.services.buyers import Buyer, MappedRows
from meme_tracker.services.dune import DuneClient
from meme_tracker.store.memory import MemoryStore
from meme_tracker.store.records import PromisingAddress

ETH_TOKEN_A = "0x" + "a1" * 20
ETH_TOKEN_B = "0x" + "b2" * 20
SOL_TOKEN = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeDune(DuneClient):
    """DuneClient with canned buyer lists keyed by lower-cased token address."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.buyers: dict[str, list[Buyer]] = {}
        self.rows: list[dict] = []
        self.error: Optional[Exception] = None
        self.buyer_calls: list[tuple] = []
        self.executed: list[tuple] = []

    async def get_token_buyers(self, token_address, start_time=None, end_time=None) -> MappedRows:
        self.buyer_calls.append((token_address, start_time, end_time))
        if self.error:
            raise self.error
        return MappedRows(buyers=list(self.buyers.get(token_address.lower(), [])))

    async def submit(self, query_id, parameters=None) -> str:
        if self.error:
            raise self.error
        return f"exec-{query_id}"

    async def execute_and_wait(self, query_id, parameters=None, max_wait=None) -> list[dict]:
        self.executed.append((query_id, parameters, max_wait))
        if self.error:
            raise self.error
        return list(self.rows)


def buyer(address: str, tx: str = "0xtx", block: Optional[int] = 100) -> Buyer:
    return Buyer(wallet_address=address, tx_hash=tx, purchase_time="2024-12-01 10:00:00", block_number=block)


def make_address(
    address: str,
    token_id: str = "t1",
    related: tuple = (),
    marked: bool = True,
    id: Optional[str] = None,
) -> PromisingAddress:
    return PromisingAddress(
        id=id,
        address=address,
        token_id=token_id,
        token_symbol=token_id.upper(),
        purchase_time="2024-12-01 10:00:00",
        related_tokens=list(related),
        is_marked_promising=marked,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        dune_api_key="test-dune-key",
        birdeye_api_key="test-birdeye-key",
        quicknode_solana_endpoint="https://solana.quicknode.test/rpc",
        quicknode_ethereum_endpoint="https://ethereum.quicknode.test/rpc",
        dune_initial_wait_seconds=60,
        dune_poll_interval_seconds=20,
        dune_max_wait_seconds=300,
        birdeye_batch_spacing_seconds=0,
        address_write_batch_size=2,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_dune(settings: Settings) -> FakeDune:
    return FakeDune(settings)


@pytest.fixture
def app(settings, memory_store, fake_dune):
    return create_app(settings=settings, store=memory_store, dune=fake_dune)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
