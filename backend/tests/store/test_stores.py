"""Contract tests run against both the in-memory and the SQL store."""

import asyncio

import pytest

from conftest import ETH_TOKEN_A, make_address
from meme_tracker.errors import DuplicateRecordError, InvalidParameterError, RecordNotFoundError
from meme_tracker.store.memory import MemoryStore
from meme_tracker.store.records import PROMISING_ADDRESSES, TOKENS, TokenConfig
from meme_tracker.store.sql import SqlStore


@pytest.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
        return
    sql_store = SqlStore(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await sql_store.init()
    yield sql_store
    await sql_store.close()


def token(symbol="PEPE", **kwargs) -> TokenConfig:
    return TokenConfig(symbol=symbol, address=ETH_TOKEN_A, chain="ethereum", **kwargs)


class TestTokens:
    async def test_create_assigns_id_and_timestamps(self, store) -> None:
        created = await store.create_token(token(start_time="2024-12-01 10:00:00"))

        assert created.id
        assert created.created_at is not None
        assert created.updated_at is not None
        assert created.buyers_import_status == "none"

        fetched = await store.get_token(created.id)
        assert fetched.symbol == "PEPE"
        assert fetched.start_time == "2024-12-01 10:00:00"

    async def test_explicit_id_is_kept_and_unique(self, store) -> None:
        await store.create_token(token(id="legacy-1"))

        assert (await store.get_token("legacy-1")).symbol == "PEPE"
        with pytest.raises(DuplicateRecordError):
            await store.create_token(token(id="legacy-1"))

    async def test_update(self, store) -> None:
        created = await store.create_token(token())

        updated = await store.update_token(created.id, buyers_count=12, buyers_import_status="completed")

        assert updated.buyers_count == 12
        assert (await store.get_token(created.id)).buyers_import_status == "completed"

    async def test_update_rejects_unknown_fields(self, store) -> None:
        created = await store.create_token(token())

        with pytest.raises(InvalidParameterError):
            await store.update_token(created.id, colour="red")

    async def test_missing_records(self, store) -> None:
        assert await store.get_token("nope") is None
        with pytest.raises(RecordNotFoundError):
            await store.update_token("nope", buyers_count=1)
        with pytest.raises(RecordNotFoundError):
            await store.delete_token("nope")

    async def test_delete(self, store) -> None:
        created = await store.create_token(token())

        await store.delete_token(created.id)

        assert await store.get_token(created.id) is None
        assert await store.list_tokens() == []

    async def test_list_newest_first(self, store) -> None:
        for symbol in ("ONE", "TWO", "THREE"):
            await store.create_token(token(symbol))
            await asyncio.sleep(0.01)

        assert [t.symbol for t in await store.list_tokens()] == ["THREE", "TWO", "ONE"]


class TestAddresses:
    async def test_create_and_get(self, store) -> None:
        (created,) = await store.create_addresses([make_address("0xAbC", related=("t2",))])

        assert created.id
        fetched = await store.get_address(created.id)
        assert fetched.address == "0xAbC"
        assert fetched.related_tokens == ["t2"]
        assert fetched.is_marked_promising is True

    async def test_empty_batch(self, store) -> None:
        assert await store.create_addresses([]) == []

    async def test_duplicate_address_case_insensitive(self, store) -> None:
        await store.create_addresses([make_address("0xAbC")])

        with pytest.raises(DuplicateRecordError):
            await store.create_addresses([make_address("0xabc", token_id="t2")])
        assert len(await store.list_addresses()) == 1

    async def test_update_related_tokens_and_mark(self, store) -> None:
        (created,) = await store.create_addresses([make_address("0xA")])

        await store.update_address(created.id, related_tokens=["t2", "t3"])
        await store.update_address(created.id, is_marked_promising=False)

        fetched = await store.get_address(created.id)
        assert fetched.related_tokens == ["t2", "t3"]
        assert fetched.is_marked_promising is False

    async def test_returned_records_are_copies(self, store) -> None:
        (created,) = await store.create_addresses([make_address("0xA")])

        created.related_tokens.append("sneaky")

        assert (await store.get_address(created.id)).related_tokens == []

    async def test_delete_address(self, store) -> None:
        (created,) = await store.create_addresses([make_address("0xA")])

        await store.delete_address(created.id)

        assert await store.list_addresses() == []
        with pytest.raises(RecordNotFoundError):
            await store.delete_address(created.id)


class TestSubscriptions:
    async def test_initial_snapshot_then_changes(self, store) -> None:
        existing = await store.create_token(token("OLD"))
        sub = await store.subscribe(TOKENS)

        first = await asyncio.wait_for(sub.__anext__(), 1)
        assert [t.id for t in first] == [existing.id]

        await store.create_token(token("NEW"))
        second = await asyncio.wait_for(sub.__anext__(), 1)
        assert [t.symbol for t in second] == ["NEW", "OLD"]

        sub.cancel()

    async def test_other_collection_not_pushed(self, store) -> None:
        sub = await store.subscribe(PROMISING_ADDRESSES)
        assert await asyncio.wait_for(sub.__anext__(), 1) == []

        await store.create_token(token())
        await store.create_addresses([make_address("0xA")])

        snapshot = await asyncio.wait_for(sub.__anext__(), 1)
        assert [a.address for a in snapshot] == ["0xA"]
        sub.cancel()

    async def test_cancel_ends_iteration(self, store) -> None:
        sub = await store.subscribe(TOKENS)
        sub.cancel()
        sub.cancel()

        received = [snapshot async for snapshot in sub]

        assert received == [[]]
        assert not store.feed.has_subscribers(TOKENS)

    async def test_unknown_collection(self, store) -> None:
        with pytest.raises(InvalidParameterError):
            await store.subscribe("wallets")
