"""Tests for settings, debug, config, analysis, stream and health routes."""

import json

import httpx
import pytest

from conftest import ETH_TOKEN_A, SOL_TOKEN, make_address
from meme_tracker.api.stream import snapshot_payload
from meme_tracker.errors import QueryTimeoutError
from meme_tracker.main import create_app
from meme_tracker.services.birdeye import BirdeyeClient
from meme_tracker.services.quicknode import QuickNodeClient
from meme_tracker.store.records import PROMISING_ADDRESSES, TokenConfig


async def test_health(client) -> None:
    resp = await client.get("/api/health")
    assert resp.json() == {"status": "ok"}


class TestApiStatus:
    async def test_reports_configured_services(self, client, settings) -> None:
        settings.quicknode_solana_endpoint = ""

        resp = await client.get("/api/settings/api-status")

        assert resp.json() == {
            "birdeye": "set",
            "quicknode_solana": "not_set",
            "quicknode_ethereum": "set",
            "dune": "set",
        }

    async def test_connection_checks(self, settings, memory_store, fake_dune) -> None:
        def birdeye_handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="bad key")

        def rpc_handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"})

        app = create_app(
            settings=settings,
            store=memory_store,
            dune=fake_dune,
            birdeye=BirdeyeClient(settings, transport=httpx.MockTransport(birdeye_handler)),
            quicknode=QuickNodeClient(settings, transport=httpx.MockTransport(rpc_handler)),
        )
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
            birdeye = (await c.post("/api/settings/api-status/birdeye/test")).json()
            ethereum = (await c.post("/api/settings/api-status/quicknode_ethereum/test")).json()
            dune = (await c.post("/api/settings/api-status/dune/test")).json()
            unknown = await c.post("/api/settings/api-status/etherscan/test")

        assert birdeye["status"] == "error"
        assert "401" in birdeye["message"]
        assert ethereum == {"service": "quicknode_ethereum", "status": "success", "message": "latest block 16"}
        assert dune["status"] == "success"
        assert f"exec-{settings.dune_test_query_id}" in dune["message"]
        assert unknown.status_code == 400


class TestDebug:
    async def test_execute(self, client, fake_dune) -> None:
        fake_dune.rows = [{"buyer_address": "0x1"}, {"buyer_address": "0x2"}]

        resp = await client.post("/api/debug/dune/execute", json={
            "query_id": 5233698,
            "parameters": {"token_address": " abc ", "end_time": ""},
            "max_wait_seconds": 90,
        })

        assert resp.status_code == 200
        data = resp.json()
        assert data["row_count"] == 2
        assert data["parameters"] == {"token_address": "abc"}
        assert fake_dune.executed == [(5233698, {"token_address": "abc"}, 90)]

    async def test_execute_timeout(self, client, fake_dune) -> None:
        fake_dune.error = QueryTimeoutError(300)

        resp = await client.post("/api/debug/dune/execute", json={"query_id": 1})

        assert resp.status_code == 504
        assert "300" in resp.json()["detail"]

    async def test_execute_rejects_bad_query_id(self, client) -> None:
        resp = await client.post("/api/debug/dune/execute", json={"query_id": 0})
        assert resp.status_code == 422

    async def test_ping(self, client, settings) -> None:
        resp = await client.post("/api/debug/dune/ping")
        assert resp.json() == {
            "query_id": settings.dune_test_query_id,
            "execution_id": f"exec-{settings.dune_test_query_id}",
        }


class TestConfigPortability:
    async def test_export_then_import_into_empty_store(self, client, memory_store, settings, fake_dune) -> None:
        token = await memory_store.create_token(TokenConfig(
            symbol="PEPE", address=ETH_TOKEN_A, chain="ethereum", start_time="2024-12-01 10:00:00",
        ))
        await memory_store.create_addresses([make_address("0xA", token_id=token.id, related=("t9",))])

        resp = await client.get("/api/config/export")
        assert resp.status_code == 200
        assert "meme-coin-tracker-config.json" in resp.headers["content-disposition"]
        blob = resp.json()
        assert blob["apiKeys"] == {}
        assert blob["tokens"][0]["startTime"] == "2024-12-01 10:00:00"
        assert blob["wallets"][0]["relatedTokens"] == ["t9"]

        fresh_app = create_app(settings=settings, store=type(memory_store)(), dune=fake_dune)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=fresh_app), base_url="http://test") as c:
            first = (await c.post("/api/config/import", content=resp.content)).json()
            again = (await c.post("/api/config/import", content=resp.content)).json()
            tokens = (await c.get("/api/tokens")).json()

        assert first == {"tokens_added": 1, "tokens_skipped": 0, "addresses_added": 1, "addresses_skipped": 0}
        assert again == {"tokens_added": 0, "tokens_skipped": 1, "addresses_added": 0, "addresses_skipped": 1}
        assert tokens["tokens"][0]["id"] == token.id

    async def test_import_legacy_blob(self, client, memory_store) -> None:
        blob = {
            "tokens": [{"id": "1701", "symbol": "WIF", "address": SOL_TOKEN, "chain": "solana",
                        "startTime": "2024-01-01T00:00", "endTime": ""}],
            "wallets": [
                {"id": "w1", "address": "0xA", "tokenId": "1701", "purchaseTime": "t",
                 "relatedTokens": ["1701", "9", "9"], "isMarkedPromising": False},
                {"id": "w2", "address": "0xa", "tokenId": "1701", "purchaseTime": "t"},
            ],
            "apiKeys": {"birdeye": "secret"},
        }

        resp = await client.post("/api/config/import", content=json.dumps(blob))

        assert resp.json()["addresses_added"] == 1
        assert resp.json()["addresses_skipped"] == 1
        (wallet,) = await memory_store.list_addresses()
        assert wallet.token_symbol == "WIF"
        assert wallet.related_tokens == ["9"]
        assert wallet.is_marked_promising is False
        token = await memory_store.get_token("1701")
        assert token.start_time == "2024-01-01 00:00:00"
        assert token.end_time is None

    @pytest.mark.parametrize(
        "token",
        [
            {"id": "bad", "symbol": "X", "address": "not-an-address", "chain": "ethereum", "startTime": "2024-01-01T00:00"},
            {"id": "bad", "symbol": "X", "address": ETH_TOKEN_A, "chain": "ethereum"},
            {"id": "bad", "symbol": "X", "address": "0xnot-base58", "chain": "solana", "marketCapLimit": 5},
        ],
    )
    async def test_import_applies_token_rules(self, client, memory_store, token) -> None:
        blob = {"tokens": [token], "wallets": [{"address": "0xA", "tokenId": "bad", "purchaseTime": "t"}]}

        resp = await client.post("/api/config/import", content=json.dumps(blob))

        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidConfigError"
        assert await memory_store.list_tokens() == []
        assert await memory_store.list_addresses() == []

    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            "[1, 2]",
            json.dumps({"tokens": {"id": 1}}),
            json.dumps({"tokens": [{"id": "1", "address": "x"}]}),
            json.dumps({"tokens": [{"id": "1", "symbol": "X", "address": "x", "chain": "tron"}]}),
        ],
    )
    async def test_import_rejects_bad_blob(self, client, body) -> None:
        resp = await client.post("/api/config/import", content=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidConfigError"


class TestAnalysis:
    async def test_not_implemented_for_known_token(self, client, memory_store) -> None:
        token = await memory_store.create_token(TokenConfig(symbol="WIF", address=SOL_TOKEN, chain="solana"))

        assert (await client.get(f"/api/analysis/{token.id}")).status_code == 501
        assert (await client.get("/api/analysis/nope")).status_code == 404


class TestStream:
    async def test_unknown_collection(self, client) -> None:
        resp = await client.get("/api/stream/wallets")
        assert resp.status_code == 404

    async def test_snapshot_payload(self, memory_store) -> None:
        await memory_store.create_addresses([make_address("0xA", related=("t2",))])

        payload = json.loads(snapshot_payload(PROMISING_ADDRESSES, await memory_store.list_addresses()))

        assert payload[0]["address"] == "0xA"
        assert payload[0]["related_tokens"] == ["t2"]
        assert payload[0]["id"]
