"""Export/import of the legacy ``meme-coin-tracker`` config blob.

The blob predates the hosted store and uses camelCase keys::

    {"tokens": [...], "wallets": [...], "apiKeys": {}}

API keys are never exported; on import they are ignored.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from meme_tracker.errors import InvalidConfigError, TrackerError
from meme_tracker.services.buyers import format_query_datetime
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.records import CHAINS, PromisingAddress, TokenConfig, check_token

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    tokens_added: int = 0
    tokens_skipped: int = 0
    addresses_added: int = 0
    addresses_skipped: int = 0


def _token_to_legacy(token: TokenConfig) -> dict:
    data = {
        "id": token.id,
        "symbol": token.symbol,
        "address": token.address,
        "startTime": token.start_time or "",
        "endTime": token.end_time or "",
        "chain": token.chain,
    }
    if token.market_cap_limit is not None:
        data["marketCapLimit"] = token.market_cap_limit
    if token.buyers_count is not None:
        data["buyersCount"] = token.buyers_count
    return data


def _address_to_legacy(address: PromisingAddress) -> dict:
    data = {
        "id": address.id,
        "address": address.address,
        "tokenId": address.token_id,
        "tokenSymbol": address.token_symbol,
        "purchaseTime": address.purchase_time,
        "relatedTokens": list(address.related_tokens),
        "isPromising": address.is_marked_promising,
    }
    if address.block_number is not None:
        data["blockNumber"] = address.block_number
    if address.tx_hash:
        data["txHash"] = address.tx_hash
    return data


async def export_config(store: TrackerStore) -> str:
    tokens = await store.list_tokens()
    addresses = await store.list_addresses()
    blob = {
        "tokens": [_token_to_legacy(t) for t in tokens],
        "wallets": [_address_to_legacy(a) for a in addresses],
        "apiKeys": {},
    }
    return json.dumps(blob, indent=2)


def _optional_time(value: Any) -> Optional[str]:
    if not value:
        return None
    return format_query_datetime(value)


def _token_from_legacy(data: dict) -> TokenConfig:
    chain = data.get("chain", "solana")
    if chain not in CHAINS:
        raise InvalidConfigError(f"Unknown chain in config: {chain}")
    token = TokenConfig(
        id=str(data["id"]) if data.get("id") else None,
        symbol=str(data["symbol"]),
        address=str(data["address"]).strip(),
        chain=chain,
        start_time=_optional_time(data.get("startTime")),
        end_time=_optional_time(data.get("endTime")),
        market_cap_limit=data.get("marketCapLimit"),
        buyers_count=data.get("buyersCount"),
    )
    check_token(token)
    return token


def _address_from_legacy(data: dict, symbols: dict[str, str]) -> PromisingAddress:
    token_id = str(data["tokenId"])
    marked = data.get("isMarkedPromising", data.get("isPromising", True))
    related = []
    for t in data.get("relatedTokens") or []:
        if t != token_id and t not in related:
            related.append(t)
    return PromisingAddress(
        address=str(data["address"]),
        token_id=token_id,
        token_symbol=data.get("tokenSymbol") or symbols.get(token_id, ""),
        purchase_time=str(data.get("purchaseTime") or ""),
        block_number=data.get("blockNumber"),
        tx_hash=data.get("txHash"),
        related_tokens=related,
        is_marked_promising=bool(marked),
    )


async def import_config(store: TrackerStore, blob: str) -> ImportSummary:
    """Load a config blob into the store.

    Tokens whose id already exists and wallets whose address is already on
    file are skipped, so importing the same blob twice is harmless.
    """
    try:
        config = json.loads(blob)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid configuration format: {e}") from e
    if not isinstance(config, dict):
        raise InvalidConfigError("Invalid configuration format: expected a JSON object")

    raw_tokens = config.get("tokens") or []
    raw_wallets = config.get("wallets") or []
    if not isinstance(raw_tokens, list) or not isinstance(raw_wallets, list):
        raise InvalidConfigError("Invalid configuration format: tokens and wallets must be lists")

    try:
        tokens = [_token_from_legacy(t) for t in raw_tokens]
        symbols = {t.id: t.symbol for t in tokens if t.id}
        wallets = [_address_from_legacy(w, symbols) for w in raw_wallets]
    except (KeyError, TypeError, AttributeError) as e:
        raise InvalidConfigError(f"Invalid configuration format: missing or bad field {e}") from e
    except TrackerError as e:
        raise InvalidConfigError(f"Invalid configuration format: {e}") from e

    summary = ImportSummary()
    known_tokens = {t.id for t in await store.list_tokens()}
    for token in tokens:
        if token.id and token.id in known_tokens:
            summary.tokens_skipped += 1
            continue
        created = await store.create_token(token)
        known_tokens.add(created.id)
        summary.tokens_added += 1

    taken = {a.address_key for a in await store.list_addresses()}
    fresh = []
    for wallet in wallets:
        if wallet.address_key in taken:
            summary.addresses_skipped += 1
            continue
        taken.add(wallet.address_key)
        fresh.append(wallet)
    if fresh:
        await store.create_addresses(fresh)
    summary.addresses_added = len(fresh)

    logger.info(
        f"Config import: {summary.tokens_added} tokens, {summary.addresses_added} addresses added "
        f"({summary.tokens_skipped} tokens, {summary.addresses_skipped} addresses already present)"
    )
    return summary
