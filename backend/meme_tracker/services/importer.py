from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from meme_tracker.config import Settings, get_settings
from meme_tracker.errors import RecordNotFoundError, TrackerError, UnsupportedChainError
from meme_tracker.services.address_merge import merge
from meme_tracker.services.dune import DuneClient
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.records import TOKENS, TokenConfig

logger = logging.getLogger(__name__)

SUPPORTED_CHAINS = ("ethereum",)


@dataclass
class ImportResult:
    token_id: str
    token_symbol: str
    fetched: int = 0
    skipped_rows: int = 0
    added: int = 0
    updated: int = 0


class BuyerImporter:
    """Pulls a token's early buyers from Dune into the promising-address list.

    Merge-then-persist runs under one lock, so two imports never write
    interleaved copies of the address collection.
    """

    def __init__(self, store: TrackerStore, dune: DuneClient, settings: Optional[Settings] = None):
        self.store = store
        self.dune = dune
        self.settings = settings or get_settings()
        self._lock = asyncio.Lock()

    async def _load_token(self, token_id: str) -> TokenConfig:
        token = await self.store.get_token(token_id)
        if token is None:
            raise RecordNotFoundError(TOKENS, token_id)
        if token.chain not in SUPPORTED_CHAINS:
            raise UnsupportedChainError(
                f"Buyer import supports {', '.join(SUPPORTED_CHAINS)} tokens only, {token.symbol} is on {token.chain}"
            )
        return token

    async def import_token(self, token_id: str) -> ImportResult:
        """Fetch, merge and store one token's buyers.

        The token's ``buyers_import_status`` goes to ``pending`` once it is
        known to be importable, then to ``completed`` or ``failed``. Errors
        are recorded on the token and re-raised.
        """
        token = await self._load_token(token_id)
        await self.store.update_token(token.id, buyers_import_status="pending", buyers_import_error=None)
        try:
            return await self._run_import(token)
        except TrackerError as e:
            logger.error(f"Importer: import for {token.symbol} ({token.id}) failed: {e}")
            await self._mark_failed(token.id, str(e))
            raise
        except Exception as e:
            logger.exception(f"Importer: import for {token.symbol} ({token.id}) crashed")
            await self._mark_failed(token.id, f"Unexpected error: {e}")
            raise

    async def _run_import(self, token: TokenConfig) -> ImportResult:
        logger.info(f"Importer: fetching buyers for {token.symbol} ({token.address})")
        mapped = await self.dune.get_token_buyers(token.address, token.start_time, token.end_time)

        result = ImportResult(
            token_id=token.id,
            token_symbol=token.symbol,
            fetched=len(mapped.buyers),
            skipped_rows=mapped.skipped,
        )

        async with self._lock:
            existing = await self.store.list_addresses()
            before = {a.id: list(a.related_tokens) for a in existing}
            merged = merge(existing, mapped.buyers, token.id, token.symbol)

            new_records = [a for a in merged if a.id is None]
            changed = [a for a in merged if a.id is not None and a.related_tokens != before[a.id]]

            batch_size = max(1, self.settings.address_write_batch_size)
            for i in range(0, len(new_records), batch_size):
                batch = new_records[i:i + batch_size]
                await self.store.create_addresses(batch)
                result.added += len(batch)
                logger.info(
                    f"Importer: batch {i // batch_size + 1} stored ({len(batch)}), "
                    f"total {result.added}/{len(new_records)}"
                )

            for record in changed:
                await self.store.update_address(record.id, related_tokens=record.related_tokens)
                result.updated += 1

        await self.store.update_token(
            token.id,
            buyers_count=result.fetched,
            buyers_last_updated=datetime.now(timezone.utc),
            buyers_import_status="completed",
            buyers_import_error=None,
        )
        logger.info(
            f"Importer: {token.symbol} done - {result.fetched} buyers, "
            f"{result.added} new addresses, {result.updated} cross-token updates"
        )
        return result

    async def import_in_background(self, token_id: str) -> Optional[ImportResult]:
        """Run an import after token creation. The outcome is recorded on the token."""
        try:
            return await self.import_token(token_id)
        except Exception as e:
            # import_token has logged it and, if the token loaded, recorded it
            logger.warning(f"Importer: background import for {token_id} ended with {type(e).__name__}")
        return None

    async def _mark_failed(self, token_id: str, message: str) -> None:
        try:
            await self.store.update_token(
                token_id, buyers_import_status="failed", buyers_import_error=message
            )
        except RecordNotFoundError:
            logger.warning(f"Importer: token {token_id} deleted before its import finished")
