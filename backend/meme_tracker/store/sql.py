from __future__ import annotations
import logging
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from meme_tracker.database import init_db, make_engine, make_sessionmaker
from meme_tracker.errors import DuplicateRecordError, InvalidParameterError, RecordNotFoundError
from meme_tracker.models.promising_address import PromisingAddressRow
from meme_tracker.models.token import TrackedToken
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.records import (
    PROMISING_ADDRESSES,
    TOKENS,
    PromisingAddress,
    TokenConfig,
    address_key,
)

logger = logging.getLogger(__name__)

_TOKEN_FIELDS = (
    "symbol", "address", "chain", "start_time", "end_time", "market_cap_limit",
    "buyers_count", "buyers_last_updated", "buyers_import_status", "buyers_import_error",
)
_ADDRESS_FIELDS = (
    "address", "token_id", "token_symbol", "purchase_time", "block_number",
    "tx_hash", "related_tokens", "is_marked_promising",
)


def _token_from_row(row: TrackedToken) -> TokenConfig:
    return TokenConfig(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **{name: getattr(row, name) for name in _TOKEN_FIELDS},
    )


def _address_from_row(row: PromisingAddressRow) -> PromisingAddress:
    values = {name: getattr(row, name) for name in _ADDRESS_FIELDS}
    values["related_tokens"] = list(values["related_tokens"] or [])
    return PromisingAddress(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **values,
    )


def _apply(row, allowed: tuple, changes: dict[str, Any]) -> None:
    bad = set(changes) - set(allowed)
    if bad:
        raise InvalidParameterError(f"Cannot update fields: {', '.join(sorted(bad))}")
    for name, value in changes.items():
        if name == "related_tokens":
            value = list(value)  # new list so the JSON column is flagged dirty
        setattr(row, name, value)
    if "address" in changes:
        row.address_key = address_key(changes["address"])


class SqlStore(TrackerStore):
    """Store backed by the ``tokens`` and ``promising_addresses`` tables."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        super().__init__()
        if engine is None:
            if database_url is None:
                raise InvalidParameterError("SqlStore needs a database_url or an engine")
            engine = make_engine(database_url)
        self.engine = engine
        self._session = make_sessionmaker(engine)

    async def init(self) -> None:
        await init_db(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    # ── tokens ─────────────────────────────────────────────────────

    async def create_token(self, token: TokenConfig) -> TokenConfig:
        row = TrackedToken(**{name: getattr(token, name) for name in _TOKEN_FIELDS})
        if token.id:
            row.id = token.id
        try:
            async with self._session() as db:
                db.add(row)
                await db.commit()
        except IntegrityError as e:
            raise DuplicateRecordError(f"Token id already exists: {token.id}") from e
        await self._notify(TOKENS)
        return _token_from_row(row)

    async def get_token(self, token_id: str) -> Optional[TokenConfig]:
        async with self._session() as db:
            row = await db.get(TrackedToken, token_id)
            return _token_from_row(row) if row else None

    async def update_token(self, token_id: str, **changes: Any) -> TokenConfig:
        async with self._session() as db:
            row = await db.get(TrackedToken, token_id)
            if row is None:
                raise RecordNotFoundError(TOKENS, token_id)
            _apply(row, _TOKEN_FIELDS, changes)
            await db.commit()
            token = _token_from_row(row)
        await self._notify(TOKENS)
        return token

    async def delete_token(self, token_id: str) -> None:
        async with self._session() as db:
            row = await db.get(TrackedToken, token_id)
            if row is None:
                raise RecordNotFoundError(TOKENS, token_id)
            await db.delete(row)
            await db.commit()
        await self._notify(TOKENS)

    async def list_tokens(self) -> list[TokenConfig]:
        async with self._session() as db:
            result = await db.execute(
                select(TrackedToken).order_by(TrackedToken.created_at.desc())
            )
            return [_token_from_row(r) for r in result.scalars().all()]

    # ── promising addresses ────────────────────────────────────────

    async def create_addresses(self, addresses: Sequence[PromisingAddress]) -> list[PromisingAddress]:
        if not addresses:
            return []
        rows = []
        for a in addresses:
            row = PromisingAddressRow(
                address_key=a.address_key,
                **{name: getattr(a, name) for name in _ADDRESS_FIELDS},
            )
            row.related_tokens = list(a.related_tokens)
            if a.id:
                row.id = a.id
            rows.append(row)
        try:
            async with self._session() as db:
                db.add_all(rows)
                await db.commit()
        except IntegrityError as e:
            raise DuplicateRecordError("Address already stored") from e
        logger.info(f"SqlStore: stored {len(rows)} promising addresses")
        await self._notify(PROMISING_ADDRESSES)
        return [_address_from_row(r) for r in rows]

    async def get_address(self, address_id: str) -> Optional[PromisingAddress]:
        async with self._session() as db:
            row = await db.get(PromisingAddressRow, address_id)
            return _address_from_row(row) if row else None

    async def update_address(self, address_id: str, **changes: Any) -> PromisingAddress:
        try:
            async with self._session() as db:
                row = await db.get(PromisingAddressRow, address_id)
                if row is None:
                    raise RecordNotFoundError(PROMISING_ADDRESSES, address_id)
                _apply(row, _ADDRESS_FIELDS, changes)
                await db.commit()
                record = _address_from_row(row)
        except IntegrityError as e:
            raise DuplicateRecordError("Address already stored") from e
        await self._notify(PROMISING_ADDRESSES)
        return record

    async def delete_address(self, address_id: str) -> None:
        async with self._session() as db:
            row = await db.get(PromisingAddressRow, address_id)
            if row is None:
                raise RecordNotFoundError(PROMISING_ADDRESSES, address_id)
            await db.delete(row)
            await db.commit()
        await self._notify(PROMISING_ADDRESSES)

    async def list_addresses(self) -> list[PromisingAddress]:
        async with self._session() as db:
            result = await db.execute(
                select(PromisingAddressRow).order_by(PromisingAddressRow.created_at.desc())
            )
            return [_address_from_row(r) for r in result.scalars().all()]
