from __future__ import annotations
import dataclasses
import itertools
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from meme_tracker.errors import DuplicateRecordError, InvalidParameterError, RecordNotFoundError
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.records import PROMISING_ADDRESSES, TOKENS, PromisingAddress, TokenConfig

_IMMUTABLE_FIELDS = {"id", "created_at", "updated_at"}


def _copy(record):
    if isinstance(record, PromisingAddress):
        return dataclasses.replace(record, related_tokens=list(record.related_tokens))
    return dataclasses.replace(record)


def _check_changes(record_type, changes: dict[str, Any]) -> None:
    names = {f.name for f in dataclasses.fields(record_type)}
    bad = set(changes) - (names - _IMMUTABLE_FIELDS)
    if bad:
        raise InvalidParameterError(f"Cannot update fields: {', '.join(sorted(bad))}")


class MemoryStore(TrackerStore):
    """In-process store. Records are copied on the way in and out."""

    def __init__(self):
        super().__init__()
        self._tokens: dict[str, TokenConfig] = {}
        self._addresses: dict[str, PromisingAddress] = {}
        self._order: dict[str, int] = {}
        self._seq = itertools.count()

    def _stamp_new(self, record):
        now = datetime.now(timezone.utc)
        record.id = record.id or uuid.uuid4().hex
        record.created_at = now
        record.updated_at = now
        self._order[record.id] = next(self._seq)
        return record

    def _newest_first(self, records) -> list:
        return [
            _copy(r)
            for r in sorted(records, key=lambda r: (r.created_at, self._order[r.id]), reverse=True)
        ]

    # ── tokens ─────────────────────────────────────────────────────

    async def create_token(self, token: TokenConfig) -> TokenConfig:
        if token.id and token.id in self._tokens:
            raise DuplicateRecordError(f"Token id already exists: {token.id}")
        record = self._stamp_new(_copy(token))
        self._tokens[record.id] = record
        await self._notify(TOKENS)
        return _copy(record)

    async def get_token(self, token_id: str) -> Optional[TokenConfig]:
        record = self._tokens.get(token_id)
        return _copy(record) if record else None

    async def update_token(self, token_id: str, **changes: Any) -> TokenConfig:
        _check_changes(TokenConfig, changes)
        record = self._tokens.get(token_id)
        if record is None:
            raise RecordNotFoundError(TOKENS, token_id)
        for name, value in changes.items():
            setattr(record, name, value)
        record.updated_at = datetime.now(timezone.utc)
        await self._notify(TOKENS)
        return _copy(record)

    async def delete_token(self, token_id: str) -> None:
        if self._tokens.pop(token_id, None) is None:
            raise RecordNotFoundError(TOKENS, token_id)
        await self._notify(TOKENS)

    async def list_tokens(self) -> list[TokenConfig]:
        return self._newest_first(self._tokens.values())

    # ── promising addresses ────────────────────────────────────────

    async def create_addresses(self, addresses: Sequence[PromisingAddress]) -> list[PromisingAddress]:
        taken = {a.address_key for a in self._addresses.values()}
        for a in addresses:
            if a.address_key in taken:
                raise DuplicateRecordError(f"Address already stored: {a.address}")
            taken.add(a.address_key)

        created = []
        for a in addresses:
            record = self._stamp_new(_copy(a))
            self._addresses[record.id] = record
            created.append(_copy(record))
        if created:
            await self._notify(PROMISING_ADDRESSES)
        return created

    async def get_address(self, address_id: str) -> Optional[PromisingAddress]:
        record = self._addresses.get(address_id)
        return _copy(record) if record else None

    async def update_address(self, address_id: str, **changes: Any) -> PromisingAddress:
        _check_changes(PromisingAddress, changes)
        record = self._addresses.get(address_id)
        if record is None:
            raise RecordNotFoundError(PROMISING_ADDRESSES, address_id)
        for name, value in changes.items():
            setattr(record, name, list(value) if name == "related_tokens" else value)
        record.updated_at = datetime.now(timezone.utc)
        await self._notify(PROMISING_ADDRESSES)
        return _copy(record)

    async def delete_address(self, address_id: str) -> None:
        if self._addresses.pop(address_id, None) is None:
            raise RecordNotFoundError(PROMISING_ADDRESSES, address_id)
        await self._notify(PROMISING_ADDRESSES)

    async def list_addresses(self) -> list[PromisingAddress]:
        return self._newest_first(self._addresses.values())
