from __future__ import annotations
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from meme_tracker.errors import InvalidParameterError
from meme_tracker.store.records import (
    COLLECTIONS,
    PROMISING_ADDRESSES,
    TOKENS,
    PromisingAddress,
    TokenConfig,
)

logger = logging.getLogger(__name__)


class Subscription:
    """Live view of one collection.

    Iterate with ``async for snapshot in subscription``; every snapshot is the
    full collection ordered by creation time, newest first. ``cancel()`` stops
    delivery and ends the iteration.
    """

    _CLOSED = object()

    def __init__(self, feed: "ChangeFeed", collection: str):
        self.collection = collection
        self._feed = feed
        self._queue: asyncio.Queue = asyncio.Queue()
        self.cancelled = False

    def push(self, snapshot: list) -> None:
        if not self.cancelled:
            self._queue.put_nowait(snapshot)

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._feed.remove(self)
        self._queue.put_nowait(self._CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> list:
        item = await self._queue.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        return item


class ChangeFeed:
    def __init__(self):
        self._subscribers: dict[str, list[Subscription]] = {c: [] for c in COLLECTIONS}

    def add(self, subscription: Subscription) -> None:
        self._subscribers[subscription.collection].append(subscription)

    def remove(self, subscription: Subscription) -> None:
        subs = self._subscribers[subscription.collection]
        if subscription in subs:
            subs.remove(subscription)

    def has_subscribers(self, collection: str) -> bool:
        return bool(self._subscribers[collection])

    def publish(self, collection: str, snapshot: list) -> None:
        for sub in list(self._subscribers[collection]):
            sub.push(snapshot)


class TrackerStore(ABC):
    """Persistence for the ``tokens`` and ``promising-addresses`` collections.

    Implementations assign ids and creation/update timestamps and list records
    newest first.
    """

    def __init__(self):
        self.feed = ChangeFeed()

    # ── tokens ─────────────────────────────────────────────────────

    @abstractmethod
    async def create_token(self, token: TokenConfig) -> TokenConfig: ...

    @abstractmethod
    async def get_token(self, token_id: str) -> Optional[TokenConfig]: ...

    @abstractmethod
    async def update_token(self, token_id: str, **changes: Any) -> TokenConfig: ...

    @abstractmethod
    async def delete_token(self, token_id: str) -> None: ...

    @abstractmethod
    async def list_tokens(self) -> list[TokenConfig]: ...

    # ── promising addresses ────────────────────────────────────────

    @abstractmethod
    async def create_addresses(self, addresses: Sequence[PromisingAddress]) -> list[PromisingAddress]: ...

    @abstractmethod
    async def get_address(self, address_id: str) -> Optional[PromisingAddress]: ...

    @abstractmethod
    async def update_address(self, address_id: str, **changes: Any) -> PromisingAddress: ...

    @abstractmethod
    async def delete_address(self, address_id: str) -> None: ...

    @abstractmethod
    async def list_addresses(self) -> list[PromisingAddress]: ...

    async def close(self) -> None:
        return None

    # ── live subscriptions ─────────────────────────────────────────

    async def snapshot(self, collection: str) -> list:
        if collection == TOKENS:
            return await self.list_tokens()
        if collection == PROMISING_ADDRESSES:
            return await self.list_addresses()
        raise InvalidParameterError(f"Unknown collection: {collection}")

    async def subscribe(self, collection: str) -> Subscription:
        snapshot = await self.snapshot(collection)
        sub = Subscription(self.feed, collection)
        self.feed.add(sub)
        sub.push(snapshot)
        return sub

    async def _notify(self, collection: str) -> None:
        if not self.feed.has_subscribers(collection):
            return
        snapshot = await self.snapshot(collection)
        logger.debug(f"Store: pushing {len(snapshot)} {collection} records to subscribers")
        self.feed.publish(collection, snapshot)
