from meme_tracker.store.base import ChangeFeed, Subscription, TrackerStore
from meme_tracker.store.memory import MemoryStore
from meme_tracker.store.records import (
    PROMISING_ADDRESSES,
    TOKENS,
    PromisingAddress,
    TokenConfig,
    address_key,
)
from meme_tracker.store.sql import SqlStore

__all__ = [
    "ChangeFeed",
    "Subscription",
    "TrackerStore",
    "MemoryStore",
    "SqlStore",
    "TokenConfig",
    "PromisingAddress",
    "TOKENS",
    "PROMISING_ADDRESSES",
    "address_key",
]
