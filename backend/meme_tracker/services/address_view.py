from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from meme_tracker.store.records import PromisingAddress

MARKED = "marked"
UNMARKED = "unmarked"


@dataclass
class AddressStats:
    total: int
    marked: int
    multi_token: int


def _matches_tokens(record: PromisingAddress, selected: set[str]) -> bool:
    if not selected:
        return True
    if len(selected) == 1:
        (token_id,) = selected
        return record.token_id == token_id or token_id in record.related_tokens
    # Several tokens: the wallet must have bought every one of them
    return selected <= record.token_ids


def filter_addresses(
    addresses: Iterable[PromisingAddress],
    selected_token_ids: Optional[Iterable[str]] = None,
    search_text: str = "",
    promising: Optional[str] = MARKED,
) -> list[PromisingAddress]:
    """Token, search and promising-mark filters followed by the smart-money sort.

    ``promising`` is ``"marked"``, ``"unmarked"`` or ``None`` for no mark
    filter. Records buying the most other tokens come first; ties keep their
    incoming order.
    """
    if promising not in (MARKED, UNMARKED, None):
        raise ValueError(f"promising must be 'marked', 'unmarked' or None, got {promising!r}")

    selected = set(selected_token_ids or ())
    needle = (search_text or "").strip().lower()
    want_marked = promising == MARKED

    matching = [
        a for a in addresses
        if _matches_tokens(a, selected)
        and (not needle or needle in a.address.lower())
        and (promising is None or a.is_marked_promising == want_marked)
    ]
    return sorted(matching, key=lambda a: len(a.related_tokens), reverse=True)


def view(
    addresses: Iterable[PromisingAddress],
    selected_token_ids: Optional[Iterable[str]] = None,
    search_text: str = "",
    promising: Optional[str] = MARKED,
    page_size: int = 50,
    page_offset: int = 0,
) -> list[PromisingAddress]:
    """One page of the filtered, sorted address list."""
    ordered = filter_addresses(addresses, selected_token_ids, search_text, promising)
    return ordered[page_offset:page_offset + page_size]


def address_stats(addresses: Sequence[PromisingAddress]) -> AddressStats:
    return AddressStats(
        total=len(addresses),
        marked=sum(1 for a in addresses if a.is_marked_promising),
        multi_token=sum(1 for a in addresses if a.related_tokens),
    )
