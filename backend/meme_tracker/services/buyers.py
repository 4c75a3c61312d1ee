from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from meme_tracker.errors import InvalidAddressError, InvalidParameterError

logger = logging.getLogger(__name__)

QUERY_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_START_TIME = "2020-01-01 00:00:00"
DEFAULT_END_TIME = "2030-12-31 23:59:59"

_INPUT_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
)


@dataclass
class Buyer:
    """First observed purchase of a token by one wallet."""

    wallet_address: str
    tx_hash: Optional[str]
    purchase_time: str
    block_number: Optional[int] = None
    amount: float = 0.0
    price_usd: Optional[float] = None


@dataclass
class MappedRows:
    buyers: list[Buyer] = field(default_factory=list)
    skipped: int = 0


def normalize_eth_address(address: str) -> str:
    """Lowercase an Ethereum address and drop one leading ``0x``.

    The analytics query compares with ``from_hex()``, so it wants the bare
    40-character form.
    """
    lowered = (address or "").strip().lower()
    bare = lowered[2:] if lowered.startswith("0x") else lowered
    if len(bare) != 40:
        raise InvalidAddressError(
            f"Invalid token address length: {len(bare)} (expected 40 without 0x). Address: {address}"
        )
    return bare


def format_query_datetime(value: Union[str, datetime, None], default: Optional[str] = None) -> str:
    """Render a timestamp as ``YYYY-MM-DD HH:MM:SS`` (19 chars).

    Accepts browser ``datetime-local`` values (``2024-12-01T10:30``), the
    space-separated form with or without seconds, or a ``datetime``.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise InvalidParameterError("Missing datetime value")
        return default
    if isinstance(value, datetime):
        return value.strftime(QUERY_DATETIME_FORMAT)

    text = value.strip()
    for fmt in _INPUT_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime(QUERY_DATETIME_FORMAT)
        except ValueError:
            continue
    raise InvalidParameterError(f"Invalid datetime: {value!r} (expected YYYY-MM-DD HH:MM:SS)")


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def map_rows(rows: Iterable[dict]) -> MappedRows:
    """Turn buyer-query result rows into ``Buyer`` records.

    Rows without a wallet address are counted in ``skipped`` rather than
    raised; the query already returns one row per distinct wallet.
    """
    mapped = MappedRows()
    for row in rows:
        wallet = (row.get("buyer_address") or "").strip() if isinstance(row, dict) else ""
        if not wallet:
            mapped.skipped += 1
            continue
        purchase_time = row.get("first_purchase_time")
        mapped.buyers.append(Buyer(
            wallet_address=wallet,
            tx_hash=row.get("first_purchase_tx") or None,
            purchase_time=str(purchase_time) if purchase_time is not None else "",
            block_number=_as_int(row.get("first_purchase_block")),
            amount=_as_float(row.get("amount")) or 0.0,
            price_usd=_as_float(row.get("price_usd")),
        ))

    if mapped.skipped:
        logger.warning(f"Buyer mapper: skipped {mapped.skipped} rows without buyer_address")
    return mapped
