from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from meme_tracker.errors import InvalidAddressError, InvalidParameterError

TOKENS = "tokens"
PROMISING_ADDRESSES = "promising-addresses"
COLLECTIONS = (TOKENS, PROMISING_ADDRESSES)

CHAINS = ("ethereum", "solana")


@dataclass
class TokenConfig:
    symbol: str
    address: str
    chain: str
    start_time: Optional[str] = None  # YYYY-MM-DD HH:MM:SS
    end_time: Optional[str] = None
    market_cap_limit: Optional[float] = None
    buyers_count: Optional[int] = None
    buyers_last_updated: Optional[datetime] = None
    buyers_import_status: str = "none"  # none / pending / completed / failed / skipped
    buyers_import_error: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PromisingAddress:
    address: str
    token_id: str
    token_symbol: str
    purchase_time: str
    block_number: Optional[int] = None
    tx_hash: Optional[str] = None
    related_tokens: list[str] = field(default_factory=list)
    is_marked_promising: bool = True
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def address_key(self) -> str:
        return address_key(self.address)

    @property
    def token_ids(self) -> set[str]:
        """Origin token plus every related token."""
        return {self.token_id, *self.related_tokens}


def address_key(address: str) -> str:
    """Dedup key: wallet addresses compare case-insensitively."""
    return address.strip().lower()


ETH_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def check_token_address(chain: str, address: str) -> None:
    if chain not in CHAINS:
        raise InvalidParameterError(f"Unknown chain: {chain}")
    if chain == "ethereum" and not ETH_ADDRESS_RE.match(address):
        raise InvalidAddressError("Invalid Ethereum address: expected 0x followed by 40 hex characters")
    if chain == "solana" and not SOLANA_ADDRESS_RE.match(address):
        raise InvalidAddressError("Invalid Solana address: expected 32-44 base58 characters")


def check_token_limits(
    start_time: Optional[str], end_time: Optional[str], market_cap_limit: Optional[float]
) -> None:
    """A token is tracked inside a time window, up to a market cap, or both."""
    if not start_time and not end_time and market_cap_limit is None:
        raise InvalidParameterError("Set an observation window or a market cap limit")


def check_token(token: TokenConfig) -> None:
    check_token_address(token.chain, token.address)
    check_token_limits(token.start_time, token.end_time, token.market_cap_limit)
