from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from meme_tracker.errors import InvalidParameterError
from meme_tracker.services.buyers import format_query_datetime
from meme_tracker.store.records import check_token_address, check_token_limits


def _window_time(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    try:
        return format_query_datetime(value)
    except InvalidParameterError as e:
        raise ValueError(str(e)) from e


class TokenCreate(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1)
    chain: Literal["ethereum", "solana"] = "solana"
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    market_cap_limit: Optional[float] = Field(None, gt=0)

    @field_validator("symbol", "address")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value: Optional[str]) -> Optional[str]:
        return _window_time(value)

    @model_validator(mode="after")
    def _check(self) -> "TokenCreate":
        check_token_address(self.chain, self.address)
        check_token_limits(self.start_time, self.end_time, self.market_cap_limit)
        return self


class TokenUpdate(BaseModel):
    symbol: Optional[str] = Field(None, min_length=1, max_length=20)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    market_cap_limit: Optional[float] = Field(None, gt=0)

    @field_validator("symbol")
    @classmethod
    def _symbol_not_null(cls, value: Optional[str]) -> str:
        # symbol is NOT NULL; omit it to leave it unchanged
        if value is None or not value.strip():
            raise ValueError("symbol cannot be empty")
        return value.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value: Optional[str]) -> Optional[str]:
        return _window_time(value)


class TokenResponse(BaseModel):
    id: str
    symbol: str
    address: str
    chain: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    market_cap_limit: Optional[float] = None
    buyers_count: Optional[int] = None
    buyers_last_updated: Optional[datetime] = None
    buyers_import_status: str = "none"
    buyers_import_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenListResponse(BaseModel):
    tokens: List[TokenResponse]
    total: int


class TokenPrice(BaseModel):
    token_id: str
    symbol: str
    price: Optional[float] = None
    price_update_time: Optional[str] = None


class TokenPricesResponse(BaseModel):
    prices: List[TokenPrice]
    updated: int
    total: int
