from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class PromisingAddressResponse(BaseModel):
    id: str
    address: str
    token_id: str
    token_symbol: str
    purchase_time: str
    block_number: Optional[int] = None
    tx_hash: Optional[str] = None
    related_tokens: List[str] = []
    is_marked_promising: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PromisingAddressListResponse(BaseModel):
    addresses: List[PromisingAddressResponse]
    total: int
    offset: int
    limit: int


class AddressStatsResponse(BaseModel):
    total: int
    marked: int
    multi_token: int

    model_config = {"from_attributes": True}


class ImportResultResponse(BaseModel):
    token_id: str
    token_symbol: str
    fetched: int
    skipped_rows: int
    added: int
    updated: int

    model_config = {"from_attributes": True}
