from __future__ import annotations
from pydantic import BaseModel


class ConfigImportResponse(BaseModel):
    tokens_added: int
    tokens_skipped: int
    addresses_added: int
    addresses_skipped: int

    model_config = {"from_attributes": True}
