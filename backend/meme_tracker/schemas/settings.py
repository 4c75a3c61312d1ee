from __future__ import annotations
from pydantic import BaseModel


class ApiStatusResponse(BaseModel):
    birdeye: str
    quicknode_solana: str
    quicknode_ethereum: str
    dune: str


class ConnectionCheckResponse(BaseModel):
    service: str
    status: str
    message: str

    model_config = {"from_attributes": True}
