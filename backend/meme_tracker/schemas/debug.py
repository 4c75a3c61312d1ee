from __future__ import annotations
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class DuneExecuteRequest(BaseModel):
    query_id: int = Field(..., gt=0)
    parameters: Dict[str, str] = {}
    max_wait_seconds: Optional[float] = Field(None, gt=0)


class DuneExecuteResponse(BaseModel):
    query_id: int
    parameters: Dict[str, str]
    row_count: int
    rows: List[Dict[str, Any]]


class DunePingResponse(BaseModel):
    query_id: int
    execution_id: str
