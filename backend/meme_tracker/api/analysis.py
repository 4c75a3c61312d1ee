from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from meme_tracker.dependencies import get_store
from meme_tracker.store.base import TrackerStore

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@router.get("/{token_id}")
async def analyze_token(token_id: str, store: TrackerStore = Depends(get_store)):
    if await store.get_token(token_id) is None:
        raise HTTPException(status_code=404, detail="Token not found")
    # Holder analysis and hype score are not built yet
    raise HTTPException(status_code=501, detail="Token analysis is not implemented yet")
