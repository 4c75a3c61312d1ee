from __future__ import annotations
import json
import logging
from fastapi import APIRouter, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse
from meme_tracker.dependencies import get_store
from meme_tracker.schemas.address import PromisingAddressResponse
from meme_tracker.schemas.token import TokenResponse
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.records import PROMISING_ADDRESSES, TOKENS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stream", tags=["stream"])

_SCHEMAS = {
    TOKENS: TokenResponse,
    PROMISING_ADDRESSES: PromisingAddressResponse,
}


def snapshot_payload(collection: str, snapshot: list) -> str:
    schema = _SCHEMAS[collection]
    return json.dumps([schema.model_validate(r).model_dump(mode="json") for r in snapshot])


@router.get("/{collection}")
async def stream_collection(collection: str, store: TrackerStore = Depends(get_store)):
    """SSE feed: the whole collection on connect, then again after every change."""
    if collection not in _SCHEMAS:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {collection}")

    subscription = await store.subscribe(collection)

    async def event_generator():
        try:
            async for snapshot in subscription:
                yield {"event": collection, "data": snapshot_payload(collection, snapshot)}
        finally:
            subscription.cancel()
            logger.info(f"Stream: {collection} subscriber disconnected")

    return EventSourceResponse(event_generator())
