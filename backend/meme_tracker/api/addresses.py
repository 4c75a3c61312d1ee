from __future__ import annotations
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from meme_tracker.dependencies import get_importer, get_store
from meme_tracker.errors import RecordNotFoundError
from meme_tracker.schemas.address import (
    AddressStatsResponse,
    ImportResultResponse,
    PromisingAddressListResponse,
    PromisingAddressResponse,
)
from meme_tracker.services.address_view import address_stats, filter_addresses, view
from meme_tracker.services.importer import BuyerImporter
from meme_tracker.store.base import TrackerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/promising-addresses", tags=["promising-addresses"])


@router.get("", response_model=PromisingAddressListResponse)
async def list_promising_addresses(
    token_ids: Optional[str] = Query(None, description="Comma-separated token ids; several ids means bought all of them"),
    q: str = Query("", description="Case-insensitive address search"),
    promising: str = Query("marked", pattern="^(marked|unmarked|all)$"),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    store: TrackerStore = Depends(get_store),
):
    selected = [t.strip() for t in (token_ids or "").split(",") if t.strip()]
    mark = None if promising == "all" else promising
    addresses = await store.list_addresses()
    page = view(
        addresses,
        selected_token_ids=selected,
        search_text=q,
        promising=mark,
        page_size=limit,
        page_offset=offset,
    )
    total = len(filter_addresses(addresses, selected, q, mark))
    return PromisingAddressListResponse(
        addresses=[PromisingAddressResponse.model_validate(a) for a in page],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.get("/stats", response_model=AddressStatsResponse)
async def get_stats(store: TrackerStore = Depends(get_store)):
    return AddressStatsResponse.model_validate(address_stats(await store.list_addresses()))


@router.post("/import/{token_id}", response_model=ImportResultResponse)
async def import_token_buyers(
    token_id: str,
    importer: BuyerImporter = Depends(get_importer),
):
    """Fetch the token's early buyers from Dune and merge them in.

    Blocks until the Dune execution finishes, which usually takes over a minute.
    """
    result = await importer.import_token(token_id)
    return ImportResultResponse.model_validate(result)


@router.post("/{address_id}/toggle", response_model=PromisingAddressResponse)
async def toggle_promising_mark(address_id: str, store: TrackerStore = Depends(get_store)):
    address = await store.get_address(address_id)
    if address is None:
        raise HTTPException(status_code=404, detail="Address not found")
    updated = await store.update_address(address_id, is_marked_promising=not address.is_marked_promising)
    return PromisingAddressResponse.model_validate(updated)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_address(address_id: str, store: TrackerStore = Depends(get_store)):
    try:
        await store.delete_address(address_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Address not found")
