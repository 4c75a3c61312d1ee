from __future__ import annotations
from fastapi import APIRouter, Depends, Request, Response
from meme_tracker.dependencies import get_store
from meme_tracker.schemas.portability import ConfigImportResponse
from meme_tracker.services.portability import export_config, import_config
from meme_tracker.store.base import TrackerStore

router = APIRouter(prefix="/api/config", tags=["config"])

EXPORT_FILENAME = "meme-coin-tracker-config.json"


@router.get("/export")
async def export_tracker_config(store: TrackerStore = Depends(get_store)):
    blob = await export_config(store)
    return Response(
        content=blob,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=ConfigImportResponse)
async def import_tracker_config(request: Request, store: TrackerStore = Depends(get_store)):
    blob = (await request.body()).decode("utf-8", errors="replace")
    summary = await import_config(store, blob)
    return ConfigImportResponse.model_validate(summary)
