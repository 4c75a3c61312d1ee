from __future__ import annotations
from fastapi import APIRouter, Depends
from meme_tracker.dependencies import get_api_status
from meme_tracker.schemas.settings import ApiStatusResponse, ConnectionCheckResponse
from meme_tracker.services.api_status import ApiStatusService

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/api-status", response_model=ApiStatusResponse)
async def api_status(service: ApiStatusService = Depends(get_api_status)):
    return ApiStatusResponse(**service.status())


@router.post("/api-status/{name}/test", response_model=ConnectionCheckResponse)
async def test_connection(name: str, service: ApiStatusService = Depends(get_api_status)):
    check = await service.test(name)
    return ConnectionCheckResponse.model_validate(check)
