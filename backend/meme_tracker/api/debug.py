from __future__ import annotations
import logging
from fastapi import APIRouter, Depends
from meme_tracker.config import Settings
from meme_tracker.dependencies import get_app_settings, get_dune
from meme_tracker.schemas.debug import DuneExecuteRequest, DuneExecuteResponse, DunePingResponse
from meme_tracker.services.dune import DuneClient, clean_parameters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/debug", tags=["debug"])


@router.post("/dune/execute", response_model=DuneExecuteResponse)
async def execute_dune_query(
    req: DuneExecuteRequest,
    dune: DuneClient = Depends(get_dune),
):
    """Raw query tester: run any saved query with hand-written parameters."""
    parameters = clean_parameters(req.parameters)
    logger.info(f"Debug: running Dune query {req.query_id} with {parameters}")
    rows = await dune.execute_and_wait(req.query_id, parameters, max_wait=req.max_wait_seconds)
    return DuneExecuteResponse(
        query_id=req.query_id,
        parameters=parameters,
        row_count=len(rows),
        rows=rows,
    )


@router.post("/dune/ping", response_model=DunePingResponse)
async def ping_dune(
    dune: DuneClient = Depends(get_dune),
    settings: Settings = Depends(get_app_settings),
):
    """Basic connectivity check: start the test query without waiting for it."""
    execution_id = await dune.submit(settings.dune_test_query_id)
    return DunePingResponse(query_id=settings.dune_test_query_id, execution_id=execution_id)
