from __future__ import annotations
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from meme_tracker.config import Settings
from meme_tracker.dependencies import get_app_settings, get_birdeye, get_importer, get_store
from meme_tracker.errors import RecordNotFoundError
from meme_tracker.schemas.token import (
    TokenCreate,
    TokenListResponse,
    TokenPrice,
    TokenPricesResponse,
    TokenResponse,
    TokenUpdate,
)
from meme_tracker.services.birdeye import BirdeyeClient
from meme_tracker.services.importer import SUPPORTED_CHAINS, BuyerImporter
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.records import TokenConfig, check_token_limits

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tokens", tags=["tokens"])


async def _get_or_404(store: TrackerStore, token_id: str) -> TokenConfig:
    token = await store.get_token(token_id)
    if token is None:
        raise HTTPException(status_code=404, detail="Token not found")
    return token


@router.get("", response_model=TokenListResponse)
async def list_tokens(store: TrackerStore = Depends(get_store)):
    tokens = await store.list_tokens()
    return TokenListResponse(
        tokens=[TokenResponse.model_validate(t) for t in tokens],
        total=len(tokens),
    )


@router.post("", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def add_token(
    req: TokenCreate,
    background_tasks: BackgroundTasks,
    store: TrackerStore = Depends(get_store),
    importer: BuyerImporter = Depends(get_importer),
    settings: Settings = Depends(get_app_settings),
):
    # Buyer data comes from Dune, which only covers the supported chains
    run_import = req.chain in SUPPORTED_CHAINS and settings.dune_configured

    token = await store.create_token(TokenConfig(
        symbol=req.symbol,
        address=req.address,
        chain=req.chain,
        start_time=req.start_time,
        end_time=req.end_time,
        market_cap_limit=req.market_cap_limit,
        buyers_import_status="pending" if run_import else "skipped",
    ))
    logger.info(f"Token added: {token.symbol} ({token.chain}) id={token.id}")

    if run_import:
        background_tasks.add_task(importer.import_in_background, token.id)
    else:
        reason = "not a supported chain" if req.chain not in SUPPORTED_CHAINS else "Dune API not configured"
        logger.info(f"Skipping buyer import for {token.symbol}: {reason}")

    return TokenResponse.model_validate(token)


@router.post("/prices", response_model=TokenPricesResponse)
async def update_token_prices(
    store: TrackerStore = Depends(get_store),
    birdeye: BirdeyeClient = Depends(get_birdeye),
):
    tokens = await store.list_tokens()
    prices = {}
    for chain in {t.chain for t in tokens}:
        addresses = [t.address for t in tokens if t.chain == chain]
        for address, price in (await birdeye.get_prices(addresses, chain)).items():
            prices[(chain, address)] = price

    items = []
    for t in tokens:
        price = prices.get((t.chain, t.address))
        items.append(TokenPrice(
            token_id=t.id,
            symbol=t.symbol,
            price=price.value if price else None,
            price_update_time=price.update_human_time if price else None,
        ))
    return TokenPricesResponse(
        prices=items,
        updated=sum(1 for i in items if i.price is not None),
        total=len(items),
    )


@router.get("/{token_id}", response_model=TokenResponse)
async def get_token(token_id: str, store: TrackerStore = Depends(get_store)):
    return TokenResponse.model_validate(await _get_or_404(store, token_id))


@router.patch("/{token_id}", response_model=TokenResponse)
async def update_token(
    token_id: str,
    req: TokenUpdate,
    store: TrackerStore = Depends(get_store),
):
    token = await _get_or_404(store, token_id)
    changes = req.model_dump(exclude_unset=True)

    start = changes.get("start_time", token.start_time)
    end = changes.get("end_time", token.end_time)
    mcap = changes.get("market_cap_limit", token.market_cap_limit)
    check_token_limits(start, end, mcap)

    try:
        updated = await store.update_token(token_id, **changes)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Token not found")
    return TokenResponse.model_validate(updated)


@router.delete("/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_token(token_id: str, store: TrackerStore = Depends(get_store)):
    # Promising addresses stay; they are independent of the token that found them
    try:
        await store.delete_token(token_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Token not found")
    logger.info(f"Token deleted: {token_id}")
