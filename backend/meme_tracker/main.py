from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from meme_tracker.config import Settings, get_settings
from meme_tracker.errors import TrackerError, VendorHTTPError
from meme_tracker.services.api_status import ApiStatusService
from meme_tracker.services.birdeye import BirdeyeClient
from meme_tracker.services.dune import DuneClient
from meme_tracker.services.importer import BuyerImporter
from meme_tracker.services.quicknode import QuickNodeClient
from meme_tracker.store.base import TrackerStore
from meme_tracker.store.sql import SqlStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    store = app.state.store
    if isinstance(store, SqlStore):
        await store.init()
    logger.info("Meme tracker API started (store: %s)", type(store).__name__)

    yield

    # Shutdown
    await store.close()


async def tracker_error_handler(request: Request, exc: TrackerError):
    content = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, VendorHTTPError):
        content["service"] = exc.service
        content["status"] = exc.status
        content["body"] = exc.body
    return JSONResponse(status_code=exc.status_code, content=content)


def _cors_origins(settings: Settings) -> list[str]:
    origins = [settings.frontend_url.rstrip("/"), "http://localhost:5173", "http://localhost:3000"]
    if settings.extra_cors_origins:
        origins.extend([o.strip().rstrip("/") for o in settings.extra_cors_origins.split(",") if o.strip()])
    # Deduplicate
    return list(dict.fromkeys(origins))


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[TrackerStore] = None,
    dune: Optional[DuneClient] = None,
    birdeye: Optional[BirdeyeClient] = None,
    quicknode: Optional[QuickNodeClient] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Meme Coin Tracker",
        description="Early-buyer import and smart money browsing for tracked meme coins",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store or SqlStore(settings.database_url)
    app.state.dune = dune or DuneClient(settings)
    app.state.birdeye = birdeye or BirdeyeClient(settings)
    app.state.quicknode = quicknode or QuickNodeClient(settings)
    app.state.importer = BuyerImporter(app.state.store, app.state.dune, settings)
    app.state.api_status = ApiStatusService(settings, app.state.birdeye, app.state.quicknode, app.state.dune)

    origins = _cors_origins(settings)
    logger.info("CORS allowed origins: %s", origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TrackerError, tracker_error_handler)

    # Register route modules
    from meme_tracker.api import settings as settings_api, tokens, addresses, analysis, debug, portability, stream

    app.include_router(settings_api.router)
    app.include_router(tokens.router)
    app.include_router(addresses.router)
    app.include_router(analysis.router)
    app.include_router(debug.router)
    app.include_router(portability.router)
    app.include_router(stream.router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
