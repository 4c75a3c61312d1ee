from __future__ import annotations
from fastapi import Request

from meme_tracker.config import Settings
from meme_tracker.services.api_status import ApiStatusService
from meme_tracker.services.birdeye import BirdeyeClient
from meme_tracker.services.dune import DuneClient
from meme_tracker.services.importer import BuyerImporter
from meme_tracker.services.quicknode import QuickNodeClient
from meme_tracker.store.base import TrackerStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> TrackerStore:
    return request.app.state.store


def get_dune(request: Request) -> DuneClient:
    return request.app.state.dune


def get_birdeye(request: Request) -> BirdeyeClient:
    return request.app.state.birdeye


def get_quicknode(request: Request) -> QuickNodeClient:
    return request.app.state.quicknode


def get_importer(request: Request) -> BuyerImporter:
    return request.app.state.importer


def get_api_status(request: Request) -> ApiStatusService:
    return request.app.state.api_status
