from __future__ import annotations
from pydantic_settings import BaseSettings
from functools import lru_cache

DUNE_KEY_PLACEHOLDER = "your_dune_api_key_here"


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./meme_tracker.db"

    dune_api_key: str = ""
    birdeye_api_key: str = ""
    quicknode_solana_endpoint: str = ""
    quicknode_ethereum_endpoint: str = ""

    dune_api_url: str = "https://api.dune.com/api/v1"
    birdeye_api_url: str = "https://public-api.birdeye.so"

    frontend_url: str = "http://localhost:5173"
    extra_cors_origins: str = ""  # comma-separated additional origins for production

    # Dune polling schedule (seconds)
    dune_initial_wait_seconds: float = 60.0
    dune_poll_interval_seconds: float = 20.0
    dune_max_wait_seconds: float = 300.0
    token_buyers_query_id: int = 5233698
    dune_test_query_id: int = 4396790

    # Birdeye settings
    birdeye_rate_limit: int = 5  # concurrent requests
    birdeye_batch_spacing_seconds: float = 0.2

    # Store settings
    address_write_batch_size: int = 50

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def dune_configured(self) -> bool:
        return bool(self.dune_api_key) and self.dune_api_key != DUNE_KEY_PLACEHOLDER


@lru_cache()
def get_settings() -> Settings:
    return Settings()
