"""Centralised application settings loaded from environment / .env file."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage
    storage_backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"

    # Crowding
    crowding_window_ms: int = 60 * 60 * 1000  # trailing hour

    # Walking directions (TMAP pedestrian API)
    tmap_api_key: Optional[str] = None
    tmap_base_url: str = "https://apis.openapi.sk.com"
    route_timeout_seconds: float = 10.0

    # Ranking
    ranking_batch_size: int = 50

    # Location
    default_latitude: float = 37.5666103  # Seoul City Hall
    default_longitude: float = 126.9783882
    location_timeout_seconds: float = 10.0

    # Shelter catalog
    catalog_path: str = "data/shelters.json"

    # API
    rate_limit: str = "100/minute"

    model_config = {"env_file": ".env", "env_prefix": "SHELTER_", "extra": "ignore"}


settings = Settings()
