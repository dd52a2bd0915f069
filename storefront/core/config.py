# storefront/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized storefront settings loaded from environment.

    Every key has a default so the app boots without a .env file.

    Remote catalog / payment endpoints:
      - CATALOG_API_URL (base url of the remote shop API)
      - PRODUCTS_PATH, PAYMENT_PATH

    Retry policy (resilient fetch layer):
      - MAX_RETRIES (attempts per call, must be >= 1)
      - RETRY_DELAY (seconds between failed attempts)
      - REQUEST_TIMEOUT (seconds per attempt)
    """

    PROJECT_NAME: str = "Storefront API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Remote shop API
    CATALOG_API_URL: str = "http://localhost:3000"
    PRODUCTS_PATH: str = "/api/products"
    PAYMENT_PATH: str = "/api/payment"

    # Retry policy
    MAX_RETRIES: int = Field(default=3, ge=1)
    RETRY_DELAY: float = Field(default=1.0, ge=0)
    REQUEST_TIMEOUT: float = Field(default=10.0, gt=0)

    # Cart sessions kept in memory; the least recently used is ended past this
    MAX_CART_SESSIONS: int = Field(default=10_000, ge=1)

    # Product images
    ASSET_DIR: str = "static"
    ASSET_BASE_URL: str = "/static"
    FALLBACK_IMAGE: str = "/static/img/fallback.png"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
