"""Application configuration loaded from environment variables."""

import os
from enum import Enum
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class CacheTTL(Enum):
    """Cache TTL values in seconds for different data types."""

    QUERY_CACHE = 300      # 5 minutes - persisted query fallback
    STALE_AFTER = 300      # 5 minutes - live value considered stale
    IMAGE_URL = 3600       # 1 hour - resolved storage URLs


class Settings:
    """Application settings loaded from environment."""

    def __init__(self):
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.database_url: str = os.getenv(
            "DATABASE_URL", "sqlite+aiosqlite:///./linkrentals.db"
        )
        self.storage_base_url: str = os.getenv(
            "STORAGE_BASE_URL", "http://localhost:3210"
        ).rstrip("/")
        self.storage_api_key: str = os.getenv("STORAGE_API_KEY", "")

        self.recently_viewed_cap: int = int(os.getenv("RECENTLY_VIEWED_CAP", "20"))
        self.image_url_cache_size: int = int(os.getenv("IMAGE_URL_CACHE_SIZE", "512"))
        self.image_url_cache_ttl_seconds: float = float(
            os.getenv("IMAGE_URL_CACHE_TTL_SECONDS", CacheTTL.IMAGE_URL.value)
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
