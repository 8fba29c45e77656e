from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    DATABASE_URL : str = "sqlite+aiosqlite:///./dynamic_pricing.db"
    REDIS_URL : str = "redis://localhost:6379/0"

    CACHE_ENABLED : bool = False
    CACHE_RULES_TTL : int = 60

    # Sale-priced products are left alone unless this is switched on
    APPLY_TO_SALE_PRODUCTS : bool = False

    STATUS_CHECK_INTERVAL_SECONDS : int = 3600
    CLEANUP_INTERVAL_SECONDS : int = 86400
    EXPIRING_LOOKAHEAD_DAYS : int = 7
    UPCOMING_RULES_LIMIT : int = 10

    CORS_ORIGINS : List[str] = ["http://localhost:3000", "http://localhost:8000"]

    model_config = SettingsConfigDict(
        env_file = ".env",
        extra = "ignore"
    )


Config = Settings()
