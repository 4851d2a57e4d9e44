from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "BuckPal API"
    database_url: str = "sqlite:///buckpal.db"
    log_level: str = "INFO"
    lock_timeout_seconds: float = Field(default=5.0, gt=0)
    activity_window_days: int = Field(default=10, ge=0)
    maximum_transfer_threshold: int = Field(
        default=1_000_000, ge=1, description="Largest transfer in minor units"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUCKPAL_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
