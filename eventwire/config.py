from __future__ import annotations

from functools import lru_cache

from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the dispatcher.

    Values are loaded from ``EVENTWIRE_*`` environment variables by default
    and may be overridden by passing keyword arguments.
    """

    # Delivery
    default_broadcaster: str = "default"
    async_workers: PositiveInt = 4
    thread_name_prefix: str = "eventwire"
    log_deliveries: bool = False

    # Routing
    # When disabled, filters that cannot apply to an event variant simply
    # don't match instead of raising.
    strict_filters: bool = True
    default_prefix: str = "on"

    model_config = SettingsConfigDict(
        env_prefix="EVENTWIRE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
