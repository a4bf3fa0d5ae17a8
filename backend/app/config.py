from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./wallets.db"

    # Wallet defaults
    default_currency: str = "PHP"
    default_wallet_type: str = "Cash"

    # Built-in transaction categories; "Custom" is the free-text sentinel
    base_categories: List[str] = ["Food", "Shopping", "Bills", "Car", "Custom"]
    custom_category_sentinel: str = "Custom"

    # Activity log entries kept per user
    activity_log_limit: int = 200

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="WALLETS_")

@lru_cache()
def get_settings():
    return Settings()
