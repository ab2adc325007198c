"""plansync configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the webhook service."""

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "plansync"
    users_collection: str = "users"
    store_timeout_ms: int = 5000
    store_max_pool_size: int = 50
    require_store_on_startup: bool = False

    # Webhook
    webhook_secret: str = ""
    signature_header: str = "X-Signature"
    webhook_path: str = "/webhook"
    create_missing_users: bool = True  # False -> unknown emails get 404

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
