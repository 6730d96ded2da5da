"""Configuration for the GermanSphere client core."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    api_base_url: str = "http://localhost:5000/api"
    connect_timeout: float = 10.0
    read_timeout: float = 30.0

    storage_path: Path | None = None
    comparison_storage_key: str = "comparison_items"
    auth_token_storage_key: str = "auth_token"
    bookings_storage_key: str = "bookings"

    comparison_max_items_per_type: int = Field(default=4, ge=1)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="GERMANSPHERE_", env_file=".env")
