"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    store_base_url: str | None = None
    store_timeout_seconds: float = 15
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"
    generation_timeout_seconds: float = 120
    camera_index: int = 0
    countdown_seconds: int = 3
    local_config_path: str = ".ai_photobooth/local.json"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
