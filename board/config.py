"""
Configuration and settings for the bulletin-board backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # Remote key-value backend (Redis). Unset means no remote tier.
    redis_url: Optional[str] = Field(default=None, validation_alias="REDIS_URL")
    redis_key_prefix: str = Field(
        default="board:", validation_alias="BOARD_REDIS_KEY_PREFIX"
    )

    # Latency bounds
    remote_timeout_seconds: float = Field(
        default=2.0, validation_alias="BOARD_REMOTE_TIMEOUT_SECONDS"
    )
    request_timeout_seconds: float = Field(
        default=10.0, validation_alias="BOARD_REQUEST_TIMEOUT_SECONDS"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="BOARD_USE_IN_MEMORY_BACKENDS"
    )
    seed_path: Optional[str] = Field(default=None, validation_alias="BOARD_SEED_PATH")

    # Comma-separated, e.g. "https://a.example,https://b.example".
    cors_origins: str = Field(default="*", validation_alias="BOARD_CORS_ORIGINS")
    log_level: str = Field(default="INFO", validation_alias="BOARD_LOG_LEVEL")

    def cors_origin_list(self) -> list[str]:
        return [
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
