"""Application configuration using Pydantic Settings.

Loads settings from environment variables and .env file.
All settings have sensible defaults for local development.
"""

from __future__ import annotations

import json
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Valid Python logging levels
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Service-wide configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Server ---
    service_env: str = "development"
    host: str = "0.0.0.0"
    port: int = 15020
    debug: bool = False

    # --- Logging ---
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Falls back to INFO if an invalid level is provided.
        """
        normalized = v.upper().strip()
        if normalized not in VALID_LOG_LEVELS:
            # Log a warning (to stderr since logging may not be configured yet)
            import sys

            print(
                f"WARNING: Invalid LOG_LEVEL '{v}'. "
                f"Valid levels are: {', '.join(sorted(VALID_LOG_LEVELS))}. "
                "Falling back to INFO.",
                file=sys.stderr,
            )
            return "INFO"
        return normalized

    def get_log_level_int(self) -> int:
        """Return the integer value of the configured log level."""
        return getattr(logging, self.log_level, logging.INFO)

    # --- Database ---
    # Any SQLAlchemy URL; postgresql+psycopg:// works for production
    database_url: str = "sqlite:///./pageqa.db"

    # --- Page Extraction ---
    url_fetch_timeout: int = 30  # seconds
    url_fetch_max_redirects: int = 5
    title_max_length: int = 200
    content_max_length: int = 50_000
    keyword_count: int = 10

    # --- Segmentation ---
    # Content longer than the threshold is split into overlapping chunks
    segment_threshold: int = 4000
    chunk_size: int = 2000
    chunk_overlap: int = 200

    # --- AI Providers ---
    # Providers are probed in order: zhipu, then openai
    zhipu_api_key: str | None = None
    zhipu_model: str = "glm-4"
    zhipu_base_url: str = "https://open.bigmodel.cn/api/paas/v4/chat/completions"
    openai_api_key: str | None = None
    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: str | None = None
    ai_max_tokens: int = 4000
    ai_temperature: float = 0.3
    ai_timeout_seconds: float = 60.0

    # --- Result Cache ---
    enable_caching: bool = False
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_seconds: int = 3600
    cache_timeout_seconds: float = 2.0

    # --- CORS ---
    cors_origins: str = "http://localhost:15000,http://localhost:3000"

    def get_cors_origins(self) -> list[str]:
        """Parse cors_origins as JSON list or comma-separated string."""
        raw = self.cors_origins.strip()
        if raw.startswith("["):
            return json.loads(raw)
        return [o.strip() for o in raw.split(",") if o.strip()]


settings = Settings()
