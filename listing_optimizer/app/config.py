from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    APP_ENV: str = "local"
    STORE_BACKEND: Literal["supabase", "memory"] = "supabase"

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    OPTIMIZATIONS_TABLE: str = "optimizations"

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    SYSTEM_PROMPT_PATH: Optional[str] = None

    AMAZON_BASE_URL: str = "https://www.amazon.com"
    FETCH_TIMEOUT_SECONDS: float = 15.0
    FETCH_MAX_RETRIES: int = Field(default=2, ge=0, le=10)
    FETCH_RETRY_BACKOFF_SECONDS: float = 1.0
    FETCH_USER_AGENT: Optional[str] = None

    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
    )


settings = Settings()
