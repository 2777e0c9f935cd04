"""
Configuration system with environment-based settings.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:4028"]

    # Target site fetching
    FETCH_USER_AGENT: str = "AgentReadinessScanner/1.0 (+https://agentreadiness.dev/bot)"
    PAGE_REQUEST_TIMEOUT: float = 15.0
    ROBOTS_REQUEST_TIMEOUT: float = 10.0
    CONTENT_PREVIEW_CHARS: int = Field(1000, ge=1)
    MAX_PAGE_BYTES: int = Field(2_000_000, ge=1)

    # Scoring
    CONTENT_LENGTH_THRESHOLD: int = 500

    # Generative AI (Gemini). Empty key = fallback text only.
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_TIMEOUT: float = 30.0
    MAX_SUGGESTIONS: int = Field(7, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors(cls, v: str | list) -> list:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def generative_enabled(self) -> bool:
        return bool(self.GEMINI_API_KEY.strip())


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - created once per process."""
    return Settings()
