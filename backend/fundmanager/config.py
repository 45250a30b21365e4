"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Fund Manager API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./fundmanager.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Financial data provider (enrichment, peer search, deep search)
    FINANCIAL_DATA_PROVIDER: str = "valyu"  # valyu, mock
    VALYU_API_KEY: Optional[str] = None  # Falls back to mock data when unset
    VALYU_API_URL: str = "https://api.valyu.com/deepsearch"  # Base for /enrich and /search
    VALYU_SEARCH_URL: str = "https://api.valyu.com/deepsearch"  # Free-text deep search endpoint
    VALYU_TIMEOUT_SECONDS: float = 30.0

    # Language model (company comparison)
    LLM_PROVIDER: str = "gemini"  # gemini, mock
    GEMINI_API_KEY: Optional[str] = None  # Falls back to mock responses when unset or invalid
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT_SECONDS: float = 60.0

    # Company comparison
    COMPARISON_SIMILAR_COMPANIES: int = 5
    COMPARISON_PACING_SECONDS: float = 0.8  # Delay between companies (upstream courtesy)

    # Uploads
    MAX_UPLOAD_BYTES: int = 1024 * 1024

    # Monitoring
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # 'text' or 'json' (json for production)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @field_validator("FINANCIAL_DATA_PROVIDER", "LLM_PROVIDER")
    @classmethod
    def normalize_provider_name(cls, v: str) -> str:
        """Provider names are matched case-insensitively."""
        return v.strip().lower()

    @field_validator("COMPARISON_PACING_SECONDS", "VALYU_TIMEOUT_SECONDS", "GEMINI_TIMEOUT_SECONDS")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Durations must be non-negative")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
