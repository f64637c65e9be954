"""
Application Settings for Drop Commerce

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    DATABASE_URL is optional so the API can boot (and be tested) without a
    database; repositories fail with ConfigurationError until it is set.
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    # Commerce
    currency: str = "NGN"
    auto_drop_batch_limit: int = 500

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def normalize_database_url(self) -> "Settings":
        """Force the asyncpg driver on plain PostgreSQL URLs."""
        url = self.database_url
        if url:
            if url.startswith("postgresql://"):
                self.database_url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                self.database_url = url.replace("postgres://", "postgresql+asyncpg://", 1)

        if self.auto_drop_batch_limit < 1:
            raise ValueError("AUTO_DROP_BATCH_LIMIT must be at least 1")

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
