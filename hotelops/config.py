"""Application configuration via pydantic-settings."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Hotel Ops Booking Policy"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Persistence collaborator: "sql" owns the data, "http" delegates to the hotel REST API
    backend: Literal["sql", "http"] = "sql"

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "hotelops"
    postgres_password: str = Field(default="hotelops_secret")
    postgres_db: str = "hotelops"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    database_url_override: Optional[str] = None  # e.g. sqlite+aiosqlite:///./hotelops.db

    @computed_field
    @property
    def database_url(self) -> str:
        """Async database connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Remote hotel API (used when backend == "http")
    hotel_api_base_url: str = "http://localhost:5000/api"
    hotel_api_token: Optional[str] = None
    hotel_api_timeout_seconds: float = 10.0

    # Hotel policy
    hotel_timezone: str = "Asia/Colombo"
    currency: str = "LKR"
    invoice_tax_percent: Decimal = Decimal("0")

    # Idempotency
    idempotency_ttl_hours: int = 24

    # Card payment processor
    card_gateway_url: Optional[str] = None
    card_gateway_api_key: Optional[str] = None
    card_gateway_sandbox: bool = True

    # JWT Authentication
    jwt_secret_key: str = Field(default="your-super-secret-key-change-in-production")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
