"""
Centralized configuration management with Pydantic Settings.
All environment variables are validated and typed.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, RedisDsn
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
    app_name: str = "Hitcount"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/hitcount"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_echo: bool = False

    # Redis (sessions and the hit queue)
    redis_url: Optional[RedisDsn] = None

    # Security
    secret_key: str = Field(default="change-me-to-a-long-random-secret-value", min_length=32)
    dashboard_token: Optional[str] = None

    # CORS - stored as comma-separated string to avoid JSON parsing issues
    allowed_origins_str: str = Field(default="*", alias="ALLOWED_ORIGINS")

    @property
    def allowed_origins(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    # Site defaults (seeded into the settings table)
    site_name: str = "My Analytics"
    data_retention_days: int = Field(default=0, ge=0)  # 0 = unlimited

    # Sessions
    session_ttl_seconds: int = 8 * 60 * 60

    # Edge network headers
    client_ip_header: str = "cf-connecting-ip"
    country_header: str = "cf-ipcountry"
    bot_score_header: str = "cf-bot-score"
    edge_bot_score_threshold: int = 30

    # Observability
    sentry_dsn: Optional[str] = None
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
