"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

API_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    public_base_url: str = "https://inbound-digital-audit.vercel.app"

    # Store
    store_backend: Literal["redis", "memory"] = "redis"
    redis_url: RedisDsn = RedisDsn("redis://localhost:6379/0")

    # Provider credentials (a missing key makes that provider fail and go pending)
    gtmetrix_api_key: str | None = None
    semrush_api_key: str | None = None
    google_api_key: str | None = None
    semrush_database: str = "us"

    # Provider timeouts
    website_scan_timeout_seconds: float = 15.0
    speed_analysis_timeout_seconds: float = 55.0
    speed_analysis_poll_interval_seconds: float = 3.0
    search_metrics_timeout_seconds: float = 15.0
    business_listing_timeout_seconds: float = 10.0
    site_audit_timeout_seconds: float = 15.0
    existence_check_timeout_seconds: float = 3.0
    scan_user_agent: str = "InboundAuditBot/1.0"

    # Audit pipeline
    audit_retry_ceiling: int = 3
    audit_write_max_attempts: int = 3

    # Google Sheets audit log
    google_service_account_email: str | None = None
    google_service_account_key: str | None = None
    sheets_spreadsheet_id: str | None = None
    sheets_tab_name: str = "Inbound Digital Audit"

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"

    @property
    def sheets_enabled(self) -> bool:
        """Check if the spreadsheet audit log has everything it needs."""
        return bool(
            self.google_service_account_email
            and self.google_service_account_key
            and self.sheets_spreadsheet_id
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
