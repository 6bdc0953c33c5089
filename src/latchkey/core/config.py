"""latchkey settings, read from ``LATCHKEY_*`` environment variables or .env."""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SECRET_KEY = "change-me-in-production-use-openssl-rand-hex-32"


class Settings(BaseSettings):
    """Validated configuration; invalid values fail at startup, not mid-request."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LATCHKEY_",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    app_name: str = "latchkey"
    environment: Literal["development", "production", "testing"] = "development"
    app_url: str = Field(
        default="http://localhost:8000",
        description="Base URL used to build links in outgoing emails",
    )

    # Bind address for `latchkey serve`
    host: str = "0.0.0.0"
    port: int = 8000

    # User store
    database_url: str = "sqlite+aiosqlite:///./latchkey_data/latchkey.db"
    db_echo: bool = False
    db_busy_timeout_seconds: float = 5.0

    # Session tokens
    secret_key: str = Field(
        default=DEV_SECRET_KEY,
        description="Secret key for session token signing",
    )
    access_token_expire_minutes: int = 60

    # Token lifecycle
    email_check_ttl_hours: int = 24
    password_change_ttl_hours: int = 24

    # Password policy
    password_min_length: int = 8

    # Outgoing mail
    email_provider: Literal["console", "smtp"] = "console"
    mail_from_email: str = "no-reply@latchkey.local"
    mail_from_name: str = "latchkey"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: int = 10

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator(
        "email_check_ttl_hours",
        "password_change_ttl_hours",
        "password_min_length",
        "access_token_expire_minutes",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Reject zero or negative durations and lengths."""
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @model_validator(mode="after")
    def require_real_secret_in_production(self) -> "Settings":
        if self.is_production and self.secret_key == DEV_SECRET_KEY:
            raise ValueError("LATCHKEY_SECRET_KEY must be set in production")
        return self

    @property
    def email_check_ttl(self) -> timedelta:
        return timedelta(hours=self.email_check_ttl_hours)

    @property
    def password_change_ttl(self) -> timedelta:
        return timedelta(hours=self.password_change_ttl_hours)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded on first call."""
    return Settings()
