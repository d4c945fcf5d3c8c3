from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "CareNotes API"
    database_url: str = (
        "postgresql+psycopg2://carenotes:carenotes@db:5432/carenotes"  # pragma: allowlist secret
    )
    redis_url: str = "redis://redis:6379/0"
    timezone: str = "Europe/London"
    cors_origins: list[str] = ["http://localhost:3000"]
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"

    auth_secret: str = Field(min_length=32)
    session_cookie_name: str = "carenotes_session"
    session_max_age_seconds: int = 60 * 60 * 8
    sign_in_path: str = "/auth/signin"
    dashboard_path: str = "/dashboard"
    pin_hash_rounds: int = Field(default=12, ge=4, le=31)

    notification_webhook_url: str = ""
    notification_mock_mode: bool = False
    notification_check_hour: int = Field(default=6, ge=0, le=23)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("auth_secret")
    @classmethod
    def _reject_blank_secret(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("AUTH_SECRET must not be blank")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
