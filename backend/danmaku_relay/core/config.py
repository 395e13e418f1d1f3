"""Application settings for relay runtime and tests."""

from __future__ import annotations

from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings loaded from DANMAKU_* environment variables or explicit kwargs."""

    model_config = SettingsConfigDict(env_prefix="DANMAKU_")

    app_env: str = "dev"
    app_host: str = "127.0.0.1"
    app_port: int = Field(default=8000, ge=1)
    log_level: str = "INFO"

    admin_password: str = Field(min_length=1)

    default_barrage_speed: int = Field(default=5, ge=1, le=20)
    default_barrage_density: int = Field(default=5, ge=1, le=10)
    default_lanes: int = Field(default=10, ge=4, le=20)

    danmaku_max_graphemes: int = Field(default=100, ge=1)
    outbox_max_events: int = Field(default=256, ge=1)

    upload_dir: str = "uploads"
    upload_max_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    static_dir: str = "public"
    cors_allow_origins: str = "*"

    heartbeat_interval_seconds: float = Field(default=30.0, gt=0)
    heartbeat_timeout_seconds: float = Field(default=10.0, gt=0)
    heartbeat_max_missed: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def validate_heartbeat_window(self) -> "Settings":
        """Ensure a pong wait always fits inside one heartbeat interval."""
        if self.heartbeat_timeout_seconds >= self.heartbeat_interval_seconds:
            raise ValueError(
                "DANMAKU_HEARTBEAT_TIMEOUT_SECONDS must be less than "
                "DANMAKU_HEARTBEAT_INTERVAL_SECONDS"
            )
        return self

    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Load settings from process environment."""
    return Settings()
