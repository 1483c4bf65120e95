from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Unified application settings for AirLink.

    Loads from env with support for repo ".env" files. Avoids manual load_dotenv().
    """

    _app_env = (os.getenv("APP_ENV") or "").strip().lower()
    _env_files = (
        []
        if _app_env in {"test", "ci"}
        else [
            str((Path(__file__).resolve().parents[1] / ".env")),  # apps/airlink/.env
            str((Path(__file__).resolve().parents[3] / ".env")),  # repo root .env
        ]
    )

    # Load env vars from apps/airlink/.env first, then repo root .env
    model_config = SettingsConfigDict(
        env_file=_env_files,
        case_sensitive=False,
        extra="ignore",
    )

    # --- App / Core ---
    app_env: str = Field(default="dev", alias="APP_ENV")
    app_name: str = Field(default="AirLink", alias="APP_NAME")
    # Logging
    log_level: str | None = Field(default=None, alias="AIRLINK_LOG_LEVEL")
    log_level_fallback: str | None = Field(default=None, alias="LOG_LEVEL")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT", ge=1, le=65535)

    cors_allow_origins: list[str] = Field(default=["*"], alias="CORS_ALLOW_ORIGINS")
    static_dir: str = Field(default="public", alias="STATIC_DIR")

    # --- Sessions / limits ---
    max_file_size_bytes: int = Field(default=20 * MIB, alias="MAX_FILE_SIZE_BYTES", ge=1)
    max_files_per_session: int = Field(default=5, alias="MAX_FILES_PER_SESSION", ge=0)
    session_code_digits: int = Field(default=4, alias="SESSION_CODE_DIGITS", ge=1, le=12)
    session_code_max_attempts: int = Field(
        default=32, alias="SESSION_CODE_MAX_ATTEMPTS", ge=1, le=1000
    )
    session_idle_ttl_seconds: int = Field(
        default=30 * 60,
        alias="SESSION_IDLE_TTL_SECONDS",
        ge=0,
        description="0 disables expiry of idle sessions.",
    )
    session_sweep_interval_seconds: float = Field(
        default=60.0, alias="SESSION_SWEEP_INTERVAL_SECONDS", gt=0
    )

    # --- Realtime channel ---
    outbox_max_messages: int = Field(default=256, alias="OUTBOX_MAX_MESSAGES", ge=1)
    announce_departures: bool = Field(default=True, alias="ANNOUNCE_DEPARTURES")
    ws_max_message_bytes: int = Field(default=4 * MIB, alias="WS_MAX_MESSAGE_BYTES", ge=1024)

    # --- Invites (e-mail) ---
    public_base_url: Optional[str] = Field(default=None, alias="PUBLIC_BASE_URL")
    invite_send_enabled: bool = Field(default=False, alias="INVITE_SEND_ENABLED")
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: SecretStr | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")
    smtp_from_email: str | None = Field(default=None, alias="SMTP_FROM_EMAIL")

    @property
    def resolved_log_level(self) -> str | None:
        return self.log_level or self.log_level_fallback


@lru_cache()
def get_settings() -> Settings:
    return Settings()

