"""Central runtime configuration for ContentDeck."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    env: str = "development"
    log_level: str = "INFO"
    app_name: str = "contentdeck"
    app_version: str = "0.1.0"
    port: int = 8000
    storage_backend: str = "memory"
    database_url: str = "sqlite:///./data/contentdeck.sqlite"
    lock_backend: str = "local"
    redis_url: str = "redis://redis:6379/0"
    user_lock_ttl_seconds: int = 30
    user_lock_wait_seconds: float = 10.0
    plans_file_path: str = "config/plans.yaml"
    default_plan: str = "trial"
    quota_enforcement_enabled: bool = True
    upload_dir: str = "uploads"
    upload_max_bytes: int = 100 * 1024 * 1024
    upload_allowed_mime_types: str = "video/mp4"
    daily_schedule_slots_utc: str = (
        "09:00,10:00,11:00,12:00,13:00,14:00,15:00,16:00,17:00,18:00,19:00,20:00"
    )
    caption_provider: str = "mock"
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "google/gemma-3-12b-it:free"
    openrouter_referer: str = ""
    caption_provider_timeout_seconds: float = 30.0
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def allowed_upload_mime_types(self) -> tuple[str, ...]:
        values = [token.strip().lower() for token in self.upload_allowed_mime_types.split(",")]
        return tuple(value for value in values if value)


def _validate(settings: Settings) -> Settings:
    is_production = settings.env.lower() in {"prod", "production"}
    if settings.storage_backend.strip().lower() not in {"memory", "sql"}:
        raise ValueError("STORAGE_BACKEND must be one of: memory, sql.")
    if settings.lock_backend.strip().lower() not in {"local", "redis"}:
        raise ValueError("LOCK_BACKEND must be one of: local, redis.")
    if settings.caption_provider.strip().lower() not in {"mock", "openrouter"}:
        raise ValueError("CAPTION_PROVIDER must be one of: mock, openrouter.")
    if settings.storage_backend.strip().lower() == "sql" and not settings.database_url.strip():
        raise ValueError("DATABASE_URL is required when STORAGE_BACKEND=sql.")
    if settings.caption_provider.strip().lower() == "openrouter" and not settings.openrouter_api_key.strip():
        raise ValueError("OPENROUTER_API_KEY is required when CAPTION_PROVIDER=openrouter.")
    if is_production and settings.storage_backend.strip().lower() == "memory":
        raise ValueError("STORAGE_BACKEND=memory is not allowed in production.")
    if settings.upload_max_bytes <= 0:
        raise ValueError("UPLOAD_MAX_BYTES must be positive.")
    if not settings.allowed_upload_mime_types:
        raise ValueError("UPLOAD_ALLOWED_MIME_TYPES must not be empty.")
    if settings.user_lock_ttl_seconds <= 0:
        raise ValueError("USER_LOCK_TTL_SECONDS must be positive.")
    if settings.user_lock_wait_seconds <= 0:
        raise ValueError("USER_LOCK_WAIT_SECONDS must be positive.")
    if settings.caption_provider_timeout_seconds <= 0:
        raise ValueError("CAPTION_PROVIDER_TIMEOUT_SECONDS must be positive.")
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return validated settings as a cached singleton."""

    return _validate(Settings())
