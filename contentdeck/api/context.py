"""Application context wiring the store, locks and services together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from redis import Redis
from sqlalchemy.engine import Engine

from contentdeck.accounts.service import AccountService
from contentdeck.billing.usage import UsageAccountant
from contentdeck.captions.providers import CaptionProvider, get_caption_provider
from contentdeck.captions.service import CaptionService
from contentdeck.core.config import Settings, get_settings
from contentdeck.storage.db import build_engine, build_session_factory, create_schema
from contentdeck.storage.files import LocalFileStore
from contentdeck.storage.locks import LocalUserLockManager, RedisUserLockManager, UserLockManager
from contentdeck.storage.redis_client import build_client
from contentdeck.storage.repository import EntityStore, build_memory_store
from contentdeck.storage.sql import build_sql_store
from contentdeck.videos.lifecycle import VideoLifecycle
from contentdeck.videos.windows import parse_daily_slots_utc


@dataclass
class AppContext:
    settings: Settings
    store: EntityStore
    locks: UserLockManager
    accountant: UsageAccountant
    files: LocalFileStore
    accounts: AccountService
    videos: VideoLifecycle
    captions: CaptionService
    engine: Optional[Engine] = None
    redis_client: Optional[Redis] = None


def build_context(
    settings: Optional[Settings] = None,
    *,
    store: Optional[EntityStore] = None,
    locks: Optional[UserLockManager] = None,
    provider: Optional[CaptionProvider] = None,
) -> AppContext:
    """Build every collaborator from settings; explicit arguments take precedence."""

    settings = settings or get_settings()

    engine: Optional[Engine] = None
    if store is None:
        if settings.storage_backend.strip().lower() == "sql":
            engine = build_engine(settings.database_url)
            create_schema(engine)
            store = build_sql_store(build_session_factory(engine))
        else:
            store = build_memory_store()

    redis_client: Optional[Redis] = None
    if locks is None:
        if settings.lock_backend.strip().lower() == "redis":
            redis_client = build_client(settings.redis_url)
            locks = RedisUserLockManager(
                redis_client,
                ttl_seconds=settings.user_lock_ttl_seconds,
                wait_seconds=settings.user_lock_wait_seconds,
            )
        else:
            locks = LocalUserLockManager(wait_seconds=settings.user_lock_wait_seconds)

    accountant = UsageAccountant(store, locks, enforce_quotas=settings.quota_enforcement_enabled)
    files = LocalFileStore(
        settings.upload_dir,
        max_bytes=settings.upload_max_bytes,
        allowed_mime_types=settings.allowed_upload_mime_types,
    )
    return AppContext(
        settings=settings,
        store=store,
        locks=locks,
        accountant=accountant,
        files=files,
        accounts=AccountService(store, accountant, default_plan=settings.default_plan),
        videos=VideoLifecycle(
            store,
            accountant,
            locks,
            files=files,
            max_upload_bytes=settings.upload_max_bytes,
            daily_slots_utc=parse_daily_slots_utc(settings.daily_schedule_slots_utc),
        ),
        captions=CaptionService(store, accountant, provider or get_caption_provider()),
        engine=engine,
        redis_client=redis_client,
    )
