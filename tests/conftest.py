from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

import pytest

from contentdeck.billing.plans import load_plans
from contentdeck.billing.usage import UsageAccountant
from contentdeck.captions.providers import reset_caption_provider_cache
from contentdeck.core.config import get_settings
from contentdeck.core.metrics import reset_metrics_for_tests
from contentdeck.storage.entities import Subscription, UsageMetrics, User
from contentdeck.storage.locks import LocalUserLockManager
from contentdeck.storage.repository import EntityStore, build_memory_store


PLANS_FILE = Path(__file__).resolve().parents[1] / "config" / "plans.yaml"
FIXED_NOW = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)
MB = 1024 * 1024


class FakeRedis:
    def __init__(self) -> None:
        self._store: Dict[str, str] = {}
        self.expirations: Dict[str, int] = {}

    def set(self, key: str, value: str, nx: bool = False, ex: int | None = None):
        if nx and key in self._store:
            return False
        self._store[key] = str(value)
        if ex is not None:
            self.expirations[key] = ex
        return True

    def get(self, key: str):
        return self._store.get(key)

    def eval(self, script: str, numkeys: int, key: str, token: str):
        del script, numkeys
        if self._store.get(key) == token:
            self._store.pop(key, None)
            return 1
        return 0

    def ping(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("PLANS_FILE_PATH", str(PLANS_FILE))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("LOCK_BACKEND", "local")
    monkeypatch.setenv("CAPTION_PROVIDER", "mock")
    get_settings.cache_clear()
    load_plans.cache_clear()
    reset_caption_provider_cache()
    reset_metrics_for_tests()
    yield
    get_settings.cache_clear()
    load_plans.cache_clear()
    reset_caption_provider_cache()


def seed_user(
    store: EntityStore,
    *,
    username: str = "creator",
    storage_mb: int = 1024,
    tasks: int = 100,
    storage_used: int = 0,
    tasks_used: int = 0,
    status: str = "active",
    expires_at: datetime | None = None,
) -> User:
    user = store.users.create(User(username=username, password="x", name="Creator", email=f"{username}@example.com"))
    store.subscriptions.create(
        Subscription(
            user_id=user.id,
            plan="trial",
            status=status,
            expires_at=expires_at,
            storage=storage_mb,
            tasks=tasks,
        )
    )
    store.usage_metrics.create(UsageMetrics(user_id=user.id, storage_used=storage_used, tasks_used=tasks_used))
    return user


@pytest.fixture
def store() -> EntityStore:
    return build_memory_store()


@pytest.fixture
def locks() -> LocalUserLockManager:
    return LocalUserLockManager(wait_seconds=2.0)


@pytest.fixture
def accountant(store, locks) -> UsageAccountant:
    return UsageAccountant(store, locks, clock=lambda: FIXED_NOW)


@pytest.fixture(name="seed_user")
def seed_user_fixture():
    return seed_user


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
