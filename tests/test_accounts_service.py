from __future__ import annotations

from datetime import timedelta

import pytest

from contentdeck.accounts.credentials import hash_credential, verify_credential
from contentdeck.accounts.service import AccountService
from contentdeck.billing.plans import get_plan
from contentdeck.core.errors import ConflictError, NotFoundError, ValidationError
from contentdeck.storage.entities import Subscription


@pytest.fixture
def accounts(store, accountant, now) -> AccountService:
    return AccountService(store, accountant, clock=lambda: now)


def _register(accounts: AccountService, username: str = "creator"):
    return accounts.register(username=username, password="s3cret", name="Creator", email=f"{username}@example.com")


def test_register_creates_trial_subscription_and_zeroed_usage(store, accounts, now) -> None:
    user = _register(accounts)

    subscription = store.subscriptions.find_by_user(user.id)
    metrics = store.usage_metrics.find_by_user(user.id)
    assert subscription.plan == "trial"
    assert subscription.status == "active"
    assert subscription.storage == 1024
    assert subscription.tasks == 100
    assert subscription.expires_at == now + timedelta(days=26)
    assert metrics.storage_used == 0
    assert metrics.tasks_used == 0


def test_subscription_ceilings_come_only_from_the_plan_catalogue(store, accounts) -> None:
    user = _register(accounts)
    trial = get_plan("trial")

    subscription = store.subscriptions.find_by_user(user.id)

    assert (subscription.storage, subscription.tasks) == (trial.storage_mb, trial.tasks)
    with pytest.raises(TypeError):
        Subscription(user_id=user.id)


def test_register_stores_hashed_credential(accounts) -> None:
    user = _register(accounts)

    assert user.password != "s3cret"
    assert verify_credential("s3cret", user.password)
    assert accounts.authenticate("creator", "s3cret") == user
    assert accounts.authenticate("creator", "wrong") is None


def test_register_rejects_duplicate_username(accounts) -> None:
    _register(accounts)

    with pytest.raises(ConflictError):
        _register(accounts)


@pytest.mark.parametrize("field", ["username", "name", "email"])
def test_register_requires_fields(accounts, field: str) -> None:
    values = {"username": "creator", "password": "pw", "name": "Creator", "email": "c@example.com"}
    values[field] = "  "

    with pytest.raises(ValidationError):
        accounts.register(**values)


def test_update_profile_changes_only_profile_fields(accounts) -> None:
    user = _register(accounts)

    updated = accounts.update_profile(user.id, name="New Name", email=None)

    assert updated.name == "New Name"
    assert updated.email == user.email
    with pytest.raises(ValidationError):
        accounts.update_profile(user.id, username="hijack")
    with pytest.raises(NotFoundError):
        accounts.update_profile(999, name="ghost")


def test_facebook_settings_upsert_keeps_one_record(store, accounts) -> None:
    user = _register(accounts)

    created = accounts.upsert_facebook_settings(user.id, page_id="page-1")
    updated = accounts.upsert_facebook_settings(user.id, access_token="token", upload_frequency=120)

    assert created.upload_frequency == 60
    assert updated.id == created.id
    assert updated.page_id == "page-1"
    assert updated.access_token == "token"
    assert updated.upload_frequency == 120
    assert len(store.facebook_settings.list_by_user(user.id)) == 1


@pytest.mark.parametrize("frequency", [0, 1441])
def test_facebook_settings_rejects_out_of_range_frequency(accounts, frequency: int) -> None:
    user = _register(accounts)

    with pytest.raises(ValidationError):
        accounts.upsert_facebook_settings(user.id, upload_frequency=frequency)


def test_change_plan_replaces_limits_and_reactivates(store, accounts) -> None:
    user = _register(accounts)
    store.subscriptions.update(store.subscriptions.find_by_user(user.id).id, status="cancelled")

    subscription = accounts.change_plan(user.id, "pro")

    assert subscription.plan == "pro"
    assert subscription.status == "active"
    assert subscription.storage == 2048
    assert subscription.expires_at is None
    with pytest.raises(ValidationError):
        accounts.change_plan(user.id, "platinum")


def test_refresh_subscription_status_expires_past_due(store, accountant, now) -> None:
    early = AccountService(store, accountant, clock=lambda: now - timedelta(days=30))
    user = _register(early)
    accounts = AccountService(store, accountant, clock=lambda: now)

    subscription = accounts.get_subscription(user.id)

    assert subscription.status == "expired"
    with pytest.raises(NotFoundError):
        accounts.get_subscription(999)


def test_credential_hash_uses_random_salt() -> None:
    first = hash_credential("pw", rounds=1000)
    second = hash_credential("pw", rounds=1000)

    assert first != second
    assert verify_credential("pw", first)
    assert not verify_credential("pw", "not-a-hash")
