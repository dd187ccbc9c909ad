"""User registration, profile, Facebook settings and subscription management."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from contentdeck.accounts.credentials import hash_credential, verify_credential
from contentdeck.billing.plans import get_plan
from contentdeck.billing.usage import UsageAccountant
from contentdeck.core.errors import ConflictError, NotFoundError, ValidationError
from contentdeck.core.logger import get_logger
from contentdeck.storage.entities import (
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_EXPIRED,
    FacebookSettings,
    Subscription,
    User,
)
from contentdeck.storage.repository import EntityStore


MIN_UPLOAD_FREQUENCY_MINUTES = 1
MAX_UPLOAD_FREQUENCY_MINUTES = 1440

PROFILE_FIELDS = ("name", "email")

logger = get_logger("contentdeck.accounts")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required", detail={"field": field_name})
    return text


class AccountService:
    def __init__(
        self,
        store: EntityStore,
        accountant: UsageAccountant,
        *,
        default_plan: str = "trial",
        clock: Callable[[], datetime] = _now_utc,
    ) -> None:
        self._store = store
        self._accountant = accountant
        self._default_plan = default_plan
        self._clock = clock

    def register(self, *, username: str, password: str, name: str, email: str) -> User:
        """Create a user with a default-plan subscription and zeroed usage."""

        clean_username = _require_text(username, "username")
        if not password:
            raise ValidationError("password is required", detail={"field": "password"})
        clean_email = _require_text(email, "email")
        if "@" not in clean_email:
            raise ValidationError("email is invalid", detail={"field": "email"})
        if self._store.users.find_by(username=clean_username) is not None:
            raise ConflictError("Username already exists", detail={"username": clean_username})

        plan = get_plan(self._default_plan)
        user = self._store.users.create(
            User(
                username=clean_username,
                password=hash_credential(password),
                name=_require_text(name, "name"),
                email=clean_email,
            )
        )
        self._store.subscriptions.create(
            Subscription(
                user_id=user.id,
                plan=plan.name,
                status=SUBSCRIPTION_STATUS_ACTIVE,
                expires_at=plan.expires_at(self._clock()),
                storage=plan.storage_mb,
                tasks=plan.tasks,
            )
        )
        self._accountant.ensure_metrics(user.id)
        logger.info("user_registered", user_id=user.id, plan=plan.name)
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self._store.users.find_by(username=(username or "").strip())
        if user is None or not verify_credential(password or "", user.password):
            return None
        return user

    def get_user(self, user_id: int) -> User:
        user = self._store.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", detail={"id": user_id})
        return user

    def update_profile(self, user_id: int, **changes: Optional[str]) -> User:
        unknown = sorted(set(changes) - set(PROFILE_FIELDS))
        if unknown:
            raise ValidationError(f"Profile fields cannot be changed: {', '.join(unknown)}", detail={"fields": unknown})
        self.get_user(user_id)

        updates = {key: _require_text(value, key) for key, value in changes.items() if value is not None}
        if "email" in updates and "@" not in updates["email"]:
            raise ValidationError("email is invalid", detail={"field": "email"})
        if not updates:
            return self.get_user(user_id)
        user = self._store.users.update(user_id, **updates)
        logger.info("user_profile_updated", user_id=user_id, fields=sorted(updates))
        return user

    def get_facebook_settings(self, user_id: int) -> Optional[FacebookSettings]:
        return self._store.facebook_settings.find_by_user(user_id)

    def upsert_facebook_settings(
        self,
        user_id: int,
        *,
        access_token: Optional[str] = None,
        page_id: Optional[str] = None,
        upload_frequency: Optional[int] = None,
    ) -> FacebookSettings:
        if upload_frequency is not None and not (
            MIN_UPLOAD_FREQUENCY_MINUTES <= upload_frequency <= MAX_UPLOAD_FREQUENCY_MINUTES
        ):
            raise ValidationError(
                "upload_frequency must be between 1 and 1440 minutes",
                detail={"upload_frequency": upload_frequency},
            )

        changes = {
            key: value
            for key, value in (
                ("access_token", access_token),
                ("page_id", page_id),
                ("upload_frequency", upload_frequency),
            )
            if value is not None
        }
        current = self._store.facebook_settings.find_by_user(user_id)
        if current is None:
            settings = self._store.facebook_settings.create(FacebookSettings(user_id=user_id, **changes))
        elif changes:
            settings = self._store.facebook_settings.update(current.id, **changes)
        else:
            settings = current
        logger.info("facebook_settings_saved", user_id=user_id, fields=sorted(changes))
        return settings

    def get_subscription(self, user_id: int) -> Subscription:
        subscription = self.refresh_subscription_status(user_id)
        if subscription is None:
            raise NotFoundError("Subscription not found", detail={"user_id": user_id})
        return subscription

    def refresh_subscription_status(self, user_id: int) -> Optional[Subscription]:
        """Flip an active subscription past its expiry date to expired."""

        subscription = self._store.subscriptions.find_by_user(user_id)
        if subscription is None:
            return None
        if (
            subscription.status == SUBSCRIPTION_STATUS_ACTIVE
            and subscription.expires_at is not None
            and subscription.expires_at <= self._clock()
        ):
            subscription = self._store.subscriptions.update(subscription.id, status=SUBSCRIPTION_STATUS_EXPIRED)
            logger.info("subscription_expired", user_id=user_id, plan=subscription.plan)
        return subscription

    def change_plan(self, user_id: int, plan_name: str) -> Subscription:
        """Replace the subscription's limits with the named plan and reactivate it."""

        plan = get_plan(plan_name)
        self.get_user(user_id)
        changes = {
            "plan": plan.name,
            "status": SUBSCRIPTION_STATUS_ACTIVE,
            "expires_at": plan.expires_at(self._clock()),
            "storage": plan.storage_mb,
            "tasks": plan.tasks,
        }
        current = self._store.subscriptions.find_by_user(user_id)
        if current is None:
            subscription = self._store.subscriptions.create(Subscription(user_id=user_id, **changes))
        else:
            subscription = self._store.subscriptions.update(current.id, **changes)
        self._accountant.ensure_metrics(user_id)
        logger.info("subscription_plan_changed", user_id=user_id, plan=plan.name)
        return subscription
