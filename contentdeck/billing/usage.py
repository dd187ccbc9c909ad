"""Usage accounting against subscription quota ceilings."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from contentdeck.core.errors import QuotaExceededError, ValidationError
from contentdeck.core.logger import get_logger
from contentdeck.core.metrics import record_quota_block
from contentdeck.storage.entities import SUBSCRIPTION_STATUS_ACTIVE, Subscription, UsageMetrics
from contentdeck.storage.locks import UserLockManager
from contentdeck.storage.repository import EntityStore


BYTES_PER_MB = 1024 * 1024

RESOURCE_STORAGE = "storage"
RESOURCE_TASKS = "tasks"

logger = get_logger("contentdeck.usage")


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    user_id: int
    resource: str
    plan: Optional[str]
    limit: int
    used: int
    requested: int


@dataclass(frozen=True)
class Utilization:
    storage_pct: float
    tasks_pct: float


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _percentage(used: float, ceiling: float) -> float:
    if ceiling <= 0:
        return 100.0
    return min(100.0, used / ceiling * 100.0)


def quota_exceeded(decision: QuotaDecision) -> QuotaExceededError:
    return QuotaExceededError(
        f"Quota exceeded for resource={decision.resource} "
        f"(used={decision.used}, requested={decision.requested}, limit={decision.limit})",
        detail=asdict(decision),
    )


class UsageAccountant:
    """Keeps UsageMetrics consistent with the user's Subscription ceilings.

    Every read-modify-write of a metrics record runs under the user's lock,
    so checks and updates for one user never interleave.
    """

    def __init__(
        self,
        store: EntityStore,
        locks: UserLockManager,
        *,
        enforce_quotas: bool = True,
        clock: Callable[[], datetime] = _now_utc,
    ) -> None:
        self._store = store
        self._locks = locks
        self._enforce_quotas = enforce_quotas
        self._clock = clock

    @property
    def enforce_quotas(self) -> bool:
        return self._enforce_quotas

    def get_metrics(self, user_id: int) -> Optional[UsageMetrics]:
        return self._store.usage_metrics.find_by_user(user_id)

    def ensure_metrics(self, user_id: int) -> UsageMetrics:
        with self._locks.hold(user_id):
            return self._ensure_metrics(user_id)

    def _ensure_metrics(self, user_id: int) -> UsageMetrics:
        metrics = self._store.usage_metrics.find_by_user(user_id)
        if metrics is None:
            metrics = self._store.usage_metrics.create(UsageMetrics(user_id=user_id))
        return metrics

    def active_subscription(self, user_id: int) -> Optional[Subscription]:
        subscription = self._store.subscriptions.find_by_user(user_id)
        if subscription is None or subscription.status != SUBSCRIPTION_STATUS_ACTIVE:
            return None
        if subscription.expires_at is not None and subscription.expires_at <= self._clock():
            return None
        return subscription

    def adjust_storage(self, user_id: int, delta_bytes: int) -> Optional[UsageMetrics]:
        """Apply a byte delta, clamping at zero. Missing metrics are a no-op."""

        with self._locks.hold(user_id):
            return self.adjust_storage_held(user_id, delta_bytes)

    def adjust_storage_held(self, user_id: int, delta_bytes: int) -> Optional[UsageMetrics]:
        """Same as adjust_storage for a caller already holding the user's lock."""


        metrics = self._store.usage_metrics.find_by_user(user_id)
        if metrics is None:
            return None
        storage_used = max(0, metrics.storage_used + int(delta_bytes))
        return self._store.usage_metrics.update(metrics.id, storage_used=storage_used)

    def check_storage(self, user_id: int, requested_bytes: int) -> QuotaDecision:
        metrics = self._store.usage_metrics.find_by_user(user_id)
        used = metrics.storage_used if metrics is not None else 0
        subscription = self.active_subscription(user_id)
        if subscription is None:
            return QuotaDecision(
                allowed=False,
                user_id=user_id,
                resource=RESOURCE_STORAGE,
                plan=None,
                limit=0,
                used=used,
                requested=requested_bytes,
            )
        allowed = (used + requested_bytes) / BYTES_PER_MB <= subscription.storage
        return QuotaDecision(
            allowed=allowed,
            user_id=user_id,
            resource=RESOURCE_STORAGE,
            plan=subscription.plan,
            limit=subscription.storage,
            used=used,
            requested=requested_bytes,
        )

    def can_consume_storage(self, user_id: int, requested_bytes: int) -> bool:
        return self.check_storage(user_id, requested_bytes).allowed

    def check_tasks(self, user_id: int, requested: int = 1) -> QuotaDecision:
        metrics = self._store.usage_metrics.find_by_user(user_id)
        used = metrics.tasks_used if metrics is not None else 0
        subscription = self.active_subscription(user_id)
        limit = subscription.tasks if subscription is not None else 0
        return QuotaDecision(
            allowed=subscription is not None and used + requested <= limit,
            user_id=user_id,
            resource=RESOURCE_TASKS,
            plan=subscription.plan if subscription is not None else None,
            limit=limit,
            used=used,
            requested=requested,
        )

    def increment_tasks(self, user_id: int) -> Optional[UsageMetrics]:
        """Add one task without looking at the ceiling. Missing metrics are a no-op."""

        with self._locks.hold(user_id):
            metrics = self._store.usage_metrics.find_by_user(user_id)
            if metrics is None:
                return None
            return self._store.usage_metrics.update(metrics.id, tasks_used=metrics.tasks_used + 1)

    def _gate(self, decision: QuotaDecision) -> None:
        if decision.allowed:
            return
        record_quota_block(resource=decision.resource)
        if self._enforce_quotas:
            logger.warning("quota_exceeded", **asdict(decision))
            raise quota_exceeded(decision)
        logger.warning("quota_exceeded_advisory", **asdict(decision))

    def require_task_capacity(self, user_id: int, requested: int = 1) -> QuotaDecision:
        decision = self.check_tasks(user_id, requested)
        self._gate(decision)
        return decision

    def reserve_storage(self, user_id: int, requested_bytes: int) -> UsageMetrics:
        """Check the storage ceiling and record the bytes in one locked step."""

        if requested_bytes <= 0:
            raise ValidationError("Reserved storage must be positive", detail={"bytes": requested_bytes})
        with self._locks.hold(user_id):
            self._gate(self.check_storage(user_id, requested_bytes))
            metrics = self._ensure_metrics(user_id)
            updated = self._store.usage_metrics.update(
                metrics.id,
                storage_used=metrics.storage_used + requested_bytes,
            )
        logger.info("storage_reserved", user_id=user_id, bytes=requested_bytes, storage_used=updated.storage_used)
        return updated

    def consume_task(self, user_id: int) -> UsageMetrics:
        """Check the task ceiling and count one task in one locked step."""

        with self._locks.hold(user_id):
            self._gate(self.check_tasks(user_id, 1))
            metrics = self._ensure_metrics(user_id)
            updated = self._store.usage_metrics.update(metrics.id, tasks_used=metrics.tasks_used + 1)
        logger.info("task_consumed", user_id=user_id, tasks_used=updated.tasks_used)
        return updated

    def get_utilization(self, user_id: int) -> Utilization:
        metrics = self._store.usage_metrics.find_by_user(user_id)
        subscription = self._store.subscriptions.find_by_user(user_id)
        storage_used = metrics.storage_used if metrics is not None else 0
        tasks_used = metrics.tasks_used if metrics is not None else 0
        storage_ceiling = subscription.storage if subscription is not None else 0
        tasks_ceiling = subscription.tasks if subscription is not None else 0
        return Utilization(
            storage_pct=_percentage(storage_used / BYTES_PER_MB, storage_ceiling),
            tasks_pct=_percentage(tasks_used, tasks_ceiling),
        )
