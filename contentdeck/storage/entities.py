"""Domain entity records kept by the entity store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


VIDEO_STATUS_PENDING = "pending"
VIDEO_STATUS_PROCESSING = "processing"
VIDEO_STATUS_SCHEDULED = "scheduled"
VIDEO_STATUS_PUBLISHED = "published"
VIDEO_STATUS_FAILED = "failed"

VIDEO_STATUSES = (
    VIDEO_STATUS_PENDING,
    VIDEO_STATUS_PROCESSING,
    VIDEO_STATUS_SCHEDULED,
    VIDEO_STATUS_PUBLISHED,
    VIDEO_STATUS_FAILED,
)

SUBSCRIPTION_STATUS_ACTIVE = "active"
SUBSCRIPTION_STATUS_EXPIRED = "expired"
SUBSCRIPTION_STATUS_CANCELLED = "cancelled"

SUBSCRIPTION_STATUSES = (
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_EXPIRED,
    SUBSCRIPTION_STATUS_CANCELLED,
)

DEFAULT_UPLOAD_FREQUENCY_MINUTES = 60


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class User:
    id: Optional[int] = None
    username: str
    password: str
    name: str
    email: str


@dataclass(frozen=True, kw_only=True)
class FacebookSettings:
    id: Optional[int] = None
    user_id: int
    access_token: Optional[str] = None
    page_id: Optional[str] = None
    upload_frequency: int = DEFAULT_UPLOAD_FREQUENCY_MINUTES


@dataclass(frozen=True, kw_only=True)
class Video:
    id: Optional[int] = None
    user_id: int
    title: str
    filename: str
    filesize: int
    status: str = VIDEO_STATUS_PENDING
    scheduled_for: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now_utc)


@dataclass(frozen=True, kw_only=True)
class Caption:
    id: Optional[int] = None
    user_id: int
    content: str
    created_at: datetime = field(default_factory=_now_utc)


@dataclass(frozen=True, kw_only=True)
class Subscription:
    id: Optional[int] = None
    user_id: int
    plan: str = "trial"
    status: str = SUBSCRIPTION_STATUS_ACTIVE
    expires_at: Optional[datetime] = None
    storage: int
    tasks: int


@dataclass(frozen=True, kw_only=True)
class UsageMetrics:
    id: Optional[int] = None
    user_id: int
    storage_used: int = 0
    tasks_used: int = 0
