"""Per-user lock primitives serializing read-modify-write sequences."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
import time
from typing import Dict, Iterator, Protocol
import uuid

from redis import Redis

from contentdeck.core.errors import ConflictError


LOCK_KEY_TEMPLATE = "contentdeck:user:{user_id}:lock"
RELEASE_LOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
  return redis.call("del", KEYS[1])
end
return 0
"""


class UserLockTimeoutError(ConflictError):
    """Raised when a user lock cannot be acquired in time."""

    kind = "user_busy"

    def __init__(self, user_id: int, wait_seconds: float) -> None:
        super().__init__(
            "Another operation for this user is still running",
            detail={"user_id": user_id, "wait_seconds": wait_seconds},
        )


class UserLockManager(Protocol):
    def hold(self, user_id: int) -> Iterator[None]:
        """Context manager holding the user's lock; holds must not be nested."""


class LocalUserLockManager:
    """In-process lock per user id."""

    def __init__(self, *, wait_seconds: float = 10.0) -> None:
        if wait_seconds <= 0:
            raise ValueError("wait_seconds must be positive")
        self._wait_seconds = wait_seconds
        self._guard = Lock()
        self._locks: Dict[int, Lock] = {}

    def _lock_for(self, user_id: int) -> Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = Lock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        lock = self._lock_for(user_id)
        if not lock.acquire(timeout=self._wait_seconds):
            raise UserLockTimeoutError(user_id, self._wait_seconds)
        try:
            yield
        finally:
            lock.release()


def user_lock_key(user_id: int) -> str:
    return LOCK_KEY_TEMPLATE.format(user_id=user_id)


@dataclass(frozen=True)
class UserLockHandle:
    manager: "RedisUserLockManager"
    user_id: int
    token: str
    key: str

    def release(self) -> bool:
        return self.manager.release(self.user_id, self.token)


class RedisUserLockManager:
    """Acquire and release one lock per user using Redis SET NX EX."""

    def __init__(
        self,
        redis_client: Redis,
        *,
        ttl_seconds: int = 30,
        wait_seconds: float = 10.0,
        poll_interval_seconds: float = 0.05,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if wait_seconds <= 0:
            raise ValueError("wait_seconds must be positive")
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._wait_seconds = wait_seconds
        self._poll_interval_seconds = max(poll_interval_seconds, 0.001)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def lock_key(self, user_id: int) -> str:
        return user_lock_key(user_id)

    def acquire(self, user_id: int) -> UserLockHandle | None:
        key = self.lock_key(user_id)
        token = str(uuid.uuid4())
        acquired = self._redis.set(key, token, nx=True, ex=self._ttl_seconds)
        if not acquired:
            return None
        return UserLockHandle(manager=self, user_id=user_id, token=token, key=key)

    def release(self, user_id: int, token: str) -> bool:
        key = self.lock_key(user_id)
        released = self._redis.eval(RELEASE_LOCK_SCRIPT, 1, key, token)
        return int(released) == 1

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        deadline = time.monotonic() + self._wait_seconds
        handle = self.acquire(user_id)
        while handle is None:
            if time.monotonic() >= deadline:
                raise UserLockTimeoutError(user_id, self._wait_seconds)
            time.sleep(self._poll_interval_seconds)
            handle = self.acquire(user_id)
        try:
            yield
        finally:
            handle.release()
