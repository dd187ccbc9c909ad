"""Entity store contract and the in-memory backend."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from threading import Lock
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Protocol, Type, TypeVar

from contentdeck.core.errors import ValidationError
from contentdeck.storage.entities import Caption, FacebookSettings, Subscription, UsageMetrics, User, Video


EntityT = TypeVar("EntityT")

IMMUTABLE_FIELDS = frozenset({"id", "user_id"})


class Repository(Protocol[EntityT]):
    """CRUD contract for one entity collection.

    The store does not check ownership; callers filter by an already
    validated ``user_id``.
    """

    def get(self, entity_id: int) -> Optional[EntityT]:
        ...

    def list_by_user(self, user_id: int) -> List[EntityT]:
        ...

    def list_all(self) -> List[EntityT]:
        ...

    def find_by(self, **filters: Any) -> Optional[EntityT]:
        ...

    def find_by_user(self, user_id: int) -> Optional[EntityT]:
        ...

    def create(self, entity: EntityT) -> EntityT:
        ...

    def update(self, entity_id: int, **changes: Any) -> Optional[EntityT]:
        ...

    def delete(self, entity_id: int) -> bool:
        ...


def check_update_fields(entity_type: Type[Any], changes: Mapping[str, Any]) -> None:
    blocked = sorted(set(changes) & IMMUTABLE_FIELDS)
    if blocked:
        raise ValidationError(
            f"Fields cannot be changed: {', '.join(blocked)}",
            detail={"fields": blocked},
        )
    known = {item.name for item in fields(entity_type)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValidationError(
            f"Unknown fields for {entity_type.__name__}: {', '.join(unknown)}",
            detail={"fields": unknown},
        )


class MemoryRepository(Generic[EntityT]):
    """Dict-backed collection with monotonically increasing ids.

    Records are frozen dataclasses, so every update replaces the stored
    record instead of mutating it.
    """

    def __init__(self, entity_type: Type[EntityT], *, initial: Iterable[EntityT] = ()) -> None:
        self._entity_type = entity_type
        self._rows: Dict[int, EntityT] = {}
        self._next_id = 1
        self._lock = Lock()
        for entity in initial:
            entity_id = getattr(entity, "id", None)
            if entity_id is None:
                entity = replace(entity, id=self._next_id)
                entity_id = self._next_id
            self._rows[int(entity_id)] = entity
            self._next_id = max(self._next_id, int(entity_id) + 1)

    @property
    def entity_type(self) -> Type[EntityT]:
        return self._entity_type

    def get(self, entity_id: int) -> Optional[EntityT]:
        with self._lock:
            return self._rows.get(entity_id)

    def list_by_user(self, user_id: int) -> List[EntityT]:
        with self._lock:
            return [row for row in self._rows.values() if getattr(row, "user_id", None) == user_id]

    def list_all(self) -> List[EntityT]:
        with self._lock:
            return list(self._rows.values())

    def find_by(self, **filters: Any) -> Optional[EntityT]:
        with self._lock:
            for row in self._rows.values():
                if all(getattr(row, key, None) == value for key, value in filters.items()):
                    return row
        return None

    def find_by_user(self, user_id: int) -> Optional[EntityT]:
        return self.find_by(user_id=user_id)

    def create(self, entity: EntityT) -> EntityT:
        with self._lock:
            created = replace(entity, id=self._next_id)
            self._rows[self._next_id] = created
            self._next_id += 1
        return created

    def update(self, entity_id: int, **changes: Any) -> Optional[EntityT]:
        check_update_fields(self._entity_type, changes)
        with self._lock:
            current = self._rows.get(entity_id)
            if current is None:
                return None
            updated = replace(current, **changes)
            self._rows[entity_id] = updated
        return updated

    def delete(self, entity_id: int) -> bool:
        with self._lock:
            return self._rows.pop(entity_id, None) is not None


@dataclass
class EntityStore:
    """All entity collections of one application context."""

    users: Repository[User]
    facebook_settings: Repository[FacebookSettings]
    videos: Repository[Video]
    captions: Repository[Caption]
    subscriptions: Repository[Subscription]
    usage_metrics: Repository[UsageMetrics]


def build_memory_store(initial: Optional[Mapping[str, Iterable[Any]]] = None) -> EntityStore:
    """Create an in-memory store, optionally seeded per collection name."""

    seed = dict(initial or {})
    unknown = sorted(set(seed) - {item.name for item in fields(EntityStore)})
    if unknown:
        raise ValueError(f"Unknown store collections: {', '.join(unknown)}")

    return EntityStore(
        users=MemoryRepository(User, initial=seed.get("users", ())),
        facebook_settings=MemoryRepository(FacebookSettings, initial=seed.get("facebook_settings", ())),
        videos=MemoryRepository(Video, initial=seed.get("videos", ())),
        captions=MemoryRepository(Caption, initial=seed.get("captions", ())),
        subscriptions=MemoryRepository(Subscription, initial=seed.get("subscriptions", ())),
        usage_metrics=MemoryRepository(UsageMetrics, initial=seed.get("usage_metrics", ())),
    )
