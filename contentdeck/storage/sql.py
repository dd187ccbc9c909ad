"""SQLAlchemy-backed entity store implementing the repository contract."""

from __future__ import annotations

from dataclasses import asdict, fields
from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from contentdeck.core.errors import ConflictError
from contentdeck.storage.entities import Caption, FacebookSettings, Subscription, UsageMetrics, User, Video
from contentdeck.storage.models import (
    CaptionRow,
    FacebookSettingsRow,
    SubscriptionRow,
    UsageMetricsRow,
    UserRow,
    VideoRow,
)
from contentdeck.storage.repository import EntityStore, EntityT, check_update_fields


def _as_utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlRepository(Generic[EntityT]):
    """One ORM table exposed through the entity repository contract."""

    def __init__(self, entity_type: Type[EntityT], model: Type[Any], session_factory: sessionmaker) -> None:
        self._entity_type = entity_type
        self._model = model
        self._session_factory = session_factory
        self._field_names = tuple(item.name for item in fields(entity_type))

    @property
    def entity_type(self) -> Type[EntityT]:
        return self._entity_type

    def _to_entity(self, row: Any) -> EntityT:
        values = {name: _as_utc(getattr(row, name)) for name in self._field_names}
        return self._entity_type(**values)

    def _conflict(self, exc: IntegrityError) -> ConflictError:
        return ConflictError(
            f"{self._entity_type.__name__} violates a uniqueness constraint",
            detail={"constraint": str(exc.orig)},
        )

    def get(self, entity_id: int) -> Optional[EntityT]:
        with self._session_factory() as session:
            row = session.get(self._model, entity_id)
            return None if row is None else self._to_entity(row)

    def list_by_user(self, user_id: int) -> List[EntityT]:
        if not hasattr(self._model, "user_id"):
            return []
        statement = select(self._model).where(self._model.user_id == user_id).order_by(self._model.id.asc())
        with self._session_factory() as session:
            return [self._to_entity(row) for row in session.scalars(statement).all()]

    def list_all(self) -> List[EntityT]:
        statement = select(self._model).order_by(self._model.id.asc())
        with self._session_factory() as session:
            return [self._to_entity(row) for row in session.scalars(statement).all()]

    def find_by(self, **filters: Any) -> Optional[EntityT]:
        statement = select(self._model)
        for key, value in filters.items():
            statement = statement.where(getattr(self._model, key) == value)
        statement = statement.order_by(self._model.id.asc()).limit(1)
        with self._session_factory() as session:
            row = session.scalar(statement)
            return None if row is None else self._to_entity(row)

    def find_by_user(self, user_id: int) -> Optional[EntityT]:
        return self.find_by(user_id=user_id)

    def create(self, entity: EntityT) -> EntityT:
        values = asdict(entity)
        values.pop("id", None)
        with self._session_factory() as session:
            row = self._model(**values)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise self._conflict(exc) from exc
            return self._to_entity(row)

    def update(self, entity_id: int, **changes: Any) -> Optional[EntityT]:
        check_update_fields(self._entity_type, changes)
        with self._session_factory() as session:
            row = session.get(self._model, entity_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise self._conflict(exc) from exc
            return self._to_entity(row)

    def delete(self, entity_id: int) -> bool:
        with self._session_factory() as session:
            row = session.get(self._model, entity_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True


def build_sql_store(session_factory: sessionmaker) -> EntityStore:
    return EntityStore(
        users=SqlRepository(User, UserRow, session_factory),
        facebook_settings=SqlRepository(FacebookSettings, FacebookSettingsRow, session_factory),
        videos=SqlRepository(Video, VideoRow, session_factory),
        captions=SqlRepository(Caption, CaptionRow, session_factory),
        subscriptions=SqlRepository(Subscription, SubscriptionRow, session_factory),
        usage_metrics=SqlRepository(UsageMetrics, UsageMetricsRow, session_factory),
    )
