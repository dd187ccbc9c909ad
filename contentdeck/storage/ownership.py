"""Shared ownership check for user-scoped entities."""

from __future__ import annotations

from typing import Optional

from contentdeck.core.errors import NotFoundError, PermissionDeniedError
from contentdeck.storage.repository import EntityT, Repository


def require_owned(
    repository: Repository[EntityT],
    entity_id: int,
    user_id: int,
    *,
    label: str,
) -> EntityT:
    """Return the entity when it exists and belongs to ``user_id``."""

    entity: Optional[EntityT] = repository.get(entity_id)
    if entity is None:
        raise NotFoundError(f"{label} not found", detail={"id": entity_id})
    if getattr(entity, "user_id", None) != user_id:
        raise PermissionDeniedError(
            f"You don't have permission to access this {label.lower()}",
            detail={"id": entity_id},
        )
    return entity
