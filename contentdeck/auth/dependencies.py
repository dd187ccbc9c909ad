"""FastAPI dependencies resolving the application context and current user."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from contentdeck.api.context import AppContext
from contentdeck.storage.entities import User


USER_ID_HEADER = "x-user-id"
REQUEST_ID_STATE_KEY = "request_id"


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def require_user(request: Request, context: AppContext = Depends(get_context)) -> User:
    """Trust the user id set by the upstream session layer, if the user exists."""

    raw_user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not raw_user_id.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    user = context.store.users.get(int(raw_user_id))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user
