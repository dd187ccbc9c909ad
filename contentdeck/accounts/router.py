"""User profile and Facebook settings API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from contentdeck.api.context import AppContext
from contentdeck.auth.dependencies import get_context, require_user
from contentdeck.schemas.accounts import (
    FacebookSettingsRequest,
    FacebookSettingsResponse,
    UserProfileUpdateRequest,
    UserRegisterRequest,
    UserResponse,
)
from contentdeck.storage.entities import DEFAULT_UPLOAD_FREQUENCY_MINUTES, FacebookSettings, User


router = APIRouter(tags=["accounts"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, username=user.username, name=user.name, email=user.email)


def _settings_response(settings: FacebookSettings) -> FacebookSettingsResponse:
    return FacebookSettingsResponse(
        id=settings.id,
        user_id=settings.user_id,
        access_token=settings.access_token,
        page_id=settings.page_id,
        upload_frequency=settings.upload_frequency,
    )


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserRegisterRequest, context: AppContext = Depends(get_context)) -> UserResponse:
    user = context.accounts.register(
        username=payload.username,
        password=payload.password,
        name=payload.name,
        email=str(payload.email),
    )
    return _user_response(user)


@router.get("/users/me", response_model=UserResponse)
def get_me(user: User = Depends(require_user)) -> UserResponse:
    return _user_response(user)


@router.patch("/users/me", response_model=UserResponse)
def update_me(
    payload: UserProfileUpdateRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> UserResponse:
    updated = context.accounts.update_profile(
        user.id,
        name=payload.name,
        email=str(payload.email) if payload.email is not None else None,
    )
    return _user_response(updated)


@router.get("/facebook-settings", response_model=FacebookSettingsResponse)
def get_facebook_settings(
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> FacebookSettingsResponse:
    settings = context.accounts.get_facebook_settings(user.id)
    if settings is None:
        settings = FacebookSettings(user_id=user.id, upload_frequency=DEFAULT_UPLOAD_FREQUENCY_MINUTES)
    return _settings_response(settings)


@router.put("/facebook-settings", response_model=FacebookSettingsResponse)
def put_facebook_settings(
    payload: FacebookSettingsRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> FacebookSettingsResponse:
    settings = context.accounts.upsert_facebook_settings(
        user.id,
        access_token=payload.access_token,
        page_id=payload.page_id,
        upload_frequency=payload.upload_frequency,
    )
    return _settings_response(settings)
