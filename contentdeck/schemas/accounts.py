"""Schemas for user, Facebook settings and subscription endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserRegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=80)
    password: str = Field(min_length=1, max_length=256)
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr


class UserProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None


class UserResponse(BaseModel):
    id: int
    username: str
    name: str
    email: str


class FacebookSettingsRequest(BaseModel):
    access_token: Optional[str] = Field(default=None, max_length=512)
    page_id: Optional[str] = Field(default=None, max_length=128)
    upload_frequency: Optional[int] = Field(default=None, ge=1, le=1440)


class FacebookSettingsResponse(BaseModel):
    id: Optional[int] = None
    user_id: int
    access_token: Optional[str] = None
    page_id: Optional[str] = None
    upload_frequency: int


class SubscriptionResponse(BaseModel):
    id: int
    user_id: int
    plan: str
    status: str
    expires_at: Optional[datetime]
    storage: int
    tasks: int


class PlanChangeRequest(BaseModel):
    plan: str = Field(min_length=1, max_length=16)
