"""Schemas for caption and AI generation endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CaptionCreateRequest(BaseModel):
    content: str = Field(min_length=1)


class CaptionResponse(BaseModel):
    id: int
    user_id: int
    content: str
    created_at: datetime


class CaptionListResponse(BaseModel):
    items: list[CaptionResponse]


class CaptionGenerateRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=2000)
    tone: Optional[str] = Field(default=None, max_length=40)
    length: Optional[str] = Field(default=None, max_length=16)
    language_style: Optional[str] = Field(default=None, max_length=40)
    keywords: list[str] = Field(default_factory=list, max_length=20)
    creativity: Optional[float] = None


class CaptionGenerateResponse(BaseModel):
    caption: str
