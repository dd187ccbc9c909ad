"""Schemas for video and schedule endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VideoResponse(BaseModel):
    id: int
    user_id: int
    title: str
    filename: str
    filesize: int
    status: str
    scheduled_for: Optional[datetime]
    created_at: datetime


class VideoListResponse(BaseModel):
    items: list[VideoResponse]


class ScheduleRequest(BaseModel):
    video_id: int
    scheduled_for: datetime


class ScheduleNextRequest(BaseModel):
    video_id: int


class ScheduledSlotItem(BaseModel):
    video_id: int
    title: str
    scheduled_for: datetime


class ScheduleListResponse(BaseModel):
    items: list[ScheduledSlotItem]
