"""Video upload and scheduling API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from contentdeck.api.context import AppContext
from contentdeck.auth.dependencies import get_context, require_user
from contentdeck.schemas.videos import (
    ScheduledSlotItem,
    ScheduleListResponse,
    ScheduleNextRequest,
    ScheduleRequest,
    VideoListResponse,
    VideoResponse,
)
from contentdeck.storage.entities import User, Video


router = APIRouter(tags=["videos"])


def _video_response(video: Video) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        user_id=video.user_id,
        title=video.title,
        filename=video.filename,
        filesize=video.filesize,
        status=video.status,
        scheduled_for=video.scheduled_for,
        created_at=video.created_at,
    )


@router.get("/videos", response_model=VideoListResponse)
def list_videos(
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> VideoListResponse:
    return VideoListResponse(items=[_video_response(video) for video in context.videos.list_videos(user.id)])


@router.post("/videos", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
def upload_video(
    title: str = Form(...),
    file: UploadFile = File(...),
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> VideoResponse:
    video = context.videos.upload_stream(
        user.id,
        title,
        file.file,
        original_name=file.filename or "",
        content_type=file.content_type or "",
    )
    return _video_response(video)


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_video(
    video_id: int,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> None:
    if not context.videos.delete(user.id, video_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")


@router.get("/schedule", response_model=ScheduleListResponse)
def list_schedule(
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> ScheduleListResponse:
    return ScheduleListResponse(
        items=[
            ScheduledSlotItem(video_id=slot.video_id, title=slot.title, scheduled_for=slot.scheduled_for)
            for slot in context.videos.list_scheduled(user.id)
        ]
    )


@router.post("/schedule", response_model=VideoResponse)
def schedule_video(
    payload: ScheduleRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> VideoResponse:
    return _video_response(context.videos.schedule(user.id, payload.video_id, payload.scheduled_for))


@router.post("/schedule/next", response_model=VideoResponse)
def schedule_next_free(
    payload: ScheduleNextRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> VideoResponse:
    return _video_response(context.videos.schedule_next_free(user.id, payload.video_id))


@router.delete("/schedule/{video_id}", response_model=VideoResponse)
def unschedule_video(
    video_id: int,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> VideoResponse:
    return _video_response(context.videos.unschedule(user.id, video_id))
