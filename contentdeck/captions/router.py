"""Caption library and AI generation API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from contentdeck.api.context import AppContext
from contentdeck.auth.dependencies import get_context, require_user
from contentdeck.captions.service import GenerationParams
from contentdeck.schemas.captions import (
    CaptionCreateRequest,
    CaptionGenerateRequest,
    CaptionGenerateResponse,
    CaptionListResponse,
    CaptionResponse,
)
from contentdeck.storage.entities import Caption, User


router = APIRouter(tags=["captions"])


def _caption_response(caption: Caption) -> CaptionResponse:
    return CaptionResponse(
        id=caption.id,
        user_id=caption.user_id,
        content=caption.content,
        created_at=caption.created_at,
    )


@router.get("/captions", response_model=CaptionListResponse)
def list_captions(
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> CaptionListResponse:
    return CaptionListResponse(items=[_caption_response(item) for item in context.captions.list(user.id)])


@router.post("/captions", response_model=CaptionResponse, status_code=status.HTTP_201_CREATED)
def save_caption(
    payload: CaptionCreateRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> CaptionResponse:
    return _caption_response(context.captions.save(user.id, payload.content))


@router.delete("/captions/{caption_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_caption(
    caption_id: int,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> None:
    if not context.captions.remove(user.id, caption_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Caption not found")


@router.post("/ai/generate-caption", response_model=CaptionGenerateResponse)
def generate_caption(
    payload: CaptionGenerateRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> CaptionGenerateResponse:
    caption = context.captions.generate(
        user.id,
        GenerationParams(
            prompt=payload.prompt,
            tone=payload.tone,
            length=payload.length,
            language_style=payload.language_style,
            keywords=tuple(payload.keywords),
            creativity=payload.creativity,
        ),
    )
    return CaptionGenerateResponse(caption=caption)
