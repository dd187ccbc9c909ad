"""Caption persistence and AI-assisted caption generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from contentdeck.billing.usage import UsageAccountant
from contentdeck.captions.providers.base import CaptionProvider, CaptionProviderError, CaptionRequest
from contentdeck.core.errors import GenerationError, ValidationError
from contentdeck.core.logger import get_logger
from contentdeck.core.metrics import record_caption_generated, record_caption_generation_failure
from contentdeck.storage.entities import Caption
from contentdeck.storage.ownership import require_owned
from contentdeck.storage.repository import EntityStore


LENGTH_TOKEN_BUDGETS = {"short": 100, "medium": 200, "long": 350}
DEFAULT_LENGTH = "medium"
DEFAULT_TONE = "friendly"
DEFAULT_LANGUAGE_STYLE = "casual"
DEFAULT_CREATIVITY = 0.7

logger = get_logger("contentdeck.captions")


@dataclass(frozen=True)
class GenerationParams:
    prompt: str
    tone: Optional[str] = None
    length: Optional[str] = None
    language_style: Optional[str] = None
    keywords: Sequence[str] = field(default_factory=tuple)
    creativity: Optional[float] = None


def clamp_creativity(value: Optional[float]) -> float:
    if value is None:
        return DEFAULT_CREATIVITY
    return min(1.0, max(0.0, float(value)))


def build_caption_request(params: GenerationParams) -> CaptionRequest:
    prompt = (params.prompt or "").strip()
    if not prompt:
        raise ValidationError("Prompt is required")

    length = (params.length or DEFAULT_LENGTH).strip().lower()
    if length not in LENGTH_TOKEN_BUDGETS:
        raise ValidationError(
            f"Unsupported caption length: {params.length}",
            detail={"length": params.length, "allowed": sorted(LENGTH_TOKEN_BUDGETS)},
        )

    keywords = tuple(keyword.strip() for keyword in params.keywords if keyword and keyword.strip())
    return CaptionRequest(
        prompt=prompt,
        tone=(params.tone or "").strip() or DEFAULT_TONE,
        length=length,
        language_style=(params.language_style or "").strip() or DEFAULT_LANGUAGE_STYLE,
        keywords=keywords,
        creativity=clamp_creativity(params.creativity),
        max_tokens=LENGTH_TOKEN_BUDGETS[length],
    )


class CaptionService:
    """Stores user captions and mediates generation against the task quota."""

    def __init__(self, store: EntityStore, accountant: UsageAccountant, provider: CaptionProvider) -> None:
        self._store = store
        self._accountant = accountant
        self._provider = provider

    @property
    def provider_name(self) -> str:
        return self._provider.provider_name

    def list(self, user_id: int) -> List[Caption]:
        return self._store.captions.list_by_user(user_id)

    def save(self, user_id: int, content: str) -> Caption:
        if not (content or "").strip():
            raise ValidationError("Caption content is required")
        caption = self._store.captions.create(Caption(user_id=user_id, content=content))
        logger.info("caption_saved", user_id=user_id, caption_id=caption.id)
        return caption

    def remove(self, user_id: int, caption_id: int) -> bool:
        require_owned(self._store.captions, caption_id, user_id, label="Caption")
        removed = self._store.captions.delete(caption_id)
        logger.info("caption_removed", user_id=user_id, caption_id=caption_id)
        return removed

    def generate(self, user_id: int, params: GenerationParams) -> str:
        """Generate caption text without persisting it.

        One task is charged only after the provider returns text. With quota
        enforcement on, a user already at the ceiling is refused up front.
        """

        request = build_caption_request(params)
        if self._accountant.enforce_quotas:
            self._accountant.require_task_capacity(user_id)

        provider_name = self._provider.provider_name
        try:
            text = self._provider.generate_caption(request)
        except CaptionProviderError as exc:
            record_caption_generation_failure(provider=provider_name, reason=exc.reason)
            logger.warning(
                "caption_generation_failed",
                user_id=user_id,
                provider=provider_name,
                reason=exc.reason,
                error=str(exc),
            )
            raise GenerationError(exc.reason) from exc

        self._accountant.consume_task(user_id)
        record_caption_generated(provider=provider_name)
        logger.info(
            "caption_generated",
            user_id=user_id,
            provider=provider_name,
            length=request.length,
            characters=len(text),
        )
        return text
