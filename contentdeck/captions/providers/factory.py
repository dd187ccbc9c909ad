"""Factory to resolve the active caption provider."""

from __future__ import annotations

from functools import lru_cache

from contentdeck.captions.providers.base import CaptionProvider
from contentdeck.captions.providers.mock_provider import MockCaptionProvider
from contentdeck.captions.providers.openrouter_provider import OpenRouterCaptionProvider
from contentdeck.core.config import get_settings


@lru_cache(maxsize=1)
def get_caption_provider() -> CaptionProvider:
    settings = get_settings()
    provider = settings.caption_provider.strip().lower()
    if provider == "openrouter":
        return OpenRouterCaptionProvider(
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            base_url=settings.openrouter_base_url,
            referer=settings.openrouter_referer,
            timeout_seconds=settings.caption_provider_timeout_seconds,
        )
    return MockCaptionProvider()


def reset_caption_provider_cache() -> None:
    get_caption_provider.cache_clear()
