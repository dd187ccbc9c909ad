"""Caption generation provider integrations."""

from contentdeck.captions.providers.base import CaptionProvider, CaptionProviderError, CaptionRequest
from contentdeck.captions.providers.factory import get_caption_provider, reset_caption_provider_cache
from contentdeck.captions.providers.mock_provider import MockCaptionProvider
from contentdeck.captions.providers.openrouter_provider import OpenRouterCaptionProvider

__all__ = [
    "CaptionProvider",
    "CaptionProviderError",
    "CaptionRequest",
    "MockCaptionProvider",
    "OpenRouterCaptionProvider",
    "get_caption_provider",
    "reset_caption_provider_cache",
]
