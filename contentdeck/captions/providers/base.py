"""Provider contracts for caption generation backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Tuple


class CaptionProviderError(RuntimeError):
    """Raised when a caption provider cannot fulfill a generation request."""

    def __init__(self, reason: str, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason)


@dataclass(frozen=True)
class CaptionRequest:
    prompt: str
    tone: str = "friendly"
    length: str = "medium"
    language_style: str = "casual"
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    creativity: float = 0.7
    max_tokens: int = 200


class CaptionProvider(Protocol):
    provider_name: str

    def generate_caption(self, request: CaptionRequest) -> str:
        raise NotImplementedError
