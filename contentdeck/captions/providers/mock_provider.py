"""Deterministic mock caption provider for local/dev usage."""

from __future__ import annotations

import hashlib

from contentdeck.captions.providers.base import CaptionProvider, CaptionRequest


class MockCaptionProvider(CaptionProvider):
    provider_name = "mock"

    def generate_caption(self, request: CaptionRequest) -> str:
        seed_source = f"{request.prompt}:{request.tone}:{request.length}:{request.language_style}".encode("utf-8")
        seed = hashlib.sha1(seed_source).hexdigest()[:8]
        caption = f"{request.prompt.strip()} ({request.tone}, {request.length}) #{seed}"
        if request.keywords:
            caption += " " + " ".join(f"#{keyword.replace(' ', '')}" for keyword in request.keywords)
        return caption
