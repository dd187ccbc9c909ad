from __future__ import annotations

import json

import httpx
import pytest

from contentdeck.captions.providers import (
    CaptionProviderError,
    CaptionRequest,
    MockCaptionProvider,
    OpenRouterCaptionProvider,
    get_caption_provider,
    reset_caption_provider_cache,
)
from contentdeck.captions.providers.openrouter_provider import EMPTY_CAPTION_FALLBACK, build_system_prompt
from contentdeck.core.config import get_settings


def _provider(handler) -> OpenRouterCaptionProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return OpenRouterCaptionProvider(
        api_key="test-key",
        model="google/gemma-3-12b-it:free",
        referer="https://contentdeck.local",
        client=client,
    )


def test_openrouter_sends_chat_completion_request() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["authorization"]
        captured["referer"] = request.headers["http-referer"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Big news!  "}}]})

    text = _provider(handler).generate_caption(
        CaptionRequest(prompt="New product", tone="bold", length="long", keywords=("launch",), creativity=0.4, max_tokens=350)
    )

    assert text == "Big news!"
    assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert captured["auth"] == "Bearer test-key"
    assert captured["referer"] == "https://contentdeck.local"
    body = captured["body"]
    assert body["model"] == "google/gemma-3-12b-it:free"
    assert body["max_tokens"] == 350
    assert body["temperature"] == 0.4
    assert body["messages"][1]["content"] == "Write a caption for this content: New product"
    assert "long-length caption in a bold tone" in body["messages"][0]["content"]
    assert "Include these keywords naturally: launch." in body["messages"][0]["content"]


def test_openrouter_empty_content_falls_back() -> None:
    provider = _provider(lambda request: httpx.Response(200, json={"choices": [{"message": {"content": ""}}]}))

    assert provider.generate_caption(CaptionRequest(prompt="x")) == EMPTY_CAPTION_FALLBACK


def test_openrouter_timeout_maps_to_timeout_reason() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(CaptionProviderError) as exc_info:
        _provider(handler).generate_caption(CaptionRequest(prompt="x"))

    assert exc_info.value.reason == "timeout"


@pytest.mark.parametrize(
    ("response", "reason"),
    [
        (httpx.Response(500, text="boom"), "upstream_error"),
        (httpx.Response(200, text="not json"), "invalid_response"),
        (httpx.Response(200, json={"choices": []}), "invalid_response"),
        (httpx.Response(200, json=["oops"]), "invalid_response"),
        (httpx.Response(200, json="caption"), "invalid_response"),
    ],
)
def test_openrouter_failures_carry_reason(response: httpx.Response, reason: str) -> None:
    with pytest.raises(CaptionProviderError) as exc_info:
        _provider(lambda request: response).generate_caption(CaptionRequest(prompt="x"))

    assert exc_info.value.reason == reason


def test_openrouter_requires_api_key() -> None:
    provider = OpenRouterCaptionProvider(api_key="", model="m")

    with pytest.raises(CaptionProviderError) as exc_info:
        provider.generate_caption(CaptionRequest(prompt="x"))

    assert exc_info.value.reason == "api_key_missing"


def test_system_prompt_defaults() -> None:
    prompt = build_system_prompt(CaptionRequest(prompt="x", tone="", length="", language_style=""))

    assert "medium-length caption in a friendly tone with a casual language style." in prompt
    assert "keywords" not in prompt


def test_mock_provider_is_deterministic() -> None:
    provider = MockCaptionProvider()
    request = CaptionRequest(prompt="Launch day", keywords=("big sale",))

    assert provider.generate_caption(request) == provider.generate_caption(request)
    assert "#bigsale" in provider.generate_caption(request)


def test_factory_selects_provider_from_settings(monkeypatch) -> None:
    assert isinstance(get_caption_provider(), MockCaptionProvider)

    monkeypatch.setenv("CAPTION_PROVIDER", "openrouter")
    monkeypatch.setenv("OPENROUTER_API_KEY", "key")
    get_settings.cache_clear()
    reset_caption_provider_cache()

    assert isinstance(get_caption_provider(), OpenRouterCaptionProvider)
