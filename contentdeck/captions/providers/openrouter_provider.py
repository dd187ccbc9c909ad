"""OpenRouter caption provider speaking the OpenAI chat completions format."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from contentdeck.captions.providers.base import CaptionProvider, CaptionProviderError, CaptionRequest


EMPTY_CAPTION_FALLBACK = "No caption generated. Please try again."


def build_system_prompt(request: CaptionRequest) -> str:
    prompt = (
        "You are an expert social media content writer specializing in creating engaging Facebook captions. "
        f"Create a {request.length or 'medium'}-length caption in a {request.tone or 'friendly'} tone "
        f"with a {request.language_style or 'casual'} language style."
    )
    if request.keywords:
        prompt += f" Include these keywords naturally: {', '.join(request.keywords)}."
    return prompt


def build_user_prompt(request: CaptionRequest) -> str:
    return f"Write a caption for this content: {request.prompt}"


class OpenRouterCaptionProvider(CaptionProvider):
    provider_name = "openrouter"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "",
        timeout_seconds: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key.strip()
        self._model = model.strip()
        self._base_url = base_url.rstrip("/")
        self._referer = referer.strip()
        self._timeout_seconds = max(1.0, float(timeout_seconds))
        self._client = client

    def _headers(self) -> Dict[str, str]:
        if not self._api_key:
            raise CaptionProviderError("api_key_missing", "openrouter_api_key_missing")
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        return headers

    def _post(self, body: Dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}/chat/completions"
        headers = self._headers()
        try:
            if self._client is not None:
                return self._client.post(url, headers=headers, json=body, timeout=self._timeout_seconds)
            with httpx.Client(timeout=self._timeout_seconds) as client:
                return client.post(url, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise CaptionProviderError("timeout", "openrouter_request_timed_out") from exc
        except httpx.HTTPError as exc:
            raise CaptionProviderError("transport_error", f"openrouter_transport_error {exc}") from exc

    def generate_caption(self, request: CaptionRequest) -> str:
        body = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": build_system_prompt(request)},
                {"role": "user", "content": build_user_prompt(request)},
            ],
            "temperature": request.creativity,
            "max_tokens": request.max_tokens,
        }
        response = self._post(body)

        if response.status_code < 200 or response.status_code >= 300:
            detail = response.text.strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise CaptionProviderError(
                "upstream_error",
                f"openrouter_request_failed status={response.status_code} detail={detail}",
            )

        try:
            payload: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise CaptionProviderError("invalid_response", "openrouter_invalid_json_response") from exc
        if not isinstance(payload, dict):
            raise CaptionProviderError("invalid_response", "openrouter_response_not_an_object")

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise CaptionProviderError("invalid_response", "openrouter_missing_choices")
        message = choices[0].get("message")
        content = message.get("content") if isinstance(message, dict) else None
        text = content.strip() if isinstance(content, str) else ""
        return text or EMPTY_CAPTION_FALLBACK
