"""OpenRouter provider — OpenAI-compatible chat completions via the openai SDK."""

from __future__ import annotations

import logging

import openai
from openai import OpenAI as OpenAIClient

from monoassist.config import get_settings
from monoassist.core.log import safe_print
from monoassist.models import TokenUsage
from monoassist.providers.base import Completion, LLMProvider, UpstreamError


class OpenRouterProvider(LLMProvider):
    """Single-message completion against ``openrouter_base_url``."""

    name = "openrouter"

    def __init__(self, api_key: str, *, client: OpenAIClient | None = None):
        settings = get_settings()
        self.api_key = api_key
        self.max_tokens = settings.max_tokens
        self.temperature = settings.temperature
        self.reasoning_enabled = settings.reasoning_enabled
        self._client = client or OpenAIClient(
            api_key=api_key,
            base_url=settings.openrouter_base_url,
            default_headers={"HTTP-Referer": settings.app_referer, "X-Title": settings.app_title},
            max_retries=0,
            timeout=settings.request_timeout,
        )

    def complete(self, prompt: str, *, model: str) -> Completion:
        safe_print(f"[{self.name}] calling model: {model}", logging.DEBUG)
        kwargs: dict = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.reasoning_enabled:
            kwargs["extra_body"] = {"reasoning": {"enabled": True}}

        try:
            resp = self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise _classify_openrouter_error(exc) from exc

        if not resp.choices:
            raise UpstreamError(500, "Empty response from AI")

        usage = None
        if resp.usage is not None:
            usage = TokenUsage(
                input_tokens=resp.usage.prompt_tokens or 0,
                output_tokens=resp.usage.completion_tokens or 0,
            )
        text = resp.choices[0].message.content or ""
        return Completion(text=text, usage=usage, model=model)


def _classify_openrouter_error(exc: Exception) -> UpstreamError:
    """Map openai SDK errors to relay status codes."""
    if isinstance(exc, openai.APIStatusError):
        try:
            details = exc.response.text
        except Exception:
            details = str(exc)
        return UpstreamError(exc.status_code, f"API error: {exc.status_code}", details)
    if isinstance(exc, openai.APITimeoutError):
        return UpstreamError(504, "Upstream timeout", str(exc))
    if isinstance(exc, openai.APIConnectionError):
        return UpstreamError(502, "Upstream unreachable", str(exc))
    return UpstreamError(500, "Internal server error", str(exc))
