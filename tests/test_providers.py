"""Tests for monoassist.providers — OpenRouter provider, error mapping and registry."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from monoassist.providers import UpstreamError, get_provider
from monoassist.providers.base import Completion
from monoassist.providers.openrouter import OpenRouterProvider, _classify_openrouter_error

_REQUEST = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


def _response(text="## Summary", prompt_tokens=10, completion_tokens=5, *, choices=True, usage=True):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))] if choices else [],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens) if usage else None,
    )


def _provider(response=None, *, side_effect=None) -> tuple[OpenRouterProvider, MagicMock]:
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create.side_effect = side_effect
    else:
        client.chat.completions.create.return_value = response
    return OpenRouterProvider("sk-or-test", client=client), client


class TestOpenRouterProvider:
    def test_name(self):
        provider, _ = _provider(_response())
        assert provider.name == "openrouter"

    def test_single_user_message_with_generation_params(self):
        provider, client = _provider(_response())
        provider.complete("PROMPT", model="deepseek/deepseek-v3.2")
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "deepseek/deepseek-v3.2"
        assert kwargs["messages"] == [{"role": "user", "content": "PROMPT"}]
        assert kwargs["max_tokens"] == 8000
        assert kwargs["temperature"] == 0.7
        assert kwargs["extra_body"] == {"reasoning": {"enabled": True}}

    def test_reasoning_can_be_disabled(self, monkeypatch):
        from monoassist.config import get_settings

        monkeypatch.setenv("REASONING_ENABLED", "false")
        get_settings.cache_clear()
        provider, client = _provider(_response())
        provider.complete("p", model="m")
        assert "extra_body" not in client.chat.completions.create.call_args.kwargs

    def test_maps_usage(self):
        provider, _ = _provider(_response("text", 321, 123))
        completion = provider.complete("p", model="m")
        assert completion == Completion(text="text", usage=completion.usage, model="m")
        assert completion.usage.input_tokens == 321
        assert completion.usage.output_tokens == 123

    def test_missing_usage(self):
        provider, _ = _provider(_response(usage=False))
        assert provider.complete("p", model="m").usage is None

    def test_empty_choices(self):
        provider, _ = _provider(_response(choices=False))
        with pytest.raises(UpstreamError) as exc_info:
            provider.complete("p", model="m")
        assert exc_info.value.status == 500
        assert exc_info.value.message == "Empty response from AI"

    def test_sdk_error_wrapped(self):
        resp = httpx.Response(429, request=_REQUEST, text='{"error": "rate limited"}')
        provider, _ = _provider(side_effect=openai.RateLimitError("rate limited", response=resp, body=None))
        with pytest.raises(UpstreamError) as exc_info:
            provider.complete("p", model="m")
        assert exc_info.value.status == 429


class TestErrorClassification:
    def test_status_error_keeps_status_and_body(self):
        resp = httpx.Response(402, request=_REQUEST, text="insufficient credits")
        err = _classify_openrouter_error(openai.APIStatusError("payment", response=resp, body=None))
        assert err.status == 402
        assert err.message == "API error: 402"
        assert err.details == "insufficient credits"

    def test_timeout(self):
        err = _classify_openrouter_error(openai.APITimeoutError(request=_REQUEST))
        assert err.status == 504

    def test_connection_error(self):
        err = _classify_openrouter_error(openai.APIConnectionError(request=_REQUEST))
        assert err.status == 502

    def test_unknown_error(self):
        err = _classify_openrouter_error(RuntimeError("weird"))
        assert err.status == 500
        assert err.message == "Internal server error"
        assert err.details == "weird"


class TestRegistry:
    def test_default_provider(self):
        assert isinstance(get_provider(api_key="sk-or-test"), OpenRouterProvider)

    def test_name_normalised(self):
        assert isinstance(get_provider("  OpenRouter ", api_key="k"), OpenRouterProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("nonexistent", api_key="k")



class TestUpstreamClient:
    def test_timeout_follows_request_timeout(self, monkeypatch):
        from monoassist.config import get_settings

        monkeypatch.setenv("REQUEST_TIMEOUT", "42")
        get_settings.cache_clear()
        provider = OpenRouterProvider("sk-or-test")
        assert provider._client.timeout == 42.0
        assert provider._client.max_retries == 0
