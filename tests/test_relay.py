"""Tests for monoassist.api.relay — the /api/generate endpoint."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from monoassist.api import create_relay_app
from monoassist.config import get_settings
from monoassist.models import TokenUsage
from monoassist.providers import UpstreamError
from monoassist.providers.base import Completion


@pytest.fixture
def with_key(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    get_settings.cache_clear()


@pytest.fixture
def client():
    return create_relay_app().test_client()


@pytest.fixture
def provider():
    mock = MagicMock()
    mock.complete.return_value = Completion(
        text="## Итог", usage=TokenUsage(input_tokens=11, output_tokens=22), model="deepseek/deepseek-v3.2"
    )
    with patch("monoassist.api.relay.get_provider", return_value=mock) as factory:
        mock.factory = factory
        yield mock


class TestGenerate:
    def test_success(self, with_key, client, provider):
        resp = client.post("/api/generate", json={"prompt": "P", "model": "deepseek/deepseek-v3.2"})
        assert resp.status_code == 200
        assert resp.get_json() == {
            "text": "## Итог",
            "usage": {"inputTokens": 11, "outputTokens": 22},
            "model": "deepseek/deepseek-v3.2",
        }
        provider.complete.assert_called_once_with("P", model="deepseek/deepseek-v3.2")
        provider.factory.assert_called_once_with(api_key="sk-or-test")

    def test_model_defaults_to_settings(self, with_key, client, provider):
        client.post("/api/generate", json={"prompt": "P"})
        provider.complete.assert_called_once_with("P", model=get_settings().default_model)

    def test_null_usage(self, with_key, client, provider):
        provider.complete.return_value = Completion(text="t", usage=None, model="m")
        assert client.post("/api/generate", json={"prompt": "P"}).get_json()["usage"] is None

    @pytest.mark.parametrize("method", ["get", "put", "delete", "patch"])
    def test_other_methods_rejected(self, client, method):
        resp = getattr(client, method)("/api/generate")
        assert resp.status_code == 405
        assert resp.get_json() == {"error": "Method not allowed"}

    def test_missing_api_key(self, client, provider):
        resp = client.post("/api/generate", json={"prompt": "P"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "API key not configured"}
        provider.complete.assert_not_called()

    @pytest.mark.parametrize("body", [{}, {"prompt": ""}, {"prompt": 42}, {"prompt": None}, ["P"]])
    def test_invalid_prompt(self, with_key, client, provider, body):
        resp = client.post("/api/generate", json=body)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid prompt"}

    def test_non_json_body(self, with_key, client, provider):
        resp = client.post("/api/generate", data="prompt=P", content_type="text/plain")
        assert resp.status_code == 400

    def test_upstream_error_status_passed_through(self, with_key, client, provider):
        provider.complete.side_effect = UpstreamError(429, "API error: 429", "rate limited")
        resp = client.post("/api/generate", json={"prompt": "P"})
        assert resp.status_code == 429
        assert resp.get_json() == {"error": "API error: 429", "details": "rate limited"}

    def test_empty_choices(self, with_key, client, provider):
        provider.complete.side_effect = UpstreamError(500, "Empty response from AI")
        resp = client.post("/api/generate", json={"prompt": "P"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Empty response from AI"}

    def test_unexpected_error(self, with_key, client, provider):
        provider.complete.side_effect = RuntimeError("kaboom")
        resp = client.post("/api/generate", json={"prompt": "P"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error", "message": "kaboom"}


class TestRelayApp:
    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_mountable_without_prefix(self, with_key, provider):
        app = create_relay_app(url_prefix="")
        resp = app.test_client().post("/generate", json={"prompt": "P"})
        assert resp.status_code == 200
