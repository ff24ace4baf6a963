"""Shared fixtures for Mono-Assistant tests."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure project root is on path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# ── Environment isolation ───────────────────────────────────────────────
# Prevent tests from touching real API keys, the network, or the workspace


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Isolate every test from real env vars and filesystem side effects."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "")
    monkeypatch.setenv("FONT_URL", "")
    monkeypatch.setenv("FONT_BOLD_URL", "")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "app.log"))
    monkeypatch.setenv("ANALYSIS_DELAY", "0")
    monkeypatch.setenv("RENDER_DELAY", "0")

    # Clear the cached settings singleton so each test picks up monkeypatched env
    from monoassist.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ── Reusable fixtures ──────────────────────────────────────────────────


@pytest.fixture
def memory_store():
    from monoassist.core.storage import InMemoryStore

    return InMemoryStore()


@pytest.fixture
def sample_summary() -> str:
    return "\n".join(
        [
            "## Введение",
            "Лекция посвящена **нейронным сетям** и их обучению.",
            "",
            "### Основные понятия",
            "- **Перцептрон**: простейшая модель нейрона",
            "* Функция активации",
            "",
            "Итоговый абзац без разметки.",
        ]
    )


@pytest.fixture
def sample_transcript() -> str:
    return "Сегодня мы поговорим о нейронных сетях. Перцептрон был предложен в 1958 году."


@pytest.fixture
def mock_relay_response():
    """Factory fixture returning a fake ``requests.Response``."""

    def _factory(status: int = 200, payload=None, *, json_error: bool = False):
        resp = MagicMock()
        resp.status_code = status
        resp.ok = 200 <= status < 300
        if json_error:
            resp.json.side_effect = ValueError("not json")
        else:
            resp.json.return_value = payload
        return resp

    return _factory
