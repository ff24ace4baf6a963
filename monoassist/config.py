"""Centralised application configuration using pydantic-settings.

All environment variables, defaults, and validation live here.
Usage:
    from monoassist.config import settings
    print(settings.relay_url)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Single source of truth for every tuneable parameter."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # silently ignore unknown env vars
        case_sensitive=False,
    )

    # ── Upstream provider (OpenRouter, OpenAI-compatible) ───────────────
    openrouter_api_key: str = Field(default="", description="OpenRouter API key (relay side only)")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1")
    default_model: str = Field(default="deepseek/deepseek-v3.2")
    app_referer: str = Field(default="https://mono-assistant.local", description="HTTP-Referer sent upstream")
    app_title: str = Field(default="Mono-Assistant")

    # ── Generation parameters ───────────────────────────────────────────
    max_tokens: int = Field(default=8000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    reasoning_enabled: bool = Field(default=True)
    summary_language: str = Field(default="Русский")

    # ── Relay / client ──────────────────────────────────────────────────
    relay_url: str = Field(default="http://localhost:32123/api/generate")
    request_timeout: float = Field(default=60.0, gt=0, description="Seconds before a summary request times out")

    # ── Workflow pacing (cosmetic) ──────────────────────────────────────
    analysis_delay: float = Field(default=0.8, ge=0.0)
    render_delay: float = Field(default=1.0, ge=0.0)

    # ── Rendering ───────────────────────────────────────────────────────
    font_url: str = Field(
        default="https://cdnjs.cloudflare.com/ajax/libs/pdfmake/0.1.66/fonts/Roboto/Roboto-Regular.ttf",
        description="Custom TTF font fetched at render time; empty string disables it",
    )
    font_bold_url: str = Field(
        default="https://cdnjs.cloudflare.com/ajax/libs/pdfmake/0.1.66/fonts/Roboto/Roboto-Medium.ttf",
        description="Bold companion of font_url; the regular face is reused when it is unavailable",
    )
    font_timeout: float = Field(default=10.0, gt=0)

    # ── Application limits ──────────────────────────────────────────────
    max_upload_size_mb: int = Field(default=10, ge=1)
    server_port: int = Field(default=32123)
    worker_threads: int = Field(default=2, ge=1, le=16, description="Size of the blocking-work thread pool")
    data_dir: str = Field(default=".monoassist", description="Directory holding the key-value store")
    admin_password: str = Field(default="admin")

    # ── Logging ─────────────────────────────────────────────────────────
    log_file: str = Field(default="app.log")
    log_max_bytes: int = Field(default=5 * 1024 * 1024)  # 5 MB
    log_backup_count: int = Field(default=3)

    # ── Validators ──────────────────────────────────────────────────────
    @field_validator("openrouter_base_url", "relay_url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http(s)://, got '{v}'")
        return v

    @field_validator("default_model")
    @classmethod
    def _validate_model(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_model must not be empty")
        return v


@lru_cache(maxsize=1)
def get_settings() -> AppConfig:
    """Return the cached singleton settings instance."""
    return AppConfig()


# Module-level shortcut for convenience
settings = get_settings()
