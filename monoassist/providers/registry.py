"""Provider lookup by name.

Usage:
    from monoassist.providers import get_provider

    provider = get_provider(api_key=key)
    completion = provider.complete(prompt, model="deepseek/deepseek-v3.2")
"""

from __future__ import annotations

from monoassist.providers.base import LLMProvider
from monoassist.providers.openrouter import OpenRouterProvider

_PROVIDERS: dict[str, type[LLMProvider]] = {
    "openrouter": OpenRouterProvider,
}

DEFAULT_PROVIDER = "openrouter"


def get_provider(name: str = DEFAULT_PROVIDER, *, api_key: str) -> LLMProvider:
    """Instantiate a provider by name."""
    key = name.lower().strip()
    cls = _PROVIDERS.get(key)
    if cls is None:
        available = ", ".join(sorted(_PROVIDERS))
        raise ValueError(f"Unknown provider '{name}'. Available: {available}")
    return cls(api_key=api_key)  # type: ignore[call-arg]
