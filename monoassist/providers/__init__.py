"""Upstream LLM provider layer used by the relay endpoint.

Usage:
    from monoassist.providers import get_provider

    provider = get_provider(api_key=key)
    completion = provider.complete(prompt, model=model)
"""

from monoassist.providers.base import Completion, LLMProvider, UpstreamError
from monoassist.providers.registry import get_provider

__all__ = ["Completion", "LLMProvider", "UpstreamError", "get_provider"]
