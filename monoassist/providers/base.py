"""Abstract base class for upstream LLM providers used by the relay.

A provider turns one prompt into one :class:`Completion`.  Every failure is
raised as :class:`UpstreamError` carrying the HTTP status the relay should
answer with, so the relay never has to know provider-specific exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from monoassist.models import TokenUsage


@dataclass(frozen=True)
class Completion:
    text: str
    usage: TokenUsage | None
    model: str


class UpstreamError(Exception):
    """Provider call failed; ``status`` is the HTTP status to report."""

    def __init__(self, status: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details


class LLMProvider(ABC):
    """Strategy interface for a single-shot completion call."""

    name: str = "base"

    @abstractmethod
    def complete(self, prompt: str, *, model: str) -> Completion:
        """Send *prompt* as a single user message and return the first choice.

        Raise:
            UpstreamError – on any provider or transport failure, or when the
            provider returns no choices.
        """
