"""Admin panel helpers: access check and usage statistics."""

from __future__ import annotations

import hmac
from collections.abc import Sequence
from dataclasses import dataclass

from monoassist.config import get_settings
from monoassist.models import UsageLog

# USD per one million tokens (rough Flash-class pricing)
INPUT_PRICE_PER_M = 0.075
OUTPUT_PRICE_PER_M = 0.30

_ALWAYS_ACCEPTED = ("админ",)


def check_admin_password(password: str) -> bool:
    accepted = (get_settings().admin_password, *_ALWAYS_ACCEPTED)
    return any(hmac.compare_digest(password.encode("utf-8"), p.encode("utf-8")) for p in accepted if p)


@dataclass(frozen=True)
class UsageSummary:
    total_requests: int
    input_tokens: int
    output_tokens: int

    @property
    def estimated_cost(self) -> float:
        return (self.input_tokens / 1_000_000) * INPUT_PRICE_PER_M + (
            self.output_tokens / 1_000_000
        ) * OUTPUT_PRICE_PER_M

    @property
    def cost_label(self) -> str:
        return f"${self.estimated_cost:.4f}"


def summarize_usage(logs: Sequence[UsageLog]) -> UsageSummary:
    return UsageSummary(
        total_requests=len(logs),
        input_tokens=sum(log.input_tokens for log in logs),
        output_tokens=sum(log.output_tokens for log in logs),
    )
