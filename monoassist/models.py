"""Domain types shared by the workflow, storage, client and renderer.

``ProcessingState`` is a plain dataclass so it can live inside the Mesop
state class; everything that is persisted or crosses the relay boundary is a
pydantic model with camelCase aliases matching the stored / wire JSON.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AppStatus(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    STRUCTURING = "STRUCTURING"
    REVIEW = "REVIEW"
    GENERATING_PDF = "GENERATING_PDF"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class CompressionMode(str, Enum):
    STANDARD = "STANDARD"
    DETAILED = "DETAILED"


class PdfStyle(str, Enum):
    CLASSIC = "CLASSIC"
    ACADEMIC = "ACADEMIC"
    CREATIVE = "CREATIVE"


BUSY_STATUSES = frozenset({AppStatus.ANALYZING, AppStatus.STRUCTURING, AppStatus.GENERATING_PDF})


@dataclass
class ProcessingState:
    """Single source of truth for the UI.

    Field values are stored as the enums' string values so the dataclass
    round-trips through Mesop's JSON state serialisation unchanged.
    """

    status: str = AppStatus.IDLE.value
    file_name: str | None = None
    topic: str = ""
    mode: str = CompressionMode.STANDARD.value
    pdf_style: str = PdfStyle.CLASSIC.value
    preview_text: str | None = None
    generated_summary: str | None = None
    error_message: str | None = None
    is_admin_open: bool = False


# ── Persisted / wire models ─────────────────────────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PromptConfig(_CamelModel):
    """Mutable template used to build summarization requests."""

    system_role: str
    standard_instruction: str
    detailed_instruction: str


class TokenUsage(_CamelModel):
    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)


class SummaryResult(_CamelModel):
    """Successful relay response."""

    text: str
    usage: TokenUsage | None = None
    model: str = ""


def _new_log_id() -> str:
    return uuid.uuid4().hex


def _now_ms() -> int:
    return int(time.time() * 1000)


class UsageLog(_CamelModel):
    """One record per completed summarization call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=_new_log_id)
    timestamp: int = Field(default_factory=_now_ms)
    model: str
    input_tokens: int
    output_tokens: int
    topic: str
    mode: CompressionMode
