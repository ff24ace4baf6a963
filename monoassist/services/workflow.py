"""Workflow state machine driving a single user session.

The UI owns a :class:`~monoassist.models.ProcessingState`; a
:class:`Workflow` wraps it for the duration of one event handler and is the
only thing that mutates it.  Long operations are async generators that yield
after every status change so the page can re-render in between::

    async for _ in workflow.analyze_steps():
        yield

Blocking work (the relay call, PDF rendering) runs in the shared thread
pool.  Actions that would start a second operation, or edit the input while
one is running, raise :class:`TransitionError`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import fields
from typing import Protocol

from monoassist.core.executor import run_in_executor
from monoassist.models import (
    BUSY_STATUSES,
    AppStatus,
    CompressionMode,
    PdfStyle,
    ProcessingState,
    PromptConfig,
    SummaryResult,
)
from monoassist.prompts.summary import build_prompt
from monoassist.rendering.pdf import ExportedDocument, export_summary
from monoassist.services.summary import GENERIC_ERROR_MESSAGE, TIMEOUT_ERROR_MESSAGE, RequestError, RequestTimeoutError

logger = logging.getLogger(__name__)

EXPORT_ERROR_MESSAGE = "Ошибка при создании PDF."

# (status, label) for the three-step progress indicator
PROGRESS_STEPS: tuple[tuple[AppStatus, str], ...] = (
    (AppStatus.ANALYZING, "Анализ текста"),
    (AppStatus.STRUCTURING, "Создание конспекта"),
    (AppStatus.GENERATING_PDF, "Генерация PDF"),
)
_PROGRESS_INDEX = {
    AppStatus.ANALYZING: 0,
    AppStatus.STRUCTURING: 1,
    AppStatus.REVIEW: 1,
    AppStatus.GENERATING_PDF: 2,
    AppStatus.COMPLETED: 3,
}


def progress_index(status: AppStatus | str) -> int:
    """Index of the last reached progress step; -1 before analysis, 3 when done."""
    return _PROGRESS_INDEX.get(AppStatus(status), -1)


class TransitionError(RuntimeError):
    """The requested action is not allowed in the current status."""


class Summarizer(Protocol):
    def summarize(self, prompt: str, model: str, *, topic: str = "", mode: CompressionMode | str = ...) -> SummaryResult: ...


class PromptSource(Protocol):
    def load(self) -> PromptConfig: ...


Renderer = Callable[[str, PdfStyle, str], ExportedDocument]


class Workflow:
    def __init__(
        self,
        state: ProcessingState,
        *,
        client: Summarizer,
        prompt_store: PromptSource,
        renderer: Renderer = export_summary,
        model: str,
        analysis_delay: float = 0.8,
        render_delay: float = 1.0,
        language: str = "Русский",
    ) -> None:
        self.state = state
        self.client = client
        self.prompt_store = prompt_store
        self.renderer = renderer
        self.model = model
        self.analysis_delay = analysis_delay
        self.render_delay = render_delay
        self.language = language
        self.last_export: ExportedDocument | None = None

    # ── Predicates ──────────────────────────────────────────────────────

    @property
    def status(self) -> AppStatus:
        return AppStatus(self.state.status)

    @property
    def is_busy(self) -> bool:
        return self.status in BUSY_STATUSES

    @property
    def can_analyze(self) -> bool:
        return (
            self.status is AppStatus.IDLE
            and bool(self.state.file_name)
            and bool(self.state.preview_text and self.state.preview_text.strip())
        )

    @property
    def can_export(self) -> bool:
        return self.status in (AppStatus.REVIEW, AppStatus.COMPLETED) and bool(self.state.generated_summary)

    # ── Configuration ───────────────────────────────────────────────────

    def load_file(self, file_name: str, text: str) -> None:
        self._refuse_while_busy("load a file")
        self.state.file_name = file_name
        self.state.preview_text = text
        self.state.generated_summary = None
        self.state.error_message = None
        self._set_status(AppStatus.IDLE)

    def set_topic(self, topic: str) -> None:
        self._refuse_while_busy("change the topic")
        self.state.topic = topic

    def set_mode(self, mode: CompressionMode | str) -> None:
        self._refuse_while_busy("change the mode")
        self.state.mode = CompressionMode(mode).value

    # ── Analysis ────────────────────────────────────────────────────────

    async def analyze_steps(self) -> AsyncIterator[AppStatus]:
        """IDLE → ANALYZING → STRUCTURING → REVIEW (or ERROR)."""
        if not self.can_analyze:
            raise TransitionError(f"Cannot start analysis from {self.status.value} without a loaded transcript")

        self.state.error_message = None
        self._set_status(AppStatus.ANALYZING)
        yield self.status

        await asyncio.sleep(self.analysis_delay)
        if self.status is not AppStatus.ANALYZING:
            return
        self._set_status(AppStatus.STRUCTURING)
        yield self.status

        topic, mode = self.state.topic, self.state.mode
        try:
            prompt = build_prompt(
                topic, self.state.preview_text or "", mode, self.prompt_store.load(), language=self.language
            )
            result = await run_in_executor(self.client.summarize, prompt, self.model, topic=topic, mode=mode)
        except RequestTimeoutError as exc:
            message = str(exc) or TIMEOUT_ERROR_MESSAGE
        except RequestError as exc:
            message = str(exc) or GENERIC_ERROR_MESSAGE
        except Exception as exc:
            logger.exception("Summary generation failed")
            message = str(exc) or GENERIC_ERROR_MESSAGE
        else:
            message = None

        # The session was cleared while the request was in flight
        if self.status is not AppStatus.STRUCTURING:
            return
        if message is None:
            self.state.generated_summary = result.text
            self._set_status(AppStatus.REVIEW)
        else:
            self._fail(message)
        yield self.status

    async def analyze(self) -> AppStatus:
        async for _ in self.analyze_steps():
            pass
        return self.status

    # ── Export ──────────────────────────────────────────────────────────

    async def export_steps(self, style: PdfStyle | str) -> AsyncIterator[AppStatus]:
        """REVIEW/COMPLETED → GENERATING_PDF → COMPLETED (or ERROR).

        On success the artifact is left in :attr:`last_export`.
        """
        style = PdfStyle(style)
        if not self.can_export:
            raise TransitionError(f"Cannot export from {self.status.value}")

        self.last_export = None
        self.state.pdf_style = style.value
        self.state.error_message = None
        self._set_status(AppStatus.GENERATING_PDF)
        yield self.status

        await asyncio.sleep(self.render_delay)
        summary = self.state.generated_summary or ""
        try:
            document = await run_in_executor(self.renderer, summary, style, self.state.file_name or "")
        except Exception:
            logger.exception("PDF export failed", extra={"style": style.value})
            document = None

        if self.status is not AppStatus.GENERATING_PDF:
            return
        if document is None:
            self._fail(EXPORT_ERROR_MESSAGE)
        else:
            self.last_export = document
            self._set_status(AppStatus.COMPLETED)
        yield self.status

    async def export(self, style: PdfStyle | str) -> ExportedDocument | None:
        async for _ in self.export_steps(style):
            pass
        return self.last_export

    # ── Navigation ──────────────────────────────────────────────────────

    def back_to_config(self) -> None:
        if self.status not in (AppStatus.REVIEW, AppStatus.COMPLETED):
            raise TransitionError(f"Cannot return to configuration from {self.status.value}")
        self.state.generated_summary = None
        self._set_status(AppStatus.IDLE)

    def reset_error(self) -> None:
        if self.status is not AppStatus.ERROR:
            raise TransitionError(f"No error to dismiss in {self.status.value}")
        self.state.error_message = None
        self._set_status(AppStatus.IDLE)

    def clear(self) -> None:
        """Reset every field to its initial default, whatever the status."""
        defaults = ProcessingState()
        for f in fields(ProcessingState):
            setattr(self.state, f.name, getattr(defaults, f.name))
        self.last_export = None
        logger.info("Session cleared")

    def open_admin(self) -> None:
        self.state.is_admin_open = True

    def close_admin(self) -> None:
        self.state.is_admin_open = False

    # ── Internals ───────────────────────────────────────────────────────

    def _refuse_while_busy(self, action: str) -> None:
        if self.is_busy:
            raise TransitionError(f"Cannot {action} while {self.status.value}")

    def _set_status(self, status: AppStatus) -> None:
        self.state.status = status.value
        logger.info("Status -> %s", status.value, extra={"status": status.value})

    def _fail(self, message: str) -> None:
        self.state.generated_summary = None
        self.state.error_message = message
        self._set_status(AppStatus.ERROR)
        logger.warning("Workflow failed: %s", message, extra={"error": message})
