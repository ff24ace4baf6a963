"""Summarization client.

Posts a built prompt to the same-origin relay and returns the summary text.
Does *not* build prompts (``monoassist.prompts.summary``) or render anything
(``monoassist.rendering``).
"""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from monoassist.core.log import request_context, safe_print, timed
from monoassist.models import CompressionMode, SummaryResult, TokenUsage
from monoassist.services.history import UsageLogStore

GENERIC_ERROR_MESSAGE = "Произошла непредвиденная ошибка."
TIMEOUT_ERROR_MESSAGE = (
    "Превышено время ожидания ответа от AI. Попробуйте еще раз с более коротким текстом."
)
EMPTY_RESPONSE_MESSAGE = "Пустой ответ от AI."

# Seconds allowed to open the connection; the read timeout is the client timeout
CONNECT_TIMEOUT = 10.0


class RequestError(Exception):
    """Summary request failed; ``str(exc)`` is safe to show to the user."""


class RequestTimeoutError(RequestError):
    """The relay did not answer within the client timeout."""

    def __init__(self, message: str = TIMEOUT_ERROR_MESSAGE):
        super().__init__(message)


class SummarizationClient:
    """``(prompt, model) -> SummaryResult`` over HTTP, with usage logging.

    *timeout* bounds the wait for the relay's answer.  The relay replies with
    one JSON body once the completion is done, so the read timeout is in
    practice the limit on the whole request.
    """

    def __init__(
        self,
        relay_url: str,
        *,
        usage_store: UsageLogStore | None = None,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ):
        self.relay_url = relay_url
        self.usage_store = usage_store
        self.timeout = timeout
        self.session = session or requests.Session()

    def summarize(
        self,
        prompt: str,
        model: str,
        *,
        topic: str = "",
        mode: CompressionMode | str = CompressionMode.STANDARD,
    ) -> SummaryResult:
        with request_context() as rid:
            safe_print(f"[{rid}] Requesting summary (model={model}, {len(prompt)} chars)")
            with timed("summarize_transcript", model=model):
                result = self._post(prompt, model)
            self._log_usage(result, topic=topic, mode=mode)
        return result

    # ── Internals ───────────────────────────────────────────────────────

    def _post(self, prompt: str, model: str) -> SummaryResult:
        try:
            resp = self.session.post(
                self.relay_url,
                json={"prompt": prompt, "model": model},
                timeout=(min(CONNECT_TIMEOUT, self.timeout), self.timeout),
            )
        except requests.Timeout as exc:
            raise RequestTimeoutError() from exc
        except requests.RequestException as exc:
            safe_print(f"Relay unreachable: {exc}", logging.ERROR)
            raise RequestError(GENERIC_ERROR_MESSAGE) from exc

        if not resp.ok:
            raise RequestError(_error_message(resp))

        try:
            payload = resp.json()
        except ValueError as exc:
            safe_print(f"Malformed relay response: {exc}", logging.ERROR)
            raise RequestError(GENERIC_ERROR_MESSAGE) from exc

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise RequestError(EMPTY_RESPONSE_MESSAGE)

        model_used = payload.get("model")
        return SummaryResult(
            text=text,
            usage=_parse_usage(payload.get("usage")),
            model=model_used if isinstance(model_used, str) else model,
        )

    def _log_usage(self, result: SummaryResult, *, topic: str, mode: CompressionMode | str) -> None:
        """Best-effort: storage problems never fail the summary call."""
        if result.usage is None or self.usage_store is None:
            return
        try:
            self.usage_store.record(
                model=result.model,
                input_tokens=result.usage.input_tokens,
                output_tokens=result.usage.output_tokens,
                topic=topic,
                mode=mode,
            )
        except Exception as exc:
            safe_print(f"⚠️ Could not record usage: {exc}", logging.WARNING)


def _parse_usage(raw: object) -> TokenUsage | None:
    """Token counts are optional; a malformed block is dropped, not fatal."""
    if raw is None:
        return None
    try:
        return TokenUsage.model_validate(raw)
    except ValidationError as exc:
        safe_print(f"Ignoring malformed usage block: {exc}", logging.WARNING)
        return None


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"]:
        return payload["error"]
    return f"Ошибка API: {resp.status_code}"
