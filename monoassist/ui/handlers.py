"""Mesop event handlers: on_load, upload, configuration, generation, export, admin.

Every handler wraps the session's :class:`ProcessingState` in a short-lived
:class:`Workflow`; long operations are async generators that ``yield`` after
each status change so the progress UI re-renders.
"""

from __future__ import annotations

import base64
import logging

import mesop as me

from monoassist.config import get_settings
from monoassist.core.log import safe_print
from monoassist.core.storage import FileStore, KeyValueStore
from monoassist.models import AppStatus, PromptConfig
from monoassist.services.admin import check_admin_password
from monoassist.services.document import InputError, load_transcript
from monoassist.services.history import PromptConfigStore, UsageLogStore
from monoassist.services.summary import SummarizationClient
from monoassist.services.workflow import TransitionError, Workflow
from monoassist.ui.state import State

# ── Shared services (one per process, created lazily) ───────────────────

_store: KeyValueStore | None = None
_client: SummarizationClient | None = None


def get_store() -> KeyValueStore:
    global _store
    if _store is None:
        _store = FileStore(get_settings().data_dir)
    return _store


def usage_store() -> UsageLogStore:
    return UsageLogStore(get_store())


def prompt_store() -> PromptConfigStore:
    return PromptConfigStore(get_store())


def get_client() -> SummarizationClient:
    global _client
    if _client is None:
        cfg = get_settings()
        _client = SummarizationClient(cfg.relay_url, usage_store=usage_store(), timeout=cfg.request_timeout)
    return _client


def workflow_for(state: State) -> Workflow:
    cfg = get_settings()
    return Workflow(
        state.session,
        client=get_client(),
        prompt_store=prompt_store(),
        model=cfg.default_model,
        analysis_delay=cfg.analysis_delay,
        render_delay=cfg.render_delay,
        language=cfg.summary_language,
    )


_STATUS_LOGS = {
    AppStatus.ANALYZING: "Анализ текста...",
    AppStatus.STRUCTURING: "Создание конспекта...",
    AppStatus.REVIEW: "✅ Конспект готов. Проверьте результат и выберите стиль PDF.",
    AppStatus.GENERATING_PDF: "Генерация PDF...",
    AppStatus.COMPLETED: "✅ PDF готов к скачиванию.",
}


def _log_status(state: State, status: AppStatus) -> None:
    if status is AppStatus.ERROR:
        state.logs.append(f"❌ {state.session.error_message}")
    elif status in _STATUS_LOGS:
        state.logs.append(_STATUS_LOGS[status])


# ── Lifecycle ────────────────────────────────────────────────────────────


def on_load(e: me.LoadEvent) -> None:
    me.set_theme_mode("light")
    state = me.state(State)
    if not state.logs:
        state.logs.append("Система запущена. Загрузите транскрибацию лекции (.txt).")


# ── Input handlers ───────────────────────────────────────────────────────


def handle_upload(event: me.UploadEvent) -> None:
    state = me.state(State)
    file = event.file
    try:
        text = load_transcript(file.getvalue(), file.name, file.mime_type)
        workflow_for(state).load_file(file.name, text)
    except (InputError, TransitionError) as exc:
        state.upload_notice = str(exc)
        return
    state.upload_notice = ""
    state.pdf_filename = ""
    state.pdf_content_base64 = ""
    state.logs = [f"Загружен файл: {file.name} ({len(text)} символов)"]


def handle_topic_input(e: me.InputBlurEvent) -> None:
    state = me.state(State)
    try:
        workflow_for(state).set_topic(e.value)
    except TransitionError as exc:
        safe_print(f"Topic change ignored: {exc}", logging.WARNING)


def on_mode_change(e: me.RadioChangeEvent) -> None:
    state = me.state(State)
    try:
        workflow_for(state).set_mode(e.value)
    except TransitionError as exc:
        safe_print(f"Mode change ignored: {exc}", logging.WARNING)


# ── Async flows ──────────────────────────────────────────────────────────


async def generate_summary(e: me.ClickEvent):
    state = me.state(State)
    workflow = workflow_for(state)
    state.pdf_filename = ""
    state.pdf_content_base64 = ""
    try:
        async for status in workflow.analyze_steps():
            _log_status(state, status)
            yield
    except TransitionError as exc:
        state.upload_notice = str(exc)
        yield


async def export_pdf(e: me.ClickEvent):
    """Export in the style carried by the clicked button's key."""
    state = me.state(State)
    workflow = workflow_for(state)
    try:
        async for status in workflow.export_steps(e.key):
            _log_status(state, status)
            yield
    except TransitionError as exc:
        state.upload_notice = str(exc)
        yield
        return

    document = workflow.last_export
    if document is not None:
        state.pdf_filename = document.filename
        state.pdf_content_base64 = base64.b64encode(document.content).decode("utf-8")
        state.logs.append(f"Создан файл: {document.filename}")
        yield


# ── Navigation ───────────────────────────────────────────────────────────


def back_to_config(e: me.ClickEvent) -> None:
    state = me.state(State)
    workflow_for(state).back_to_config()
    state.pdf_filename = ""
    state.pdf_content_base64 = ""


def dismiss_error(e: me.ClickEvent) -> None:
    workflow_for(me.state(State)).reset_error()


def clear_session(e: me.ClickEvent) -> None:
    state = me.state(State)
    workflow_for(state).clear()
    state.logs = []
    state.upload_notice = ""
    state.pdf_filename = ""
    state.pdf_content_base64 = ""
    state.admin_authenticated = False


# ── Admin panel ──────────────────────────────────────────────────────────


def open_admin(e: me.ClickEvent) -> None:
    state = me.state(State)
    workflow_for(state).open_admin()
    state.admin_notice = ""


def close_admin(e: me.ClickEvent) -> None:
    state = me.state(State)
    workflow_for(state).close_admin()
    state.admin_password_input = ""


def handle_admin_password(e: me.InputEvent) -> None:
    me.state(State).admin_password_input = e.value


def admin_login(e: me.ClickEvent) -> None:
    state = me.state(State)
    if not check_admin_password(state.admin_password_input):
        state.admin_notice = "Неверный пароль"
        state.admin_password_input = ""
        return
    state.admin_authenticated = True
    state.admin_notice = ""
    _load_prompt_fields(state, prompt_store().load())


def set_admin_tab(e: me.ClickEvent) -> None:
    me.state(State).admin_tab = e.key


def _load_prompt_fields(state: State, config: PromptConfig) -> None:
    state.prompt_system_role = config.system_role
    state.prompt_standard_instruction = config.standard_instruction
    state.prompt_detailed_instruction = config.detailed_instruction


def handle_system_role(e: me.InputBlurEvent) -> None:
    me.state(State).prompt_system_role = e.value


def handle_standard_instruction(e: me.InputBlurEvent) -> None:
    me.state(State).prompt_standard_instruction = e.value


def handle_detailed_instruction(e: me.InputBlurEvent) -> None:
    me.state(State).prompt_detailed_instruction = e.value


def save_prompts(e: me.ClickEvent) -> None:
    state = me.state(State)
    prompt_store().save(
        PromptConfig(
            system_role=state.prompt_system_role,
            standard_instruction=state.prompt_standard_instruction,
            detailed_instruction=state.prompt_detailed_instruction,
        )
    )
    state.admin_notice = "Настройки промптов сохранены!"


def reset_prompts(e: me.ClickEvent) -> None:
    state = me.state(State)
    _load_prompt_fields(state, prompt_store().reset())
    state.admin_notice = "Промпты сброшены к заводским настройкам."


def clear_stats(e: me.ClickEvent) -> None:
    usage_store().clear()
    me.state(State).admin_notice = "История запросов очищена."
