"""Mesop page layout: the full ``main_page()`` UI component tree.

Separated from handlers so that layout changes won't touch logic and vice-versa.
"""

from __future__ import annotations

import mesop as me

from monoassist import __version__
from monoassist.models import BUSY_STATUSES, AppStatus, CompressionMode, PdfStyle
from monoassist.prompts.summary import MODE_LABELS
from monoassist.services.admin import summarize_usage
from monoassist.services.workflow import PROGRESS_STEPS, progress_index
from monoassist.ui.handlers import (
    admin_login,
    back_to_config,
    clear_session,
    clear_stats,
    close_admin,
    dismiss_error,
    export_pdf,
    generate_summary,
    handle_admin_password,
    handle_detailed_instruction,
    handle_standard_instruction,
    handle_system_role,
    handle_topic_input,
    handle_upload,
    on_mode_change,
    open_admin,
    reset_prompts,
    save_prompts,
    set_admin_tab,
    usage_store,
)
from monoassist.ui.state import State

LAVENDER = "#E6E6FA"
POWDER = "#B0E0E6"
TEXT = "#4A4A4A"

_STYLE_LABELS = {
    PdfStyle.CLASSIC: "Классический",
    PdfStyle.ACADEMIC: "Академический",
    PdfStyle.CREATIVE: "Креативный",
}


def main_page() -> None:
    state = me.state(State)

    with me.box(
        style=me.Style(
            background="#FAFAFA",
            min_height="100vh",
            display="flex",
            flex_direction="column",
            font_family="Inter, sans-serif",
        )
    ):
        _header()
        with me.box(
            style=me.Style(
                display="grid",
                grid_template_columns="1fr 1fr",
                gap=32,
                padding=me.Padding.all(32),
                box_sizing="border-box",
            )
        ):
            _left_column(state)
            _right_column(state)

        if state.session.is_admin_open:
            _admin_dialog(state)


def _header() -> None:
    with me.box(
        style=me.Style(
            background="#ffffff",
            padding=me.Padding.symmetric(vertical=16, horizontal=32),
            border=me.Border(bottom=me.BorderSide(width=2, color=LAVENDER)),
            display="flex",
            justify_content="space-between",
            align_items="center",
        )
    ):
        with me.box(style=me.Style(display="flex", align_items="center", gap=12)):
            me.icon("school", style=me.Style(color=TEXT, font_size=28))
            me.text("Моно-ассистент", style=me.Style(font_size=24, font_weight=700, color=TEXT))
            with me.box(
                style=me.Style(
                    background=LAVENDER,
                    padding=me.Padding.symmetric(vertical=2, horizontal=10),
                    border_radius=12,
                )
            ):
                me.text(f"v{__version__}", style=me.Style(font_size=11, color=TEXT, font_weight=600))
        me.button("Админка", on_click=open_admin, type="stroked")


# ── Left Column: Inputs ─────────────────────────────────────────────────


def _card() -> me.Style:
    return me.Style(
        background="#ffffff",
        padding=me.Padding.all(24),
        border_radius=16,
        box_shadow="0 4px 6px -1px rgb(0 0 0 / 0.1)",
        display="flex",
        flex_direction="column",
        gap=20,
    )


def _left_column(state: State) -> None:
    session = state.session
    busy = AppStatus(session.status) in BUSY_STATUSES

    with me.box(style=_card()):
        me.text("Транскрибация лекции", style=me.Style(font_size=18, font_weight=600, color=TEXT))

        me.uploader(
            label="Выбрать файл .txt",
            accepted_file_types=["text/plain", ".txt"],
            on_upload=handle_upload,
            type="flat",
            disabled=busy,
        )
        if state.upload_notice:
            me.text(state.upload_notice, style=me.Style(color="#b91c1c", font_size=13))

        if session.file_name:
            with me.box(
                style=me.Style(
                    background=LAVENDER,
                    padding=me.Padding.all(12),
                    border_radius=8,
                    display="flex",
                    align_items="center",
                    gap=8,
                )
            ):
                me.icon("description", style=me.Style(color=TEXT))
                me.text(session.file_name, style=me.Style(font_size=14, color=TEXT))
            with me.box(
                style=me.Style(
                    max_height=160,
                    overflow_y="auto",
                    background="#f8f8f8",
                    padding=me.Padding.all(12),
                    border_radius=8,
                )
            ):
                me.text(
                    (session.preview_text or "")[:2000],
                    style=me.Style(font_size=12, color="#666666", white_space="pre-wrap"),
                )

        me.input(
            label="Тема лекции (необязательно)",
            value=session.topic,
            on_blur=handle_topic_input,
            disabled=busy,
            style=me.Style(width="100%"),
        )
        me.radio(
            options=[me.RadioOption(label=MODE_LABELS[m], value=m.value) for m in CompressionMode],
            value=session.mode,
            on_change=on_mode_change,
            disabled=busy,
        )

        can_analyze = AppStatus(session.status) is AppStatus.IDLE and bool(session.file_name)
        _action_box(
            generate_summary,
            "Создать конспект",
            bg=TEXT if can_analyze else "#e5e7eb",
            color="#ffffff" if can_analyze else "#9ca3af",
            disabled=not can_analyze,
        )
        if session.file_name and not busy:
            me.button("Очистить", on_click=clear_session, type="stroked")


def _action_box(on_click, text: str, *, bg: str, color: str, disabled: bool) -> None:
    with me.box(
        on_click=None if disabled else on_click,
        style=me.Style(
            width="100%",
            padding=me.Padding.symmetric(vertical=16),
            background=bg,
            border_radius=8,
            cursor="not-allowed" if disabled else "pointer",
            display="flex",
            justify_content="center",
            align_items="center",
        ),
    ):
        me.text(text, style=me.Style(color=color, font_size=16, font_weight="bold", text_align="center"))


# ── Right Column: Output ────────────────────────────────────────────────


def _right_column(state: State) -> None:
    session = state.session
    status = AppStatus(session.status)

    with me.box(style=_card()):
        me.text("Статус и результат", style=me.Style(font_size=18, font_weight=600, color=TEXT))
        _progress_steps(status)
        _logs_area(state)

        if status is AppStatus.ERROR:
            _error_box(state)
        if status in (AppStatus.REVIEW, AppStatus.COMPLETED):
            _style_picker(status)
        if status is AppStatus.COMPLETED and state.pdf_content_base64:
            _download_pdf(state)
        if status in (AppStatus.REVIEW, AppStatus.COMPLETED, AppStatus.GENERATING_PDF) and session.generated_summary:
            with me.box(
                style=me.Style(
                    border=me.Border.all(me.BorderSide(width=1, color=LAVENDER)),
                    border_radius=12,
                    padding=me.Padding.all(16),
                    max_height=480,
                    overflow_y="auto",
                )
            ):
                me.markdown(session.generated_summary)


def _progress_steps(status: AppStatus) -> None:
    active = progress_index(status)
    with me.box(style=me.Style(display="flex", justify_content="space-between", gap=12)):
        for index, (_, label) in enumerate(PROGRESS_STEPS):
            reached = index <= active
            with me.box(style=me.Style(display="flex", flex_direction="column", align_items="center", gap=6)):
                me.box(
                    style=me.Style(
                        width=16,
                        height=16,
                        border_radius=8,
                        background=LAVENDER if reached else "#f3f4f6",
                    )
                )
                me.text(label, style=me.Style(font_size=12, font_weight=600, color=TEXT if reached else "#d1d5db"))
    if status in BUSY_STATUSES:
        with me.box(style=me.Style(display="flex", align_items="center", gap=12)):
            me.progress_spinner(diameter=20, stroke_width=2)
            me.text("Обработка...", style=me.Style(color=TEXT, font_size=14))


def _logs_area(state: State) -> None:
    with me.box(
        style=me.Style(
            background="#f5f5f5",
            border_radius=8,
            padding=me.Padding.all(16),
            max_height=200,
            overflow_y="auto",
            font_family="'JetBrains Mono', 'Fira Code', monospace",
        )
    ):
        if not state.logs:
            me.text("Ожидание файла...", style=me.Style(color="#9ca3af", font_style="italic"))
        for log in state.logs:
            me.text(f"> {log}", style=me.Style(color=_log_colour(log), font_size=12, margin=me.Margin(bottom=6)))


def _log_colour(text: str) -> str:
    if "❌" in text:
        return "#dc2626"
    if "✅" in text:
        return "#059669"
    return "#334155"


def _error_box(state: State) -> None:
    with me.box(
        style=me.Style(
            background="#fef2f2",
            padding=me.Padding.all(12),
            border_radius=8,
            border=me.Border.all(me.BorderSide(width=1, color="#fecaca")),
            display="flex",
            flex_direction="column",
            gap=12,
        )
    ):
        me.text(state.session.error_message or "", style=me.Style(color="#991b1b", font_size=14))
        me.button("Попробовать снова", on_click=dismiss_error, type="flat", color="warn")


def _style_picker(status: AppStatus) -> None:
    title = "Скачать в другом стиле" if status is AppStatus.COMPLETED else "Выберите стиль PDF"
    me.text(title, style=me.Style(font_size=14, font_weight=600, color=TEXT))
    with me.box(style=me.Style(display="flex", gap=12, flex_wrap="wrap")):
        for style in PdfStyle:
            me.button(_STYLE_LABELS[style], key=style.value, on_click=export_pdf, type="flat")
        me.button("Изменить настройки", on_click=back_to_config, type="stroked")


def _download_pdf(state: State) -> None:
    with me.box(
        style=me.Style(
            background="#f0fdf4",
            padding=me.Padding.all(24),
            border_radius=12,
            border=me.Border.all(me.BorderSide(width=1, color=POWDER)),
            display="flex",
            flex_direction="column",
            align_items="center",
            gap=16,
            text_align="center",
        )
    ):
        me.icon("picture_as_pdf", style=me.Style(color="#008080", font_size=48))
        me.text("Конспект готов!", style=me.Style(font_size=20, font_weight=600, color=TEXT))
        data_uri = f"data:application/pdf;base64,{state.pdf_content_base64}"
        me.html(
            f'<a href="{data_uri}" download="{state.pdf_filename}" '
            'style="display:inline-block;background:#008080;color:white;padding:12px 24px;'
            'text-decoration:none;border-radius:8px;font-weight:600;font-family:Inter,sans-serif;">'
            "Скачать PDF</a>"
        )
        me.button("Начать заново", on_click=clear_session, style=me.Style(margin=me.Margin(top=16)))


# ── Admin dialog ─────────────────────────────────────────────────────────


def _admin_dialog(state: State) -> None:
    with (
        me.box(
            style=me.Style(
                position="fixed",
                top=0,
                left=0,
                right=0,
                bottom=0,
                background="rgba(74,74,74,0.2)",
                z_index=1000,
                display="flex",
                justify_content="center",
                align_items="center",
            )
        ),
        me.box(
            style=me.Style(
                background="white",
                padding=me.Padding.all(32),
                border_radius=24,
                width="min(900px, 90vw)",
                max_height="85vh",
                overflow_y="auto",
                box_shadow="0 10px 15px -3px rgba(0, 0, 0, 0.1)",
                display="flex",
                flex_direction="column",
                gap=16,
            )
        ),
    ):
        with me.box(style=me.Style(display="flex", justify_content="space-between", align_items="center")):
            me.text("Админ-панель", style=me.Style(font_size=22, font_weight="bold", color=TEXT))
            me.button("Закрыть", on_click=close_admin)

        if state.admin_notice:
            me.text(state.admin_notice, style=me.Style(color="#6b7280", font_size=13))

        if not state.admin_authenticated:
            me.input(
                label="Пароль",
                type="password",
                value=state.admin_password_input,
                on_input=handle_admin_password,
            )
            me.button("Войти", on_click=admin_login, type="flat")
            return

        with me.box(style=me.Style(display="flex", gap=8)):
            me.button("Статистика", key="STATS", on_click=set_admin_tab, type="flat" if state.admin_tab == "STATS" else "basic")
            me.button("Промпты", key="PROMPTS", on_click=set_admin_tab, type="flat" if state.admin_tab == "PROMPTS" else "basic")

        if state.admin_tab == "STATS":
            _admin_stats()
        else:
            _admin_prompts(state)


def _admin_stats() -> None:
    logs = usage_store().load()
    summary = summarize_usage(logs)
    with me.box(style=me.Style(display="grid", grid_template_columns="repeat(4, 1fr)", gap=12)):
        for label, value in (
            ("Запросов", str(summary.total_requests)),
            ("Токенов (вход)", f"{summary.input_tokens:,}"),
            ("Токенов (выход)", f"{summary.output_tokens:,}"),
            ("Стоимость (прим.)", summary.cost_label),
        ):
            with me.box(style=me.Style(background="#FAFAFA", padding=me.Padding.all(16), border_radius=12)):
                me.text(label, style=me.Style(font_size=12, color="#9ca3af"))
                me.text(value, style=me.Style(font_size=20, font_weight=700, color=TEXT))

    if not logs:
        me.text("История пуста", style=me.Style(color="#9ca3af", font_style="italic"))
    for log in logs:
        with me.box(
            style=me.Style(
                display="grid",
                grid_template_columns="2fr 2fr 1fr 1fr 1fr",
                gap=8,
                padding=me.Padding.symmetric(vertical=6),
                border=me.Border(bottom=me.BorderSide(width=1, color="#f3f4f6")),
            )
        ):
            me.text(log.topic, style=me.Style(font_size=12))
            me.text(log.model, style=me.Style(font_size=12, color="#6b7280"))
            me.text(log.mode.value, style=me.Style(font_size=12))
            me.text(str(log.input_tokens), style=me.Style(font_size=12))
            me.text(str(log.output_tokens), style=me.Style(font_size=12))

    me.button("Очистить историю", on_click=clear_stats, color="warn", type="stroked")


def _admin_prompts(state: State) -> None:
    for label, value, handler in (
        ("Системная роль", state.prompt_system_role, handle_system_role),
        ("Инструкция: стандартный режим", state.prompt_standard_instruction, handle_standard_instruction),
        ("Инструкция: подробный режим", state.prompt_detailed_instruction, handle_detailed_instruction),
    ):
        me.textarea(label=label, value=value, on_blur=handler, rows=5, style=me.Style(width="100%"))
    with me.box(style=me.Style(display="flex", gap=12)):
        me.button("Сохранить", on_click=save_prompts, type="flat")
        me.button("Сбросить", on_click=reset_prompts, type="stroked")
