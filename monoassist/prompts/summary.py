"""Prompt templates and the prompt builder for transcript summarisation.

The rules block is a contract with the PDF layout code: it pins the model to
the Markdown subset ``monoassist.rendering.layout`` understands
(``##``, ``###``, ``- ``/``* `` bullets, ``**bold**``, blank lines).
"""

from __future__ import annotations

from monoassist.models import CompressionMode, PromptConfig

DEFAULT_PROMPTS = PromptConfig(
    system_role=(
        "Ты — эксперт по анализу образовательного контента, структурированию речи и созданию "
        "полезных учебных конспектов на основе транскрибаций. Твоя задача — выделять суть и "
        "оформлять её в Markdown."
    ),
    standard_instruction=(
        "Создай лаконичный, максимально сжатый и структурный конспект. Фокусируйся на главных "
        "тезисах, выводах и ключевых определениях. Убирай всю воду и лирические отступления."
    ),
    detailed_instruction=(
        "Создай подробный, развернутый конспект. Сохраняй больше контекста, примеров, метафор и "
        "пояснений, которые давались в тексте. Структура должна оставаться четкой, но содержание "
        "должно быть глубоким."
    ),
)

DEFAULT_TOPIC = "Общая тема"

MODE_LABELS = {
    CompressionMode.STANDARD: "Стандартный (сжатый)",
    CompressionMode.DETAILED: "Подробный (развернутый)",
}

RULES_TEMPLATE = """КРИТИЧЕСКИЕ ПРАВИЛА:
1. **Ничего не выдумывай**: Бери только тот текст, который есть в транскрибации.
2. **Сохраняй терминологию**: Если в тексте упоминаются специфические термины или названия моделей, оставляй их в исходном виде.
3. **Структура**: Используй Markdown (## для разделов, ### для подтем, списки через "- " для перечислений, **жирный шрифт** для акцентов, пустая строка между абзацами). Никакой другой разметки.
4. **Язык**: {language}.
5. **Вывод**: Верни ТОЛЬКО текст конспекта в Markdown. Без приветствий и лишних пояснений."""


def mode_instruction(mode: CompressionMode | str, config: PromptConfig) -> str:
    """Return the instruction for *mode* from *config*."""
    if CompressionMode(mode) is CompressionMode.DETAILED:
        return config.detailed_instruction
    return config.standard_instruction


def build_prompt(
    topic: str,
    transcript: str,
    mode: CompressionMode | str,
    config: PromptConfig,
    *,
    language: str = "Русский",
) -> str:
    """Assemble the full instruction text sent to the summarization service.

    Pure and deterministic.  The transcript is appended verbatim as the last
    section, without truncation or escaping.
    """
    mode = CompressionMode(mode)
    header = (
        f"{config.system_role}\n\n"
        f"Урок посвящен теме: {topic.strip() or DEFAULT_TOPIC}\n"
        f"Тип конспекта: {MODE_LABELS[mode]}\n\n"
        f"ИНСТРУКЦИЯ:\n{mode_instruction(mode, config)}\n\n"
        f"{RULES_TEMPLATE.format(language=language)}\n\n"
        "Вот транскрибация:\n"
    )
    return header + transcript
