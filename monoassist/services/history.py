"""Usage history and prompt-configuration persistence.

Both stores sit on top of an injected :class:`KeyValueStore`.  Stored JSON
that fails to parse or validate is treated as absent: the user gets an empty
history / the built-in prompts, and the problem is only logged.
"""

from __future__ import annotations

import json
import logging

from pydantic import TypeAdapter, ValidationError

from monoassist.core.storage import KeyValueStore
from monoassist.models import CompressionMode, PromptConfig, UsageLog
from monoassist.prompts.summary import DEFAULT_PROMPTS

logger = logging.getLogger(__name__)

STATS_KEY = "mono_assist_stats"
PROMPTS_KEY = "mono_assist_prompts"
MAX_USAGE_LOGS = 50
UNTITLED_TOPIC = "Без темы"

_usage_list = TypeAdapter(list[UsageLog])


class UsageLogStore:
    """Bounded, newest-first sequence of :class:`UsageLog` records."""

    def __init__(self, store: KeyValueStore, *, limit: int = MAX_USAGE_LOGS) -> None:
        self._store = store
        self.limit = limit

    def load(self) -> list[UsageLog]:
        raw = self._store.get(STATS_KEY)
        if not raw:
            return []
        try:
            return _usage_list.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable usage history: %s", exc)
            return []

    def record(
        self,
        *,
        model: str,
        input_tokens: int,
        output_tokens: int,
        topic: str,
        mode: CompressionMode | str,
    ) -> UsageLog:
        """Prepend a new entry, evicting the oldest beyond ``limit``."""
        entry = UsageLog(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            topic=topic or UNTITLED_TOPIC,
            mode=CompressionMode(mode),
        )
        logs = [entry, *self.load()][: self.limit]
        self._store.set(STATS_KEY, _usage_list.dump_json(logs, by_alias=True).decode("utf-8"))
        return entry

    def clear(self) -> None:
        self._store.delete(STATS_KEY)


class PromptConfigStore:
    """User override of the prompt template, falling back to defaults."""

    def __init__(self, store: KeyValueStore, *, defaults: PromptConfig = DEFAULT_PROMPTS) -> None:
        self._store = store
        self.defaults = defaults

    def load(self) -> PromptConfig:
        """Return the stored override merged over the defaults."""
        raw = self._store.get(PROMPTS_KEY)
        if not raw:
            return self.defaults.model_copy()
        try:
            stored = json.loads(raw)
            if not isinstance(stored, dict):
                raise ValueError("prompt override is not an object")
            merged = {**self.defaults.model_dump(by_alias=True), **stored}
            return PromptConfig.model_validate(merged)
        except (ValueError, ValidationError) as exc:
            logger.warning("Discarding unreadable prompt override: %s", exc)
            return self.defaults.model_copy()

    def save(self, config: PromptConfig) -> None:
        self._store.set(PROMPTS_KEY, config.model_dump_json(by_alias=True))

    def reset(self) -> PromptConfig:
        """Delete the override and return the defaults."""
        self._store.delete(PROMPTS_KEY)
        return self.defaults.model_copy()
