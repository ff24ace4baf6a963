"""Tests for monoassist.services.history — usage log and prompt config stores."""

from __future__ import annotations

import json
import logging

import pytest

from monoassist.models import CompressionMode, PromptConfig
from monoassist.prompts.summary import DEFAULT_PROMPTS
from monoassist.services.history import (
    MAX_USAGE_LOGS,
    PROMPTS_KEY,
    STATS_KEY,
    UNTITLED_TOPIC,
    PromptConfigStore,
    UsageLogStore,
)


def _record(store: UsageLogStore, n: int, **overrides):
    kwargs = dict(model="m", input_tokens=n, output_tokens=n * 2, topic=f"topic {n}", mode="STANDARD")
    kwargs.update(overrides)
    return store.record(**kwargs)


class TestUsageLogStore:
    def test_empty_when_missing(self, memory_store):
        assert UsageLogStore(memory_store).load() == []

    def test_record_prepends(self, memory_store):
        store = UsageLogStore(memory_store)
        _record(store, 1)
        _record(store, 2)
        logs = store.load()
        assert [log.input_tokens for log in logs] == [2, 1]

    def test_bounded_to_newest_fifty(self, memory_store):
        store = UsageLogStore(memory_store)
        for n in range(60):
            _record(store, n)
        logs = store.load()
        assert len(logs) == MAX_USAGE_LOGS == 50
        assert logs[0].input_tokens == 59
        assert logs[-1].input_tokens == 10

    def test_custom_limit(self, memory_store):
        store = UsageLogStore(memory_store, limit=3)
        for n in range(5):
            _record(store, n)
        assert [log.input_tokens for log in store.load()] == [4, 3, 2]

    def test_stored_as_camel_case_json(self, memory_store):
        _record(UsageLogStore(memory_store), 7, mode=CompressionMode.DETAILED)
        raw = json.loads(memory_store.get(STATS_KEY))
        assert isinstance(raw, list)
        entry = raw[0]
        assert entry["inputTokens"] == 7
        assert entry["outputTokens"] == 14
        assert entry["mode"] == "DETAILED"
        assert {"id", "timestamp", "model", "topic"} <= set(entry)

    def test_ids_unique(self, memory_store):
        store = UsageLogStore(memory_store)
        ids = {_record(store, n).id for n in range(10)}
        assert len(ids) == 10

    def test_empty_topic_gets_placeholder(self, memory_store):
        entry = _record(UsageLogStore(memory_store), 1, topic="")
        assert entry.topic == UNTITLED_TOPIC

    def test_corrupt_data_treated_as_empty(self, memory_store, caplog):
        memory_store.set(STATS_KEY, "{not json")
        with caplog.at_level(logging.WARNING):
            assert UsageLogStore(memory_store).load() == []
        assert "usage history" in caplog.text

    def test_undecodable_stats_file_treated_as_empty(self, tmp_path):
        from monoassist.core.storage import FileStore

        (tmp_path / f"{STATS_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
        store = UsageLogStore(FileStore(tmp_path))
        assert store.load() == []
        _record(store, 1)
        assert [log.input_tokens for log in store.load()] == [1]

    def test_undecodable_prompts_file_gives_defaults(self, tmp_path):
        from monoassist.core.storage import FileStore

        (tmp_path / f"{PROMPTS_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
        assert PromptConfigStore(FileStore(tmp_path)).load() == DEFAULT_PROMPTS

    def test_record_over_corrupt_data_recovers(self, memory_store):
        memory_store.set(STATS_KEY, '[{"bogus": true}]')
        store = UsageLogStore(memory_store)
        _record(store, 1)
        assert len(store.load()) == 1

    def test_clear(self, memory_store):
        store = UsageLogStore(memory_store)
        _record(store, 1)
        store.clear()
        assert store.load() == []
        assert memory_store.get(STATS_KEY) is None


class TestPromptConfigStore:
    def test_defaults_when_missing(self, memory_store):
        assert PromptConfigStore(memory_store).load() == DEFAULT_PROMPTS

    def test_save_then_load(self, memory_store):
        store = PromptConfigStore(memory_store)
        custom = PromptConfig(system_role="R", standard_instruction="S", detailed_instruction="D")
        store.save(custom)
        assert store.load() == custom

    def test_saved_with_camel_case_keys(self, memory_store):
        PromptConfigStore(memory_store).save(DEFAULT_PROMPTS)
        raw = json.loads(memory_store.get(PROMPTS_KEY))
        assert set(raw) == {"systemRole", "standardInstruction", "detailedInstruction"}

    def test_partial_override_merged_over_defaults(self, memory_store):
        memory_store.set(PROMPTS_KEY, json.dumps({"systemRole": "Custom"}))
        loaded = PromptConfigStore(memory_store).load()
        assert loaded.system_role == "Custom"
        assert loaded.standard_instruction == DEFAULT_PROMPTS.standard_instruction

    def test_reset_restores_defaults(self, memory_store):
        store = PromptConfigStore(memory_store)
        store.save(PromptConfig(system_role="R", standard_instruction="S", detailed_instruction="D"))
        assert store.reset() == DEFAULT_PROMPTS
        assert store.load() == DEFAULT_PROMPTS
        assert memory_store.get(PROMPTS_KEY) is None

    @pytest.mark.parametrize("raw", ["{broken", "[1, 2]", '{"systemRole": 5}'])
    def test_corrupt_override_falls_back(self, memory_store, raw, caplog):
        memory_store.set(PROMPTS_KEY, raw)
        with caplog.at_level(logging.WARNING):
            assert PromptConfigStore(memory_store).load() == DEFAULT_PROMPTS
        assert "prompt override" in caplog.text

    def test_load_returns_copy(self, memory_store):
        store = PromptConfigStore(memory_store)
        assert store.load() is not store.defaults
