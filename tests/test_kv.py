"""Tests for the key/value blob stores."""

import json
from pathlib import Path

from driftwatch.kv import KV_FILENAME, JsonFileKeyValueStore, MemoryKeyValueStore


class TestMemoryKeyValueStore:
    def test_get_set_delete(self):
        kv = MemoryKeyValueStore()
        assert kv.get("a") is None
        kv.set("a", "1")
        assert kv.get("a") == "1"
        kv.delete("a")
        assert kv.get("a") is None

    def test_delete_missing_is_noop(self):
        MemoryKeyValueStore().delete("missing")

    def test_initial_is_copied(self):
        initial = {"a": "1"}
        kv = MemoryKeyValueStore(initial)
        kv.set("b", "2")
        assert initial == {"a": "1"}
        assert kv.keys() == ["a", "b"]


class TestJsonFileKeyValueStore:
    def test_persists(self, tmp_path: Path):
        JsonFileKeyValueStore(tmp_path).set("counters", '{"notes_today": 2}')
        assert JsonFileKeyValueStore(tmp_path).get("counters") == '{"notes_today": 2}'

    def test_delete_persists(self, tmp_path: Path):
        kv = JsonFileKeyValueStore(tmp_path)
        kv.set("a", "1")
        kv.delete("a")
        assert JsonFileKeyValueStore(tmp_path).get("a") is None

    def test_no_temp_file_left(self, tmp_path: Path):
        kv = JsonFileKeyValueStore(tmp_path)
        kv.set("a", "1")
        assert kv.path == tmp_path / KV_FILENAME
        assert [p.name for p in tmp_path.iterdir()] == [KV_FILENAME]

    def test_corrupt_file_starts_empty(self, tmp_path: Path):
        (tmp_path / KV_FILENAME).write_text("[broken", encoding="utf-8")
        assert JsonFileKeyValueStore(tmp_path).get("a") is None

    def test_non_object_file_starts_empty(self, tmp_path: Path):
        (tmp_path / KV_FILENAME).write_text(json.dumps(["a"]), encoding="utf-8")
        assert JsonFileKeyValueStore(tmp_path).get("a") is None
