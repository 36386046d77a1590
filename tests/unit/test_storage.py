"""Key-value storage backends."""

from __future__ import annotations

import os

import orjson
import pytest

from klio.storage import JsonFileStorage, MemoryStorage


class TestMemoryStorage:
    def test_get_set_remove(self):
        storage = MemoryStorage({"a": "1"})
        storage.set("b", "2")
        storage.remove("a")
        storage.remove("missing")
        assert storage.snapshot() == {"b": "2"}


class TestJsonFileStorage:
    def test_missing_file_starts_empty(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        assert storage.get("userStats") is None

    def test_set_is_written_through(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        JsonFileStorage(path).set("selectedTitle", "streak_3")
        assert orjson.loads(path.read_bytes()) == {"selectedTitle": "streak_3"}
        assert JsonFileStorage(path).get("selectedTitle") == "streak_3"

    def test_remove_is_written_through(self, tmp_path):
        path = tmp_path / "state.json"
        storage = JsonFileStorage(path)
        storage.set("a", "1")
        storage.remove("a")
        assert orjson.loads(path.read_bytes()) == {}

    @pytest.mark.parametrize("content", [b"{not json", b"[1, 2]", b'"text"'])
    def test_unusable_file_starts_empty(self, tmp_path, content):
        path = tmp_path / "state.json"
        path.write_bytes(content)
        assert JsonFileStorage(path).get("userStats") is None

    def test_non_string_values_dropped(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_bytes(b'{"userStats": "{}", "junk": 5}')
        storage = JsonFileStorage(path)
        assert storage.get("userStats") == "{}"
        assert storage.get("junk") is None

    def test_no_temp_files_left_behind(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        storage.set("a", "1")
        storage.set("a", "2")
        assert sorted(os.listdir(tmp_path)) == ["state.json"]

    def test_failed_write_rolls_back_memory(self, tmp_path, monkeypatch):
        storage = JsonFileStorage(tmp_path / "state.json")
        storage.set("a", "1")

        def fail(*args, **kwargs):
            raise OSError("read-only file system")

        monkeypatch.setattr("klio.storage.os.replace", fail)
        with pytest.raises(OSError):
            storage.set("a", "2")
        with pytest.raises(OSError):
            storage.set("b", "3")

        assert storage.get("a") == "1"
        assert storage.get("b") is None
        assert sorted(os.listdir(tmp_path)) == ["state.json"]
