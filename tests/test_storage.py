"""
Tests for the key-value backends (pshunter/storage/backends.py).
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from pshunter.errors import StorageError
from pshunter.storage.backends import InMemoryStore, JsonFileStore, KeyValueStore


class TestInMemoryStore:
    def test_missing_key_is_none(self) -> None:
        assert InMemoryStore().get("nope") is None

    def test_set_then_get(self) -> None:
        store = InMemoryStore()
        store.set("targetCurrency", "SGD")
        assert store.get("targetCurrency") == "SGD"

    def test_initial_data_is_copied(self) -> None:
        initial = {"a": "1"}
        store = InMemoryStore(initial)
        store.set("a", "2")
        assert initial == {"a": "1"}

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryStore(), KeyValueStore)


class TestJsonFileStore:
    def test_missing_key_is_none(self, tmp_path: Path) -> None:
        assert JsonFileStore(tmp_path).get("ps_price_history_v1") is None

    def test_round_trip_creates_directory(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path / "nested" / "data")
        store.set("ps_price_history_v1", '{"elden ring": {}}')

        assert store.get("ps_price_history_v1") == '{"elden ring": {}}'
        assert store.path_for("ps_price_history_v1").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.set("targetCurrency", "USD")
        store.set("targetCurrency", "EUR")

        assert store.get("targetCurrency") == "EUR"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["targetCurrency.json"]

    def test_key_is_sanitized(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        path = store.path_for("../escape/me")

        assert path.parent == tmp_path
        assert "/" not in path.name

    def test_write_failure_raises_storage_error_and_keeps_old_value(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.set("targetCurrency", "USD")

        with patch("pshunter.storage.backends.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError, match="disk full"):
                store.set("targetCurrency", "EUR")

        assert store.get("targetCurrency") == "USD"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["targetCurrency.json"]

    def test_read_failure_raises_storage_error(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.path_for("targetCurrency").mkdir()

        with pytest.raises(StorageError):
            store.get("targetCurrency")

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(JsonFileStore(tmp_path), KeyValueStore)

    def test_undecodable_file_raises_storage_error(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.path_for("ps_price_history_v1").write_bytes(b"\xff\xfe{garbage")

        with pytest.raises(StorageError):
            store.get("ps_price_history_v1")
