"""Persistence store and maintenance tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from storage.keys import (
    CURRENT_USER,
    SYSTEM_CONFIG,
    app_state_key,
    memory_tier,
    owner_from_window_key,
    window_key,
)
from storage.kv_store import MemoryStore, StorageQuotaError
from storage.maintenance import (
    clear_session,
    factory_reset,
    format_bytes,
    hard_reset,
    has_saved_session,
    soft_reset,
    storage_stats,
)
from storage.sql_store import SQLStore


def build_sql_store(tmp_path: Path) -> SQLStore:
    store = SQLStore(db_path=tmp_path / "aurora.db")
    store.create_all()
    return store


def seed(store) -> None:
    store.set(SYSTEM_CONFIG, '{"totalMemoryGB": 4}')
    store.set(app_state_key("notepad", "alice"), '{"tabs": []}')
    store.set(window_key("alice"), "[]")
    store.set(window_key("bob"), "[]")
    store.set("session_meta_alice-finder", "{}")
    store.set("session_term_alice", "[]")
    store.set(CURRENT_USER, "alice")


def test_sql_store_crud(tmp_path: Path) -> None:
    store = build_sql_store(tmp_path)
    assert store.get("missing") is None

    store.set("b", "1")
    store.set("a", "2")
    store.set("b", "3")
    assert store.get("b") == "3"
    assert store.keys() == ["a", "b"]

    store.remove("a")
    store.remove("a")
    assert store.keys() == ["b"]

    store.clear()
    assert store.keys() == []


def test_sql_store_survives_reopen(tmp_path: Path) -> None:
    build_sql_store(tmp_path).set(window_key("alice"), "[]")
    assert build_sql_store(tmp_path).get(window_key("alice")) == "[]"


def test_memory_store_quota() -> None:
    store = MemoryStore(quota_bytes=10)
    store.set("k", "12345")
    store.set("k", "123456789")
    with pytest.raises(StorageQuotaError):
        store.set("k", "1234567890")
    assert store.get("k") == "123456789"
    assert len(store) == 1

    store.clear()
    assert len(store) == 0
    assert store.used_bytes() == 0
    store.set("q", "123456789")


def test_key_helpers() -> None:
    assert window_key("alice") == "session_windows_alice"
    assert app_state_key("notepad", "alice") == "os_app_data_notepad-alice"
    assert owner_from_window_key("session_windows_bob") == "bob"
    assert owner_from_window_key("session_windows_") is None
    assert owner_from_window_key("os_app_data_x") is None
    assert memory_tier(SYSTEM_CONFIG) == "bios"
    assert memory_tier("os_installed_apps") == "hdd"
    assert memory_tier(CURRENT_USER) == "ram"
    assert memory_tier("theme") == "unknown"


def test_soft_reset_keeps_disk_and_system(tmp_path: Path) -> None:
    store = build_sql_store(tmp_path)
    seed(store)
    assert soft_reset(store) == 5
    assert store.keys() == [app_state_key("notepad", "alice"), SYSTEM_CONFIG]


def test_hard_reset_keeps_system_only() -> None:
    store = MemoryStore()
    seed(store)
    store.set("theme", "dark")
    assert hard_reset(store) == 7
    assert store.keys() == [SYSTEM_CONFIG]


def test_factory_reset_wipes_everything() -> None:
    store = MemoryStore()
    seed(store)
    assert factory_reset(store) == 7
    assert len(store) == 0


def test_clear_session_drops_only_that_owner() -> None:
    store = MemoryStore()
    seed(store)
    assert has_saved_session(store, "alice") is True
    assert has_saved_session(store, "carol") is False

    clear_session(store, "alice")

    assert store.get(window_key("alice")) is None
    assert store.get("session_meta_alice-finder") is None
    assert store.get("session_term_alice") is None
    assert store.get(window_key("bob")) == "[]"
    assert store.get(app_state_key("notepad", "alice")) is not None


def test_storage_stats_groups_by_tier() -> None:
    store = MemoryStore()
    store.set(SYSTEM_CONFIG, "{}")
    store.set(window_key("alice"), "[]")
    store.set(window_key("bob"), "[]")
    stats = storage_stats(store)
    assert stats["bios"] == {"keys": 1, "bytes": len(SYSTEM_CONFIG) + 2}
    assert stats["ram"]["keys"] == 2
    assert stats["hdd"]["keys"] == 0
    assert stats["total"]["keys"] == 3


def test_format_bytes() -> None:
    assert format_bytes(0) == "0 B"
    assert format_bytes(512) == "512 B"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(1024 * 1024) == "1 MB"
