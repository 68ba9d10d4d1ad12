"""Reset, logout and usage helpers over a persistence store."""

from __future__ import annotations

import logging
from typing import Any

from storage.keys import (
    SESSION_META,
    TERM_HISTORY_PREFIX,
    TERM_INPUT_PREFIX,
    memory_tier,
    window_key,
)
from storage.kv_store import PersistenceStore

logger = logging.getLogger("aurora.storage")


def soft_reset(store: PersistenceStore) -> int:
    """Wipe session (RAM) keys only. Returns the number of removed keys."""
    doomed = [key for key in store.keys() if memory_tier(key) == "ram"]
    for key in doomed:
        store.remove(key)
    logger.info("Soft reset removed %d session keys", len(doomed))
    return len(doomed)


def hard_reset(store: PersistenceStore) -> int:
    """Wipe disk and session keys, keeping system settings."""
    doomed = [key for key in store.keys() if memory_tier(key) != "bios"]
    for key in doomed:
        store.remove(key)
    logger.info("Hard reset removed %d keys, system settings preserved", len(doomed))
    return len(doomed)


def factory_reset(store: PersistenceStore) -> int:
    """Wipe everything."""
    doomed = store.keys()
    for key in doomed:
        store.remove(key)
    logger.info("Factory reset removed %d keys", len(doomed))
    return len(doomed)


def has_saved_session(store: PersistenceStore, owner: str) -> bool:
    return bool(store.get(window_key(owner)))


def clear_session(store: PersistenceStore, owner: str) -> int:
    """Drop an owner's window session and ephemeral session data (logout)."""
    meta_prefix = f"{SESSION_META}{owner}-"
    doomed = [key for key in store.keys() if key.startswith(meta_prefix)]
    doomed += [
        window_key(owner),
        f"{TERM_HISTORY_PREFIX}{owner}",
        f"{TERM_INPUT_PREFIX}{owner}",
    ]
    for key in doomed:
        store.remove(key)
    logger.info("Cleared session for %s (%d keys)", owner, len(doomed))
    return len(doomed)


def storage_stats(store: PersistenceStore) -> dict[str, Any]:
    """Count keys and bytes per storage tier."""
    stats: dict[str, dict[str, int]] = {
        "bios": {"keys": 0, "bytes": 0},
        "hdd": {"keys": 0, "bytes": 0},
        "ram": {"keys": 0, "bytes": 0},
    }
    for key in store.keys():
        tier = memory_tier(key)
        if tier not in stats:
            continue
        value = store.get(key) or ""
        stats[tier]["keys"] += 1
        stats[tier]["bytes"] += len((key + value).encode("utf-8"))
    stats["total"] = {
        "keys": sum(item["keys"] for item in stats.values()),
        "bytes": sum(item["bytes"] for item in stats.values()),
    }
    return stats


def format_bytes(size: int) -> str:
    """Human readable size, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {units[exponent]}"
