"""Storage key layout.

Keys are grouped into three tiers by prefix:

- ``sys_``: system/BIOS settings, survive every reset except a factory reset.
- ``os_``: disk-like data (installed apps, per-app state), wiped on hard reset.
- ``session_``: RAM-like session state (open windows, terminal history),
  wiped on every soft reset.
"""

from __future__ import annotations

from typing import Literal

MemoryTier = Literal["bios", "hdd", "ram", "unknown"]

SYSTEM_CONFIG = "sys_config_v1"
APP_DATA_PREFIX = "os_app_data_"
WINDOWS_PREFIX = "session_windows_"
TERM_HISTORY_PREFIX = "session_term_"
TERM_INPUT_PREFIX = "session_term_input_"
SESSION_META = "session_meta_"
CURRENT_USER = "session_current_user"


def window_key(owner: str) -> str:
    """Key holding an owner's window session."""
    return f"{WINDOWS_PREFIX}{owner}"


def app_state_key(app_id: str, owner: str) -> str:
    """Key holding an app's own persisted state for one owner."""
    return f"{APP_DATA_PREFIX}{app_id}-{owner}"


def owner_from_window_key(key: str) -> str | None:
    if not key.startswith(WINDOWS_PREFIX):
        return None
    owner = key[len(WINDOWS_PREFIX):]
    return owner or None


def memory_tier(key: str) -> MemoryTier:
    if key.startswith("sys_"):
        return "bios"
    if key.startswith("os_"):
        return "hdd"
    if key.startswith("session_"):
        return "ram"
    return "unknown"
