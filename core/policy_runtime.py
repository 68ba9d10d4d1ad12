"""Configuration loading and runtime path bootstrapping."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from storage.keys import SYSTEM_CONFIG
from storage.kv_store import PersistenceStore

logger = logging.getLogger("aurora.config")

DEFAULT_SYSTEM_MEMORY_GB = 2


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from file, returning empty mapping when missing."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def ensure_runtime_dirs(root: Path, config: dict[str, Any]) -> dict[str, Path]:
    """Ensure the database and log directories exist and return resolved paths."""
    paths_cfg = config.get("paths", {})
    db_path = (root / paths_cfg.get("db_path", "workspace/aurora.db")).resolve()
    audit_log_path = (root / paths_cfg.get("audit_log_path", "logs/admission.jsonl")).resolve()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    audit_log_path.parent.mkdir(parents=True, exist_ok=True)

    return {
        "db_path": db_path,
        "audit_log_path": audit_log_path,
    }


def load_effective_config(root: Path) -> dict[str, Any]:
    """Load and merge all runtime configuration files."""
    config_dir = root / "config"
    default_cfg = load_yaml(config_dir / "default.yaml")
    local_cfg = load_yaml(config_dir / "local.yaml")
    apps_cfg = load_yaml(config_dir / "apps.yaml")

    merged = merge_dicts(default_cfg, local_cfg)
    merged["apps"] = apps_cfg
    return merged


def load_system_config(store: PersistenceStore) -> dict[str, Any]:
    """User-editable system settings persisted in the store."""
    raw = store.get(SYSTEM_CONFIG)
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("Failed to load system config: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_system_config(store: PersistenceStore, updates: dict[str, Any]) -> dict[str, Any]:
    merged = {**load_system_config(store), **updates}
    store.set(SYSTEM_CONFIG, json.dumps(merged))
    return merged


def total_memory_gb(config: dict[str, Any], store: PersistenceStore) -> float:
    """Capacity setting: the persisted system value wins over the YAML default."""
    stored = load_system_config(store).get("totalMemoryGB")
    if isinstance(stored, (int, float)) and not isinstance(stored, bool) and stored > 0:
        return float(stored)
    return float(config.get("system", {}).get("total_memory_gb", DEFAULT_SYSTEM_MEMORY_GB))
