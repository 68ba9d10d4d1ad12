"""Top-level application orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.event_bus import EventBus
from core.policy_runtime import ensure_runtime_dirs, load_effective_config, total_memory_gb
from core.scheduler import Scheduler
from governance.admission_controller import AdmissionController, capacity_mb_from_gb
from governance.audit_logger import AuditLogger
from governance.resource_ledger import ResourceLedger
from os_controller.placement import Viewport
from os_controller.window_manager import WindowManager
from storage.keys import CURRENT_USER
from storage.kv_store import PersistenceStore
from storage.sql_store import SQLStore
from world_model.app_registry import AppRegistry, build_default_registry


@dataclass
class RuntimeBundle:
    """Holds initialized runtime components."""

    config: dict[str, Any]
    store: PersistenceStore
    apps: AppRegistry
    ledger: ResourceLedger
    admission: AdmissionController
    event_bus: EventBus
    scheduler: Scheduler
    windows: WindowManager

    @property
    def active_owner(self) -> str:
        return self.windows.active_owner or ""

    def switch_owner(self, owner: str) -> None:
        """Switch the desktop to ``owner`` and remember it as current user."""
        self.windows.switch_owner(owner)
        self.store.set(CURRENT_USER, owner)


class Orchestrator:
    """Creates and wires runtime components for CLI use."""

    def __init__(self, root: Path | None = None, store: PersistenceStore | None = None) -> None:
        default_root = Path(__file__).resolve().parents[1]
        self.root = (root or default_root).resolve()
        self._store = store

    def build(self, owner: str | None = None) -> RuntimeBundle:
        config = load_effective_config(self.root)
        paths = ensure_runtime_dirs(self.root, config)

        store = self._store
        if store is None:
            sql_store = SQLStore(paths["db_path"])
            sql_store.create_all()
            store = sql_store

        apps = build_default_registry(config.get("apps", {}))
        ledger = ResourceLedger(store=store, apps=apps)
        admission = AdmissionController(
            ledger=ledger,
            capacity_mb=capacity_mb_from_gb(total_memory_gb(config, store)),
            audit_logger=AuditLogger(paths["audit_log_path"]),
        )
        event_bus = EventBus()
        scheduler = Scheduler()
        viewport_cfg = config.get("viewport", {})
        windows = WindowManager(
            store=store,
            apps=apps,
            admission=admission,
            event_bus=event_bus,
            scheduler=scheduler,
            viewport=Viewport(
                width=int(viewport_cfg.get("width", 1024)),
                height=int(viewport_cfg.get("height", 768)),
            ),
            debounce_seconds=int(config.get("persistence", {}).get("debounce_ms", 300)) / 1000,
        )
        # Apps that launch other apps (finder, terminal) go through the manager.
        apps.on_open_app = windows.open_window

        active = owner or store.get(CURRENT_USER) or self._default_owner(config)
        windows.mount(active)

        return RuntimeBundle(
            config=config,
            store=store,
            apps=apps,
            ledger=ledger,
            admission=admission,
            event_bus=event_bus,
            scheduler=scheduler,
            windows=windows,
        )

    @staticmethod
    def _default_owner(config: dict[str, Any]) -> str:
        return str(config.get("system", {}).get("default_owner", "root"))
