"""Window manager for the simulated desktop session."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from core.event_bus import (
    ADMISSION_REFUSED,
    SESSION_RESTORED,
    WINDOW_CLOSED,
    WINDOW_FOCUSED,
    WINDOW_MAXIMIZED,
    WINDOW_MINIMIZED,
    WINDOW_OPENED,
    EventBus,
)
from core.scheduler import Scheduler
from governance.admission_controller import AdmissionController, AdmissionDecision
from os_controller.placement import Viewport, cascade_geometry, clamp_size
from storage.keys import window_key
from storage.kv_store import PersistenceStore
from storage.session_writer import SessionWriter
from world_model.app_registry import AppRegistry, ContentFactory
from world_model.session_codec import decode_session, rehydrate
from world_model.window_state import DEFAULT_Z_INDEX, Position, Size, WindowDescriptor

DEFAULT_OWNER = "guest"
UPDATABLE_FIELDS = frozenset({"position", "size", "is_minimized", "is_maximized", "title", "payload"})


class WindowManager:
    """Owns the active session's windows and every lifecycle operation.

    All operations run to completion on the caller's thread. Each mutation
    schedules a debounced session write; ``switch_owner`` and ``close`` flush
    it synchronously.
    """

    def __init__(
        self,
        *,
        store: PersistenceStore,
        apps: AppRegistry,
        admission: AdmissionController,
        content_factory: ContentFactory | None = None,
        event_bus: EventBus | None = None,
        scheduler: Scheduler | None = None,
        viewport: Viewport | None = None,
        debounce_seconds: float = 0.3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.logger = logging.getLogger("aurora.window_manager")
        self.store = store
        self.apps = apps
        self.admission = admission
        self.content_factory: ContentFactory = content_factory or apps.build_content
        self.event_bus = event_bus or EventBus()
        self.scheduler = scheduler or Scheduler()
        self.viewport = viewport or Viewport()
        self.active_owner: str | None = None
        self._clock = clock
        self._windows: list[WindowDescriptor] = []
        self._top_z = DEFAULT_Z_INDEX
        self._last_id_ms = 0
        self._writer = SessionWriter(store, self.scheduler, debounce_seconds)

    # ── queries ──────────────────────────────────────────────────────

    @property
    def windows(self) -> list[WindowDescriptor]:
        return list(self._windows)

    @property
    def top_z_index(self) -> int:
        return self._top_z

    @property
    def has_pending_write(self) -> bool:
        return self._writer.pending

    def get(self, window_id: str) -> WindowDescriptor | None:
        return next((w for w in self._windows if w.id == window_id), None)

    def windows_for(self, app_type: str, owner: str | None = None) -> list[WindowDescriptor]:
        owner = owner or self.active_owner
        return [w for w in self._windows if w.app_type == app_type and w.owner == owner]

    def focused_window(self) -> WindowDescriptor | None:
        """Visible window with the highest z-index."""
        visible = [w for w in self._windows if w.is_visible]
        if not visible:
            return None
        return max(visible, key=lambda w: w.z_index)

    # ── session lifecycle ────────────────────────────────────────────

    def switch_owner(self, owner: str) -> list[WindowDescriptor]:
        """Flush the current session and load ``owner``'s session in its place."""
        if self.active_owner is not None:
            self._writer.flush()
        self._writer.cancel()
        self.active_owner = owner
        self._windows = self._restore(owner)
        self.event_bus.emit(SESSION_RESTORED, {"owner": owner, "count": len(self._windows)})
        return self.windows

    mount = switch_owner

    def close(self) -> None:
        """Flush any pending write. Safe to call more than once."""
        self._writer.flush()

    def __enter__(self) -> WindowManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def flush(self) -> bool:
        return self._writer.flush()

    # ── window operations ────────────────────────────────────────────

    def open_window(
        self,
        app_type: str,
        payload: Any = None,
        owner: str | None = None,
    ) -> WindowDescriptor | None:
        """Open (or focus and refresh) a window. Returns None when refused."""
        owner = owner or self.active_owner or DEFAULT_OWNER
        decision = self._admit(app_type, owner)
        if not decision.allowed:
            self.event_bus.notify("error", decision.app_name, decision.reason, app_type=app_type)
            self.event_bus.emit(
                ADMISSION_REFUSED,
                {"app_type": app_type, "owner": owner, "reason": decision.reason},
            )
            return None

        if self.apps.is_single_instance(app_type):
            existing = next(
                (w for w in self._windows if w.app_type == app_type and w.owner == owner), None
            )
            if existing is not None:
                built = self.content_factory(app_type, payload, owner)
                existing.payload = payload
                existing.content = built.content
                existing.title = built.title
                existing.is_minimized = False
                existing.z_index = self._next_z()
                self.logger.debug("Refocused single-instance %s (%s)", app_type, existing.id)
                self.event_bus.emit(WINDOW_FOCUSED, {"id": existing.id, "app_type": app_type})
                self._persist()
                return existing

        built = self.content_factory(app_type, payload, owner)
        position, size = cascade_geometry(len(self._windows), self.viewport)
        window = WindowDescriptor(
            id=self._new_id(app_type),
            app_type=app_type,
            title=built.title,
            position=position,
            size=size,
            z_index=self._next_z(),
            payload=payload,
            owner=owner,
            content=built.content,
        )
        self._windows.append(window)
        self.logger.info("Opened %s for %s as %s", app_type, owner, window.id)
        self.event_bus.emit(WINDOW_OPENED, {"id": window.id, "app_type": app_type, "owner": owner})
        self._persist()
        return window

    def close_window(self, window_id: str) -> None:
        window = self._lookup(window_id)
        if window is None:
            return
        self._windows = [w for w in self._windows if w.id != window_id]
        self.event_bus.emit(WINDOW_CLOSED, {"id": window_id, "app_type": window.app_type})
        self._persist()

    def minimize_window(self, window_id: str) -> None:
        """Minimize, then bring the topmost remaining visible window forward."""
        window = self._lookup(window_id)
        if window is None:
            return
        window.is_minimized = True
        self.event_bus.emit(WINDOW_MINIMIZED, {"id": window_id, "app_type": window.app_type})
        # TODO: confirm with product that minimize should re-focus the next window.
        promoted = self.focused_window()
        if promoted is not None:
            promoted.z_index = self._next_z()
        self._persist()

    def maximize_window(self, window_id: str) -> None:
        """Toggle the maximized flag."""
        window = self._lookup(window_id)
        if window is None:
            return
        window.is_maximized = not window.is_maximized
        self.event_bus.emit(
            WINDOW_MAXIMIZED,
            {"id": window_id, "app_type": window.app_type, "is_maximized": window.is_maximized},
        )
        self._persist()

    def focus_window(self, window_id: str) -> None:
        window = self._lookup(window_id)
        if window is None:
            return
        window.z_index = self._next_z()
        window.is_minimized = False
        self.event_bus.emit(WINDOW_FOCUSED, {"id": window_id, "app_type": window.app_type})
        self._persist()

    def update_window_state(self, window_id: str, **changes: Any) -> None:
        """Shallow-merge drag/resize results or flags. No z-order change."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update window fields: {', '.join(sorted(unknown))}")
        window = self._lookup(window_id)
        if window is None:
            return
        if "position" in changes:
            changes["position"] = _merged(window.position, changes["position"])
        if "size" in changes:
            changes["size"] = clamp_size(_merged(window.size, changes["size"]), self.viewport)
        # Validate the whole update first so a bad value leaves the window untouched.
        WindowDescriptor.model_validate({**window.model_dump(), **changes})
        for name, value in changes.items():
            setattr(window, name, value)
        self._persist()

    def set_viewport(self, width: int, height: int) -> None:
        """Apply a new viewport and re-clamp every window to it."""
        self.viewport = Viewport(width=width, height=height)
        changed = False
        for window in self._windows:
            clamped = clamp_size(window.size, self.viewport)
            if clamped != window.size:
                window.size = clamped
                changed = True
        if changed:
            self._persist()

    # ── internals ────────────────────────────────────────────────────

    def _admit(self, app_type: str, owner: str) -> AdmissionDecision:
        active = self.active_owner or owner
        return self.admission.can_open(
            app_type,
            owner,
            active,
            [w for w in self._windows if w.owner == owner],
            live_sessions={active: self._windows},
        )

    def _lookup(self, window_id: str) -> WindowDescriptor | None:
        window = self.get(window_id)
        if window is None:
            self.logger.debug("No window with id %s", window_id)
        return window

    def _next_z(self) -> int:
        self._top_z += 1
        return self._top_z

    def _new_id(self, app_type: str) -> str:
        taken = {w.id for w in self._windows}
        stamp = max(int(self._clock() * 1000), self._last_id_ms + 1)
        while f"{app_type}-{stamp}" in taken:
            stamp += 1
        self._last_id_ms = stamp
        return f"{app_type}-{stamp}"

    def _persist(self) -> None:
        if self.active_owner is None:
            return
        self._writer.schedule(self.active_owner, lambda: self._windows)

    def _restore(self, owner: str) -> list[WindowDescriptor]:
        stored = decode_session(self.store.get(window_key(owner)), owner)
        windows = rehydrate(stored, self.content_factory)
        for window in windows:
            window.size = clamp_size(window.size, self.viewport)
        self._top_z = max([self._top_z, DEFAULT_Z_INDEX, *(w.z_index for w in windows)])
        self.logger.info("Restored %d windows for %s", len(windows), owner)
        return windows


def _merged(current: Position | Size, value: Any) -> Any:
    """Apply a full model or a partial mapping on top of ``current``."""
    model = type(current)
    if isinstance(value, model):
        return value
    if isinstance(value, dict):
        return model.model_validate({**current.model_dump(), **value})
    raise ValueError(f"Expected {model.__name__} or mapping, got {type(value).__name__}")
