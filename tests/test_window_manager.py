"""Window lifecycle tests."""

from __future__ import annotations

import pytest

from core.event_bus import NOTIFICATION, WINDOW_OPENED, EventBus
from core.scheduler import Scheduler
from governance.admission_controller import AdmissionController
from governance.resource_ledger import ResourceLedger
from os_controller.placement import Viewport
from os_controller.window_manager import WindowManager
from storage.kv_store import MemoryStore
from world_model.app_registry import AppContent, AppMetadata, AppRegistry
from world_model.window_state import Position, Size


def build_manager(
    owner: str = "alice",
    capacity_mb: float = 100_000,
    viewport: Viewport | None = None,
    clock=None,
) -> WindowManager:
    apps = AppRegistry(
        [
            AppMetadata("finder", "Finder", multi_instance=True, ram_usage=40),
            AppMetadata("terminal", "Terminal", multi_instance=True, ram_usage=30),
            AppMetadata("settings", "System Settings", ram_usage=60),
            AppMetadata("music", "Music", ram_usage=90),
        ]
    )
    store = MemoryStore()
    admission = AdmissionController(ResourceLedger(store, apps), capacity_mb=capacity_mb)
    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    manager = WindowManager(
        store=store,
        apps=apps,
        admission=admission,
        scheduler=Scheduler(),
        viewport=viewport,
        **kwargs,
    )
    manager.mount(owner)
    return manager


def test_single_instance_open_refocuses_and_refreshes() -> None:
    manager = build_manager()
    first = manager.open_window("music", {"path": "/a.mp3"})
    manager.minimize_window(first.id)
    z_before = first.z_index

    again = manager.open_window("music", {"path": "/b.mp3"})

    assert again is first
    assert len(manager.windows_for("music")) == 1
    assert len(manager.windows) == 1
    assert again.payload == {"path": "/b.mp3"}
    assert again.content.payload == {"path": "/b.mp3"}
    assert again.is_minimized is False
    assert again.z_index > z_before


def test_single_instance_is_per_owner() -> None:
    manager = build_manager()
    manager.open_window("settings")
    manager.open_window("settings", owner="bob")
    manager.open_window("settings", owner="bob")

    assert len(manager.windows_for("settings", "alice")) == 1
    assert len(manager.windows_for("settings", "bob")) == 1


def test_multi_instance_apps_open_new_windows() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    b = manager.open_window("finder")
    assert a.id != b.id
    assert len(manager.windows_for("finder")) == 2


def test_z_index_strictly_increases_across_focus_actions() -> None:
    manager = build_manager()
    seen: list[int] = []
    a = manager.open_window("finder")
    seen.append(a.z_index)
    b = manager.open_window("terminal")
    seen.append(b.z_index)
    manager.focus_window(a.id)
    seen.append(a.z_index)
    manager.minimize_window(a.id)
    seen.append(b.z_index)
    manager.open_window("settings")
    seen.append(manager.focused_window().z_index)

    assert seen == sorted(seen)
    assert len(set(seen)) == len(seen)
    assert seen[0] > 100


def test_minimize_promotes_next_topmost_visible_window() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    b = manager.open_window("terminal")
    manager.update_window_state(a.id, is_minimized=False)
    a.z_index, b.z_index = 10, 20

    manager.minimize_window(b.id)

    assert b.is_minimized is True
    assert a.z_index > 20
    assert manager.focused_window() is a


def test_minimize_last_visible_window_leaves_nothing_focused() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    top = manager.top_z_index
    manager.minimize_window(a.id)
    assert manager.focused_window() is None
    assert manager.top_z_index == top


def test_focus_restores_minimized_window() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    manager.minimize_window(a.id)
    manager.focus_window(a.id)
    assert a.is_minimized is False
    assert manager.focused_window() is a


def test_maximize_toggles() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    manager.maximize_window(a.id)
    assert a.is_maximized is True
    manager.maximize_window(a.id)
    assert a.is_maximized is False


def test_close_removes_window() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    b = manager.open_window("finder")
    manager.close_window(a.id)
    assert [w.id for w in manager.windows] == [b.id]
    assert manager.get(a.id) is None


def test_unknown_ids_are_ignored() -> None:
    manager = build_manager()
    manager.open_window("finder")
    top = manager.top_z_index
    manager.focus_window("nope")
    manager.minimize_window("nope")
    manager.maximize_window("nope")
    manager.close_window("nope")
    manager.update_window_state("nope", position={"x": 1, "y": 1})
    assert len(manager.windows) == 1
    assert manager.top_z_index == top


def test_update_window_state_merges_without_reordering() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    z = a.z_index

    manager.update_window_state(a.id, position={"x": 300})
    manager.update_window_state(a.id, size={"width": 5000, "height": 400})

    assert a.position == Position(x=300, y=80)
    assert a.size == Size(width=924, height=400)
    assert a.z_index == z


def test_update_window_state_rejects_identity_fields() -> None:
    manager = build_manager()
    a = manager.open_window("finder")
    with pytest.raises(ValueError):
        manager.update_window_state(a.id, z_index=5)


def test_update_window_state_rejects_wrongly_typed_values() -> None:
    manager = build_manager()
    window = manager.open_window("finder")
    manager.minimize_window(window.id)

    with pytest.raises(ValueError):
        manager.update_window_state(window.id, is_minimized="no")
    with pytest.raises(ValueError):
        manager.update_window_state(window.id, position={"x": 300}, is_maximized=1)
    with pytest.raises(ValueError):
        manager.update_window_state(window.id, title=42)
    with pytest.raises(ValueError):
        manager.update_window_state(window.id, size={"width": "wide"})

    assert window.is_minimized is True
    assert window.is_maximized is False
    assert window.position == Position(x=100, y=80)
    assert window.title == "Finder"
    assert manager.focused_window() is None


def test_flag_updates_survive_save_and_restore() -> None:
    manager = build_manager()
    window = manager.open_window("finder")
    manager.update_window_state(window.id, is_minimized=True, is_maximized=True, title="Docs")
    manager.flush()

    manager.switch_owner("bob")
    manager.switch_owner("alice")

    restored = manager.get(window.id)
    assert isinstance(restored.is_minimized, bool)
    assert restored.is_minimized is True
    assert restored.is_maximized is True
    assert manager.focused_window() is None


def test_cascade_wraps_after_max_steps() -> None:
    manager = build_manager(viewport=Viewport(1024, 768))
    positions = [manager.open_window("finder").position for _ in range(4)]
    assert [(p.x, p.y) for p in positions] == [(100, 80), (130, 110), (160, 140), (100, 80)]
    assert manager.windows[0].size == Size(width=900, height=600)


def test_cascade_uses_available_room_on_large_viewport() -> None:
    manager = build_manager(viewport=Viewport(1920, 1080))
    positions = [manager.open_window("finder").position for _ in range(11)]
    assert positions[9] == Position(x=370, y=350)
    assert positions[10] == Position(x=100, y=80)


def test_small_viewport_clamps_default_size() -> None:
    manager = build_manager(viewport=Viewport(800, 500))
    window = manager.open_window("finder")
    assert window.size == Size(width=700, height=350)


def test_set_viewport_reclamps_existing_windows() -> None:
    manager = build_manager()
    window = manager.open_window("finder")
    manager.set_viewport(600, 400)
    assert window.size == Size(width=500, height=250)


def test_ids_stay_unique_with_a_frozen_clock() -> None:
    manager = build_manager(clock=lambda: 1000.0)
    ids = [manager.open_window("finder").id for _ in range(3)]
    assert ids == ["finder-1000000", "finder-1000001", "finder-1000002"]


def test_custom_content_factory_is_used() -> None:
    calls: list[tuple[str, object, str]] = []

    def factory(app_type: str, payload: object, owner: str) -> AppContent:
        calls.append((app_type, payload, owner))
        return AppContent(content=object(), title=f"{app_type}!")

    manager = build_manager()
    manager.content_factory = factory
    window = manager.open_window("terminal", {"cwd": "~"})
    assert window.title == "terminal!"
    assert calls == [("terminal", {"cwd": "~"}, "alice")]


def test_lifecycle_events_are_emitted() -> None:
    manager = build_manager()
    bus: EventBus = manager.event_bus
    opened: list[dict] = []
    bus.subscribe(WINDOW_OPENED, opened.append)
    window = manager.open_window("finder")
    assert opened == [{"id": window.id, "app_type": "finder", "owner": "alice"}]


def test_unsubscribed_handler_stops_receiving_events() -> None:
    manager = build_manager()
    opened: list[dict] = []
    manager.event_bus.subscribe(WINDOW_OPENED, opened.append)
    manager.open_window("finder")
    manager.event_bus.unsubscribe(WINDOW_OPENED, opened.append)
    manager.event_bus.unsubscribe(WINDOW_OPENED, opened.append)
    manager.open_window("finder")
    assert len(opened) == 1


def test_failing_subscriber_does_not_break_operations() -> None:
    manager = build_manager()

    def broken(_: dict) -> None:
        raise RuntimeError("boom")

    manager.event_bus.subscribe(WINDOW_OPENED, broken)
    manager.event_bus.subscribe(NOTIFICATION, broken)
    assert manager.open_window("finder") is not None
