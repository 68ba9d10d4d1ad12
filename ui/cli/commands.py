"""Typer command handlers."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer

from core.event_bus import NOTIFICATION
from core.orchestrator import Orchestrator, RuntimeBundle
from core.policy_runtime import save_system_config
from governance.admission_controller import capacity_mb_from_gb
from storage.maintenance import (
    clear_session,
    factory_reset,
    format_bytes,
    hard_reset,
    soft_reset,
    storage_stats,
)
from world_model.window_state import WindowDescriptor

ROOT_OVERRIDE: Path | None = None


def _runtime(owner: str | None = None) -> RuntimeBundle:
    bundle = Orchestrator(root=ROOT_OVERRIDE).build(owner=owner)
    bundle.event_bus.subscribe(NOTIFICATION, _echo_notification)
    return bundle


def _echo_notification(payload: dict[str, Any]) -> None:
    typer.echo(f"[{payload.get('level', 'info')}] {payload.get('message', '')}", err=True)


def _describe(window: WindowDescriptor, focused_id: str | None) -> str:
    flags = []
    if window.id == focused_id:
        flags.append("focused")
    if window.is_minimized:
        flags.append("minimized")
    if window.is_maximized:
        flags.append("maximized")
    pos, size = window.position, window.size
    return (
        f"{window.id}  {window.title}  z={window.z_index}  "
        f"at ({pos.x:g},{pos.y:g}) {size.width:g}x{size.height:g}  owner={window.owner}"
        + (f"  [{', '.join(flags)}]" if flags else "")
    )


def _with_window(window_id: str, action: Callable[[RuntimeBundle], None]) -> None:
    bundle = _runtime()
    with bundle.windows:
        if bundle.windows.get(window_id) is None:
            typer.echo(f"No window with id {window_id}")
            raise typer.Exit(code=1)
        action(bundle)


def windows_open(app: str, owner: str | None, payload: str | None) -> None:
    """Open an app window."""
    try:
        data = json.loads(payload) if payload else None
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"payload is not valid JSON: {exc.msg}", param_hint="--payload") from exc
    bundle = _runtime()
    with bundle.windows:
        window = bundle.windows.open_window(app, data, owner)
    if window is None:
        raise typer.Exit(code=1)
    typer.echo(f"Opened {window.title}: {window.id}")


def windows_list() -> None:
    bundle = _runtime()
    with bundle.windows:
        focused = bundle.windows.focused_window()
        focused_id = focused.id if focused else None
        typer.echo(f"Session: {bundle.active_owner}")
        if not bundle.windows.windows:
            typer.echo("No open windows.")
        for window in sorted(bundle.windows.windows, key=lambda w: w.z_index):
            typer.echo(_describe(window, focused_id))


def windows_close(window_id: str) -> None:
    _with_window(window_id, lambda b: b.windows.close_window(window_id))


def windows_focus(window_id: str) -> None:
    _with_window(window_id, lambda b: b.windows.focus_window(window_id))


def windows_minimize(window_id: str) -> None:
    _with_window(window_id, lambda b: b.windows.minimize_window(window_id))


def windows_maximize(window_id: str) -> None:
    _with_window(window_id, lambda b: b.windows.maximize_window(window_id))


def windows_move(window_id: str, x: float, y: float) -> None:
    _with_window(window_id, lambda b: b.windows.update_window_state(window_id, position={"x": x, "y": y}))


def windows_resize(window_id: str, width: float, height: float) -> None:
    _with_window(
        window_id,
        lambda b: b.windows.update_window_state(window_id, size={"width": width, "height": height}),
    )


def session_show() -> None:
    bundle = _runtime()
    with bundle.windows:
        stats = storage_stats(bundle.store)
    typer.echo(f"Active owner: {bundle.active_owner}")
    typer.echo(f"Open windows: {len(bundle.windows.windows)}")
    for tier in ("bios", "hdd", "ram", "total"):
        typer.echo(f"{tier}: {stats[tier]['keys']} keys, {format_bytes(stats[tier]['bytes'])}")


def session_switch(owner: str) -> None:
    bundle = _runtime()
    with bundle.windows:
        bundle.switch_owner(owner)
    typer.echo(f"Switched to {owner} ({len(bundle.windows.windows)} windows restored)")


def session_clear(owner: str) -> None:
    bundle = _runtime()
    removed = clear_session(bundle.store, owner)
    typer.echo(f"Cleared session for {owner} ({removed} keys)")


def session_reset(hard: bool, factory: bool) -> None:
    bundle = _runtime()
    if factory:
        removed = factory_reset(bundle.store)
        kind = "Factory"
    elif hard:
        removed = hard_reset(bundle.store)
        kind = "Hard"
    else:
        removed = soft_reset(bundle.store)
        kind = "Soft"
    typer.echo(f"{kind} reset removed {removed} keys")


def memory_report() -> None:
    bundle = _runtime()
    with bundle.windows:
        report = bundle.ledger.compute(bundle.active_owner, live_sessions={bundle.active_owner: bundle.windows.windows})
    for usage in report.breakdown:
        typer.echo(
            f"{usage.owner} ({usage.session_type}): session {usage.session_ram:g}MB + "
            f"apps {usage.apps_ram:g}MB = {usage.total_owner_ram:g}MB"
        )
        for line in usage.details:
            typer.echo(f"  {line}")
    typer.echo(f"Total: {report.total_mb}MB / {bundle.admission.capacity_mb:g}MB")


def memory_set_capacity(gb: float) -> None:
    bundle = _runtime()
    save_system_config(bundle.store, {"totalMemoryGB": gb})
    typer.echo(f"Capacity set to {gb:g}GB ({capacity_mb_from_gb(gb):g}MB)")


def apps_list() -> None:
    bundle = _runtime()
    for heading, group in (("Core", bundle.apps.core_apps()), ("Optional", bundle.apps.optional_apps())):
        typer.echo(f"{heading} apps:")
        for app in sorted(group, key=lambda a: a.id):
            mode = "multi" if app.multi_instance else "single"
            typer.echo(f"  {app.id}: {app.name} ({mode}-instance, {app.ram_usage:g}MB)")


def config_show() -> None:
    """Show effective runtime config."""
    bundle = _runtime()
    typer.echo(json.dumps(bundle.config, indent=2, default=str))
