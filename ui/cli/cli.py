"""CLI entrypoint for the desktop session manager."""

from __future__ import annotations

import logging

import typer

from ui.cli import commands

app = typer.Typer(help="Simulated desktop window & session manager")
windows_app = typer.Typer(help="Window commands")
session_app = typer.Typer(help="Session commands")
memory_app = typer.Typer(help="Simulated memory commands")
apps_app = typer.Typer(help="Application registry commands")
config_app = typer.Typer(help="Configuration commands")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@windows_app.command("open")
def windows_open_cmd(
    app_id: str = typer.Argument(..., help="App type, e.g. finder or notepad"),
    owner: str | None = typer.Option(None, help="Open on behalf of another owner"),
    payload: str | None = typer.Option(None, help="JSON payload passed to the app"),
) -> None:
    """Open a window (or focus the existing one for single-instance apps)."""
    commands.windows_open(app=app_id, owner=owner, payload=payload)


@windows_app.command("list")
def windows_list_cmd() -> None:
    """List windows of the active session."""
    commands.windows_list()


@windows_app.command("close")
def windows_close_cmd(window_id: str) -> None:
    commands.windows_close(window_id)


@windows_app.command("focus")
def windows_focus_cmd(window_id: str) -> None:
    commands.windows_focus(window_id)


@windows_app.command("minimize")
def windows_minimize_cmd(window_id: str) -> None:
    commands.windows_minimize(window_id)


@windows_app.command("maximize")
def windows_maximize_cmd(window_id: str) -> None:
    """Toggle maximized state."""
    commands.windows_maximize(window_id)


@windows_app.command("move")
def windows_move_cmd(window_id: str, x: float, y: float) -> None:
    commands.windows_move(window_id, x, y)


@windows_app.command("resize")
def windows_resize_cmd(window_id: str, width: float, height: float) -> None:
    commands.windows_resize(window_id, width, height)


@session_app.command("show")
def session_show_cmd() -> None:
    """Show the active owner and storage usage."""
    commands.session_show()


@session_app.command("switch")
def session_switch_cmd(owner: str) -> None:
    """Switch the desktop to another owner."""
    commands.session_switch(owner)


@session_app.command("clear")
def session_clear_cmd(owner: str) -> None:
    """Log an owner out, dropping their window session."""
    commands.session_clear(owner)


@session_app.command("reset")
def session_reset_cmd(
    hard: bool = typer.Option(False, "--hard", help="Also wipe disk data"),
    factory: bool = typer.Option(False, "--factory", help="Wipe everything"),
) -> None:
    """Reset stored state (soft by default)."""
    commands.session_reset(hard=hard, factory=factory)


@memory_app.command("report")
def memory_report_cmd() -> None:
    """Show the simulated memory ledger."""
    commands.memory_report()


@memory_app.command("set-capacity")
def memory_set_capacity_cmd(gb: float = typer.Argument(..., min=0.25)) -> None:
    """Set total system memory in GB."""
    commands.memory_set_capacity(gb)


@apps_app.command("list")
def apps_list_cmd() -> None:
    commands.apps_list()


@config_app.command("show")
def config_show_cmd() -> None:
    """Show effective configuration."""
    commands.config_show()


app.add_typer(windows_app, name="windows")
app.add_typer(session_app, name="session")
app.add_typer(memory_app, name="memory")
app.add_typer(apps_app, name="apps")
app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
