"""Registry of launchable applications and their content factory."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

logger = logging.getLogger("aurora.app_registry")


@dataclass(frozen=True)
class AppMetadata:
    """Static description of one application kind."""

    id: str
    name: str
    description: str = ""
    category: str = "utilities"
    is_core: bool = False
    multi_instance: bool = False
    ram_usage: float = 0.0
    # Name of a list in the app's own persisted state whose length counts
    # open sub-units (tabs). None when the app reports nothing.
    sub_instance_field: str | None = None


@dataclass
class AppView:
    """Live UI instance handed to a window. Never persisted."""

    app_id: str
    owner: str
    payload: Any = None
    on_open_app: Callable[..., None] | None = field(default=None, repr=False)


@dataclass
class AppContent:
    """Result of the content factory."""

    content: Any
    title: str


ContentFactory = Callable[[str, Any, str], AppContent]


DEFAULT_APPS: tuple[AppMetadata, ...] = (
    AppMetadata("finder", "Finder", "File Manager", "system", True, True, 40),
    AppMetadata("browser", "Browser", "Access the web", "utilities", True, True, 100),
    AppMetadata("mail", "Mail", "Read and write emails", "productivity", False, False, 80),
    AppMetadata("appstore", "App Store", "Download and manage apps", "system", True, False, 120),
    AppMetadata("terminal", "Terminal", "Command line interface", "development", True, True, 30),
    AppMetadata("settings", "System Settings", "Configure your system", "system", True, False, 60),
    AppMetadata(
        "notepad", "Notepad", "Edit text files", "productivity", False, False, 30,
        sub_instance_field="tabs",
    ),
    AppMetadata("messages", "Messages", "Chat with friends", "productivity", True, False, 70),
    AppMetadata("calendar", "Calendar", "Manage your schedule", "productivity", False, False, 50),
    AppMetadata("photos", "Photos", "View and manage photos", "media", False, False, 150),
    AppMetadata("music", "Music", "Play your favorite music", "media", False, False, 90),
    AppMetadata("videos", "Videos", "Watch movies and clips", "media", False, False, 200),
    AppMetadata("dev-center", "DevCenter", "Developer Tools", "development", False, False, 180),
    AppMetadata("trash", "Trash", "Deleted items", "system", True, False, 40),
)


class AppRegistry:
    """Tracks app metadata and builds window content."""

    def __init__(self, apps: list[AppMetadata] | tuple[AppMetadata, ...] = ()) -> None:
        self._apps: dict[str, AppMetadata] = {}
        self.on_open_app: Callable[..., None] | None = None
        for app in apps:
            self.register(app)

    def register(self, app: AppMetadata) -> None:
        self._apps[app.id] = app

    def get(self, app_id: str) -> AppMetadata | None:
        return self._apps.get(app_id)

    def all(self) -> list[AppMetadata]:
        return list(self._apps.values())

    def core_apps(self) -> list[AppMetadata]:
        return [app for app in self._apps.values() if app.is_core]

    def optional_apps(self) -> list[AppMetadata]:
        return [app for app in self._apps.values() if not app.is_core]

    def is_single_instance(self, app_id: str) -> bool:
        """Unknown apps are treated as single-instance."""
        app = self._apps.get(app_id)
        return not (app and app.multi_instance)

    def ram_usage(self, app_id: str) -> float:
        app = self._apps.get(app_id)
        return float(app.ram_usage) if app else 0.0

    def display_name(self, app_id: str) -> str:
        app = self._apps.get(app_id)
        if app:
            return app.name
        return app_id[:1].upper() + app_id[1:]

    def build_content(self, app_id: str, payload: Any, owner: str) -> AppContent:
        """Default content factory: a fresh view per call."""
        view = AppView(app_id=app_id, owner=owner, payload=payload, on_open_app=self.on_open_app)
        return AppContent(content=view, title=self.display_name(app_id))

    def apply_overrides(self, overrides: dict[str, Any]) -> None:
        """Merge per-app settings from configuration (``apps.yaml``)."""
        for app_id, settings in overrides.items():
            if not isinstance(settings, dict):
                logger.warning("Ignoring non-mapping app override for %s", app_id)
                continue
            known = {
                key: settings[key]
                for key in ("name", "description", "category", "is_core",
                            "multi_instance", "ram_usage", "sub_instance_field")
                if key in settings
            }
            current = self._apps.get(app_id)
            if current is None:
                self.register(AppMetadata(id=app_id, name=str(known.pop("name", app_id)), **known))
            else:
                self.register(replace(current, **known))


def build_default_registry(overrides: dict[str, Any] | None = None) -> AppRegistry:
    registry = AppRegistry(DEFAULT_APPS)
    if overrides:
        registry.apply_overrides(overrides)
    return registry
