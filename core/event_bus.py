"""In-process event bus used as the shell's notification sink."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

EventHandler = Callable[[dict[str, Any]], None]

logger = logging.getLogger("aurora.event_bus")

NOTIFICATION = "notification"
WINDOW_OPENED = "window.opened"
WINDOW_CLOSED = "window.closed"
WINDOW_MINIMIZED = "window.minimized"
WINDOW_MAXIMIZED = "window.maximized"
WINDOW_FOCUSED = "window.focused"
SESSION_RESTORED = "session.restored"
ADMISSION_REFUSED = "admission.refused"


class EventBus:
    """Dispatches events to subscribers by event name.

    Delivery is fire-and-forget: a failing handler is logged and does not
    stop the remaining handlers or the emitter.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Register a callback for an event."""
        self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        """Emit an event to all subscribers."""
        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for %s failed", event_name)

    def notify(self, level: str, source: str, message: str, **extra: Any) -> None:
        """User-visible notification (toast)."""
        self.emit(NOTIFICATION, {"level": level, "source": source, "message": message, **extra})
