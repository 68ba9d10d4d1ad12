"""Debounced writer for window sessions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from core.scheduler import Scheduler
from storage.keys import window_key
from storage.kv_store import PersistenceStore, StorageError
from world_model.session_codec import encode_session
from world_model.window_state import WindowDescriptor

logger = logging.getLogger("aurora.session_writer")

SnapshotSource = Callable[[], Sequence[WindowDescriptor]]


class SessionWriter:
    """Coalesces rapid session changes into one store write.

    ``schedule`` cancels any pending write and re-arms the timer; ``flush``
    writes the pending snapshot immediately; ``cancel`` drops it.
    """

    def __init__(
        self,
        store: PersistenceStore,
        scheduler: Scheduler,
        delay_seconds: float = 0.3,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.delay_seconds = delay_seconds
        self.write_count = 0
        self._task_id: int | None = None
        self._owner: str | None = None
        self._source: SnapshotSource | None = None

    @property
    def pending(self) -> bool:
        return self._task_id is not None and self.scheduler.is_pending(self._task_id)

    def schedule(self, owner: str, source: SnapshotSource) -> None:
        self.cancel()
        self._owner = owner
        self._source = source
        self._task_id = self.scheduler.call_later(self.delay_seconds, self._write)

    def flush(self) -> bool:
        """Write now if something is pending. Returns whether a write happened."""
        if not self.pending:
            return False
        self.scheduler.cancel(self._task_id)
        return self._write()

    def cancel(self) -> None:
        if self._task_id is not None:
            self.scheduler.cancel(self._task_id)
        self._task_id = None
        self._owner = None
        self._source = None

    def _write(self) -> bool:
        owner, source = self._owner, self._source
        self._task_id = None
        self._owner = None
        self._source = None
        if owner is None or source is None:
            return False
        try:
            self.store.set(window_key(owner), encode_session(source()))
        except (StorageError, TypeError, ValueError) as exc:
            logger.warning("Failed to save windows for %s: %s", owner, exc)
            return False
        self.write_count += 1
        return True
