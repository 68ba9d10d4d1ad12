"""Key/value string stores used for session and app-state persistence."""

from __future__ import annotations

from typing import Protocol


class StorageError(RuntimeError):
    """Raised when a store cannot complete a write."""


class StorageQuotaError(StorageError):
    """Raised when a write would exceed the store quota."""


class PersistenceStore(Protocol):
    """Minimal string store contract shared by all backends."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """Dictionary-backed store with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._store: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = self.used_bytes() - self._entry_size(key, self._store.get(key))
            if used + self._entry_size(key, value) > self.quota_bytes:
                raise StorageQuotaError(f"Quota of {self.quota_bytes} bytes exceeded writing {key!r}.")
        self._store[key] = value

    def remove(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._store)

    def clear(self) -> None:
        self._store.clear()

    def used_bytes(self) -> int:
        return sum(self._entry_size(k, v) for k, v in self._store.items())

    def __len__(self) -> int:
        return len(self._store)

    @staticmethod
    def _entry_size(key: str, value: str | None) -> int:
        if value is None:
            return 0
        return len((key + value).encode("utf-8"))
