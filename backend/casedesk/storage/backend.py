"""
Contract: Key-Value Backend

Persistence hook behind the user, profile and session stores.
Each key holds one serialized JSON document.  Reads and writes are
synchronous; there are no transactions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from casedesk.core.errors import StorageQuotaExceededError


class KeyValueBackend(ABC):
    """
    Port: Key-Value Backend

    Implementations can be in-memory (tests, demos) or SQL-backed.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored document for `key`, or None if absent."""
        ...

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """
        Store `value` under `key`, replacing any previous document.

        Raises:
            StorageQuotaExceededError: the backend is out of space.
            StorageError: any other write failure.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key` if present."""
        ...


class MemoryBackend(KeyValueBackend):
    """
    Dict-backed storage.

    `max_bytes` caps the total size of all stored documents, which is
    how a browser's local storage behaves when it fills up.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self.max_bytes = max_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            others = sum(len(v.encode()) for k, v in self._data.items() if k != key)
            if others + len(value.encode()) > self.max_bytes:
                raise StorageQuotaExceededError(details={"key": key, "max_bytes": self.max_bytes})
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
