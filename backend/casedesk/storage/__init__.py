"""
Storage package — the persistence hook behind every store.

Convention:
    - Stores depend on `KeyValueBackend`, never on a concrete class
    - `build_backend()` picks the implementation from settings
"""

from __future__ import annotations

from casedesk.core.config import Settings, settings as default_settings
from casedesk.storage.backend import KeyValueBackend, MemoryBackend


def build_backend(config: Settings | None = None) -> KeyValueBackend:
    """Create the backend named by `STORAGE_BACKEND`."""
    config = config or default_settings
    if config.STORAGE_BACKEND == "memory":
        return MemoryBackend()

    from casedesk.storage.sql_backend import SqlBackend

    return SqlBackend(config.DATABASE_URL, echo=False)


__all__ = ["KeyValueBackend", "MemoryBackend", "build_backend"]
