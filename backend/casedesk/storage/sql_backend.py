"""
Adapter: SQL Key-Value Backend

Concrete KeyValueBackend storing each key as a row of `kv_entries`
through SQLAlchemy.  Works with SQLite (default) or any other
SQLAlchemy URL.
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from casedesk.core.errors import StorageError, StorageQuotaExceededError
from casedesk.core.logging import get_logger
from casedesk.db.models import KeyValueEntry
from casedesk.db.session import build_engine, build_sessionmaker, session_scope
from casedesk.storage.backend import KeyValueBackend

logger = get_logger(__name__)

_QUOTA_MARKERS = ("full", "quota", "no space")


class SqlBackend(KeyValueBackend):
    """Key-value storage on a relational database."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self.engine = build_engine(database_url, echo=echo)
        self._sessions = build_sessionmaker(self.engine)

    def get(self, key: str) -> str | None:
        try:
            with session_scope(self._sessions) as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            logger.error("Storage read failed", key=key, error=str(exc))
            raise StorageError(f"Could not read '{key}'", details={"key": key}) from exc

    def put(self, key: str, value: str) -> None:
        try:
            with session_scope(self._sessions) as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    db.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
        except OperationalError as exc:
            if any(marker in str(exc).lower() for marker in _QUOTA_MARKERS):
                raise StorageQuotaExceededError(details={"key": key}) from exc
            logger.error("Storage write failed", key=key, error=str(exc))
            raise StorageError(f"Could not write '{key}'", details={"key": key}) from exc
        except SQLAlchemyError as exc:
            logger.error("Storage write failed", key=key, error=str(exc))
            raise StorageError(f"Could not write '{key}'", details={"key": key}) from exc

    def delete(self, key: str) -> None:
        try:
            with session_scope(self._sessions) as db:
                entry = db.get(KeyValueEntry, key)
                if entry is not None:
                    db.delete(entry)
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not delete '{key}'", details={"key": key}) from exc
