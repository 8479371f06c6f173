"""
Session repository — the persisted "currently authenticated user" marker.

Each client holds an opaque token; the marker maps it to a user id and
to the profile the client has open.  Markers survive restarts through
the backend, are removed on logout, and expire `SESSION_TTL_HOURS`
after login.  Expired markers are dropped whenever a new one is created.

Expiry does not release locks; a lock left by an expired session is
cleared with `force_release()` like any other stuck lock.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.logging import get_logger
from casedesk.core.security import gen_token
from casedesk.db.models.base import utcnow
from casedesk.domain.records import SessionMarker, decode_sessions, encode_sessions
from casedesk.storage.backend import KeyValueBackend

logger = get_logger(__name__)


class SessionRepository:
    """Session markers stored as one JSON object under `SESSIONS_KEY`."""

    def __init__(
        self,
        backend: KeyValueBackend,
        config: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.backend = backend
        self.config = config or default_settings
        self.key = self.config.SESSIONS_KEY
        self.clock = clock

    def _load(self) -> dict[str, SessionMarker]:
        return decode_sessions(self.backend.get(self.key))

    def _save(self, sessions: dict[str, SessionMarker]) -> None:
        self.backend.put(self.key, encode_sessions(sessions))

    def _expired(self, marker: SessionMarker, now: datetime) -> bool:
        return now - marker.created_at >= timedelta(hours=self.config.SESSION_TTL_HOURS)

    def create_session(self, user_id: str) -> str:
        """Persist a new marker for `user_id` and return its token."""
        now = self.clock()
        sessions = {t: m for t, m in self._load().items() if not self._expired(m, now)}
        token = gen_token()
        sessions[token] = SessionMarker(user_id=user_id, created_at=now)
        self._save(sessions)
        logger.info("Session started", user_id=user_id)
        return token

    def get_session(self, token: str) -> SessionMarker | None:
        """The live marker for `token`; None if unknown or expired."""
        marker = self._load().get(token)
        if marker is None or self._expired(marker, self.clock()):
            return None
        return marker

    def get_user_id(self, token: str) -> str | None:
        marker = self.get_session(token)
        return marker.user_id if marker else None

    def save_state(self, token: str, active_profile_id: str | None, read_only: bool) -> None:
        """Record what the client has open. A no-op once the session has ended."""
        sessions = self._load()
        marker = sessions.get(token)
        if marker is None:
            return
        sessions[token] = marker.model_copy(update={
            "active_profile_id": active_profile_id,
            "read_only": read_only,
        })
        self._save(sessions)

    def end_session(self, token: str) -> str | None:
        """Remove the marker. Returns the user id it pointed to."""
        sessions = self._load()
        marker = sessions.pop(token, None)
        if marker is None:
            return None
        self._save(sessions)
        logger.info("Session ended", user_id=marker.user_id)
        return marker.user_id
