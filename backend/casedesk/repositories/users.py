"""
User repository — the identity store.

Repository rules:
- Pure data-access logic only
- The whole user collection is read fresh from the backend on every call
- Every write persists the updated collection immediately
"""

from __future__ import annotations

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.constants import UserRole
from casedesk.core.errors import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidInputError,
)
from casedesk.core.logging import get_logger
from casedesk.domain.records import User, decode_users, encode_users
from casedesk.storage.backend import KeyValueBackend

logger = get_logger(__name__)


class UserRepository:
    """User accounts stored as one JSON list under `USERS_KEY`."""

    def __init__(self, backend: KeyValueBackend, config: Settings | None = None) -> None:
        self.backend = backend
        self.config = config or default_settings
        self.key = self.config.USERS_KEY

    # ─── Reads ────────────────────────────────────────────
    def list_users(self) -> list[User]:
        """All users in creation order."""
        return decode_users(self.backend.get(self.key))

    def get_user_by_id(self, user_id: str) -> User | None:
        for user in self.list_users():
            if user.id == user_id:
                return user
        return None

    def get_user_by_username(self, username: str) -> User | None:
        """Exact, case-sensitive username lookup."""
        for user in self.list_users():
            if user.username == username:
                return user
        return None

    def authenticate_user(self, username: str, password: str) -> User:
        """Validate credentials verbatim and return the full user record."""
        user = self.get_user_by_username(username)
        if user is None or user.password != password:
            logger.info("Login rejected", username=username)
            raise InvalidCredentialsError()
        return user

    # ─── Writes ───────────────────────────────────────────
    def create_user(
        self,
        full_name: str,
        username: str,
        phone: str | None,
        area: str,
        password: str | None = None,
    ) -> User:
        """Create a staff account. Admins are only ever seeded."""
        if not full_name.strip() or not username.strip() or not (area or "").strip():
            raise InvalidInputError("Full name, username and area are required")

        users = self.list_users()
        if any(u.username == username for u in users):
            raise DuplicateUsernameError(username)

        user = User(
            username=username,
            password=password or self.config.DEFAULT_STAFF_PASSWORD,
            full_name=full_name.strip(),
            role=UserRole.STAFF,
            phone_number=(phone or "").strip() or None,
            area=area.strip(),
        )
        self._save([*users, user])
        logger.info("User created", user_id=user.id, username=username, area=user.area)
        return user

    def seed_admin(self) -> User:
        """Create the bootstrap admin if no admin exists yet."""
        users = self.list_users()
        for user in users:
            if user.is_admin:
                return user

        admin = User(
            username=self.config.ADMIN_USERNAME,
            password=self.config.ADMIN_PASSWORD,
            full_name=self.config.ADMIN_FULL_NAME,
            role=UserRole.ADMIN,
            can_approve=True,
        )
        self._save([admin, *users])
        logger.info("Admin account seeded", user_id=admin.id, username=admin.username)
        return admin

    def _save(self, users: list[User]) -> None:
        self.backend.put(self.key, encode_users(users))
