"""
CaseDesk — the facade a client drives.

`CaseDesk` wires the shared stores together (one per process).  Each
logged-in client gets a `DeskSession`, a logical actor that remembers
which profile it has open and whether it is read-only.  That state is
saved on the session marker after every operation, so `resume()` can
rebuild the session in any request (or process).

Every `DeskSession` operation returns an `Outcome`.  A CaseDeskError
never escapes: it becomes a message for the acting user and the client
is sent back to a safe view (the list, when the profile is gone).

Usage::

    desk = CaseDesk(backend)
    desk.bootstrap()
    outcome = desk.login("admin", "admin123")
    session = outcome.data["session"]
    opened = session.open_profile(profile_id, OpenMode.EDIT)
    ...
    session.close_profile()
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, TypeVar

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.constants import ListTab, OpenMode, ReportPeriod, View
from casedesk.core.errors import (
    AlreadyApprovedError,
    CaseDeskError,
    DocumentNotFoundError,
    LockConflictError,
    NotFoundError,
    PermissionDeniedError,
    ProfileNotFoundError,
    StorageError,
    StorageQuotaExceededError,
)
from casedesk.core.logging import get_logger
from casedesk.db.models.base import utcnow
from casedesk.domain.records import Profile, User
from casedesk.repositories.profiles import ProfileRepository
from casedesk.repositories.sessions import SessionRepository
from casedesk.repositories.users import UserRepository
from casedesk.services import listing, reports
from casedesk.storage.backend import KeyValueBackend
from casedesk.submission.push_client import HttpPushClient, PushClient
from casedesk.workflow.lifecycle import LifecycleController
from casedesk.workflow.locking import LockManager
from casedesk.workflow.permissions import (
    can_approve,
    can_delete,
    can_edit,
    resolve_open_mode,
)

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Outcome:
    """Result of one user operation, ready to show to that user."""

    ok: bool
    message: str | None = None
    view: View = View.LIST
    profile: Profile | None = None
    read_only: bool = True
    warnings: list[str] = field(default_factory=list)
    error: CaseDeskError | None = None
    data: dict[str, Any] = field(default_factory=dict)


def recoverable(method: Callable[..., Outcome]) -> Callable[..., Outcome]:
    """Turn any CaseDeskError raised by a session operation into an Outcome."""

    @functools.wraps(method)
    def wrapper(self: "DeskSession", *args, **kwargs) -> Outcome:
        self._warnings = []
        try:
            outcome = method(self, *args, **kwargs)
        except ProfileNotFoundError as exc:
            logger.warning("Profile no longer exists", profile_id=exc.profile_id, user_id=self.user.id)
            if exc.profile_id == self.active_profile_id:
                try:
                    self._leave_profile()
                except CaseDeskError as leave_exc:
                    logger.warning("Could not leave profile", error=leave_exc.message)
            outcome = Outcome(ok=False, message=exc.message, view=self.view, error=exc)
        except CaseDeskError as exc:
            logger.info(
                "Operation refused",
                operation=method.__name__,
                user_id=self.user.id,
                error_type=type(exc).__name__,
                error=exc.message,
            )
            outcome = self._refused(exc)
        outcome.warnings = [*self._warnings, *outcome.warnings]
        self._save_state(outcome)
        return outcome

    return wrapper


class DeskSession:
    """One authenticated client working through the profile list."""

    def __init__(
        self,
        desk: "CaseDesk",
        user: User,
        token: str,
        *,
        active_profile_id: str | None = None,
        read_only: bool = True,
    ) -> None:
        self.desk = desk
        self.user = user
        self.token = token
        self.active_profile_id = active_profile_id
        self.read_only = read_only
        self._warnings: list[str] = []
        self._saved_state = (active_profile_id, read_only)
        self._ended = False

    @property
    def view(self) -> View:
        return View.COLLECTING if self.active_profile_id else View.LIST

    # ─── Navigation ───────────────────────────────────────
    @recoverable
    def open_profile(self, profile_id: str, mode: OpenMode | str = OpenMode.VIEW) -> Outcome:
        """Take the lock on a profile and open it in `mode` (or read-only)."""
        if self.active_profile_id and self.active_profile_id != profile_id:
            self._leave_profile()
        return self._enter(profile_id, mode)

    @recoverable
    def close_profile(self, profile_id: str | None = None) -> Outcome:
        """
        Finish/back: always release the lock and return to the list.

        Closing a profile other than the open one releases our lock on
        it, if we hold one, and leaves the open profile alone.
        """
        if profile_id and profile_id != self.active_profile_id:
            self._write(lambda: self.desk.locks.release(profile_id, self.user))
        else:
            self._leave_profile()
        return Outcome(ok=True, view=self.view)

    # ─── Profile creation ─────────────────────────────────
    def duplicate_profiles(self, phone_number: str) -> list[Profile]:
        return self.desk.lifecycle.duplicate_phone_profiles(phone_number)

    @recoverable
    def create_profile(
        self,
        phone_number: str,
        cccd_front: str,
        cccd_back: str,
        *,
        confirm_duplicate: bool = False,
    ) -> Outcome:
        """
        Create a profile and open it for editing.

        A phone number that already has profiles is not an error, but
        the user has to confirm before a second profile is created.
        """
        phone = (phone_number or "").strip()
        duplicates = self.duplicate_profiles(phone) if phone else []
        if duplicates and not confirm_duplicate:
            return Outcome(
                ok=False,
                message=(
                    f"Phone number {phone} already has {len(duplicates)} profile(s). "
                    "Confirm to create another one."
                ),
                view=View.CREATE,
                data={"needs_confirmation": True, "duplicates": [p.id for p in duplicates]},
            )

        if self.active_profile_id:
            self._leave_profile()
        created = self._write(
            lambda: self.desk.lifecycle.create_profile(phone, cccd_front, cccd_back, self.user)
        )
        outcome = self._enter(created.id, OpenMode.EDIT)
        outcome.message = "Profile created"
        return outcome

    # ─── Documents ────────────────────────────────────────
    @recoverable
    def add_document(
        self,
        doc_type: str,
        image_front: str,
        image_back: str,
        profile_id: str | None = None,
    ) -> Outcome:
        profile = self._require_editable(profile_id)
        document = self.desk.lifecycle.new_document(doc_type, image_front, image_back)
        updated = self._write(lambda: self.desk.lifecycle.add_document(profile, document))
        return self._stay(updated, message=f"{document.type_name} added")

    @recoverable
    def remove_document(self, document_id: str, profile_id: str | None = None) -> Outcome:
        profile = self._open_profile(profile_id)
        if profile.is_approved:
            raise AlreadyApprovedError("Profile is approved, documents cannot be deleted", profile_id=profile.id)
        document = profile.find_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id, profile_id=profile.id)
        if not can_delete(document, self.user, profile):
            raise PermissionDeniedError(
                "You do not have permission to delete documents of this profile",
                profile_id=profile.id,
                user_id=self.user.id,
            )
        self._require_writable(profile)
        updated = self._write(lambda: self.desk.lifecycle.remove_document(profile, document_id))
        return self._stay(updated, message=f"{document.type_name} removed")

    # ─── Status transitions ───────────────────────────────
    @recoverable
    def complete(self, profile_id: str | None = None) -> Outcome:
        """Mark the open profile completed, then leave it."""
        profile = self._require_editable(profile_id)
        completed = self._write(lambda: self.desk.lifecycle.complete(profile))
        self._leave_profile()
        return Outcome(
            ok=True,
            message="Profile completed",
            view=View.LIST,
            profile=self.desk.profiles.find_profile(completed.id) or completed,
        )

    @recoverable
    def approve(self, push_flag: bool = False, profile_id: str | None = None) -> Outcome:
        """Approve the open profile (read-only mode is enough), then leave it."""
        profile = self._open_profile(profile_id)
        if not can_approve(self.user, profile, self.desk.config.APPROVAL_POLICY):
            raise PermissionDeniedError(
                "You are not allowed to approve profiles",
                profile_id=profile.id,
                user_id=self.user.id,
            )
        approved = self._write(lambda: self.desk.lifecycle.approve(profile, push_flag))
        self._leave_profile()
        return Outcome(
            ok=True,
            message="Profile approved",
            view=View.LIST,
            profile=self.desk.profiles.find_profile(approved.id) or approved,
        )

    @recoverable
    def push_to_external(self, profile_id: str | None = None) -> Outcome:
        """Send the open profile to the external system. Local state is untouched."""
        profile = self._open_profile(profile_id)
        result = self.desk.push_client.push(profile)
        if result.success:
            message = "Upload succeeded"
        else:
            message = f"Upload failed: {result.message or 'unknown error'}"
        return Outcome(
            ok=result.success,
            message=message,
            view=View.COLLECTING,
            profile=profile,
            read_only=self.read_only,
            data={"push": {"success": result.success, "message": result.message}},
        )

    # ─── Session ──────────────────────────────────────────
    @recoverable
    def logout(self) -> Outcome:
        """
        Drop the session marker, then release every lock this user holds.

        If the marker cannot be removed nothing else changes.  Once it is
        gone the logout stands; locks that could not be released are
        reported as warnings.
        """
        held = [p.id for p in self.desk.profiles.locked_by(self.user.id)]
        self.desk.end_session(self.token)
        self._ended = True
        self.active_profile_id = None
        self.read_only = True
        try:
            released = self.desk.locks.release_all(self.user)
        except StorageError as exc:
            self._warnings.append(exc.message)
            still_held = {p.id for p in self.desk.profiles.locked_by(self.user.id)}
            released = [profile_id for profile_id in held if profile_id not in still_held]
        logger.info("User logged out", user_id=self.user.id, released=released)
        return Outcome(ok=True, view=View.LIST, data={"released": released})

    # ─── Reads ────────────────────────────────────────────
    def list_profiles(self, query: str = "", tab: ListTab | str = ListTab.PENDING) -> list[Profile]:
        return listing.search_profiles(self.desk.profiles.list_profiles(), query, tab)

    def tab_counts(self, query: str = "") -> dict[str, int]:
        return listing.tab_counts(self.desk.profiles.list_profiles(), query)

    def dashboard(
        self,
        period: ReportPeriod | str = ReportPeriod.ALL,
        area: str | None = None,
        now: datetime | None = None,
    ) -> reports.DashboardStats:
        return reports.dashboard(
            self.desk.profiles.list_profiles(),
            self.desk.users.list_users(),
            self.user,
            period=period,
            area=area,
            now=now or self.desk.clock(),
        )

    # ─── Admin ────────────────────────────────────────────
    @recoverable
    def list_users(self) -> Outcome:
        self._require_admin()
        return Outcome(ok=True, view=View.ADMIN_USERS, data={"users": self.desk.users.list_users()})

    @recoverable
    def create_user(
        self,
        full_name: str,
        username: str,
        phone: str | None,
        area: str,
        password: str | None = None,
    ) -> Outcome:
        self._require_admin()
        user = self.desk.users.create_user(full_name, username, phone, area, password)
        return Outcome(
            ok=True,
            message=f"Account {user.username} created",
            view=View.ADMIN_USERS,
            data={"user": user},
        )

    # ─── Internals ────────────────────────────────────────
    def _enter(self, profile_id: str, mode: OpenMode | str) -> Outcome:
        locked = self._write(lambda: self.desk.locks.acquire(profile_id, self.user))
        decision = resolve_open_mode(self.user, locked, mode)
        self.active_profile_id = locked.id
        self.read_only = decision.read_only
        logger.info(
            "Profile opened",
            profile_id=locked.id,
            user_id=self.user.id,
            read_only=decision.read_only,
        )
        return Outcome(
            ok=True,
            message=decision.notice,
            view=View.COLLECTING,
            profile=locked,
            read_only=decision.read_only,
        )

    def _leave_profile(self) -> None:
        profile_id, self.active_profile_id = self.active_profile_id, None
        self.read_only = True
        if profile_id is None:
            return
        try:
            self._write(lambda: self.desk.locks.release(profile_id, self.user))
        except NotFoundError:
            logger.info("Left profile no longer exists", profile_id=profile_id, user_id=self.user.id)

    def _open_profile(self, profile_id: str | None) -> Profile:
        """The profile this session has open, with its lock still held."""
        profile_id = profile_id or self.active_profile_id
        if profile_id is None or profile_id != self.active_profile_id:
            raise PermissionDeniedError(
                "Open the profile before changing it",
                profile_id=profile_id,
                user_id=self.user.id,
            )
        profile = self.desk.profiles.get_profile(profile_id)
        if profile.viewed_by != self.user.id:
            if profile.is_locked_by_other(self.user.id):
                self.active_profile_id = None
                raise LockConflictError(
                    profile.viewed_by_name or "another user",
                    profile_id=profile.id,
                    user_id=self.user.id,
                )
            # lock was force-released while we had the profile open
            profile = self._write(lambda: self.desk.locks.acquire(profile, self.user))
        return profile

    def _require_writable(self, profile: Profile) -> None:
        if self.read_only:
            raise PermissionDeniedError(
                "This profile is open read-only",
                profile_id=profile.id,
                user_id=self.user.id,
            )

    def _require_editable(self, profile_id: str | None) -> Profile:
        profile = self._open_profile(profile_id)
        if profile.is_approved:
            raise AlreadyApprovedError(profile_id=profile.id)
        if not can_edit(self.user, profile):
            raise PermissionDeniedError(
                "You do not have permission to change this profile",
                profile_id=profile.id,
                user_id=self.user.id,
            )
        self._require_writable(profile)
        return profile

    def _require_admin(self) -> None:
        if not self.user.is_admin:
            raise PermissionDeniedError("Only administrators can manage accounts", user_id=self.user.id)

    def _write(self, write: Callable[[], T]) -> T:
        """Run a store write; a quota failure becomes a warning, not a rollback."""
        try:
            return write()
        except StorageQuotaExceededError as exc:
            if exc.record is None:
                raise
            self._warnings.append(exc.message)
            return exc.record  # type: ignore[return-value]

    def _save_state(self, outcome: Outcome) -> None:
        """Record the open profile on the session marker if it changed."""
        state = (self.active_profile_id, self.read_only)
        if self._ended or state == self._saved_state:
            return
        try:
            self.desk.sessions.save_state(self.token, *state)
        except StorageError as exc:
            logger.warning("Session state not saved", user_id=self.user.id, error=exc.message)
            outcome.warnings.append(exc.message)
            return
        self._saved_state = state

    def _stay(self, profile: Profile, message: str | None = None) -> Outcome:
        return Outcome(
            ok=True,
            message=message,
            view=View.COLLECTING,
            profile=profile,
            read_only=self.read_only,
        )

    def _refused(self, exc: CaseDeskError) -> Outcome:
        profile = None
        if self.active_profile_id:
            profile = self.desk.profiles.find_profile(self.active_profile_id)
        return Outcome(
            ok=False,
            message=exc.message,
            view=self.view,
            profile=profile,
            read_only=self.read_only,
            error=exc,
        )


class CaseDesk:
    """Shared stores and workflow components for every session."""

    def __init__(
        self,
        backend: KeyValueBackend,
        config: Settings | None = None,
        *,
        push_client: PushClient | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config or default_settings
        self.backend = backend
        self.clock = clock
        self.users = UserRepository(backend, self.config)
        self.profiles = ProfileRepository(backend, self.config)
        self.sessions = SessionRepository(backend, self.config, clock)
        self.locks = LockManager(self.profiles)
        self.lifecycle = LifecycleController(self.profiles, self.config, clock)
        self.push_client = push_client or HttpPushClient.from_settings(self.config)

    def bootstrap(self) -> User:
        """Seed the admin account on first run."""
        return self.users.seed_admin()

    def login(self, username: str, password: str) -> Outcome:
        """Authenticate and start a session; `data["session"]` on success."""
        try:
            user = self.users.authenticate_user(username, password)
            token = self.sessions.create_session(user.id)
        except CaseDeskError as exc:
            return Outcome(ok=False, message=exc.message, error=exc)

        session = DeskSession(self, user, token)
        logger.info("User logged in", user_id=user.id, role=user.role)
        return Outcome(
            ok=True,
            message=f"Welcome, {user.full_name}",
            view=View.LIST,
            data={"session": session, "token": token, "user": user},
        )

    def resume(self, token: str) -> DeskSession | None:
        """
        Rebuild a session from its persisted marker.

        Each call returns a fresh DeskSession carrying the open profile and
        mode recorded on the marker, so nothing is cached per token.
        """
        marker = self.sessions.get_session(token)
        if marker is None:
            return None
        user = self.users.get_user_by_id(marker.user_id)
        if user is None:
            self.sessions.end_session(token)
            return None
        return DeskSession(
            self,
            user,
            token,
            active_profile_id=marker.active_profile_id,
            read_only=marker.read_only,
        )

    def end_session(self, token: str) -> None:
        self.sessions.end_session(token)
