"""
Domain-specific exception hierarchy for CaseDesk.

All exceptions inherit from CaseDeskError so callers can catch broadly
or narrowly as needed.  Each exception carries structured context
(profile ID, user ID, etc.) for logging and for the message shown to
the acting user.
"""

from __future__ import annotations


class CaseDeskError(Exception):
    """Base exception for all CaseDesk errors."""

    def __init__(
        self,
        message: str,
        *,
        profile_id: str | None = None,
        user_id: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.message = message
        self.profile_id = profile_id
        self.user_id = user_id
        self.details = details or {}
        super().__init__(message)


class InvalidCredentialsError(CaseDeskError):
    """Username/password did not match any stored account."""

    def __init__(self, message: str = "Invalid username or password", **kwargs) -> None:
        super().__init__(message, **kwargs)


class DuplicateUsernameError(CaseDeskError):
    """An account with this exact username already exists."""

    def __init__(self, username: str, **kwargs) -> None:
        self.username = username
        super().__init__(f"Username '{username}' already exists", **kwargs)


class InvalidInputError(CaseDeskError):
    """Required input was missing or blank."""
    pass


class LockConflictError(CaseDeskError):
    """The profile is currently open by another user."""

    def __init__(self, holder_name: str, **kwargs) -> None:
        self.holder_name = holder_name
        super().__init__(
            f"This profile is being viewed by {holder_name}. Please try again later.",
            **kwargs,
        )


class PermissionDeniedError(CaseDeskError):
    """The user lacks the rights for the attempted mutation."""
    pass


class AlreadyApprovedError(CaseDeskError):
    """Mutation attempted on an approved (terminal) profile."""

    def __init__(self, message: str = "Profile is already approved and cannot be changed", **kwargs) -> None:
        super().__init__(message, **kwargs)


class NotFoundError(CaseDeskError):
    """A referenced record does not exist (or no longer exists)."""
    pass


class ProfileNotFoundError(NotFoundError):
    """Stale profile id, e.g. after external removal."""

    def __init__(self, profile_id: str, **kwargs) -> None:
        super().__init__(f"Profile {profile_id} not found", profile_id=profile_id, **kwargs)


class DocumentNotFoundError(NotFoundError):
    """Document id is not part of the profile."""

    def __init__(self, document_id: str, **kwargs) -> None:
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found", **kwargs)


class StorageError(CaseDeskError):
    """Persistence backend operation failed."""
    pass


class StorageQuotaExceededError(StorageError):
    """
    The backend refused a write for lack of space.

    The in-memory mutation that triggered the write is NOT rolled back,
    so in-memory and persisted state can diverge until the next
    successful write.
    """

    def __init__(
        self,
        message: str = "Storage is nearly full. Please remove old profiles.",
        *,
        record: object | None = None,
        **kwargs,
    ) -> None:
        self.record = record
        super().__init__(message, **kwargs)


class StaleWriteError(CaseDeskError):
    """Compare-and-set failed: the record changed since it was read."""

    def __init__(self, profile_id: str, *, expected: int, actual: int, **kwargs) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Profile {profile_id} changed concurrently (expected version {expected}, found {actual})",
            profile_id=profile_id,
            **kwargs,
        )
