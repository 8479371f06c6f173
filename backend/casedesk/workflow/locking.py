"""
LockManager — the single-viewer marker on each profile.

Per profile the states are Unlocked and LockedBy(user), recorded in
`viewed_by`/`viewed_by_name`.  Every transition goes through the
profile repository's compare-and-set, so the holder check and the
write are decided against the same version of the record.

Locks have no timeout or heartbeat.  A client that disappears leaves
its lock in place until it comes back and releases it, or an operator
calls `force_release()`.
"""

from __future__ import annotations

from casedesk.core.errors import LockConflictError, StorageError, StorageQuotaExceededError
from casedesk.core.logging import get_logger
from casedesk.domain.records import Profile, User
from casedesk.repositories.profiles import ProfileRepository

logger = get_logger(__name__)

_UNLOCKED = {"viewed_by": None, "viewed_by_name": None}


def _profile_id(profile: Profile | str) -> str:
    return profile if isinstance(profile, str) else profile.id


class LockManager:
    """Acquire/release protocol over the shared profile repository."""

    def __init__(self, profiles: ProfileRepository) -> None:
        self.profiles = profiles

    def acquire(self, profile: Profile | str, user: User) -> Profile:
        """
        Stamp the lock for `user`.

        Re-entry by the current holder is a no-op.  If someone else
        holds the lock, raises LockConflictError with the holder's
        display name and writes nothing.
        """
        profile_id = _profile_id(profile)

        def stamp(current: Profile) -> Profile | None:
            if current.is_locked_by_other(user.id):
                raise LockConflictError(
                    current.viewed_by_name or "another user",
                    profile_id=current.id,
                    user_id=user.id,
                    details={"holder_id": current.viewed_by},
                )
            if current.viewed_by == user.id:
                return None
            return current.model_copy(update={"viewed_by": user.id, "viewed_by_name": user.full_name})

        try:
            locked = self.profiles.update_profile(profile_id, stamp)
        except LockConflictError as exc:
            logger.info("Lock conflict", profile_id=profile_id, user_id=user.id, holder=exc.holder_name)
            raise
        logger.debug("Lock held", profile_id=profile_id, user_id=user.id)
        return locked

    def release(self, profile: Profile | str, user: User) -> Profile:
        """
        Clear the lock if `user` holds it.

        Releasing a lock held by someone else (or by nobody) is silently
        ignored, so a stale client can never clobber a newer holder.
        """
        profile_id = _profile_id(profile)

        def clear(current: Profile) -> Profile | None:
            if current.viewed_by != user.id:
                return None
            return current.model_copy(update=_UNLOCKED)

        released = self.profiles.update_profile(profile_id, clear)
        logger.debug("Lock released", profile_id=profile_id, user_id=user.id)
        return released

    def release_all(self, user: User) -> list[str]:
        """
        Release every lock `user` holds. Returns the profile ids.

        A storage failure on one profile does not stop the others from
        being released; the last failure is re-raised.  A quota failure
        still releases in memory, any other StorageError leaves that
        lock in place.
        """
        released = []
        failure: StorageError | None = None
        for profile in self.profiles.locked_by(user.id):
            try:
                self.release(profile, user)
            except StorageQuotaExceededError as exc:
                failure = exc
            except StorageError as exc:
                logger.warning("Lock not released", profile_id=profile.id, user_id=user.id, error=exc.message)
                failure = exc
                continue
            released.append(profile.id)
        if released:
            logger.info("Locks released", user_id=user.id, profile_ids=released)
        if failure is not None:
            raise failure
        return released

    def force_release(self, profile: Profile | str) -> Profile:
        """Operator override: clear the lock whoever holds it."""
        profile_id = _profile_id(profile)
        current = self.profiles.get_profile(profile_id)
        if not current.is_locked:
            return current
        logger.warning(
            "Lock force-released",
            profile_id=profile_id,
            holder_id=current.viewed_by,
            holder=current.viewed_by_name,
        )
        return self.profiles.update_profile(
            profile_id,
            lambda p: p.model_copy(update=_UNLOCKED) if p.is_locked else None,
        )
