"""
Profile repository — the shared profile collection.

This is the single source of truth every session reads and writes.
The collection is persisted as one JSON list under `PROFILES_KEY`,
newest first.  Every read and write starts from the persisted list, so
changes made by another process (e.g. `manage.py unlock`) are seen
before any decision is taken on them.

Writes are compare-and-set on the per-record `version` counter:
a write only lands if the record still has the version the writer
observed.  `update_profile()` wraps this in a re-read/re-evaluate loop.

A write reaches memory only once it has been saved.  The one exception
is a StorageQuotaExceededError: the write is kept in memory, marked
unsaved, and the error carries the stored record so the caller can keep
going and warn the user.  Any other StorageError leaves memory as it was.
"""

from __future__ import annotations

from typing import Callable

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.errors import (
    ProfileNotFoundError,
    StaleWriteError,
    StorageQuotaExceededError,
)
from casedesk.core.logging import get_logger
from casedesk.domain.records import Profile, decode_profiles, encode_profiles
from casedesk.storage.backend import KeyValueBackend

logger = get_logger(__name__)

Mutation = Callable[[Profile], Profile | None]


class ProfileRepository:
    """Profile collection kept in step with its persisted copy."""

    def __init__(self, backend: KeyValueBackend, config: Settings | None = None) -> None:
        self.backend = backend
        self.config = config or default_settings
        self.key = self.config.PROFILES_KEY
        self._profiles: list[Profile] = []
        self._unsaved = False
        self.reload()

    def reload(self) -> None:
        """
        Bring the in-memory collection up to date with the persisted one.

        While writes are unsaved (after a quota failure) a record keeps its
        in-memory copy only if that copy is newer than the persisted one;
        profiles that were never saved stay at the front.
        """
        stored = decode_profiles(self.backend.get(self.key))
        if not self._unsaved:
            self._profiles = stored
            return

        mine = {p.id: p for p in self._profiles}
        stored_ids = {p.id for p in stored}
        merged = [p for p in self._profiles if p.id not in stored_ids]
        for record in stored:
            current = mine.get(record.id)
            merged.append(current if current is not None and current.version > record.version else record)
        self._profiles = merged

    # ─── Reads ────────────────────────────────────────────
    def list_profiles(self) -> list[Profile]:
        self.reload()
        return list(self._profiles)

    def find_profile(self, profile_id: str) -> Profile | None:
        self.reload()
        return self._find(profile_id)

    def get_profile(self, profile_id: str) -> Profile:
        profile = self.find_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def find_by_phone(self, phone_number: str) -> list[Profile]:
        phone = phone_number.strip()
        return [p for p in self.list_profiles() if p.phone_number.strip() == phone]

    def locked_by(self, user_id: str) -> list[Profile]:
        return [p for p in self.list_profiles() if p.viewed_by == user_id]

    # ─── Writes ───────────────────────────────────────────
    def insert(self, profile: Profile) -> Profile:
        """Add a new profile at the front of the collection."""
        self.reload()
        stored = profile.model_copy(update={"version": 1})
        self._commit([stored, *self._profiles], stored)
        return stored

    def compare_and_set(self, profile: Profile, expected_version: int) -> Profile:
        """
        Replace the stored record if its version is still `expected_version`.

        The version is checked against the freshly persisted record.

        Raises:
            ProfileNotFoundError: the profile has been removed.
            StaleWriteError: someone else wrote the record first.
        """
        self.reload()
        for idx, current in enumerate(self._profiles):
            if current.id != profile.id:
                continue
            if current.version != expected_version:
                raise StaleWriteError(profile.id, expected=expected_version, actual=current.version)
            stored = profile.model_copy(update={"version": expected_version + 1})
            updated = list(self._profiles)
            updated[idx] = stored
            self._commit(updated, stored)
            return stored
        raise ProfileNotFoundError(profile.id)

    def update_profile(self, profile_id: str, mutate: Mutation) -> Profile:
        """
        Read-modify-write `profile_id` with compare-and-set.

        `mutate` receives the freshly read record and returns the new
        record, or None (or an equal record) for a no-op.  It may raise
        to abort; nothing is written in that case.  On a stale write the
        record is re-read and `mutate` re-evaluated, up to
        `CAS_MAX_ATTEMPTS` times.
        """
        attempts = max(1, self.config.CAS_MAX_ATTEMPTS)
        attempt = 0
        while True:
            attempt += 1
            current = self.get_profile(profile_id)
            updated = mutate(current)
            if updated is None or updated == current:
                return current
            try:
                return self.compare_and_set(updated, expected_version=current.version)
            except StaleWriteError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "Stale profile write, retrying",
                    profile_id=profile_id,
                    attempt=attempt,
                    expected=exc.expected,
                    actual=exc.actual,
                )

    def remove_profile(self, profile_id: str) -> bool:
        """Hard-delete a profile. Returns True if it existed."""
        self.reload()
        remaining = [p for p in self._profiles if p.id != profile_id]
        if len(remaining) == len(self._profiles):
            return False
        self._commit(remaining, None)
        logger.info("Profile removed", profile_id=profile_id)
        return True

    def _commit(self, profiles: list[Profile], record: Profile | None) -> None:
        """Save `profiles`, then make it the in-memory collection."""
        try:
            self.backend.put(self.key, encode_profiles(profiles))
        except StorageQuotaExceededError as exc:
            self._profiles = profiles
            self._unsaved = True
            logger.warning(
                "Profile collection not persisted, in-memory state kept",
                profile_id=record.id if record else None,
                error=exc.message,
            )
            raise StorageQuotaExceededError(
                exc.message,
                record=record,
                profile_id=record.id if record else None,
                details=exc.details,
            ) from exc
        self._profiles = profiles
        self._unsaved = False

    def _find(self, profile_id: str) -> Profile | None:
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        return None
