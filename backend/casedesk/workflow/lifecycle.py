"""
LifecycleController — the profile status state machine.

States:
    collecting → completed → approved (terminal)

`is_pushed_to_external` is a flag orthogonal to status and is only
written on the transition into approved.

Permission checks are NOT done here; callers consult
`workflow.permissions` first.  What this layer does guarantee:
    - approved profiles reject document changes and completion
    - approval is irreversible and `approved_at` is fixed by the first call
    - lock fields are never touched
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.constants import (
    DOCUMENT_TYPE_NAMES,
    DocumentType,
    ProfileStatus,
    PushFlagPolicy,
)
from casedesk.core.errors import (
    AlreadyApprovedError,
    DocumentNotFoundError,
    InvalidInputError,
)
from casedesk.core.logging import get_logger
from casedesk.db.models.base import utcnow
from casedesk.domain.records import DocumentItem, Profile, User
from casedesk.repositories.profiles import ProfileRepository

logger = get_logger(__name__)


def _profile_id(profile: Profile | str) -> str:
    return profile if isinstance(profile, str) else profile.id


class LifecycleController:
    """All document/profile mutations funnel through here."""

    def __init__(
        self,
        profiles: ProfileRepository,
        config: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.profiles = profiles
        self.config = config or default_settings
        self.clock = clock

    # ─── Creation ─────────────────────────────────────────
    def duplicate_phone_profiles(self, phone_number: str) -> list[Profile]:
        """Existing profiles with the same (trimmed) phone number."""
        return self.profiles.find_by_phone(phone_number)

    def create_profile(
        self,
        phone_number: str,
        cccd_front: str,
        cccd_back: str,
        collector: User,
    ) -> Profile:
        """
        Create a profile in `collecting` with no documents and no lock.

        Duplicate phone numbers are allowed; callers should warn with
        `duplicate_phone_profiles()` before calling this.
        """
        phone = (phone_number or "").strip()
        if not phone:
            raise InvalidInputError("Phone number is required")
        if not cccd_front or not cccd_back:
            raise InvalidInputError("Both sides of the citizen ID card are required")

        duplicates = self.duplicate_phone_profiles(phone)
        if duplicates:
            logger.warning(
                "Creating profile with duplicate phone number",
                phone_number=phone,
                existing=[p.id for p in duplicates],
            )

        now = self.clock()
        profile = Profile(
            phone_number=phone,
            cccd_front=cccd_front,
            cccd_back=cccd_back,
            status=ProfileStatus.COLLECTING,
            collector_id=collector.id,
            collector_name=collector.full_name,
            created_at=now,
            updated_at=now,
        )
        stored = self.profiles.insert(profile)
        logger.info("Profile created", profile_id=stored.id, collector_id=collector.id)
        return stored

    # ─── Documents ────────────────────────────────────────
    def new_document(self, doc_type: DocumentType | str, image_front: str, image_back: str) -> DocumentItem:
        """Build a document item; both sides must be captured."""
        if not image_front or not image_back:
            raise InvalidInputError("Both sides of the document are required")
        try:
            doc_type = DocumentType(doc_type)
        except ValueError:
            raise InvalidInputError(f"Unknown document type '{doc_type}'") from None
        return DocumentItem(
            type=doc_type,
            type_name=DOCUMENT_TYPE_NAMES[doc_type],
            image_front=image_front,
            image_back=image_back,
            created_at=self.clock(),
        )

    def add_document(self, profile: Profile | str, document: DocumentItem) -> Profile:
        """Append `document`. Raises AlreadyApprovedError on approved profiles."""

        def append(current: Profile) -> Profile:
            if current.is_approved:
                raise AlreadyApprovedError(profile_id=current.id)
            if current.find_document(document.id) is not None:
                raise InvalidInputError(f"Document {document.id} already exists", profile_id=current.id)
            return current.model_copy(update={
                "documents": [*current.documents, document],
                "updated_at": self.clock(),
            })

        updated = self.profiles.update_profile(_profile_id(profile), append)
        logger.info("Document added", profile_id=updated.id, document_id=document.id, type=document.type)
        return updated

    def remove_document(self, profile: Profile | str, document_id: str) -> Profile:
        """Remove a document. Raises AlreadyApprovedError or DocumentNotFoundError."""

        def remove(current: Profile) -> Profile:
            if current.is_approved:
                raise AlreadyApprovedError(profile_id=current.id)
            if current.find_document(document_id) is None:
                raise DocumentNotFoundError(document_id, profile_id=current.id)
            return current.model_copy(update={
                "documents": [d for d in current.documents if d.id != document_id],
                "updated_at": self.clock(),
            })

        updated = self.profiles.update_profile(_profile_id(profile), remove)
        logger.info("Document removed", profile_id=updated.id, document_id=document_id)
        return updated

    # ─── Status transitions ───────────────────────────────
    def complete(self, profile: Profile | str) -> Profile:
        """Mark collecting → completed. Completing twice is a no-op."""

        def finish(current: Profile) -> Profile | None:
            if current.is_approved:
                raise AlreadyApprovedError(profile_id=current.id)
            if current.status == ProfileStatus.COMPLETED:
                return None
            return current.model_copy(update={
                "status": ProfileStatus.COMPLETED,
                "updated_at": self.clock(),
            })

        updated = self.profiles.update_profile(_profile_id(profile), finish)
        logger.info("Profile completed", profile_id=updated.id)
        return updated

    def approve(self, profile: Profile | str, push_flag: bool) -> Profile:
        """
        Approve (and thereby complete) a profile.

        The first call fixes `approved_at`.  Later calls leave it alone;
        whether they may rewrite the push flag is `PUSH_FLAG_POLICY`.
        """
        overwrite_flag = PushFlagPolicy(self.config.PUSH_FLAG_POLICY) == PushFlagPolicy.OVERWRITE

        def sign_off(current: Profile) -> Profile | None:
            if current.is_approved:
                if overwrite_flag and current.is_pushed_to_external != push_flag:
                    return current.model_copy(update={"is_pushed_to_external": push_flag})
                return None
            return current.model_copy(update={
                "is_approved": True,
                "is_pushed_to_external": push_flag,
                "approved_at": self.clock(),
                "status": ProfileStatus.COMPLETED,
            })

        updated = self.profiles.update_profile(_profile_id(profile), sign_off)
        logger.info(
            "Profile approved",
            profile_id=updated.id,
            pushed=updated.is_pushed_to_external,
        )
        return updated
