"""
Permission evaluator — every edit/delete/approve decision in one place.

All functions are pure: they look at the user and the profile and
never touch a store.
"""

from __future__ import annotations

from dataclasses import dataclass

from casedesk.core.constants import ApprovalPolicy, OpenMode
from casedesk.domain.records import DocumentItem, Profile, User


@dataclass(frozen=True)
class OpenDecision:
    """How a profile should be presented once its lock is held."""

    read_only: bool
    notice: str | None = None


def is_owner_or_admin(user: User, profile: Profile) -> bool:
    return user.is_admin or user.id == profile.collector_id


def can_edit(user: User, profile: Profile) -> bool:
    """Admins and the collector may edit, and only while unapproved."""
    if profile.is_approved:
        return False
    return is_owner_or_admin(user, profile)


def can_delete(document: DocumentItem, user: User, profile: Profile) -> bool:
    """Same rule as editing; the document itself carries no owner."""
    return can_edit(user, profile)


def can_approve(
    user: User,
    profile: Profile,
    policy: ApprovalPolicy | str = ApprovalPolicy.PERMISSIVE,
) -> bool:
    """
    Whether `user` may approve `profile`.

    permissive: any authenticated user.
    restricted: admins and users with `can_approve`.
    """
    if ApprovalPolicy(policy) == ApprovalPolicy.RESTRICTED:
        return user.is_admin or user.can_approve
    return True


def resolve_open_mode(user: User, profile: Profile, requested: OpenMode | str) -> OpenDecision:
    """
    Decide read-only vs editable for an open request.

    Asking for edit without edit rights is not an error: the profile
    still opens, read-only, with a notice for the user.
    """
    if OpenMode(requested) == OpenMode.VIEW:
        return OpenDecision(read_only=True)
    if can_edit(user, profile):
        return OpenDecision(read_only=False)
    if profile.is_approved:
        return OpenDecision(read_only=True, notice="This profile is approved and can no longer be edited.")
    return OpenDecision(read_only=True, notice="You do not have permission to edit this profile.")
