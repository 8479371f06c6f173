"""Build the external-system request payload from a profile record."""

from __future__ import annotations

from typing import Any

from casedesk.domain.records import Profile


def folder_name(profile: Profile) -> str:
    """Destination folder on the external side: phone number plus short id."""
    return f"{profile.phone_number}_{profile.id[:8]}"


def build_payload(profile: Profile) -> dict[str, Any]:
    """The full profile record, camelCase, wrapped with its folder name."""
    return {
        "folderName": folder_name(profile),
        "profile": profile.model_dump(mode="json", by_alias=True, exclude_none=True),
    }
