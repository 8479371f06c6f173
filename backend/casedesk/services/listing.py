"""Profile list: phone search, pending/approved tabs, newest first."""

from __future__ import annotations

from casedesk.core.constants import ListTab
from casedesk.domain.records import Profile


def _matches(profile: Profile, query: str) -> bool:
    return query.strip() in profile.phone_number


def search_profiles(
    profiles: list[Profile],
    query: str = "",
    tab: ListTab | str = ListTab.PENDING,
) -> list[Profile]:
    """Profiles whose phone contains `query`, in `tab`, by `updated_at` desc."""
    want_approved = ListTab(tab) == ListTab.APPROVED
    found = [p for p in profiles if _matches(p, query) and p.is_approved == want_approved]
    return sorted(found, key=lambda p: p.updated_at, reverse=True)


def tab_counts(profiles: list[Profile], query: str = "") -> dict[str, int]:
    searched = [p for p in profiles if _matches(p, query)]
    approved = sum(1 for p in searched if p.is_approved)
    return {
        ListTab.PENDING.value: len(searched) - approved,
        ListTab.APPROVED.value: approved,
    }
