"""Domain records shared by every layer."""

from casedesk.domain.records import DocumentItem, Profile, SessionMarker, User

__all__ = ["DocumentItem", "Profile", "SessionMarker", "User"]
