"""
Persisted records — users, profiles and their documents.

Records are immutable pydantic models.  Every change produces a new
record via `model_copy(update=...)`, so a record handed out by a store
can never be mutated behind the store's back.

Serialized field names are camelCase (`fullName`, `viewedBy`, ...);
absent optional fields are omitted, so `viewedBy` only appears on a
profile that is currently open.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from casedesk.core.constants import DocumentType, ProfileStatus, UserRole
from casedesk.db.models.base import generate_uuid, utcnow


class Record(BaseModel):
    """Base for all persisted records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class User(Record):
    """A field staff account."""

    id: str = Field(default_factory=generate_uuid)
    username: str
    password: str  # stored and compared verbatim
    full_name: str
    role: UserRole = UserRole.STAFF
    phone_number: str | None = None
    area: str | None = None
    can_approve: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class DocumentItem(Record):
    """One scanned document (front and back) attached to a profile."""

    id: str = Field(default_factory=generate_uuid)
    type: DocumentType
    type_name: str
    image_front: str
    image_back: str
    created_at: datetime = Field(default_factory=utcnow)


class Profile(Record):
    """
    A citizen's document-collection case.

    `viewed_by`/`viewed_by_name` form the single-viewer lock and are
    set and cleared together.  `version` is bumped by the profile
    store on every successful write and is what compare-and-set
    checks against.
    """

    id: str = Field(default_factory=generate_uuid)
    phone_number: str
    cccd_front: str
    cccd_back: str
    documents: list[DocumentItem] = Field(default_factory=list)
    status: ProfileStatus = ProfileStatus.COLLECTING
    collector_id: str | None = None
    collector_name: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_approved: bool = False
    is_pushed_to_external: bool = False
    approved_at: datetime | None = None
    viewed_by: str | None = None
    viewed_by_name: str | None = None
    version: int = 0

    @property
    def is_locked(self) -> bool:
        return self.viewed_by is not None

    def is_locked_by_other(self, user_id: str) -> bool:
        return self.viewed_by is not None and self.viewed_by != user_id

    def find_document(self, document_id: str) -> DocumentItem | None:
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        return None


# ═══════════════════════════════════════════════════════════
#  Collection codecs
# ═══════════════════════════════════════════════════════════

_users_adapter = TypeAdapter(list[User])
_profiles_adapter = TypeAdapter(list[Profile])


def encode_users(users: list[User]) -> str:
    return _users_adapter.dump_json(users, by_alias=True, exclude_none=True).decode()


def decode_users(raw: str | None) -> list[User]:
    if not raw:
        return []
    return _users_adapter.validate_json(raw)


def encode_profiles(profiles: list[Profile]) -> str:
    return _profiles_adapter.dump_json(profiles, by_alias=True, exclude_none=True).decode()


def decode_profiles(raw: str | None) -> list[Profile]:
    if not raw:
        return []
    return _profiles_adapter.validate_json(raw)


class SessionMarker(Record):
    """
    What a logged-in client has open, keyed by its session token.

    Stored so any process (or a restarted one) can resume the client
    where it left off.
    """

    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
    active_profile_id: str | None = None
    read_only: bool = True


_sessions_adapter = TypeAdapter(dict[str, SessionMarker])


def encode_sessions(sessions: dict[str, SessionMarker]) -> str:
    return _sessions_adapter.dump_json(sessions, by_alias=True, exclude_none=True).decode()


def decode_sessions(raw: str | None) -> dict[str, SessionMarker]:
    if not raw:
        return {}
    return _sessions_adapter.validate_json(raw)
