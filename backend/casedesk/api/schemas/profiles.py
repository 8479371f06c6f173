"""
Profile request/response schemas.

Profiles themselves are returned in their persisted camelCase form
(`phoneNumber`, `viewedBy`, ...); the envelopes around them are
snake_case like the rest of the API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from casedesk.core.constants import DocumentType, View
from casedesk.domain.records import Profile
from casedesk.services.case_desk import Outcome


class ProfileCreateRequest(BaseModel):
    phone_number: str = Field(..., min_length=1, max_length=32)
    cccd_front: str = Field(..., min_length=1)
    cccd_back: str = Field(..., min_length=1)
    confirm_duplicate: bool = False


class DocumentCreateRequest(BaseModel):
    type: DocumentType
    image_front: str = Field(..., min_length=1)
    image_back: str = Field(..., min_length=1)


class ApproveRequest(BaseModel):
    push_to_external: bool = False


class OutcomeResponse(BaseModel):
    """Result of a profile operation."""

    ok: bool
    message: str | None = None
    view: View
    read_only: bool = True
    warnings: list[str] = Field(default_factory=list)
    profile: Profile | None = None

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "OutcomeResponse":
        return cls(
            ok=outcome.ok,
            message=outcome.message,
            view=outcome.view,
            read_only=outcome.read_only,
            warnings=outcome.warnings,
            profile=outcome.profile,
        )


class ProfileListResponse(BaseModel):
    profiles: list[Profile]
    counts: dict[str, int]


class DuplicatesResponse(BaseModel):
    phone_number: str
    duplicates: list[str]


class PushResponse(BaseModel):
    success: bool
    message: str | None = None
