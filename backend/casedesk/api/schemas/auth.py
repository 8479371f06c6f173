"""Authentication and account request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from casedesk.core.constants import UserRole
from casedesk.domain.records import User


class LoginRequest(BaseModel):
    """Request payload for login endpoint."""

    username: str = Field(..., min_length=1, max_length=120)
    password: str = Field(..., min_length=1, max_length=256)


class UserResponse(BaseModel):
    """Account as shown to clients (never includes the password)."""

    id: str
    username: str
    full_name: str
    role: UserRole
    phone_number: str | None = None
    area: str | None = None
    can_approve: bool = False
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            phone_number=user.phone_number,
            area=user.area,
            can_approve=user.can_approve,
            created_at=user.created_at,
        )


class TokenResponse(BaseModel):
    """Session token returned by login; send it as a bearer token."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserCreateRequest(BaseModel):
    """Admin request to create a staff account."""

    full_name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=120)
    area: str = Field(..., min_length=1, max_length=255)
    phone_number: str | None = Field(default=None, max_length=32)
    password: str | None = Field(default=None, max_length=256)
