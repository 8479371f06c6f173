"""API schema package."""

from casedesk.api.schemas.auth import LoginRequest, TokenResponse, UserCreateRequest, UserResponse
from casedesk.api.schemas.profiles import (
    ApproveRequest,
    DocumentCreateRequest,
    DuplicatesResponse,
    OutcomeResponse,
    ProfileCreateRequest,
    ProfileListResponse,
    PushResponse,
)

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "UserCreateRequest",
    "UserResponse",
    "ApproveRequest",
    "DocumentCreateRequest",
    "DuplicatesResponse",
    "OutcomeResponse",
    "ProfileCreateRequest",
    "ProfileListResponse",
    "PushResponse",
]
