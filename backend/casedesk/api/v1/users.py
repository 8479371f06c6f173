"""Staff account management (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from casedesk.api.deps import get_current_session, raise_for_outcome
from casedesk.api.schemas.auth import UserCreateRequest, UserResponse
from casedesk.services.case_desk import DeskSession

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=list[UserResponse])
async def list_users(session: DeskSession = Depends(get_current_session)) -> list[UserResponse]:
    outcome = raise_for_outcome(session.list_users())
    return [UserResponse.from_user(u) for u in outcome.data["users"]]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    session: DeskSession = Depends(get_current_session),
) -> UserResponse:
    """Create a staff account. Admin accounts are only seeded at bootstrap."""
    outcome = session.create_user(
        payload.full_name,
        payload.username,
        payload.phone_number,
        payload.area,
        payload.password,
    )
    return UserResponse.from_user(raise_for_outcome(outcome).data["user"])
