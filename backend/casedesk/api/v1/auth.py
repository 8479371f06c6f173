"""Authentication endpoints for login, logout and current-user introspection."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from casedesk.api.deps import get_current_session, get_desk, raise_for_outcome
from casedesk.api.schemas.auth import LoginRequest, TokenResponse, UserResponse
from casedesk.api.schemas.profiles import OutcomeResponse
from casedesk.services.case_desk import CaseDesk, DeskSession

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, desk: CaseDesk = Depends(get_desk)) -> TokenResponse:
    """Authenticate a user and issue a session token."""
    outcome = desk.login(payload.username, payload.password)
    if not outcome.ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=outcome.message or "Invalid credentials",
        )
    return TokenResponse(
        access_token=outcome.data["token"],
        token_type="bearer",
        user=UserResponse.from_user(outcome.data["user"]),
    )


@router.post("/logout", response_model=OutcomeResponse)
async def logout(session: DeskSession = Depends(get_current_session)) -> OutcomeResponse:
    """Release every lock held by the caller and end the session."""
    outcome = raise_for_outcome(session.logout())
    return OutcomeResponse.from_outcome(outcome)


@router.get("/me", response_model=UserResponse)
async def read_current_user(session: DeskSession = Depends(get_current_session)) -> UserResponse:
    """Return the currently authenticated user."""
    return UserResponse.from_user(session.user)
