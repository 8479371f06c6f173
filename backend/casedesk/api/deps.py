"""Shared dependencies for API routes."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from casedesk.core.errors import (
    AlreadyApprovedError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidInputError,
    LockConflictError,
    NotFoundError,
    PermissionDeniedError,
    StaleWriteError,
    StorageError,
)
from casedesk.services.case_desk import CaseDesk, DeskSession, Outcome

security_scheme = HTTPBearer(auto_error=False)

_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (LockConflictError, status.HTTP_409_CONFLICT),
    (AlreadyApprovedError, status.HTTP_409_CONFLICT),
    (DuplicateUsernameError, status.HTTP_409_CONFLICT),
    (StaleWriteError, status.HTTP_409_CONFLICT),
    (InvalidInputError, 422),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


async def get_desk(request: Request) -> CaseDesk:
    """The process-wide CaseDesk built at startup."""
    return request.app.state.desk


async def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> str:
    """Extract the session token from the bearer header."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials were not provided",
        )
    return credentials.credentials


async def get_current_session(
    token: str = Depends(get_token),
    desk: CaseDesk = Depends(get_desk),
) -> DeskSession:
    """Resolve the caller's session from its persisted marker."""
    session = desk.resume(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return session


def status_for(outcome: Outcome) -> int:
    """HTTP status for a refused outcome."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(outcome.error, error_type):
            return code
    return status.HTTP_409_CONFLICT


def raise_for_outcome(outcome: Outcome) -> Outcome:
    """Pass successful outcomes through; turn refusals into HTTP errors."""
    if outcome.ok:
        return outcome
    detail = {"message": outcome.message, "view": outcome.view.value}
    for key in ("needs_confirmation", "duplicates"):
        if key in outcome.data:
            detail[key] = outcome.data[key]
    raise HTTPException(status_code=status_for(outcome), detail=detail)
