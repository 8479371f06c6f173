"""Profile list, lock and lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from casedesk.api.deps import get_current_session, raise_for_outcome
from casedesk.api.schemas.profiles import (
    ApproveRequest,
    DocumentCreateRequest,
    DuplicatesResponse,
    OutcomeResponse,
    ProfileCreateRequest,
    ProfileListResponse,
    PushResponse,
)
from casedesk.core.constants import ListTab, OpenMode
from casedesk.services.case_desk import DeskSession

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/", response_model=ProfileListResponse)
async def list_profiles(
    q: str = "",
    tab: ListTab = ListTab.PENDING,
    session: DeskSession = Depends(get_current_session),
) -> ProfileListResponse:
    """Search by phone number within the pending or approved tab."""
    return ProfileListResponse(
        profiles=session.list_profiles(q, tab),
        counts=session.tab_counts(q),
    )


@router.get("/duplicates", response_model=DuplicatesResponse)
async def find_duplicates(
    phone: str,
    session: DeskSession = Depends(get_current_session),
) -> DuplicatesResponse:
    """Profiles already registered under a phone number."""
    return DuplicatesResponse(
        phone_number=phone.strip(),
        duplicates=[p.id for p in session.duplicate_profiles(phone)],
    )


@router.post("/", response_model=OutcomeResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: ProfileCreateRequest,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    """Create a profile and open it for the caller. 409 asks to confirm a duplicate phone."""
    outcome = session.create_profile(
        payload.phone_number,
        payload.cccd_front,
        payload.cccd_back,
        confirm_duplicate=payload.confirm_duplicate,
    )
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.post("/{profile_id}/open", response_model=OutcomeResponse)
async def open_profile(
    profile_id: str,
    mode: OpenMode = OpenMode.VIEW,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    """Take the single-viewer lock. Edit without rights opens read-only."""
    outcome = session.open_profile(profile_id, mode)
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.post("/{profile_id}/close", response_model=OutcomeResponse)
async def close_profile(
    profile_id: str,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    """Release the caller's lock. Never fails for a lock held by someone else."""
    outcome = session.close_profile(profile_id)
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.post("/{profile_id}/documents", response_model=OutcomeResponse, status_code=status.HTTP_201_CREATED)
async def add_document(
    profile_id: str,
    payload: DocumentCreateRequest,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    outcome = session.add_document(payload.type, payload.image_front, payload.image_back, profile_id)
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.delete("/{profile_id}/documents/{document_id}", response_model=OutcomeResponse)
async def remove_document(
    profile_id: str,
    document_id: str,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    outcome = session.remove_document(document_id, profile_id)
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.post("/{profile_id}/complete", response_model=OutcomeResponse)
async def complete_profile(
    profile_id: str,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    """Mark completed and release the lock."""
    outcome = session.complete(profile_id)
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.post("/{profile_id}/approve", response_model=OutcomeResponse)
async def approve_profile(
    profile_id: str,
    payload: ApproveRequest,
    session: DeskSession = Depends(get_current_session),
) -> OutcomeResponse:
    """Approve (irreversible) and release the lock."""
    outcome = session.approve(payload.push_to_external, profile_id)
    return OutcomeResponse.from_outcome(raise_for_outcome(outcome))


@router.post("/{profile_id}/push", response_model=PushResponse)
async def push_profile(
    profile_id: str,
    session: DeskSession = Depends(get_current_session),
) -> PushResponse:
    """Upload to the external system. A failed upload is reported, not raised."""
    outcome = session.push_to_external(profile_id)
    if "push" not in outcome.data:
        raise_for_outcome(outcome)
    return PushResponse(success=outcome.ok, message=outcome.message)
