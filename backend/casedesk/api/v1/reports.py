"""Dashboard reporting endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from casedesk.api.deps import get_current_session
from casedesk.core.constants import ReportPeriod
from casedesk.services.case_desk import DeskSession

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard")
async def get_dashboard(
    period: ReportPeriod = ReportPeriod.ALL,
    area: str | None = None,
    session: DeskSession = Depends(get_current_session),
) -> dict[str, object]:
    """Totals for the caller; admins also get the per-area breakdown."""
    return session.dashboard(period, area).to_dict()
