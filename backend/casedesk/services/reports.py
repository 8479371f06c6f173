"""
Dashboard statistics.

Admins see every profile (optionally narrowed to one collector area)
plus a per-area breakdown of staff performance.  Staff see totals for
the profiles they collected themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from casedesk.core.constants import UNASSIGNED_AREA, DocumentType, ReportPeriod
from casedesk.db.models.base import utcnow
from casedesk.domain.records import Profile, User


@dataclass
class UserStats:
    user_id: str
    full_name: str
    collected_count: int = 0
    approved_count: int = 0


@dataclass
class AreaStats:
    area_name: str
    staff_count: int = 0
    total_profiles: int = 0
    approved_count: int = 0
    licenses: int = 0
    registrations: int = 0
    users: list[UserStats] = field(default_factory=list)


@dataclass
class DashboardStats:
    period: str
    area: str | None
    total_profiles: int = 0
    total_approved: int = 0
    total_licenses: int = 0
    total_registrations: int = 0
    areas: list[AreaStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for API responses."""
        return {
            "period": self.period,
            "area": self.area,
            "total_profiles": self.total_profiles,
            "total_approved": self.total_approved,
            "total_licenses": self.total_licenses,
            "total_registrations": self.total_registrations,
            "areas": [
                {
                    "area_name": a.area_name,
                    "staff_count": a.staff_count,
                    "total_profiles": a.total_profiles,
                    "approved_count": a.approved_count,
                    "licenses": a.licenses,
                    "registrations": a.registrations,
                    "users": [vars(u) for u in a.users],
                }
                for a in self.areas
            ],
        }


def period_start(period: ReportPeriod | str, now: datetime) -> datetime | None:
    """Start of the window (midnight in `now`'s timezone), None for all time."""
    period = ReportPeriod(period)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == ReportPeriod.TODAY:
        return midnight
    if period == ReportPeriod.WEEK:
        return midnight - timedelta(days=midnight.weekday())
    if period == ReportPeriod.MONTH:
        return midnight.replace(day=1)
    return None


def _count_documents(profiles: list[Profile], doc_type: DocumentType) -> int:
    return sum(1 for p in profiles for d in p.documents if d.type == doc_type)


def _area_of(user: User | None) -> str:
    return (user.area if user else None) or UNASSIGNED_AREA


def _area_stats(profiles: list[Profile], staff: list[User]) -> list[AreaStats]:
    areas: list[str] = []
    for user in staff:
        if _area_of(user) not in areas:
            areas.append(_area_of(user))

    result = []
    for area in areas:
        members = [u for u in staff if _area_of(u) == area]
        member_ids = {u.id for u in members}
        in_area = [p for p in profiles if p.collector_id in member_ids]
        result.append(AreaStats(
            area_name=area,
            staff_count=len(members),
            total_profiles=len(in_area),
            approved_count=sum(1 for p in in_area if p.is_approved),
            licenses=_count_documents(in_area, DocumentType.LICENSE),
            registrations=_count_documents(in_area, DocumentType.REGISTRATION),
            users=[
                UserStats(
                    user_id=u.id,
                    full_name=u.full_name,
                    collected_count=sum(1 for p in in_area if p.collector_id == u.id),
                    approved_count=sum(1 for p in in_area if p.collector_id == u.id and p.is_approved),
                )
                for u in members
            ],
        ))

    result.sort(key=lambda a: a.total_profiles, reverse=True)
    return result


def dashboard(
    profiles: list[Profile],
    users: list[User],
    viewer: User,
    period: ReportPeriod | str = ReportPeriod.ALL,
    area: str | None = None,
    now: datetime | None = None,
) -> DashboardStats:
    """Compute dashboard statistics as seen by `viewer`."""
    start = period_start(period, now or utcnow())
    in_period = [p for p in profiles if start is None or p.created_at >= start]

    if viewer.is_admin:
        if area:
            users_by_id = {u.id: u for u in users}
            shown = [p for p in in_period if _area_of(users_by_id.get(p.collector_id or "")) == area]
        else:
            shown = in_period
        staff = [u for u in users if not u.is_admin]
        areas = _area_stats(in_period, staff)
    else:
        shown = [p for p in in_period if p.collector_id == viewer.id]
        areas = []

    return DashboardStats(
        period=ReportPeriod(period).value,
        area=area if viewer.is_admin else None,
        total_profiles=len(shown),
        total_approved=sum(1 for p in shown if p.is_approved),
        total_licenses=_count_documents(shown, DocumentType.LICENSE),
        total_registrations=_count_documents(shown, DocumentType.REGISTRATION),
        areas=areas,
    )
