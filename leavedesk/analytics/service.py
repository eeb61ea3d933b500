"""Analytics service: team leave aggregates over a rolling window.

The fold functions are pure and take already-loaded rows, so the summary
endpoint and the export share one set of numbers. Only the fetches touch
the database.
"""

from __future__ import annotations

import calendar
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import NamedTuple, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavedesk.analytics.schemas import (
    AnalyticsMetrics,
    AnalyticsSummaryResponse,
    CostAnalysisItem,
    LeaveTypeDistributionItem,
    MonthlyTrendPoint,
    TeamUtilizationItem,
)
from leavedesk.common.audit import utcnow
from leavedesk.common.constants import MONTH_LABEL_FORMAT, LeaveStatus, TimeRange
from leavedesk.company.service import CompanyService
from leavedesk.leave.models import LeaveRequest, LeaveType
from leavedesk.leave.schemas import LeaveAllowanceWithUser
from leavedesk.leave.service import LeaveService
from leavedesk.team.service import TeamService

SECONDS_PER_DAY = 86400


class AnalyticsData(NamedTuple):
    """Rows backing one summary or export."""

    period_start: datetime
    period_end: datetime
    requests: list[LeaveRequest]
    allowances: list[LeaveAllowanceWithUser]


# ── Date helpers ────────────────────────────────────────────────────

def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes (as returned by some drivers) as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def subtract_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def months_between(start: datetime, end: datetime) -> list[tuple[int, int]]:
    """(year, month) pairs from ``start``'s month through ``end``'s month."""
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def _rate(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


# ── Folds ───────────────────────────────────────────────────────────

def compute_metrics(requests: Sequence[LeaveRequest]) -> AnalyticsMetrics:
    total = len(requests)
    approved = [r for r in requests if r.status == LeaveStatus.approved]
    rejected = sum(1 for r in requests if r.status == LeaveStatus.rejected)
    pending = sum(1 for r in requests if r.status == LeaveStatus.pending)

    durations = [
        (as_utc(r.approved_at) - as_utc(r.created_at)).total_seconds() / SECONDS_PER_DAY
        for r in approved
        if r.approved_at is not None and r.created_at is not None
    ]
    average = round(sum(durations) / len(durations), 1) if durations else 0.0

    return AnalyticsMetrics(
        total_requests=total,
        approved_requests=len(approved),
        rejected_requests=rejected,
        pending_requests=pending,
        approval_rate=_rate(len(approved), total),
        average_processing_days=average,
    )


def compute_monthly_trends(
    requests: Sequence[LeaveRequest],
    period_start: datetime,
    period_end: datetime,
) -> list[MonthlyTrendPoint]:
    buckets: dict[tuple[int, int], MonthlyTrendPoint] = {
        (year, month): MonthlyTrendPoint(
            month=datetime(year, month, 1).strftime(MONTH_LABEL_FORMAT)
        )
        for year, month in months_between(period_start, period_end)
    }
    for req in requests:
        created = as_utc(req.created_at)
        point = buckets.get((created.year, created.month))
        if point is None:
            continue
        point.requests += 1
        if req.status == LeaveStatus.approved:
            point.approved += 1
        elif req.status == LeaveStatus.rejected:
            point.rejected += 1
        else:
            point.pending += 1
    return list(buckets.values())


def compute_type_distribution(
    requests: Sequence[LeaveRequest],
    leave_types: Sequence[LeaveType],
) -> list[LeaveTypeDistributionItem]:
    """Every leave type with its request count, zero included."""
    counts: dict[uuid.UUID, int] = {lt.id: 0 for lt in leave_types}
    for req in requests:
        if req.leave_type_id in counts:
            counts[req.leave_type_id] += 1
    return [
        LeaveTypeDistributionItem(
            leave_type_id=lt.id, name=lt.name, count=counts[lt.id], color=lt.color,
        )
        for lt in leave_types
    ]


def compute_cost_analysis(
    requests: Sequence[LeaveRequest],
    leave_types: Sequence[LeaveType],
    daily_cost: Decimal,
) -> list[CostAnalysisItem]:
    """Approved paid days and their estimated cost, per leave type."""
    types_by_id = {lt.id: lt for lt in leave_types}
    days_by_type: dict[uuid.UUID, Decimal] = {}
    for req in requests:
        leave_type = types_by_id.get(req.leave_type_id)
        if req.status != LeaveStatus.approved or leave_type is None or not leave_type.is_paid:
            continue
        days_by_type[leave_type.id] = days_by_type.get(leave_type.id, Decimal("0")) + Decimal(
            str(req.total_days)
        )

    items = []
    for type_id, days in days_by_type.items():
        leave_type = types_by_id[type_id]
        items.append(
            CostAnalysisItem(
                leave_type=leave_type.name,
                total_days=float(days),
                estimated_cost=float(days * Decimal(str(daily_cost))),
                color=leave_type.color,
            )
        )
    items.sort(key=lambda i: i.leave_type)
    return items


def compute_team_utilization(
    allowances: Sequence[LeaveAllowanceWithUser],
) -> list[TeamUtilizationItem]:
    """Entitlement includes carried-over days, matching ``remaining_days``."""
    items = []
    for allowance in allowances:
        total = float(allowance.total_days + allowance.carried_over)
        used = float(allowance.used_days)
        items.append(
            TeamUtilizationItem(
                user_id=allowance.user_id,
                name=allowance.user.name or "Unknown",
                email=allowance.user.email,
                total_days=total,
                used_days=used,
                remaining_days=total - used,
                utilization_rate=_rate(used, total),
            )
        )
    return items


# ═════════════════════════════════════════════════════════════════════
# AnalyticsService
# ═════════════════════════════════════════════════════════════════════


class AnalyticsService:
    """Async analytics queries scoped to the caller's team."""

    @staticmethod
    async def get_data(
        db: AsyncSession,
        manager_id: uuid.UUID,
        time_range: TimeRange,
        year: int,
        *,
        now: Optional[datetime] = None,
    ) -> AnalyticsData:
        period_end = now or utcnow()
        period_start = subtract_months(period_end, time_range.months)
        user_ids = await TeamService.get_team_user_ids(db, manager_id)

        result = await db.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.user_id.in_(user_ids),
                LeaveRequest.created_at >= period_start,
                LeaveRequest.created_at <= period_end,
            )
            .options(
                selectinload(LeaveRequest.user),
                selectinload(LeaveRequest.leave_type),
            )
            .order_by(LeaveRequest.created_at.desc())
        )
        requests = list(result.scalars().all())
        allowances = await LeaveService.get_team_allowances(db, manager_id, year)
        return AnalyticsData(period_start, period_end, requests, allowances)

    @staticmethod
    async def get_summary(
        db: AsyncSession,
        manager_id: uuid.UUID,
        time_range: TimeRange,
        year: int,
        *,
        now: Optional[datetime] = None,
    ) -> AnalyticsSummaryResponse:
        data = await AnalyticsService.get_data(db, manager_id, time_range, year, now=now)
        types_result = await db.execute(select(LeaveType).order_by(LeaveType.name))
        leave_types = list(types_result.scalars().all())
        company = await CompanyService.get_settings(db)

        return AnalyticsSummaryResponse(
            time_range=time_range.value,
            year=year,
            period_start=data.period_start,
            period_end=data.period_end,
            metrics=compute_metrics(data.requests),
            monthly_trends=compute_monthly_trends(
                data.requests, data.period_start, data.period_end,
            ),
            leave_type_distribution=compute_type_distribution(data.requests, leave_types),
            cost_analysis=compute_cost_analysis(
                data.requests, leave_types, company.estimated_daily_cost,
            ),
            team_utilization=compute_team_utilization(data.allowances),
        )
