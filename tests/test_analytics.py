"""Analytics: pure folds, team-scoped summary, CSV/PDF export."""

from __future__ import annotations

import csv
import io
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from leavedesk.analytics.export import build_csv, build_pdf, export_filename
from leavedesk.analytics.service import (
    AnalyticsData,
    AnalyticsService,
    compute_cost_analysis,
    compute_metrics,
    compute_monthly_trends,
    compute_team_utilization,
    compute_type_distribution,
    months_between,
    subtract_months,
)
from leavedesk.auth.schemas import UserBrief
from leavedesk.common.constants import LeaveStatus, TimeRange
from leavedesk.leave.models import LeaveRequest, LeaveType
from leavedesk.leave.schemas import LeaveAllowanceWithUser
from tests.conftest import make_allowance, make_request, make_user

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def _type(name: str, *, is_paid: bool = True, color: str = "#10B981") -> LeaveType:
    return LeaveType(id=uuid.uuid4(), name=name, color=color, is_paid=is_paid)


def _req(
    leave_type: LeaveType,
    status: LeaveStatus,
    *,
    created_at: datetime = NOW,
    days: str = "1",
    approved_at: datetime | None = None,
) -> LeaveRequest:
    return LeaveRequest(
        id=uuid.uuid4(),
        leave_type_id=leave_type.id,
        start_date=date(2026, 7, 1),
        end_date=date(2026, 7, 1),
        total_days=Decimal(days),
        status=status,
        created_at=created_at,
        approved_at=approved_at,
    )


def _allowance(name: str, total: str, used: str, carried: str = "0") -> LeaveAllowanceWithUser:
    user_id = uuid.uuid4()
    return LeaveAllowanceWithUser(
        id=uuid.uuid4(),
        user_id=user_id,
        year=2026,
        total_days=Decimal(total),
        used_days=Decimal(used),
        carried_over=Decimal(carried),
        user=UserBrief(id=user_id, name=name, email=f"{name.lower()}@example.com"),
    )


# ═════════════════════════════════════════════════════════════════════
# Date helpers
# ═════════════════════════════════════════════════════════════════════


class TestDateHelpers:

    def test_subtract_months_clamps_day(self):
        assert subtract_months(datetime(2026, 3, 31), 1) == datetime(2026, 2, 28)

    def test_subtract_months_crosses_year(self):
        assert subtract_months(datetime(2026, 2, 10), 6) == datetime(2025, 8, 10)

    def test_months_between_inclusive(self):
        assert months_between(datetime(2025, 11, 20), datetime(2026, 2, 1)) == [
            (2025, 11), (2025, 12), (2026, 1), (2026, 2),
        ]

    def test_time_range_months(self):
        assert TimeRange("3months").months == 3
        assert TimeRange("12months").months == 12


# ═════════════════════════════════════════════════════════════════════
# Folds
# ═════════════════════════════════════════════════════════════════════


class TestFolds:

    def test_metrics_empty(self):
        metrics = compute_metrics([])
        assert metrics.total_requests == 0
        assert metrics.approval_rate == 0.0
        assert metrics.average_processing_days == 0.0

    def test_metrics_rates_and_processing_time(self):
        annual = _type("Annual")
        requests = [
            _req(annual, LeaveStatus.approved, approved_at=NOW + timedelta(days=2)),
            _req(annual, LeaveStatus.approved, approved_at=NOW + timedelta(days=1)),
            _req(annual, LeaveStatus.rejected),
        ]
        metrics = compute_metrics(requests)

        assert metrics.total_requests == 3
        assert metrics.approved_requests == 2
        assert metrics.rejected_requests == 1
        assert metrics.pending_requests == 0
        assert metrics.approval_rate == 66.7
        assert metrics.average_processing_days == 1.5

    def test_monthly_trends_cover_every_month(self):
        annual = _type("Annual")
        start = subtract_months(NOW, 3)
        requests = [
            _req(annual, LeaveStatus.pending, created_at=datetime(2026, 4, 2, tzinfo=timezone.utc)),
            _req(annual, LeaveStatus.approved, created_at=datetime(2026, 4, 20, tzinfo=timezone.utc)),
            _req(annual, LeaveStatus.rejected, created_at=datetime(2026, 6, 1, tzinfo=timezone.utc)),
        ]
        trends = compute_monthly_trends(requests, start, NOW)

        assert [t.month for t in trends] == ["Mar 2026", "Apr 2026", "May 2026", "Jun 2026"]
        april = trends[1]
        assert (april.requests, april.approved, april.pending) == (2, 1, 1)
        assert trends[2].requests == 0
        assert trends[3].rejected == 1

    def test_monthly_trends_accept_naive_timestamps(self):
        annual = _type("Annual")
        trends = compute_monthly_trends(
            [_req(annual, LeaveStatus.pending, created_at=datetime(2026, 6, 3))],
            subtract_months(NOW, 3),
            NOW,
        )
        assert trends[-1].requests == 1

    def test_type_distribution_includes_unused_types(self):
        annual, sick = _type("Annual"), _type("Sick", color="#EF4444")
        requests = [_req(annual, LeaveStatus.pending), _req(annual, LeaveStatus.approved)]

        distribution = compute_type_distribution(requests, [annual, sick])
        assert [(d.name, d.count, d.color) for d in distribution] == [
            ("Annual", 2, "#10B981"),
            ("Sick", 0, "#EF4444"),
        ]

    def test_cost_only_counts_approved_paid_days(self):
        annual, unpaid = _type("Annual"), _type("Unpaid", is_paid=False)
        requests = [
            _req(annual, LeaveStatus.approved, days="2.5"),
            _req(annual, LeaveStatus.approved, days="1"),
            _req(annual, LeaveStatus.pending, days="4"),
            _req(unpaid, LeaveStatus.approved, days="3"),
        ]
        cost = compute_cost_analysis(requests, [annual, unpaid], Decimal("150"))

        assert len(cost) == 1
        assert cost[0].leave_type == "Annual"
        assert cost[0].total_days == 3.5
        assert cost[0].estimated_cost == 525.0

    def test_team_utilization(self):
        items = compute_team_utilization([
            _allowance("Ann", "20", "5"),
            _allowance("Bob", "0", "0"),
            _allowance("Cid", "20", "6", carried="4"),
        ])
        assert [(i.name, i.utilization_rate) for i in items] == [
            ("Ann", 25.0), ("Bob", 0.0), ("Cid", 25.0),
        ]
        assert items[0].remaining_days == 15.0
        assert items[2].total_days == 24.0


# ═════════════════════════════════════════════════════════════════════
# Service (DB)
# ═════════════════════════════════════════════════════════════════════


class TestAnalyticsService:

    async def test_summary_is_team_scoped_and_windowed(self, db, owner, member, team, annual_leave):
        now = datetime.now(timezone.utc)
        outsider = await make_user(db, name="Outsider")
        await make_request(db, member, annual_leave, start_date=date(2026, 7, 1),
                           status=LeaveStatus.approved, created_at=now - timedelta(days=10),
                           approved_at=now - timedelta(days=9))
        await make_request(db, member, annual_leave, start_date=date(2026, 8, 1),
                           created_at=now - timedelta(days=5))
        await make_request(db, member, annual_leave, start_date=date(2025, 1, 1),
                           created_at=now - timedelta(days=400))
        await make_request(db, outsider, annual_leave, start_date=date(2026, 7, 1),
                           created_at=now - timedelta(days=5))
        await make_allowance(db, member, year=2026, total_days="20", used_days="1")

        summary = await AnalyticsService.get_summary(
            db, owner.id, TimeRange.three_months, 2026, now=now,
        )

        assert summary.metrics.total_requests == 2
        assert summary.metrics.approved_requests == 1
        assert summary.metrics.approval_rate == 50.0
        assert summary.metrics.average_processing_days == 1.0
        assert len(summary.monthly_trends) == 4
        assert summary.cost_analysis[0].estimated_cost == 150.0
        assert [u.email for u in summary.team_utilization] == [member.email]
        assert summary.team_utilization[0].utilization_rate == 5.0


# ═════════════════════════════════════════════════════════════════════
# Export
# ═════════════════════════════════════════════════════════════════════


def _export_data() -> AnalyticsData:
    annual = _type("Annual")
    req = _req(
        annual, LeaveStatus.approved, days="2",
        approved_at=NOW + timedelta(days=1),
    )
    req.leave_type = annual
    req.reason = "Holiday, with comma"
    from leavedesk.auth.models import User

    req.user = User(id=uuid.uuid4(), name="Max Member", email="max@example.com")
    pending = _req(annual, LeaveStatus.pending, days="1")
    pending.leave_type = annual
    pending.user = req.user
    return AnalyticsData(
        period_start=subtract_months(NOW, 6),
        period_end=NOW,
        requests=[req, pending],
        allowances=[_allowance("Max", "25", "2")],
    )


class TestExport:

    def test_filename(self):
        assert export_filename("6months", 2026, "csv") == "leave-analytics-6months-2026.csv"

    def test_csv_sections(self):
        content = build_csv(_export_data(), "6months", 2026)
        rows = list(csv.reader(io.StringIO(content)))

        assert rows[0] == ["LEAVE REQUESTS"]
        assert rows[1][:4] == ["ID", "Employee Name", "Email", "Leave Type"]
        assert rows[2][1:4] == ["Max Member", "max@example.com", "Annual"]
        assert rows[2][8] == "Holiday, with comma"
        assert ["LEAVE ALLOWANCES"] in rows
        assert ["Max", "max@example.com", "2026", "25", "2", "23", "8.0"] in rows
        assert ["SUMMARY STATISTICS"] in rows
        assert ["Approval Rate", "50.0%"] in rows
        assert ["Total Leave Days", "3"] in rows

    def test_pdf_is_a_pdf(self):
        content = build_pdf(_export_data(), "6months", 2026)
        assert content.startswith(b"%PDF")
        assert len(content) > 500

    async def test_export_endpoint_csv(self, client, owner_headers):
        resp = await client.get(
            "/api/leave/analytics/export",
            params={"format": "csv", "timeRange": "3months", "year": 2026},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="leave-analytics-3months-2026.csv"' in resp.headers["content-disposition"]
        assert resp.text.startswith("LEAVE REQUESTS")

    async def test_export_endpoint_pdf(self, client, owner_headers):
        resp = await client.get(
            "/api/leave/analytics/export",
            params={"format": "pdf", "year": 2026},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    async def test_export_unsupported_format(self, client, owner_headers):
        resp = await client.get(
            "/api/leave/analytics/export", params={"format": "xlsx"}, headers=owner_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Unsupported format"

    async def test_summary_requires_manager(self, client, member_headers):
        resp = await client.get("/api/leave/analytics/summary", headers=member_headers)
        assert resp.status_code == 403

    async def test_summary_endpoint(self, client, owner_headers):
        resp = await client.get(
            "/api/leave/analytics/summary", params={"timeRange": "12months"}, headers=owner_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["time_range"] == "12months"
        assert len(body["monthly_trends"]) == 13
