"""CSV and PDF renderings of the analytics export."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from leavedesk.analytics.service import AnalyticsData, compute_team_utilization
from leavedesk.common.constants import DATE_FORMAT, LeaveStatus
from leavedesk.leave.models import LeaveRequest

REQUEST_HEADER = [
    "ID", "Employee Name", "Email", "Leave Type", "Start Date", "End Date",
    "Total Days", "Status", "Reason", "Created Date", "Approved Date",
]
ALLOWANCE_HEADER = [
    "Employee Name", "Email", "Year", "Total Days", "Used Days",
    "Remaining Days", "Utilization Rate (%)",
]

PDF_MARGIN = 50
PDF_LINE_HEIGHT = 14


def export_filename(time_range: str, year: int, extension: str) -> str:
    return f"leave-analytics-{time_range}-{year}.{extension}"


def _iso(moment: Optional[datetime]) -> str:
    return moment.isoformat() if moment is not None else ""


def _number(value) -> str:
    """Render a day count without a trailing ``.0``."""
    number = Decimal(str(value)).normalize()
    return format(number, "f")


def _summary_rows(requests: Sequence[LeaveRequest], time_range: str, year: int) -> list[list[str]]:
    total = len(requests)
    approved = sum(1 for r in requests if r.status == LeaveStatus.approved)
    rate = f"{approved / total * 100:.1f}" if total else "0"
    total_days = sum((Decimal(str(r.total_days)) for r in requests), Decimal("0"))
    return [
        ["Time Range", time_range],
        ["Year", str(year)],
        ["Total Requests", str(total)],
        ["Approved Requests", str(approved)],
        ["Approval Rate", f"{rate}%"],
        ["Total Leave Days", _number(total_days)],
    ]


def _request_row(req: LeaveRequest) -> list[str]:
    return [
        str(req.id),
        req.user.name if req.user else "",
        req.user.email if req.user else "",
        req.leave_type.name if req.leave_type else "",
        req.start_date.strftime(DATE_FORMAT),
        req.end_date.strftime(DATE_FORMAT),
        _number(req.total_days),
        req.status.value,
        req.reason or "",
        _iso(req.created_at),
        _iso(req.approved_at),
    ]


def _allowance_rows(data: AnalyticsData, year: int) -> list[list[str]]:
    return [
        [
            item.name,
            item.email,
            str(year),
            _number(item.total_days),
            _number(item.used_days),
            _number(item.remaining_days),
            f"{item.utilization_rate:.1f}",
        ]
        for item in compute_team_utilization(data.allowances)
    ]


# ── CSV ─────────────────────────────────────────────────────────────

def build_csv(data: AnalyticsData, time_range: str, year: int) -> str:
    """Three sections separated by blank lines: requests, allowances, summary."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(["LEAVE REQUESTS"])
    writer.writerow(REQUEST_HEADER)
    for req in data.requests:
        writer.writerow(_request_row(req))

    output.write("\n\n")
    writer.writerow(["LEAVE ALLOWANCES"])
    writer.writerow(ALLOWANCE_HEADER)
    writer.writerows(_allowance_rows(data, year))

    output.write("\n\n")
    writer.writerow(["SUMMARY STATISTICS"])
    writer.writerows(_summary_rows(data.requests, time_range, year))

    return output.getvalue()


# ── PDF ─────────────────────────────────────────────────────────────

def build_pdf(
    data: AnalyticsData,
    time_range: str,
    year: int,
    *,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """A plain text-row report drawn on A4 pages with reportlab."""
    generated_at = generated_at or data.period_end
    lines = [
        "LEAVE ANALYTICS REPORT",
        f"Generated on: {generated_at.strftime(DATE_FORMAT)}",
        f"Time Range: {time_range}",
        f"Year: {year}",
        "",
        "SUMMARY",
    ]
    lines += [f"{label}: {value}" for label, value in _summary_rows(data.requests, time_range, year)]

    lines += ["", "LEAVE REQUESTS"]
    for req in data.requests:
        row = _request_row(req)
        # Employee, type, dates, days, status
        lines.append(f"{row[1]} | {row[3]} | {row[4]} to {row[5]} | {row[6]} days | {row[7]}")
    if not data.requests:
        lines.append("No leave requests in this period.")

    lines += ["", "LEAVE ALLOWANCES"]
    allowance_rows = _allowance_rows(data, year)
    for row in allowance_rows:
        lines.append(f"{row[0]} | {row[3]} total | {row[4]} used | {row[5]} remaining | {row[6]}%")
    if not allowance_rows:
        lines.append("No allowances for this year.")

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Leave analytics {time_range} {year}")
    _, height = A4
    y = height - PDF_MARGIN
    for line in lines:
        if y < PDF_MARGIN:
            pdf.showPage()
            y = height - PDF_MARGIN
        pdf.drawString(PDF_MARGIN, y, line)
        y -= PDF_LINE_HEIGHT
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
