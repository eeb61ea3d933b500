"""Analytics router: team summary and CSV/PDF export for managers."""


from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.analytics.export import build_csv, build_pdf, export_filename
from leavedesk.analytics.schemas import AnalyticsSummaryResponse
from leavedesk.analytics.service import AnalyticsService
from leavedesk.auth.dependencies import require_manager
from leavedesk.auth.models import User
from leavedesk.common.constants import ExportFormat, TimeRange
from leavedesk.common.exceptions import ValidationException
from leavedesk.database import get_db

router = APIRouter(prefix="", tags=["analytics"])


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=AnalyticsSummaryResponse)
async def analytics_summary(
    time_range: TimeRange = Query(TimeRange.six_months, alias="timeRange"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    """Metrics, monthly trends, type distribution, cost and utilization."""
    return await AnalyticsService.get_summary(
        db, user.id, time_range, year or date.today().year,
    )


# ── GET /export ─────────────────────────────────────────────────────

@router.get("/export")
async def analytics_export(
    format: str = Query("csv"),
    time_range: TimeRange = Query(TimeRange.six_months, alias="timeRange"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    """Download team requests and allowances as CSV or PDF."""
    if format not in {f.value for f in ExportFormat}:
        raise ValidationException({"format": ["Unsupported format"]})

    year = year or date.today().year
    data = await AnalyticsService.get_data(db, user.id, time_range, year)

    if format == ExportFormat.csv.value:
        content = build_csv(data, time_range.value, year)
        media_type = "text/csv"
    else:
        content = build_pdf(data, time_range.value, year)
        media_type = "application/pdf"

    filename = export_filename(time_range.value, year, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
