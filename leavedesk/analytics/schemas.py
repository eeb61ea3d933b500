"""Analytics Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class AnalyticsMetrics(BaseModel):
    total_requests: int = 0
    approved_requests: int = 0
    rejected_requests: int = 0
    pending_requests: int = 0
    approval_rate: float = 0.0
    average_processing_days: float = 0.0


class MonthlyTrendPoint(BaseModel):
    month: str  # "Jan 2026"
    requests: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0


class LeaveTypeDistributionItem(BaseModel):
    leave_type_id: uuid.UUID
    name: str
    count: int
    color: str


class CostAnalysisItem(BaseModel):
    leave_type: str
    total_days: float
    estimated_cost: float
    color: str


class TeamUtilizationItem(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    total_days: float
    used_days: float
    remaining_days: float
    utilization_rate: float


class AnalyticsSummaryResponse(BaseModel):
    time_range: str
    year: int
    period_start: datetime
    period_end: datetime
    metrics: AnalyticsMetrics
    monthly_trends: list[MonthlyTrendPoint]
    leave_type_distribution: list[LeaveTypeDistributionItem]
    cost_analysis: list[CostAnalysisItem]
    team_utilization: list[TeamUtilizationItem]
