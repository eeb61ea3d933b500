"""Enums and constants for LeaveDesk: matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    member = "member"
    admin = "admin"
    owner = "owner"


class TeamRole(str, enum.Enum):
    owner = "owner"
    member = "member"


# Roles allowed to review requests and read team-wide data
MANAGER_ROLES: tuple[UserRole, ...] = (UserRole.owner, UserRole.admin)


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Statuses that occupy calendar days and allowance
ACTIVE_LEAVE_STATUSES: tuple[LeaveStatus, ...] = (
    LeaveStatus.pending,
    LeaveStatus.approved,
)


# ── Analytics ───────────────────────────────────────────────────────

class TimeRange(str, enum.Enum):
    three_months = "3months"
    six_months = "6months"
    twelve_months = "12months"

    @property
    def months(self) -> int:
        return int(self.value.removesuffix("months"))


class ExportFormat(str, enum.Enum):
    csv = "csv"
    pdf = "pdf"


# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%Y-%m-%d"
MONTH_LABEL_FORMAT = "%b %Y"       # Jan 2026
DEFAULT_LEAVE_TYPE_COLOR = "#3B82F6"
MAX_REQUEST_SPAN_DAYS = 366
