"""Leave Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → response bodies (read)
  - *Brief              → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from leavedesk.auth.schemas import UserBrief
from leavedesk.common.constants import MAX_REQUEST_SPAN_DAYS, LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Leave Type
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeBrief(BaseModel):
    """Minimal leave type info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    color: str
    is_paid: bool = True


class LeaveTypeOut(BaseModel):
    """Full leave type representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    color: str
    is_paid: bool = True
    requires_approval: bool = True
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Leave Allowance
# ═════════════════════════════════════════════════════════════════════


class LeaveAllowanceOut(BaseModel):
    """Annual allowance with the derived remaining balance."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    year: int
    total_days: Decimal
    used_days: Decimal
    carried_over: Decimal

    @computed_field  # type: ignore[misc]
    @property
    def remaining_days(self) -> Decimal:
        return self.total_days + self.carried_over - self.used_days


class LeaveAllowanceWithUser(LeaveAllowanceOut):
    user: UserBrief


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request."""

    leave_type_id: uuid.UUID
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    total_days: Optional[Decimal] = Field(
        None,
        gt=0,
        decimal_places=1,
        description="Override for half days; defaults to the calendar days in the range",
    )
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestCreate":
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date.")
        if (self.end_date - self.start_date).days >= MAX_REQUEST_SPAN_DAYS:
            raise ValueError(
                f"Leave request cannot span more than {MAX_REQUEST_SPAN_DAYS} days."
            )
        if self.total_days is not None and (self.total_days * 2) % 1 != 0:
            raise ValueError("Total days must be a multiple of 0.5.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal
    reason: Optional[str] = None
    status: LeaveStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # Enriched by service
    user: Optional[UserBrief] = None
    leave_type: Optional[LeaveTypeBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Approve / Reject
# ═════════════════════════════════════════════════════════════════════


class LeaveApproveRequest(BaseModel):
    """Payload for approving a leave request."""

    remarks: Optional[str] = Field(None, max_length=500)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request."""

    reason: str = Field(..., min_length=1, max_length=500)

    @model_validator(mode="after")
    def reason_not_blank(self) -> "LeaveRejectRequest":
        if not self.reason.strip():
            raise ValueError("Rejection reason is required.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Leave Calendar
# ═════════════════════════════════════════════════════════════════════


class LeaveCalendarEntry(BaseModel):
    """Single entry in the team leave calendar."""

    id: uuid.UUID
    user: UserBrief
    leave_type: LeaveTypeBrief
    start_date: date
    end_date: date
    total_days: Decimal
    status: LeaveStatus


class LeaveCalendarOut(BaseModel):
    """Team leave calendar view for a given month."""

    month: int
    year: int
    entries: list[LeaveCalendarEntry]
    total_entries: int = 0
