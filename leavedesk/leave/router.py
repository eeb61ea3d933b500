"""Leave router: types, requests, approve/reject, allowances, calendar.

All endpoints require authentication. Team-wide views and reviews require
a manager role (owner or admin).
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user, require_manager
from leavedesk.auth.models import User
from leavedesk.common.constants import LeaveStatus
from leavedesk.database import get_db
from leavedesk.leave.schemas import (
    LeaveAllowanceOut,
    LeaveAllowanceWithUser,
    LeaveApproveRequest,
    LeaveCalendarOut,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeOut,
)
from leavedesk.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


def _current_year() -> int:
    return date.today().year


# ── GET /types ──────────────────────────────────────────────────────

@router.get("/types", response_model=list[LeaveTypeOut])
async def list_leave_types(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_leave_types(db)


# ── GET/POST /requests ──────────────────────────────────────────────

@router.get("/requests", response_model=list[LeaveRequestOut])
async def my_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user's own requests, newest first."""
    return await LeaveService.get_my_requests(db, user.id)


@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
async def create_request(
    body: LeaveRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request. Validates dates, policies, overlap and allowance."""
    return await LeaveService.create_request(db, user, body)


# ── Manager views ───────────────────────────────────────────────────

@router.get("/requests/pending", response_model=list[LeaveRequestOut])
async def pending_requests(
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_team_requests(db, user.id, status=LeaveStatus.pending)


@router.get("/requests/all", response_model=list[LeaveRequestOut])
async def all_requests(
    status: Optional[LeaveStatus] = Query(None),
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_team_requests(db, user.id, status=status)


# ── POST /requests/{id}/approve ─────────────────────────────────────

@router.post("/requests/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_request(
    request_id: uuid.UUID,
    body: Optional[LeaveApproveRequest] = None,
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request. Charges the requester's allowance."""
    return await LeaveService.approve_request(
        db, request_id, user, remarks=body.remarks if body else None,
    )


# ── POST /requests/{id}/reject ──────────────────────────────────────

@router.post("/requests/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_request(
    request_id: uuid.UUID,
    body: LeaveRejectRequest,
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending request with a reason."""
    return await LeaveService.reject_request(db, request_id, user, body.reason)


# ── Allowances ──────────────────────────────────────────────────────

@router.get("/allowance", response_model=LeaveAllowanceOut)
async def my_allowance(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Defaults to current year"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_allowance(db, user.id, year or _current_year())


@router.get("/allowances/all", response_model=list[LeaveAllowanceWithUser])
async def team_allowances(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_team_allowances(db, user.id, year or _current_year())


# ── GET /calendar ───────────────────────────────────────────────────

@router.get("/calendar", response_model=LeaveCalendarOut)
async def leave_calendar(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    leave_type_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Team leave overlapping a month, optionally filtered by leave type."""
    return await LeaveService.get_leave_calendar(
        db, user.id, month, year, leave_type_id=leave_type_id,
    )
