"""Leave service layer: allowance bookkeeping, submissions, approvals.

Business logic:
  - Inclusive calendar-day counting with optional half-day override
  - Policy enforcement (notice, consecutive days, yearly frequency)
  - Allowance get-or-create with capped carry-over from the previous year
  - Exactly-once pending → approved / rejected transitions
  - Team calendar and manager views scoped to the caller's team
"""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Awaitable, Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavedesk.auth.models import User
from leavedesk.auth.schemas import UserBrief
from leavedesk.common.audit import create_audit_entry
from leavedesk.common.constants import ACTIVE_LEAVE_STATUSES, LeaveStatus
from leavedesk.common.exceptions import NotFoundException, ValidationException
from leavedesk.company.service import CompanyService
from leavedesk.leave.models import LeaveAllowance, LeaveRequest, LeaveType
from leavedesk.leave.schemas import (
    LeaveAllowanceOut,
    LeaveAllowanceWithUser,
    LeaveCalendarEntry,
    LeaveCalendarOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeBrief,
    LeaveTypeOut,
)
from leavedesk.notifications.service import (
    notify_leave_approved,
    notify_leave_rejected,
    notify_leave_submitted,
    notify_manager_of_request,
)
from leavedesk.policies.models import LeavePolicy
from leavedesk.team.service import TeamService

logger = logging.getLogger(__name__)

NOT_PENDING_MESSAGE = "Leave request is not pending."


async def _notify(send: Awaitable[bool]) -> None:
    """Run an email dispatch without letting it fail the request."""
    try:
        await send
    except Exception:
        logger.exception("Leave notification failed")


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: types, allowances, requests, approvals."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def calculate_leave_days(start_date: date, end_date: date) -> Decimal:
        """Calendar days in the inclusive range."""
        if end_date < start_date:
            return Decimal("0")
        return Decimal((end_date - start_date).days + 1)

    @staticmethod
    def resolve_total_days(
        start_date: date,
        end_date: date,
        requested: Optional[Decimal],
    ) -> Decimal:
        """Use the requested count (half days) when given, capped at the span."""
        span = LeaveService.calculate_leave_days(start_date, end_date)
        if requested is None:
            return span
        if requested > span:
            raise ValidationException(
                {"total_days": [
                    f"Total days cannot exceed the {span} calendar days "
                    "in the selected range."
                ]}
            )
        return requested

    @staticmethod
    def _build_request_response(
        req: LeaveRequest,
        *,
        user: Optional[User] = None,
        leave_type: Optional[LeaveType] = None,
    ) -> LeaveRequestOut:
        """Build LeaveRequestOut from column values plus already-loaded relations."""
        return LeaveRequestOut(
            id=req.id,
            user_id=req.user_id,
            leave_type_id=req.leave_type_id,
            start_date=req.start_date,
            end_date=req.end_date,
            total_days=req.total_days,
            reason=req.reason,
            status=req.status,
            approved_by=req.approved_by,
            approved_at=req.approved_at,
            rejection_reason=req.rejection_reason,
            created_at=req.created_at,
            updated_at=req.updated_at,
            user=UserBrief.model_validate(user) if user is not None else None,
            leave_type=(
                LeaveTypeBrief.model_validate(leave_type)
                if leave_type is not None else None
            ),
        )

    @staticmethod
    async def _get_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id)
            .options(
                selectinload(LeaveRequest.user),
                selectinload(LeaveRequest.leave_type),
            )
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("Leave request", str(request_id))
        return leave_req

    @staticmethod
    async def _get_pending_days(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
    ) -> Decimal:
        """Sum total_days of pending requests starting in ``year``."""
        first, last = _year_bounds(year)
        query = select(func.coalesce(func.sum(LeaveRequest.total_days), 0)).where(
            LeaveRequest.user_id == user_id,
            LeaveRequest.status == LeaveStatus.pending,
            LeaveRequest.start_date >= first,
            LeaveRequest.start_date <= last,
        )
        result = await db.execute(query)
        return Decimal(str(result.scalar_one()))

    @staticmethod
    async def _charge_allowance(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        days: Decimal,
    ) -> LeaveAllowance:
        """Add ``days`` to used_days with a single in-database increment."""
        allowance = await LeaveService.get_or_create_allowance(db, user_id, year)
        await db.execute(
            update(LeaveAllowance)
            .where(LeaveAllowance.id == allowance.id)
            .values(
                used_days=LeaveAllowance.used_days + days,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        await db.refresh(allowance)
        return allowance

    # ─────────────────────────────────────────────────────────────────
    # Leave Types
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_types(db: AsyncSession) -> list[LeaveTypeOut]:
        """List all leave types ordered by name."""
        result = await db.execute(select(LeaveType).order_by(LeaveType.name))
        return [LeaveTypeOut.model_validate(lt) for lt in result.scalars().all()]

    # ─────────────────────────────────────────────────────────────────
    # Allowance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_or_create_allowance(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
    ) -> LeaveAllowance:
        """Return the user's allowance for ``year``, creating it on first use.

        New allowances take the company default and, when carry-over is on,
        up to ``max_carry_over_days`` of last year's unused days.
        """
        query = select(LeaveAllowance).where(
            LeaveAllowance.user_id == user_id,
            LeaveAllowance.year == year,
        )
        allowance = (await db.execute(query)).scalars().first()
        if allowance is not None:
            return allowance

        company = await CompanyService.get_settings(db)
        carried_over = Decimal("0")
        if company.allow_carry_over and company.max_carry_over_days > 0:
            prev = (
                await db.execute(
                    select(LeaveAllowance).where(
                        LeaveAllowance.user_id == user_id,
                        LeaveAllowance.year == year - 1,
                    )
                )
            ).scalars().first()
            if prev is not None:
                carried_over = min(
                    Decimal(company.max_carry_over_days),
                    max(prev.remaining_days, Decimal("0")),
                )

        allowance = LeaveAllowance(
            user_id=user_id,
            year=year,
            total_days=Decimal(company.default_annual_leave_days),
            used_days=Decimal("0"),
            carried_over=carried_over,
        )
        db.add(allowance)
        await db.flush()
        return allowance

    @staticmethod
    async def get_allowance(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
    ) -> LeaveAllowanceOut:
        allowance = await LeaveService.get_or_create_allowance(db, user_id, year)
        return LeaveAllowanceOut.model_validate(allowance)

    @staticmethod
    async def get_team_allowances(
        db: AsyncSession,
        manager_id: uuid.UUID,
        year: int,
    ) -> list[LeaveAllowanceWithUser]:
        """Existing allowances of the manager's team for ``year``."""
        user_ids = await TeamService.get_team_user_ids(db, manager_id)
        result = await db.execute(
            select(LeaveAllowance)
            .join(User, User.id == LeaveAllowance.user_id)
            .where(
                LeaveAllowance.user_id.in_(user_ids),
                LeaveAllowance.year == year,
            )
            .options(selectinload(LeaveAllowance.user))
            .order_by(User.name)
        )
        return [
            LeaveAllowanceWithUser.model_validate(a) for a in result.scalars().all()
        ]

    # ─────────────────────────────────────────────────────────────────
    # Policies
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_applicable_policies(
        db: AsyncSession,
        leave_type_id: uuid.UUID,
    ) -> Sequence[LeavePolicy]:
        result = await db.execute(
            select(LeavePolicy).where(
                LeavePolicy.is_active.is_(True),
                or_(
                    LeavePolicy.leave_type_id == leave_type_id,
                    LeavePolicy.leave_type_id.is_(None),
                ),
            )
        )
        return result.scalars().all()

    @staticmethod
    async def _check_policies(
        db: AsyncSession,
        user_id: uuid.UUID,
        leave_type: LeaveType,
        policies: Sequence[LeavePolicy],
        start_date: date,
        total_days: Decimal,
        today: date,
    ) -> None:
        """Raise ValidationException listing every violated policy constraint."""
        errors: dict[str, list[str]] = {}
        notice_days = (start_date - today).days

        for policy in policies:
            if policy.min_notice_days and notice_days < policy.min_notice_days:
                errors.setdefault("start_date", []).append(
                    f"{policy.name} requires at least {policy.min_notice_days} "
                    "days notice."
                )

            if policy.max_consecutive_days and total_days > policy.max_consecutive_days:
                errors.setdefault("total_days", []).append(
                    f"{policy.name} allows at most {policy.max_consecutive_days} "
                    "consecutive days."
                )

            if policy.max_requests_per_year:
                first, last = _year_bounds(start_date.year)
                count_q = select(func.count()).select_from(LeaveRequest).where(
                    LeaveRequest.user_id == user_id,
                    LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
                    LeaveRequest.start_date >= first,
                    LeaveRequest.start_date <= last,
                )
                if policy.leave_type_id is not None:
                    count_q = count_q.where(LeaveRequest.leave_type_id == leave_type.id)
                taken = (await db.execute(count_q)).scalar_one()
                if taken >= policy.max_requests_per_year:
                    errors.setdefault("leave_type_id", []).append(
                        f"{policy.name} allows at most {policy.max_requests_per_year} "
                        f"requests per year."
                    )

        if errors:
            raise ValidationException(errors)

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_request(
        db: AsyncSession,
        user: User,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        """Submit a leave request with full validation:
        - Start date not in the past, valid leave type
        - Day count from the date range (optional half-day override)
        - No overlapping pending/approved requests
        - Active policy constraints
        - Sufficient remaining allowance after pending requests
        Auto-approves when neither the leave type nor any policy needs review.
        """
        now = datetime.now(timezone.utc)
        today = now.date()

        if data.start_date < today:
            raise ValidationException({"start_date": ["Start date cannot be in the past."]})

        leave_type = await db.get(LeaveType, data.leave_type_id)
        if leave_type is None:
            raise ValidationException({"leave_type_id": ["Invalid leave type."]})

        total_days = LeaveService.resolve_total_days(
            data.start_date, data.end_date, data.total_days,
        )

        # ── Check overlapping leaves ────────────────────────────────
        overlap_result = await db.execute(
            select(func.count()).select_from(LeaveRequest).where(
                LeaveRequest.user_id == user.id,
                LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
                LeaveRequest.start_date <= data.end_date,
                LeaveRequest.end_date >= data.start_date,
            )
        )
        if overlap_result.scalar_one() > 0:
            raise ValidationException(
                {"start_date": [
                    "You already have a pending or approved leave request "
                    "overlapping these dates."
                ]}
            )

        # ── Policies ────────────────────────────────────────────────
        policies = await LeaveService._get_applicable_policies(db, leave_type.id)
        await LeaveService._check_policies(
            db, user.id, leave_type, policies, data.start_date, total_days, today,
        )

        # ── Allowance ───────────────────────────────────────────────
        year = data.start_date.year
        allowance = await LeaveService.get_or_create_allowance(db, user.id, year)
        pending = await LeaveService._get_pending_days(db, user.id, year)
        available = allowance.remaining_days - pending
        if total_days > available:
            raise ValidationException(
                {"total_days": [
                    f"Insufficient leave allowance. Available: {available}, "
                    f"Requested: {total_days}."
                ]}
            )

        needs_approval = leave_type.requires_approval or any(
            p.requires_approval for p in policies
        )

        leave_request = LeaveRequest(
            user_id=user.id,
            leave_type_id=leave_type.id,
            start_date=data.start_date,
            end_date=data.end_date,
            total_days=total_days,
            reason=data.reason,
            status=LeaveStatus.pending if needs_approval else LeaveStatus.approved,
            approved_at=None if needs_approval else now,
        )
        db.add(leave_request)
        await db.flush()

        if not needs_approval:
            await LeaveService._charge_allowance(db, user.id, year, total_days)

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave_request.id,
            actor_id=user.id,
            new_values={
                "leave_type": leave_type.name,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "total_days": str(total_days),
                "status": leave_request.status.value,
            },
        )

        # ── Notify ──────────────────────────────────────────────────
        await _notify(notify_leave_submitted(leave_request, user, leave_type))
        if needs_approval:
            manager = await TeamService.get_team_manager(db, user.id)
            if manager is not None and manager.id != user.id:
                await _notify(
                    notify_manager_of_request(leave_request, user, leave_type, manager)
                )

        return LeaveService._build_request_response(
            leave_request, user=user, leave_type=leave_type,
        )

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _transition(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer: User,
        new_status: LeaveStatus,
        values: dict,
    ) -> LeaveRequest:
        """Move a pending request to ``new_status`` exactly once.

        The status guard lives in the UPDATE itself, so of two concurrent
        reviewers only one matches a row.
        """
        leave_req = await LeaveService._get_request(db, request_id)
        await TeamService.ensure_same_team(db, reviewer.id, leave_req.user_id)

        if leave_req.status != LeaveStatus.pending:
            raise ValidationException({"status": [NOT_PENDING_MESSAGE]})

        result = await db.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.id == request_id,
                LeaveRequest.status == LeaveStatus.pending,
            )
            .values(
                status=new_status,
                updated_at=datetime.now(timezone.utc),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ValidationException({"status": [NOT_PENDING_MESSAGE]})
        return leave_req

    @staticmethod
    async def approve_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver: User,
        *,
        remarks: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Approve a pending request and charge its days to the allowance."""
        leave_req = await LeaveService._transition(
            db,
            request_id,
            approver,
            LeaveStatus.approved,
            {"approved_by": approver.id, "approved_at": datetime.now(timezone.utc)},
        )
        requester, leave_type = leave_req.user, leave_req.leave_type

        await LeaveService._charge_allowance(
            db, leave_req.user_id, leave_req.start_date.year, leave_req.total_days,
        )
        await db.refresh(leave_req)

        await create_audit_entry(
            db,
            action="approve",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=approver.id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": LeaveStatus.approved.value, "remarks": remarks},
        )

        await _notify(notify_leave_approved(leave_req, requester, leave_type, approver))

        return LeaveService._build_request_response(
            leave_req, user=requester, leave_type=leave_type,
        )

    @staticmethod
    async def reject_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver: User,
        reason: str,
    ) -> LeaveRequestOut:
        """Reject a pending request. The allowance is left untouched."""
        reason = reason.strip()
        leave_req = await LeaveService._transition(
            db,
            request_id,
            approver,
            LeaveStatus.rejected,
            {"rejection_reason": reason},
        )
        requester, leave_type = leave_req.user, leave_req.leave_type
        await db.refresh(leave_req)

        await create_audit_entry(
            db,
            action="reject",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=approver.id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": LeaveStatus.rejected.value, "reason": reason},
        )

        await _notify(
            notify_leave_rejected(leave_req, requester, leave_type, approver, reason)
        )

        return LeaveService._build_request_response(
            leave_req, user=requester, leave_type=leave_type,
        )

    # ─────────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_my_requests(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> list[LeaveRequestOut]:
        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.user_id == user_id)
            .options(selectinload(LeaveRequest.leave_type))
            .order_by(LeaveRequest.created_at.desc())
        )
        return [
            LeaveService._build_request_response(r, leave_type=r.leave_type)
            for r in result.scalars().all()
        ]

    @staticmethod
    async def get_team_requests(
        db: AsyncSession,
        manager_id: uuid.UUID,
        *,
        status: Optional[LeaveStatus] = None,
    ) -> list[LeaveRequestOut]:
        """Requests filed by the manager's team, newest first."""
        user_ids = await TeamService.get_team_user_ids(db, manager_id)
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.user_id.in_(user_ids))
            .options(
                selectinload(LeaveRequest.user),
                selectinload(LeaveRequest.leave_type),
            )
            .order_by(LeaveRequest.created_at.desc())
        )
        if status is not None:
            query = query.where(LeaveRequest.status == status)

        result = await db.execute(query)
        return [
            LeaveService._build_request_response(r, user=r.user, leave_type=r.leave_type)
            for r in result.scalars().all()
        ]

    # ─────────────────────────────────────────────────────────────────
    # Calendar
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_calendar(
        db: AsyncSession,
        user_id: uuid.UUID,
        month: int,
        year: int,
        *,
        leave_type_id: Optional[uuid.UUID] = None,
    ) -> LeaveCalendarOut:
        """Pending and approved team leave overlapping the given month."""
        first_day = date(year, month, 1)
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        user_ids = await TeamService.get_team_user_ids(db, user_id)

        query = (
            select(LeaveRequest)
            .where(
                LeaveRequest.user_id.in_(user_ids),
                LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
                LeaveRequest.start_date <= last_day,
                LeaveRequest.end_date >= first_day,
            )
            .options(
                selectinload(LeaveRequest.user),
                selectinload(LeaveRequest.leave_type),
            )
            .order_by(LeaveRequest.start_date)
        )
        if leave_type_id is not None:
            query = query.where(LeaveRequest.leave_type_id == leave_type_id)

        result = await db.execute(query)
        entries = [
            LeaveCalendarEntry(
                id=r.id,
                user=UserBrief.model_validate(r.user),
                leave_type=LeaveTypeBrief.model_validate(r.leave_type),
                start_date=r.start_date,
                end_date=r.end_date,
                total_days=r.total_days,
                status=r.status,
            )
            for r in result.scalars().all()
        ]
        return LeaveCalendarOut(
            month=month,
            year=year,
            entries=entries,
            total_entries=len(entries),
        )
