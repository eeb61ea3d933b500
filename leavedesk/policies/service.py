"""Leave policy service: CRUD for policies and their rules."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavedesk.common.audit import create_audit_entry
from leavedesk.common.exceptions import NotFoundException, ValidationException
from leavedesk.leave.models import LeaveType
from leavedesk.policies.models import LeavePolicy, LeavePolicyRule
from leavedesk.policies.schemas import (
    LeavePolicyCreate,
    LeavePolicyOut,
    LeavePolicyUpdate,
    PolicyRuleIn,
)

# Columns that may be cleared by sending null
_NULLABLE_FIELDS = {"description", "leave_type_id", "max_consecutive_days", "max_requests_per_year"}


def _snapshot(policy: LeavePolicy) -> dict[str, Any]:
    return {
        "name": policy.name,
        "leave_type_id": str(policy.leave_type_id) if policy.leave_type_id else None,
        "min_notice_days": policy.min_notice_days,
        "max_consecutive_days": policy.max_consecutive_days,
        "max_requests_per_year": policy.max_requests_per_year,
        "requires_approval": policy.requires_approval,
        "is_active": policy.is_active,
    }


class PolicyService:
    """Async leave-policy operations."""

    @staticmethod
    async def _ensure_leave_type(db: AsyncSession, leave_type_id: Optional[uuid.UUID]) -> None:
        if leave_type_id is not None and await db.get(LeaveType, leave_type_id) is None:
            raise ValidationException({"leave_type_id": ["Invalid leave type."]})

    @staticmethod
    def _build_rules(rules: list[PolicyRuleIn]) -> list[LeavePolicyRule]:
        return [LeavePolicyRule(rule_type=r.rule_type, rule_data=r.rule_data) for r in rules]

    @staticmethod
    async def _get_policy(db: AsyncSession, policy_id: uuid.UUID) -> LeavePolicy:
        result = await db.execute(
            select(LeavePolicy)
            .where(LeavePolicy.id == policy_id)
            .options(selectinload(LeavePolicy.rules))
        )
        policy = result.scalars().first()
        if policy is None:
            raise NotFoundException("Leave policy", str(policy_id))
        return policy

    @staticmethod
    async def list_policies(db: AsyncSession) -> list[LeavePolicyOut]:
        result = await db.execute(
            select(LeavePolicy)
            .options(selectinload(LeavePolicy.rules))
            .order_by(LeavePolicy.name)
        )
        return [LeavePolicyOut.model_validate(p) for p in result.scalars().all()]

    @staticmethod
    async def create_policy(
        db: AsyncSession,
        data: LeavePolicyCreate,
        actor_id: uuid.UUID,
    ) -> LeavePolicyOut:
        await PolicyService._ensure_leave_type(db, data.leave_type_id)

        policy = LeavePolicy(
            **data.model_dump(exclude={"rules"}),
            rules=PolicyService._build_rules(data.rules),
        )
        db.add(policy)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_policy",
            entity_id=policy.id,
            actor_id=actor_id,
            new_values=_snapshot(policy),
        )
        return LeavePolicyOut.model_validate(policy)

    @staticmethod
    async def update_policy(
        db: AsyncSession,
        policy_id: uuid.UUID,
        data: LeavePolicyUpdate,
        actor_id: uuid.UUID,
    ) -> LeavePolicyOut:
        policy = await PolicyService._get_policy(db, policy_id)
        old_values = _snapshot(policy)

        changes = data.model_dump(exclude_unset=True, exclude={"rules"})
        if "leave_type_id" in changes:
            await PolicyService._ensure_leave_type(db, changes["leave_type_id"])

        for field, value in changes.items():
            if value is None and field not in _NULLABLE_FIELDS:
                continue
            setattr(policy, field, value)

        if data.rules is not None:
            policy.rules = PolicyService._build_rules(data.rules)

        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="leave_policy",
            entity_id=policy.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=_snapshot(policy),
        )
        return LeavePolicyOut.model_validate(policy)

    @staticmethod
    async def delete_policy(
        db: AsyncSession,
        policy_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        policy = await PolicyService._get_policy(db, policy_id)
        old_values = _snapshot(policy)
        await db.delete(policy)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="leave_policy",
            entity_id=policy_id,
            actor_id=actor_id,
            old_values=old_values,
        )
