"""Leave policy ORM models: LeavePolicy, LeavePolicyRule."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavedesk.common.audit import TimestampMixin, utcnow
from leavedesk.database import Base


class LeavePolicy(Base, TimestampMixin):
    __tablename__ = "leave_policies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    # NULL applies the policy to every leave type
    leave_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("leave_types.id", ondelete="CASCADE")
    )
    min_notice_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    max_consecutive_days: Mapped[Optional[int]] = mapped_column(sa.Integer)
    max_requests_per_year: Mapped[Optional[int]] = mapped_column(sa.Integer)
    requires_approval: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=True, server_default=sa.text("TRUE")
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=True, server_default=sa.text("TRUE")
    )

    # Relationships
    leave_type: Mapped[Optional["LeaveType"]] = relationship()
    rules: Mapped[list[LeavePolicyRule]] = relationship(
        back_populates="policy",
        cascade="all, delete-orphan",
        order_by="LeavePolicyRule.created_at",
    )


class LeavePolicyRule(Base):
    __tablename__ = "leave_policy_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    policy_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("leave_policies.id", ondelete="CASCADE"),
        nullable=False,
    )
    rule_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    rule_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    # Relationships
    policy: Mapped[LeavePolicy] = relationship(back_populates="rules")
