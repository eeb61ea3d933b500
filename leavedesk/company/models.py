"""Company settings ORM model (single row)."""

from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from leavedesk.common.audit import TimestampMixin
from leavedesk.database import Base


class CompanySettings(Base, TimestampMixin):
    __tablename__ = "company_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_name: Mapped[str] = mapped_column(
        sa.String(100), nullable=False, default="Your Company", server_default="Your Company"
    )
    default_annual_leave_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=25, server_default=sa.text("25")
    )
    allow_carry_over: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=True, server_default=sa.text("TRUE")
    )
    max_carry_over_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=5, server_default=sa.text("5")
    )
    # MM-DD
    fiscal_year_start: Mapped[str] = mapped_column(
        sa.String(5), nullable=False, default="01-01", server_default="01-01"
    )
    estimated_daily_cost: Mapped[Decimal] = mapped_column(
        sa.Numeric(10, 2), nullable=False, default=Decimal("150"), server_default=sa.text("150")
    )
    # Stored for the dashboard; day counts stay calendar-based
    working_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=1, server_default=sa.text("1")
    )
